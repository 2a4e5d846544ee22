"""Repository implementations."""

from transfer_client.infrastructure.repositories.balances import BalanceStore
from transfer_client.infrastructure.repositories.ledger import TransactionLedger


__all__ = [
    "BalanceStore",
    "TransactionLedger",
]
