"""Domain layer - business entities and rules."""

from transfer_client.domain.exceptions import (
    AuthenticationDeniedError,
    DomainError,
    InsufficientFundsError,
    InvalidTransferInputError,
    SettlementError,
    TransferInProgressError,
)
from transfer_client.domain.models import (
    Account,
    BiometricError,
    BiometricResult,
    BiometricType,
    Contact,
    Recipient,
    Transaction,
    TransactionStatus,
)


__all__ = [
    "Account",
    "AuthenticationDeniedError",
    "BiometricError",
    "BiometricResult",
    "BiometricType",
    "Contact",
    "DomainError",
    "InsufficientFundsError",
    "InvalidTransferInputError",
    "Recipient",
    "SettlementError",
    "Transaction",
    "TransactionStatus",
    "TransferInProgressError",
]
