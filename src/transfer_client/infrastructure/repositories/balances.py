from collections.abc import Callable
from decimal import Decimal

import structlog

from transfer_client.config import settings
from transfer_client.domain.models import Account
from transfer_client.infrastructure.metrics import ACCOUNT_BALANCE


logger = structlog.get_logger()

BalanceObserver = Callable[[Decimal], None]


class BalanceStore:
    """Holds the single account balance for the lifetime of the process."""

    def __init__(self, initial_balance: Decimal | None = None) -> None:
        self._account = Account(
            balance=initial_balance if initial_balance is not None else settings.initial_balance
        )
        self._observers: list[BalanceObserver] = []
        ACCOUNT_BALANCE.set(float(self._account.balance))

    def get_balance(self) -> Decimal:
        return self._account.balance

    def debit(self, amount: Decimal) -> None:
        """Subtract `amount` unconditionally. Funds sufficiency is the caller's check."""
        self._account.balance -= amount
        ACCOUNT_BALANCE.set(float(self._account.balance))
        logger.info("balance_debited", amount=str(amount), balance=str(self._account.balance))
        self._notify(self._account.balance)

    def subscribe(self, observer: BalanceObserver) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, balance: Decimal) -> None:
        for observer in list(self._observers):
            try:
                observer(balance)
            except Exception as e:
                logger.error("balance_observer_failed", error=str(e), exc_info=True)
