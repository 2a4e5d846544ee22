import asyncio
import random

import structlog

from transfer_client.config import settings
from transfer_client.domain.exceptions import SettlementError
from transfer_client.domain.models import Transaction, TransactionStatus
from transfer_client.infrastructure.metrics import SETTLEMENT_ATTEMPTS_TOTAL, track_settlement_duration
from transfer_client.infrastructure.repositories.ledger import TransactionLedger


logger = structlog.get_logger()


class TransactionProcessor:
    """
    Submits transfers to the simulated remote settlement service.

    Settlement and persistence form one unit: a transaction is only reported
    as settled once it has been written to the ledger. One attempt per call;
    retrying is left to the caller.
    """

    def __init__(
        self,
        ledger: TransactionLedger,
        failure_rate: float | None = None,
        delay_seconds: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._ledger = ledger
        self._failure_rate = settings.settlement_failure_rate if failure_rate is None else failure_rate
        self._delay_seconds = settings.settlement_delay_seconds if delay_seconds is None else delay_seconds
        self._rng = rng or random.Random()

        if not 0.0 <= self._failure_rate <= 1.0:
            raise ValueError(f"failure_rate must be within [0, 1], got {self._failure_rate}")
        if self._delay_seconds < 0:
            raise ValueError(f"delay_seconds cannot be negative, got {self._delay_seconds}")

    @property
    def failure_rate(self) -> float:
        return self._failure_rate

    @track_settlement_duration
    async def settle(self, transaction: Transaction) -> Transaction:
        log = logger.bind(transaction_id=transaction.id, amount=str(transaction.amount))
        log.info("settlement_submitted")

        await asyncio.sleep(self._delay_seconds)

        if self._rng.random() < self._failure_rate:
            SETTLEMENT_ATTEMPTS_TOTAL.labels(outcome="network_error").inc()
            log.warning("settlement_failed", kind=SettlementError.NETWORK)
            raise SettlementError(transaction.id, SettlementError.NETWORK, "Network error")

        settled = transaction.with_status(TransactionStatus.VALID)

        try:
            await self._ledger.append(settled)
        except Exception as e:
            SETTLEMENT_ATTEMPTS_TOTAL.labels(outcome="persistence_error").inc()
            log.error("settlement_persist_failed", error=str(e), exc_info=True)
            raise SettlementError(transaction.id, SettlementError.PERSISTENCE, str(e)) from e

        SETTLEMENT_ATTEMPTS_TOTAL.labels(outcome="settled").inc()
        log.info("settlement_completed", status=settled.status.value)
        return settled
