import json
from decimal import InvalidOperation

import structlog

from transfer_client.config import settings
from transfer_client.domain.models import Transaction
from transfer_client.infrastructure.metrics import LEDGER_ENTRIES
from transfer_client.infrastructure.storage import KeyValueStore


logger = structlog.get_logger()


class TransactionLedger:
    """
    Bounded transaction history, newest first.

    The whole history lives in one JSON array under a single key. load_all and
    recent never raise: unreadable or corrupt data reads as an empty history.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str | None = None,
        capacity: int | None = None,
    ) -> None:
        self._store = store
        self._key = settings.ledger_storage_key if key is None else key
        self._capacity = settings.ledger_capacity if capacity is None else capacity

        if self._capacity <= 0:
            raise ValueError(f"capacity must be positive, got {self._capacity}")

    @property
    def capacity(self) -> int:
        return self._capacity

    async def append(self, transaction: Transaction) -> None:
        # Read errors propagate here so unreadable history is never overwritten.
        raw = await self._store.get(self._key)
        transactions = self._decode(raw)
        transactions.insert(0, transaction)
        del transactions[self._capacity :]

        await self._store.set(
            self._key,
            json.dumps([tx.to_dict() for tx in transactions]),
        )
        LEDGER_ENTRIES.set(len(transactions))
        logger.info(
            "ledger_appended",
            transaction_id=transaction.id,
            entries=len(transactions),
        )

    async def recent(self, n: int) -> list[Transaction]:
        if n <= 0:
            return []
        transactions = await self.load_all()
        return transactions[:n]

    async def load_all(self) -> list[Transaction]:
        try:
            raw = await self._store.get(self._key)
        except Exception as e:
            logger.warning("ledger_read_failed", key=self._key, error=str(e))
            return []

        return self._decode(raw)

    def _decode(self, raw: str | None) -> list[Transaction]:
        if raw is None:
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            transactions = [Transaction.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError, InvalidOperation) as e:
            logger.warning("ledger_corrupt", key=self._key, error=str(e))
            return []

        return transactions[: self._capacity]
