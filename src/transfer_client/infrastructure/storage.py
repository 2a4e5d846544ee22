from typing import Protocol

import redis.asyncio as redis
import structlog

from transfer_client.config import settings


logger = structlog.get_logger()


class KeyValueStore(Protocol):
    """Opaque persisted storage holding string blobs under string keys."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local store; contents are lost on restart."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value


class RedisKeyValueStore:
    """Key-value store backed by Redis."""

    def __init__(self, url: str | None = None) -> None:
        self._url = settings.redis_url if url is None else url
        self._client: redis.Redis[bytes] | None = None

    @property
    def client(self) -> "redis.Redis[bytes]":
        """Get the Redis client. Raises if not connected."""
        if self._client is None:
            raise RuntimeError("Redis store not connected. Call connect() first.")
        return self._client

    async def connect(self) -> None:
        self._client = redis.from_url(
            self._url,
            encoding="utf-8",
            decode_responses=False,
        )
        await self._client.ping()
        logger.info("redis_connected", url=self._url)

    async def close(self) -> None:
        if self._client:
            await self._client.close()
            self._client = None
            logger.info("redis_disconnected")

    async def health_check(self) -> bool:
        try:
            if self._client:
                await self._client.ping()
                return True
        except redis.RedisError:
            logger.warning("redis_health_check_failed", url=self._url)
        return False

    async def get(self, key: str) -> str | None:
        value = await self.client.get(key)
        if value is None:
            return None
        return value.decode("utf-8")

    async def set(self, key: str, value: str) -> None:
        await self.client.set(key, value.encode("utf-8"))
