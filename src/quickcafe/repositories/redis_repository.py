"""Redis implementation of FastStore.

This repository is the default fast tier. Keys expire on their own through
Redis TTLs, so the tier never needs explicit garbage collection.
"""

from redis import asyncio as aioredis

from quickcafe.config import get_redis_client


class RedisFastStore:
    """Redis implementation of the FastStore protocol.

    This class satisfies the FastStore protocol through structural
    typing - no explicit inheritance needed.

    All keys are namespaced under ``namespace`` so that ``clear`` never
    touches data belonging to other applications on the same database.
    """

    def __init__(
        self,
        redis_client: aioredis.Redis | None = None,
        namespace: str = "quickcafe",
    ) -> None:
        """Initialize the Redis fast store.

        Args:
            redis_client: asyncio Redis client. If None, creates default.
            namespace: Prefix applied to every key.
        """
        self._client = redis_client or get_redis_client()
        self._namespace = namespace

    @classmethod
    def create(cls, namespace: str = "quickcafe") -> "RedisFastStore":
        """Factory method to create RedisFastStore with the default client."""
        return cls(namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> str | None:
        value = await self._client.get(self._key(key))
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self._client.set(self._key(key), value, ex=ttl)

    async def delete(self, key: str) -> bool:
        result: int = await self._client.delete(self._key(key))
        return result > 0

    async def clear(self, prefix: str) -> int:
        """Delete every key under prefix.

        Returns:
            Number of keys deleted
        """
        count = 0
        async for key in self._client.scan_iter(match=f"{self._key(prefix)}*"):
            count += await self._client.delete(key)
        return count

    async def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(await self._client.ping())
        except Exception:
            return False

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def client(self) -> aioredis.Redis:
        """Get the Redis client."""
        return self._client
