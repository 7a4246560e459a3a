"""Fast cache tier protocol.

Defines the interface for the ephemeral, low-latency tier of the cache.
Values are opaque strings; the cache coordinator owns their encoding.

Implementations can include:
- Redis (default)
- Memcached
- An in-process dictionary (tests)
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class FastStore(Protocol):
    """Protocol for fast, TTL-based key/value storage."""

    async def get(self, key: str) -> str | None:
        """Read a value.

        Args:
            key: The storage key

        Returns:
            The stored value, or None if absent or expired
        """
        ...

    async def set(self, key: str, value: str, ttl: int) -> None:
        """Write a value, replacing any previous one.

        Args:
            key: The storage key
            value: The value to store
            ttl: Time-to-live in seconds
        """
        ...

    async def delete(self, key: str) -> bool:
        """Delete a key.

        Returns:
            True if a key was deleted, False otherwise
        """
        ...

    async def clear(self, prefix: str) -> int:
        """Delete every key starting with prefix.

        Returns:
            Number of keys deleted
        """
        ...

    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        ...
