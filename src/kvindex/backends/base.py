"""Abstract key-value backend interface.

The indexing layer consumes exactly these primitives: hash read/write and
atomic field increment, set add/members/remove, and sorted-set add, remove,
cardinality, range-by-rank, range-by-score and trim-by-rank.
Semantics follow Redis.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Union

# A sorted-set score bound: a number or one of "-inf" / "+inf"
ScoreBound = Union[float, int, str]


class KeyValueBackend(ABC):
    """Abstract key-value store with hash, set and sorted-set primitives.

    Every method issues one independent request. No method spans more than
    one key atomically, and absent keys read as empty values.
    """

    # Hashes

    @abstractmethod
    async def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        """Write hash fields, overwriting existing ones. Returns fields added."""

    @abstractmethod
    async def hgetall(self, key: str) -> dict[str, str]:
        """Read all fields of a hash. Returns an empty dict if missing."""

    @abstractmethod
    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        """Atomically increment a hash field. Returns the new value."""

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete keys. Returns the number of keys removed."""

    # Sets

    @abstractmethod
    async def sadd(self, key: str, *members: str) -> int:
        """Add members to a set. Returns the number newly added."""

    @abstractmethod
    async def smembers(self, key: str) -> set[str]:
        """Return all members of a set. Returns an empty set if missing."""

    @abstractmethod
    async def srem(self, key: str, *members: str) -> int:
        """Remove members from a set. Returns the number removed."""

    # Sorted sets

    @abstractmethod
    async def zadd(self, key: str, mapping: Mapping[str, float]) -> int:
        """Insert members or update their scores. Returns members newly added."""

    @abstractmethod
    async def zcard(self, key: str) -> int:
        """Return the number of members in a sorted set."""

    @abstractmethod
    async def zrevrange(self, key: str, start: int, stop: int) -> list[str]:
        """Return members by rank, highest score first (inclusive stop)."""

    @abstractmethod
    async def zrangebyscore(self, key: str, min: ScoreBound, max: ScoreBound) -> list[str]:
        """Return members with min <= score <= max, lowest score first."""

    @abstractmethod
    async def zrevrangebyscore(self, key: str, max: ScoreBound, min: ScoreBound) -> list[str]:
        """Return members with min <= score <= max, highest score first."""

    @abstractmethod
    async def zrem(self, key: str, *members: str) -> int:
        """Remove members from a sorted set. Returns the number removed."""

    @abstractmethod
    async def zremrangebyrank(self, key: str, start: int, stop: int) -> int:
        """Remove members by ascending rank (inclusive stop). Returns removed count."""

    async def close(self) -> None:
        """Release any held connection. No-op by default."""
