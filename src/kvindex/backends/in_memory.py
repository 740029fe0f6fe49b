"""In-memory key-value backend.

Process-local and not durable across restarts. Mirrors the Redis semantics
the indexing layer relies on, including sorted-set ordering by
``(score, member)``, so it can stand in for Redis in tests and development.
"""

import asyncio
from collections.abc import Mapping

from kvindex.backends.base import KeyValueBackend, ScoreBound
from kvindex.errors import InvalidInputError


def _parse_bound(bound: ScoreBound) -> float:
    """Convert a score bound ("-inf", "+inf" or a number) to a float."""
    try:
        return float(bound)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"not a valid score bound: {bound!r}", field="score") from exc


def _rank_slice(items: list[str], start: int, stop: int) -> list[str]:
    """Slice by inclusive rank range, with negative ranks counted from the end."""
    length = len(items)
    if start < 0:
        start += length
    if stop < 0:
        stop += length
    start = max(start, 0)
    stop = min(stop, length - 1)
    if start > stop:
        return []
    return items[start : stop + 1]


class InMemoryBackend(KeyValueBackend):
    """Dictionary-backed backend guarded by an asyncio lock.

    Each method holds the lock for its whole body, so every operation is
    atomic with respect to the others, as single commands are in Redis.
    Operations on a key of the wrong type behave as if the key were empty.

    Attributes:
        _hashes: key -> field -> value
        _sets: key -> members
        _zsets: key -> member -> score
        _lock: Asyncio lock serializing operations
    """

    def __init__(self) -> None:
        """Initialize an empty in-memory store."""
        self._hashes: dict[str, dict[str, str]] = {}
        self._sets: dict[str, set[str]] = {}
        self._zsets: dict[str, dict[str, float]] = {}
        self._lock = asyncio.Lock()

    def _ordered(self, key: str) -> list[str]:
        zset = self._zsets.get(key, {})
        return [member for member, _ in sorted(zset.items(), key=lambda kv: (kv[1], kv[0]))]

    async def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        async with self._lock:
            target = self._hashes.setdefault(key, {})
            added = sum(1 for field in mapping if field not in target)
            target.update({field: str(value) for field, value in mapping.items()})
            return added

    async def hgetall(self, key: str) -> dict[str, str]:
        async with self._lock:
            return dict(self._hashes.get(key, {}))

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        async with self._lock:
            target = self._hashes.setdefault(key, {})
            try:
                current = int(target.get(field, "0"))
            except ValueError as exc:
                raise InvalidInputError("hash value is not an integer", field=field) from exc
            current += amount
            target[field] = str(current)
            return current

    async def delete(self, *keys: str) -> int:
        async with self._lock:
            removed = 0
            for key in keys:
                found = False
                for store in (self._hashes, self._sets, self._zsets):
                    if store.pop(key, None) is not None:
                        found = True
                removed += int(found)
            return removed

    async def sadd(self, key: str, *members: str) -> int:
        async with self._lock:
            target = self._sets.setdefault(key, set())
            before = len(target)
            target.update(members)
            return len(target) - before

    async def smembers(self, key: str) -> set[str]:
        async with self._lock:
            return set(self._sets.get(key, set()))

    async def srem(self, key: str, *members: str) -> int:
        async with self._lock:
            target = self._sets.get(key)
            if not target:
                return 0
            removed = sum(1 for member in set(members) if member in target)
            target.difference_update(members)
            if not target:
                del self._sets[key]
            return removed

    async def zadd(self, key: str, mapping: Mapping[str, float]) -> int:
        async with self._lock:
            target = self._zsets.setdefault(key, {})
            added = 0
            for member, score in mapping.items():
                if member not in target:
                    added += 1
                target[member] = float(score)
            return added

    async def zcard(self, key: str) -> int:
        async with self._lock:
            return len(self._zsets.get(key, {}))

    async def zrevrange(self, key: str, start: int, stop: int) -> list[str]:
        async with self._lock:
            return _rank_slice(list(reversed(self._ordered(key))), start, stop)

    async def zrangebyscore(self, key: str, min: ScoreBound, max: ScoreBound) -> list[str]:
        low, high = _parse_bound(min), _parse_bound(max)
        async with self._lock:
            zset = self._zsets.get(key, {})
            return [m for m in self._ordered(key) if low <= zset[m] <= high]

    async def zrevrangebyscore(self, key: str, max: ScoreBound, min: ScoreBound) -> list[str]:
        return list(reversed(await self.zrangebyscore(key, min, max)))

    async def zrem(self, key: str, *members: str) -> int:
        async with self._lock:
            zset = self._zsets.get(key)
            if not zset:
                return 0
            removed = 0
            for member in set(members):
                if zset.pop(member, None) is not None:
                    removed += 1
            if not zset:
                del self._zsets[key]
            return removed

    async def zremrangebyrank(self, key: str, start: int, stop: int) -> int:
        async with self._lock:
            doomed = _rank_slice(self._ordered(key), start, stop)
            zset = self._zsets.get(key, {})
            for member in doomed:
                del zset[member]
            if key in self._zsets and not zset:
                del self._zsets[key]
            return len(doomed)

    def __len__(self) -> int:
        return len(self._hashes) + len(self._sets) + len(self._zsets)

