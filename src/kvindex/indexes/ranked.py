"""Ranked index ordered by a numeric score.

Scores are creation timestamps in epoch milliseconds, so a higher score
means more recent. Equal scores are ordered by identifier, and descending
retrieval returns the greater identifier first.
"""

import math
from typing import Union

from kvindex.backends.base import KeyValueBackend
from kvindex.errors import InvalidInputError

Score = Union[int, float]


def validate_score(score: Score) -> float:
    """Check a score is a finite real number and return it as a float.

    Raises:
        InvalidInputError: For booleans, non-numbers, NaN and infinities
    """
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise InvalidInputError(f"score must be a number, got {score!r}", field="score")
    if not math.isfinite(score):
        raise InvalidInputError("score must be finite", field="score")
    return float(score)


class RankedIndex:
    """Sorted index supporting "most recent N" retrieval."""

    def __init__(self, backend: KeyValueBackend) -> None:
        self._backend = backend

    async def add(self, index_name: str, identifier: str, score: Score) -> None:
        """Insert an identifier or update its score.

        Args:
            index_name: Index key (e.g. "pages:index")
            identifier: Record identifier
            score: Rank score, typically the creation time in epoch ms

        Raises:
            InvalidInputError: If the score or identifier is malformed
        """
        value = validate_score(score)
        if not identifier:
            raise InvalidInputError("identifier must be a non-empty string", field="identifier")
        await self._backend.zadd(index_name, {identifier: value})

    async def remove(self, index_name: str, identifier: str) -> bool:
        """Remove an identifier from the index. Idempotent.

        Returns:
            True if the identifier was indexed
        """
        return await self._backend.zrem(index_name, identifier) > 0

    async def top_n(self, index_name: str, n: int) -> list[str]:
        """Return at most ``n`` identifiers, highest score first.

        Args:
            index_name: Index key
            n: Maximum number of identifiers

        Returns:
            Identifiers in descending score order (fewer if the index is smaller)
        """
        if n <= 0:
            return []
        return await self._backend.zrevrange(index_name, 0, n - 1)

    async def count(self, index_name: str) -> int:
        """Return the number of indexed identifiers."""
        return await self._backend.zcard(index_name)
