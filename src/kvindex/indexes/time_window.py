"""Bounded time-window index.

A ranked index that keeps only the ``capacity`` highest-scored entries.
Every insert is followed by a trim of the lowest ranks, so the index never
holds more than ``capacity`` members plus the single pending insert.

Two concurrent inserts may both trim. The trim removes ranks
``0 .. -(capacity + 1)``, which is idempotent, so membership still converges
to at most ``capacity``. A failed trim is logged and left to the next
insert; it never fails the insert, whose entry is already written.
"""

from typing import Optional

from kvindex.backends.base import KeyValueBackend, ScoreBound
from kvindex.config import DEFAULT_WINDOW_CAPACITY
from kvindex.errors import InvalidInputError
from kvindex.indexes.ranked import RankedIndex, Score, validate_score
from kvindex.observability.logging import get_logger
from kvindex.observability.metrics import get_metrics_collector

logger = get_logger(__name__)


class TimeWindowIndex(RankedIndex):
    """Ranked index with eviction of the oldest entries after each insert.

    Example:
        >>> window = TimeWindowIndex(InMemoryBackend(), default_capacity=2)
        >>> await window.add("uptime:index", "check:1", 1000)
        0
        >>> await window.range_since("uptime:index", 0)
        ['check:1']
    """

    def __init__(
        self, backend: KeyValueBackend, default_capacity: int = DEFAULT_WINDOW_CAPACITY
    ) -> None:
        """Initialize the index.

        Args:
            backend: Key-value backend
            default_capacity: Capacity used when ``add`` is not given one
        """
        if default_capacity < 1:
            raise InvalidInputError("capacity must be at least 1", field="capacity")
        super().__init__(backend)
        self.default_capacity = default_capacity

    async def add(  # type: ignore[override]
        self,
        index_name: str,
        identifier: str,
        score: Score,
        capacity: Optional[int] = None,
    ) -> int:
        """Insert an entry, then evict entries beyond ``capacity``.

        Args:
            index_name: Index key (e.g. "uptime:index")
            identifier: Record identifier
            score: Entry score, typically epoch ms
            capacity: Maximum retained entries (defaults to default_capacity)

        Returns:
            Number of entries evicted by this insert (0 if the trim failed)

        Raises:
            InvalidInputError: If capacity < 1 or the score is malformed
        """
        limit = self.default_capacity if capacity is None else capacity
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidInputError("capacity must be an integer >= 1", field="capacity")

        await super().add(index_name, identifier, score)
        try:
            evicted = await self._backend.zremrangebyrank(index_name, 0, -(limit + 1))
        except Exception as exc:
            # The entry is indexed; the next insert's trim brings the window back to capacity
            logger.warning(
                "window_trim_failed", index=index_name, record_id=identifier, error=str(exc)
            )
            return 0
        if evicted:
            logger.debug("window_evicted", index=index_name, evicted=evicted, capacity=limit)
            get_metrics_collector().record_window_eviction(index_name, evicted)
        return evicted

    async def range_since(
        self,
        index_name: str,
        cutoff_score: Score,
        *,
        until: Optional[Score] = None,
        descending: bool = True,
    ) -> list[str]:
        """Return identifiers with ``cutoff_score <= score <= until``.

        Args:
            index_name: Index key
            cutoff_score: Inclusive lower bound
            until: Inclusive upper bound (None means open-ended, up to now)
            descending: Highest score first when True, else lowest first

        Returns:
            Matching identifiers in the requested order
        """
        low = validate_score(cutoff_score)
        high: ScoreBound = "+inf" if until is None else validate_score(until)
        if descending:
            return await self._backend.zrevrangebyscore(index_name, high, low)
        return await self._backend.zrangebyscore(index_name, low, high)
