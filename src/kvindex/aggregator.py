"""Windowed statistics and daily counters.

Window statistics combine a time-window range read with a batch record
fetch and an in-memory reduction. Daily counters use the backend's atomic
hash increment, one field per category, one hash per day.
"""

import math
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Union

from kvindex.backends.base import KeyValueBackend
from kvindex.errors import InvalidInputError
from kvindex.identifiers import to_epoch_ms
from kvindex.indexes.time_window import TimeWindowIndex
from kvindex.models import StatsQuery, WindowStats
from kvindex.observability.logging import get_logger
from kvindex.record_store import RecordStore

logger = get_logger(__name__)

DAILY_STATS_PREFIX = "stats:daily"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _parse_number(raw: Optional[str]) -> Optional[float]:
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


class Aggregator:
    """Computes summary statistics over time-window indexes.

    Example:
        >>> aggregator = Aggregator(backend, records, window)
        >>> stats = await aggregator.windowed_stats("uptime:index", "uptime", timedelta(hours=24))
        >>> stats.average is None  # empty window
        True
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        records: RecordStore,
        window_index: TimeWindowIndex,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            backend: Key-value backend (used for daily counters)
            records: Record store the window entries point into
            window_index: Time-window index to range over
            clock: Callable returning the current aware datetime
        """
        self._backend = backend
        self._records = records
        self._window = window_index
        self._clock = clock or utc_now

    async def windowed_stats(
        self,
        index_name: str,
        collection: str,
        window: timedelta,
        query: Optional[StatsQuery] = None,
    ) -> WindowStats:
        """Reduce every record indexed within ``window`` of now.

        Records that are indexed but no longer stored (evicted or orphaned
        between the range read and the fetch) are ignored.

        Args:
            index_name: Time-window index key
            collection: Collection holding the records
            window: How far back from now to look
            query: Reduction settings (defaults to uptime-check fields)

        Returns:
            WindowStats; an empty window yields zero counts and average None

        Raises:
            InvalidInputError: If the window is not positive
        """
        if window <= timedelta(0):
            raise InvalidInputError("window must be a positive duration", field="window")
        query = query or StatsQuery()

        window_start = self._clock() - window
        identifiers = await self._window.range_since(
            index_name, to_epoch_ms(window_start), descending=False
        )
        fetched = await self._records.get_many(collection, identifiers)
        rows = [
            {**record, "id": identifier}
            for identifier, record in zip(identifiers, fetched)
            if record
        ]

        categories: Counter[str] = Counter()
        success = failure = 0
        numbers: list[float] = []
        for row in rows:
            category = row.get(query.category_field)
            if category is not None:
                categories[category] += 1
            status = row.get(query.status_field)
            if status in query.success_values:
                success += 1
            elif status in query.failure_values:
                failure += 1
            number = _parse_number(row.get(query.numeric_field))
            if number is not None:
                numbers.append(number)

        average = sum(numbers) / len(numbers) if numbers else None
        samples = rows[-query.sample_size :] if query.sample_size else []

        logger.debug(
            "window_aggregated",
            index=index_name,
            indexed=len(identifiers),
            found=len(rows),
        )
        return WindowStats(
            total_count=len(rows),
            per_category_counts=dict(categories),
            success_count=success,
            failure_count=failure,
            average=average,
            window_start=window_start,
            samples=samples,
        )

    @staticmethod
    def daily_key(bucket_key: str) -> str:
        """Return the backend key of a daily counter hash."""
        return f"{DAILY_STATS_PREFIX}:{bucket_key}"

    def bucket_for(self, moment: Optional[datetime] = None) -> str:
        """Return the UTC day bucket ("YYYY-MM-DD") of ``moment`` (default now)."""
        moment = moment or self._clock()
        if moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc)
        return moment.date().isoformat()

    async def increment_daily_counter(
        self, bucket_key: str, category: str, amount: int = 1
    ) -> int:
        """Atomically add ``amount`` to one category of a day bucket.

        Uses a single backend increment; there is no read-modify-write.

        Args:
            bucket_key: Day bucket ("YYYY-MM-DD")
            category: Category label (e.g. "pageview")
            amount: Positive increment

        Returns:
            The new count

        Raises:
            InvalidInputError: If bucket or category is empty or amount < 1
        """
        if not bucket_key:
            raise InvalidInputError("bucket key must be non-empty", field="bucket_key")
        if not category:
            raise InvalidInputError("category must be non-empty", field="category")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
            raise InvalidInputError("amount must be a positive integer", field="amount")
        return await self._backend.hincrby(self.daily_key(bucket_key), category, amount)

    async def daily_counts(self, bucket_key: Union[str, date]) -> dict[str, int]:
        """Return every category count of a day bucket ({} if none recorded)."""
        if isinstance(bucket_key, datetime):
            bucket_key = self.bucket_for(bucket_key)
        elif isinstance(bucket_key, date):
            bucket_key = bucket_key.isoformat()
        raw = await self._backend.hgetall(self.daily_key(bucket_key))
        return {category: int(count) for category, count in raw.items()}
