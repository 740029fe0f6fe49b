"""Site data layer: users, analytics events, pages and uptime checks.

This is the fixed API that request handlers, auth flows and health-check
drivers call. Each entity is a record plus one index:

    users   record users:user:...     set index users:index
    events  record events:event:...   daily counter stats:daily:<date>
    pages   record pages:page:...     ranked index pages:index
    uptime  record uptime:check:...   time-window index uptime:index

Writes are two-phase: the record first, then its index. If the index write
fails the original error is re-raised after a best-effort cleanup. A failed
write may still have landed (a timeout leaves the outcome unknown), so the
cleanup first removes the index entry and discards the record only once
that removal succeeded. Should the cleanup fail, an unindexed record may
remain, which listings simply do not see. An index entry never points at a
record that does not exist.
"""

from collections.abc import Awaitable, Mapping
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional, Union

from kvindex.aggregator import Aggregator, utc_now
from kvindex.backends.base import KeyValueBackend
from kvindex.config import StoreConfig
from kvindex.errors import InvalidInputError
from kvindex.identifiers import IdentifierGenerator, timestamp_of, to_epoch_ms
from kvindex.indexes.ranked import RankedIndex
from kvindex.indexes.set_index import SetIndex
from kvindex.indexes.time_window import TimeWindowIndex
from kvindex.models import StatsQuery, WindowStats
from kvindex.observability.logging import get_logger
from kvindex.record_store import RecordStore

logger = get_logger(__name__)

USERS = "users"
EVENTS = "events"
PAGES = "pages"
UPTIME = "uptime"

USERS_INDEX = "users:index"
PAGES_INDEX = "pages:index"
UPTIME_INDEX = "uptime:index"

DEFAULT_EVENT_TYPE = "pageview"

UPTIME_QUERY = StatsQuery(
    category_field="service",
    status_field="status",
    success_values=frozenset({"up"}),
    failure_values=frozenset({"down"}),
    numeric_field="responseTime",
    sample_size=100,
)


def _require_field(fields: Mapping[str, Any], name: str) -> None:
    value = fields.get(name)
    if value is None or value == "":
        raise InvalidInputError("required field is missing", field=name)


class SiteDataLayer:
    """Records and indexes for the site's users, pages, events and checks.

    The primitives are exposed as attributes for collaborators that need
    them directly: ``record_store``, ``set_index``, ``ranked_index``,
    ``time_window_index`` and ``aggregator``.

    Example:
        >>> layer = SiteDataLayer(InMemoryBackend())
        >>> page_id = await layer.create_page({"title": "Home"})
        >>> [page["id"] for page in await layer.list_pages()]
        ['page:1760870400123-000000-...']
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        config: Optional[StoreConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize the data layer around an opened backend.

        Args:
            backend: Key-value backend, opened once and shared
            config: Store configuration (defaults apply when omitted)
            clock: Callable returning the current aware datetime
        """
        self.config = config or StoreConfig()
        self._backend = backend
        self._clock = clock or utc_now

        identifiers = IdentifierGenerator(clock=lambda: to_epoch_ms(self._clock()))
        self.record_store = RecordStore(backend, identifiers)
        self.set_index = SetIndex(backend, self.record_store)
        self.ranked_index = RankedIndex(backend)
        self.time_window_index = TimeWindowIndex(
            backend, default_capacity=self.config.uptime_capacity
        )
        self.aggregator = Aggregator(
            backend, self.record_store, self.time_window_index, clock=self._clock
        )

    async def close(self) -> None:
        """Close the underlying backend."""
        await self._backend.close()

    # ------------------------------------------------------------------
    # Two-phase writes
    # ------------------------------------------------------------------

    async def _create_indexed(
        self,
        collection: str,
        prefix: str,
        fields: Mapping[str, Any],
        index_write: Callable[[str], Awaitable[Any]],
        index_undo: Optional[Callable[[str], Awaitable[Any]]] = None,
    ) -> str:
        identifier = await self.record_store.create(collection, fields, prefix=prefix)
        try:
            await index_write(identifier)
        except Exception as exc:
            logger.warning(
                "index_write_failed",
                collection=collection,
                record_id=identifier,
                error=str(exc),
            )
            await self._compensate(collection, identifier, index_undo)
            raise
        logger.info("record_indexed", collection=collection, record_id=identifier)
        return identifier

    async def _compensate(
        self,
        collection: str,
        identifier: str,
        index_undo: Optional[Callable[[str], Awaitable[Any]]],
    ) -> None:
        try:
            # A failed write may still have landed, so the entry goes before the record
            if index_undo is not None:
                await index_undo(identifier)
            await self.record_store.discard(collection, identifier)
        except Exception as cleanup_exc:
            # The index write error is the one the caller sees
            logger.error(
                "compensation_failed",
                collection=collection,
                record_id=identifier,
                error=str(cleanup_exc),
            )
        else:
            logger.info("record_discarded", collection=collection, record_id=identifier)

    def _score_of(self, identifier: str) -> int:
        score = timestamp_of(identifier)
        return score if score is not None else to_epoch_ms(self._clock())

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, fields: Mapping[str, Any]) -> str:
        """Store a user and add it to the user index.

        Args:
            fields: User fields; "email" is required

        Returns:
            The new user identifier

        Raises:
            InvalidInputError: If email is missing or a value is unsupported
        """
        _require_field(fields, "email")
        return await self._create_indexed(
            USERS,
            "user",
            fields,
            lambda uid: self.set_index.add(USERS_INDEX, uid),
            lambda uid: self.set_index.remove(USERS_INDEX, uid),
        )

    async def get_user(self, user_id: str) -> dict[str, str]:
        """Return a user's fields, or {} if absent."""
        return await self.record_store.get(USERS, user_id)

    async def get_user_by_email(self, email: str) -> Optional[dict[str, str]]:
        """Find an indexed user by email address.

        Args:
            email: Email address to look for (exact match)

        Returns:
            The user's fields plus "id", or None if no indexed user matches
        """
        user_id = await self.set_index.scan_by_field(USERS_INDEX, USERS, "email", email)
        if user_id is None:
            return None
        user = await self.record_store.get(USERS, user_id)
        if not user:
            return None
        return {**user, "id": user_id}

    # ------------------------------------------------------------------
    # Analytics events
    # ------------------------------------------------------------------

    async def track_event(self, event: Mapping[str, Any]) -> str:
        """Store an analytics event and count it in today's bucket.

        The event is stamped with "timestamp" and defaults to type "pageview".

        Args:
            event: Event fields

        Returns:
            The new event identifier
        """
        now = self._clock()
        fields = {**event, "timestamp": now}
        if not fields.get("type"):
            fields["type"] = DEFAULT_EVENT_TYPE
        bucket = self.aggregator.bucket_for(now)
        event_type = str(fields["type"])
        return await self._create_indexed(
            EVENTS,
            "event",
            fields,
            lambda _eid: self.aggregator.increment_daily_counter(bucket, event_type),
        )

    async def get_daily_stats(self, day: Union[str, date]) -> dict[str, int]:
        """Return the per-type event counts of one day."""
        return await self.aggregator.daily_counts(day)

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def create_page(self, fields: Mapping[str, Any]) -> str:
        """Store a page, stamped with createdAt/updatedAt, ranked by creation time."""
        now = self._clock()
        record = {**fields, "createdAt": now, "updatedAt": now}
        return await self._create_indexed(
            PAGES,
            "page",
            record,
            lambda pid: self.ranked_index.add(PAGES_INDEX, pid, self._score_of(pid)),
            lambda pid: self.ranked_index.remove(PAGES_INDEX, pid),
        )

    async def get_page(self, page_id: str) -> dict[str, str]:
        """Return a page's fields, or {} if absent."""
        return await self.record_store.get(PAGES, page_id)

    async def list_pages(self, limit: Optional[int] = None) -> list[dict[str, str]]:
        """Return the most recent pages, newest first, each with its "id".

        Args:
            limit: Maximum pages (defaults to config.page_list_limit)

        Returns:
            Page field mappings; pages whose record is missing are left out
        """
        count = self.config.page_list_limit if limit is None else limit
        page_ids = await self.ranked_index.top_n(PAGES_INDEX, count)
        pages = await self.record_store.get_many(PAGES, page_ids)
        return [{**page, "id": pid} for pid, page in zip(page_ids, pages) if page]

    # ------------------------------------------------------------------
    # Uptime checks
    # ------------------------------------------------------------------

    async def record_uptime_check(self, fields: Mapping[str, Any]) -> str:
        """Store an uptime check and add it to the bounded check window.

        Args:
            fields: Check fields; "status" ("up"/"down") is required

        Returns:
            The new check identifier
        """
        _require_field(fields, "status")
        return await self._create_indexed(
            UPTIME,
            "check",
            fields,
            lambda cid: self.time_window_index.add(UPTIME_INDEX, cid, self._score_of(cid)),
            lambda cid: self.time_window_index.remove(UPTIME_INDEX, cid),
        )

    async def get_uptime_stats(self, hours: float = 24) -> WindowStats:
        """Summarize the uptime checks of the last ``hours`` hours.

        Raises:
            InvalidInputError: If hours is not positive
        """
        if hours <= 0:
            raise InvalidInputError("hours must be positive", field="hours")
        return await self.aggregator.windowed_stats(
            UPTIME_INDEX, UPTIME, timedelta(hours=hours), UPTIME_QUERY
        )
