"""Record identifier generation.

Identifiers have the form ``<prefix>:<epoch-ms>-<sequence>-<random>``, e.g.
``page:1760870400123-000000-9f86d081``. The millisecond is zero-padded to 13
digits and the per-millisecond sequence to 6, so identifiers produced by one
generator sort lexicographically in creation order. The random suffix keeps
identifiers from different processes distinct within the same millisecond.
"""

import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

_SEQUENCE_LIMIT = 1_000_000


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class IdentifierGenerator:
    """Generates unique, creation-ordered record identifiers.

    Example:
        >>> generator = IdentifierGenerator()
        >>> generator.new("user")
        'user:1760870400123-000000-3c1e0a7b'
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        """Initialize the generator.

        Args:
            clock: Callable returning epoch milliseconds (defaults to wall clock)
        """
        self._clock = clock or epoch_ms
        self._last_ms = -1
        self._sequence = 0
        self._lock = threading.Lock()

    def _next(self) -> tuple[int, int]:
        with self._lock:
            now = self._clock()
            # Never step backwards if the wall clock does
            if now <= self._last_ms:
                now = self._last_ms
                self._sequence += 1
                if self._sequence >= _SEQUENCE_LIMIT:
                    now += 1
                    self._sequence = 0
            else:
                self._sequence = 0
            self._last_ms = now
            return now, self._sequence

    def new(self, prefix: str) -> str:
        """Allocate a new identifier under ``prefix``.

        Args:
            prefix: Collection prefix (e.g. "user", "page")

        Returns:
            A fresh identifier string
        """
        millis, sequence = self._next()
        return f"{prefix}:{millis:013d}-{sequence:06d}-{uuid.uuid4().hex[:8]}"


def timestamp_of(identifier: str) -> Optional[int]:
    """Recover the creation millisecond embedded in an identifier.

    Args:
        identifier: Identifier produced by IdentifierGenerator

    Returns:
        Epoch milliseconds, or None if the identifier has another shape
    """
    _, _, body = identifier.rpartition(":")
    head = body.split("-", 1)[0]
    if not head.isdigit():
        return None
    return int(head)


def to_epoch_ms(moment: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are taken as UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)
