"""Record storage over key-value hashes.

A record is a flat mapping of field name to value stored as one hash under
``<collection>:<identifier>``. Records are created whole and may be
overwritten field by field; there is no schema. Values are stored as text,
so reads return strings exactly as Redis would.
"""

import asyncio
import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from typing import Any, Optional

from kvindex.backends.base import KeyValueBackend
from kvindex.errors import InvalidInputError
from kvindex.identifiers import IdentifierGenerator
from kvindex.observability.logging import get_logger

logger = get_logger(__name__)


def encode_value(field: str, value: Any) -> str:
    """Encode one field value for storage.

    Args:
        field: Field name (used in error messages)
        value: str, int, float, bool, datetime or date

    Returns:
        The stored text form

    Raises:
        InvalidInputError: If the value is None, a container or a non-finite float
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidInputError("float values must be finite", field=field)
        return repr(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None:
        raise InvalidInputError("value must not be None", field=field)
    raise InvalidInputError(f"unsupported value type {type(value).__name__}", field=field)


def encode_fields(fields: Mapping[str, Any]) -> dict[str, str]:
    """Validate and encode a whole field mapping.

    Args:
        fields: Field name to value mapping

    Returns:
        Mapping of field name to stored text

    Raises:
        InvalidInputError: If the mapping is empty or any field is invalid
    """
    if not fields:
        raise InvalidInputError("record must have at least one field", field="fields")
    encoded: dict[str, str] = {}
    for name, value in fields.items():
        if not isinstance(name, str) or not name:
            raise InvalidInputError("field names must be non-empty strings", field=str(name))
        encoded[name] = encode_value(name, value)
    return encoded


def _require_name(kind: str, value: str) -> None:
    if not value or not isinstance(value, str):
        raise InvalidInputError(f"{kind} must be a non-empty string", field=kind)


class RecordStore:
    """Create and read field-mapping records.

    Absent records read as ``{}``; the store never raises for absence.
    Backend failures propagate unchanged to the caller.

    Example:
        >>> records = RecordStore(InMemoryBackend())
        >>> record_id = await records.create("users", {"email": "a@example.com"}, prefix="user")
        >>> await records.get("users", record_id)
        {'email': 'a@example.com'}
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        identifiers: Optional[IdentifierGenerator] = None,
    ) -> None:
        """Initialize the record store.

        Args:
            backend: Key-value backend
            identifiers: Identifier generator (a fresh one by default)
        """
        self._backend = backend
        self._identifiers = identifiers or IdentifierGenerator()

    @staticmethod
    def key_for(collection: str, identifier: str) -> str:
        """Return the backend key holding a record."""
        return f"{collection}:{identifier}"

    async def create(
        self,
        collection: str,
        fields: Mapping[str, Any],
        *,
        prefix: Optional[str] = None,
    ) -> str:
        """Persist a new record and return its identifier.

        Args:
            collection: Collection name (e.g. "users")
            fields: Field mapping to store verbatim
            prefix: Identifier prefix (defaults to the collection name)

        Returns:
            The new record identifier

        Raises:
            InvalidInputError: If fields are invalid (nothing is written)
            BackendUnavailableError: If the backend cannot be reached
        """
        _require_name("collection", collection)
        encoded = encode_fields(fields)
        identifier = self._identifiers.new(prefix or collection)
        await self._backend.hset(self.key_for(collection, identifier), encoded)
        logger.debug("record_created", collection=collection, record_id=identifier)
        return identifier

    async def overwrite(
        self, collection: str, identifier: str, fields: Mapping[str, Any]
    ) -> None:
        """Overwrite the given fields of a record (last writer wins).

        Args:
            collection: Collection name
            identifier: Record identifier
            fields: Fields to write

        Raises:
            InvalidInputError: If fields are invalid (nothing is written)
        """
        _require_name("collection", collection)
        _require_name("identifier", identifier)
        await self._backend.hset(self.key_for(collection, identifier), encode_fields(fields))

    async def get(self, collection: str, identifier: str) -> dict[str, str]:
        """Read a record.

        Args:
            collection: Collection name
            identifier: Record identifier

        Returns:
            The record fields, or an empty dict if the record does not exist
        """
        return await self._backend.hgetall(self.key_for(collection, identifier))

    async def get_many(
        self, collection: str, identifiers: Iterable[str]
    ) -> list[dict[str, str]]:
        """Read several records, preserving input order.

        Missing records are returned as empty dicts in their position, not
        omitted. Reads are issued concurrently.

        Args:
            collection: Collection name
            identifiers: Record identifiers

        Returns:
            One field mapping per identifier, in input order
        """
        ids: Sequence[str] = list(identifiers)
        if not ids:
            return []
        return list(await asyncio.gather(*(self.get(collection, i) for i in ids)))

    async def discard(self, collection: str, identifier: str) -> bool:
        """Remove a record written by a multi-step operation that failed.

        Args:
            collection: Collection name
            identifier: Record identifier

        Returns:
            True if a record was removed
        """
        removed = await self._backend.delete(self.key_for(collection, identifier))
        return removed > 0
