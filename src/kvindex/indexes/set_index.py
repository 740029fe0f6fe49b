"""Unordered membership index with lookup by field value.

Lookup by value is a linear scan: every member's record is fetched and the
field compared. Cost is O(members), which is acceptable only while the
collection stays small.
"""

from typing import Any, Optional

from kvindex.backends.base import KeyValueBackend
from kvindex.errors import InvalidInputError
from kvindex.record_store import RecordStore, encode_value


class SetIndex:
    """Membership index mapping an index name to a set of identifiers.

    Every member should have a record in the record store. A record may
    exist without being indexed (the caller wrote the record but the index
    write has not happened or failed); scans simply do not see it.
    """

    def __init__(self, backend: KeyValueBackend, records: RecordStore) -> None:
        self._backend = backend
        self._records = records

    async def add(self, index_name: str, identifier: str) -> bool:
        """Add an identifier to the index. Idempotent.

        Args:
            index_name: Index key (e.g. "users:index")
            identifier: Record identifier

        Returns:
            True if the identifier was not already a member
        """
        if not identifier:
            raise InvalidInputError("identifier must be a non-empty string", field="identifier")
        return await self._backend.sadd(index_name, identifier) > 0

    async def remove(self, index_name: str, identifier: str) -> bool:
        """Remove an identifier from the index. Idempotent.

        Returns:
            True if the identifier was a member
        """
        return await self._backend.srem(index_name, identifier) > 0

    async def members(self, index_name: str) -> list[str]:
        """Return all members in ascending identifier (creation) order."""
        return sorted(await self._backend.smembers(index_name))

    async def scan_by_field(
        self, index_name: str, collection: str, field_name: str, value: Any
    ) -> Optional[str]:
        """Find the first member whose record has ``field_name == value``.

        Members are visited in ascending identifier order; the value is
        compared in its stored text form. Members whose record is missing
        are skipped.

        Args:
            index_name: Index key
            collection: Collection holding the member records
            field_name: Field to compare
            value: Value to look for

        Returns:
            The first matching identifier, or None if no member matches
        """
        wanted = encode_value(field_name, value)
        for identifier in await self.members(index_name):
            record = await self._records.get(collection, identifier)
            if record.get(field_name) == wanted:
                return identifier
        return None
