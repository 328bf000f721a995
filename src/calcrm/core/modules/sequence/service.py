import asyncio
from typing import Any

import structlog
from pymongo import UpdateOne
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from calcrm.core.core import Service
from calcrm.core.modules.sequence.models import (
    SEQUENCE_FIELD,
    SEQUENCE_SCOPES,
    ResetResult,
    SequenceInfo,
    SequenceScope,
    SequenceType,
    format_identifier,
    numbered_filter,
    parse_sequence,
    scope_filter,
)
from calcrm.errors import UnknownSequenceTypeError, ValidationError

logger = structlog.get_logger(__name__)

MAX_ALLOCATION_ATTEMPTS = 5


class SequenceService(Service):
    """Allocates, inspects and renumbers PREFIX-NNN identifiers.

    The service owns no state of its own: every answer is derived from the
    records stored in the scope's collection.
    """

    async def on_start(self) -> None:
        """Create the unique identifier index every scope relies on."""
        for scope in SEQUENCE_SCOPES.values():
            collection = self._collection(scope)
            await collection.create_index([(scope.id_field, 1)], unique=True)
            await collection.create_index([(SEQUENCE_FIELD, -1)])

    def get_scope(self, sequence_type: str) -> SequenceScope:
        """Resolve a record type name (case-insensitive) to its scope."""
        try:
            return SEQUENCE_SCOPES[SequenceType(sequence_type.lower())]
        except ValueError as e:
            raise UnknownSequenceTypeError(sequence_type) from e

    async def allocate_next(self, scope: SequenceScope) -> str:
        """Return the identifier following the highest one in the scope.

        Pure read: nothing is reserved, see `insert_with_next_id` for creation.
        """
        latest = await self._find_latest(scope)
        last_sequence = parse_sequence(latest[scope.id_field]) if latest else 0
        return format_identifier(scope.prefix, last_sequence + 1)

    async def describe(self, scope: SequenceScope) -> SequenceInfo:
        collection = self._collection(scope)
        total, latest = await asyncio.gather(collection.count_documents(scope_filter(scope)), self._find_latest(scope))

        last_id = latest[scope.id_field] if latest else None
        last_sequence = parse_sequence(last_id)
        return SequenceInfo(
            prefix=scope.prefix,
            total_documents=total,
            last_id=last_id,
            last_sequence=last_sequence,
            next_id=format_identifier(scope.prefix, last_sequence + 1),
        )

    async def describe_all(self) -> dict[SequenceType, SequenceInfo]:
        infos = await asyncio.gather(*(self.describe(scope) for scope in SEQUENCE_SCOPES.values()))
        return dict(zip(SEQUENCE_SCOPES.keys(), infos, strict=True))

    async def reset(self, scope: SequenceScope, start_from: int = 1) -> ResetResult:
        """Renumber every record of the scope in creation order, starting at `start_from`.

        Records are rewritten in two ordered bulk passes. The rewrite is not
        atomic: a store failure part-way leaves some records parked on temporary
        identifiers with sequence 0 and the error propagates to the caller.
        Parked records are ignored by allocation and picked up by the next reset.

        Args:
            scope: Scope to renumber
            start_from: First sequence number to assign (positive)

        Returns:
            Number of records renumbered and the identifier the next record will get

        Raises:
            ValidationError: If start_from is not positive
        """
        if start_from < 1:
            raise ValidationError("startFrom must be a positive integer")

        collection = self._collection(scope)
        docs = await collection.find(scope_filter(scope), {"_id": 1}).sort("created_at", 1).to_list()

        if docs:
            # Pass 1 parks every record on a unique temporary identifier, so the unique
            # index never sees two records holding the same final identifier
            await collection.bulk_write(
                [
                    UpdateOne({"_id": doc["_id"]}, {"$set": {scope.id_field: f"{scope.prefix}-~{doc['_id']}", SEQUENCE_FIELD: 0}})
                    for doc in docs
                ],
                ordered=True,
            )
            await collection.bulk_write(
                [
                    UpdateOne(
                        {"_id": doc["_id"]},
                        {"$set": {scope.id_field: format_identifier(scope.prefix, sequence), SEQUENCE_FIELD: sequence}},
                    )
                    for sequence, doc in enumerate(docs, start=start_from)
                ],
                ordered=True,
            )

        count = len(docs)
        logger.info("sequence_reset", collection=scope.collection_name, prefix=scope.prefix, start_from=start_from, count=count)
        return ResetResult(
            message=f"Reset {count} documents. IDs now start from {format_identifier(scope.prefix, start_from)}",
            documents_updated=count,
            next_id=format_identifier(scope.prefix, start_from + count),
        )

    async def reset_all(self, start_from: int = 1) -> dict[SequenceType, ResetResult]:
        results: dict[SequenceType, ResetResult] = {}
        for sequence_type, scope in SEQUENCE_SCOPES.items():
            results[sequence_type] = await self.reset(scope, start_from)
        return results

    async def insert_with_next_id(self, scope: SequenceScope, document: dict[str, Any]) -> str:
        """Insert a record under the next free identifier of the scope.

        Two concurrent creations can compute the same identifier; the unique index
        rejects the second insert, which then re-allocates and retries.

        Returns:
            The identifier the record was stored under
        """
        collection = self._collection(scope)
        for attempt in range(1, MAX_ALLOCATION_ATTEMPTS + 1):
            identifier = await self.allocate_next(scope)
            document[scope.id_field] = identifier
            document[SEQUENCE_FIELD] = parse_sequence(identifier)
            try:
                await collection.insert_one(document)
            except DuplicateKeyError as e:
                if attempt == MAX_ALLOCATION_ATTEMPTS or not is_identifier_conflict(e, scope):
                    raise
                logger.warning("sequence_conflict", collection=scope.collection_name, identifier=identifier, attempt=attempt)
            else:
                return identifier

        raise RuntimeError("Identifier allocation loop exited without result - programming error")

    def _collection(self, scope: SequenceScope) -> AsyncCollection[dict[str, Any]]:
        return self.database.get_collection(scope.collection_name)

    async def _find_latest(self, scope: SequenceScope) -> dict[str, Any] | None:
        return await self._collection(scope).find_one(
            numbered_filter(scope),
            {scope.id_field: 1},
            sort=[(SEQUENCE_FIELD, -1), (scope.id_field, -1)],
        )


def is_identifier_conflict(error: DuplicateKeyError, scope: SequenceScope) -> bool:
    """Whether a duplicate key error was raised by the scope's identifier index."""
    key_pattern = (error.details or {}).get("keyPattern") or {}
    return scope.id_field in key_pattern
