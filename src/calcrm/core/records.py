"""Shared CRUD behaviour for records identified by a PREFIX-NNN identifier."""

from collections.abc import Mapping
from functools import cache
from typing import Any, ClassVar, Generic, TypeVar
from uuid import UUID

import structlog
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pymongo.asynchronous.collection import AsyncCollection

from calcrm.core.core import Service
from calcrm.core.db import SequencedRecord
from calcrm.core.modules.sequence.models import SEQUENCE_SCOPES, SequenceScope, SequenceType
from calcrm.core.pagination import (
    PAGINATION_KEYS,
    PageResult,
    RelatedExpansion,
    build_filter,
    execute,
    expand_related,
    parse_page_request,
)
from calcrm.errors import NotFoundError
from calcrm.utils import now

logger = structlog.get_logger(__name__)

CREATED_BY_EXPANSION = RelatedExpansion(field="created_by", collection_name="users", fields=("name", "email"))


def record_query(reference: str | UUID, id_field: str) -> dict[str, Any]:
    """Build the lookup for a record given either its internal UUID or its human identifier."""
    if isinstance(reference, UUID):
        return {"_id": reference}
    try:
        return {"_id": UUID(reference)}
    except ValueError:
        return {id_field: reference.strip()}


@cache
def field_adapter(annotation: Any) -> TypeAdapter[Any]:
    return TypeAdapter(annotation)


def coerce_filter_values(query: dict[str, Any], record_class: type[BaseModel]) -> dict[str, Any]:
    """Convert raw string filter values to the type of the record field they filter.

    A value the field type rejects makes the filter match nothing.
    """
    for field, value in query.items():
        info = record_class.model_fields.get(field)
        if info is None or not isinstance(value, str):
            continue
        try:
            query[field] = field_adapter(info.annotation).validate_python(value)
        except PydanticValidationError:
            query[field] = {"$in": []}
    return query


T = TypeVar("T", bound=SequencedRecord)
V = TypeVar("V", bound=BaseModel)


class RecordService(Service, Generic[T, V]):
    """Base for the entity services: create under the next identifier, list, get, update, delete.

    Subclasses declare the record type, the view type returned by list/get, and
    which query parameters may filter or search the collection.
    """

    sequence_type: ClassVar[SequenceType]
    label: ClassVar[str]
    record_class: type[T]
    view_class: type[V]

    # Extra public filter keys for stored fields whose camelCase name differs
    filter_aliases: ClassVar[Mapping[str, str]] = {}
    searchable_fields: ClassVar[tuple[str, ...]] = ()
    expansions: ClassVar[tuple[RelatedExpansion, ...]] = (CREATED_BY_EXPANSION,)

    @property
    def scope(self) -> SequenceScope:
        return SEQUENCE_SCOPES[self.sequence_type]

    @property
    def collection(self) -> AsyncCollection[dict[str, Any]]:
        return self.database.get_collection(self.scope.collection_name)

    @property
    def sort_fields(self) -> dict[str, str]:
        """Public camelCase sort keys mapped to stored field names."""
        return {to_camel(name): name for name in self.record_class.model_fields if name != "id"}

    @property
    def filter_fields(self) -> dict[str, str]:
        """Public query keys that may become equality filters, mapped to stored field names."""
        return self.sort_fields | dict(self.filter_aliases)

    async def on_start(self) -> None:
        await self.collection.create_index([("created_at", -1)])

    async def list_records(self, raw_query: Mapping[str, Any]) -> PageResult[V]:
        """List one page of records with search, equality filters and sorting from raw query parameters."""
        page_request = parse_page_request(raw_query, self.sort_fields)
        filter_fields = self.filter_fields
        allowed = {key: value for key, value in raw_query.items() if key in PAGINATION_KEYS or key in filter_fields}
        query = build_filter(allowed, self.searchable_fields, filter_fields)
        query = coerce_filter_values(await self.rewrite_filter(query), self.record_class)

        page = await execute(self.collection, query, page_request, self.expansions)
        return PageResult(
            data=[self.view_class.model_validate(doc) for doc in page.data],
            pagination=page.pagination,
        )

    async def rewrite_filter(self, query: dict[str, Any]) -> dict[str, Any]:
        """Translate public filter values into stored ones before the query runs."""
        return query

    async def get_record(self, reference: str | UUID) -> T:
        """Get record by UUID or human identifier."""
        return self.record_class.model_validate(await self._find_document(reference))

    async def get_record_view(self, reference: str | UUID) -> V:
        """Get record with its references expanded."""
        doc = await self._find_document(reference)
        for expansion in self.expansions:
            await expand_related([doc], expansion, self.database.get_collection(expansion.collection_name))
        return self.view_class.model_validate(doc)

    async def delete_record(self, reference: str | UUID) -> T:
        record = await self.get_record(reference)
        await self.collection.delete_one({"_id": record.id})
        logger.info("record_deleted", collection=self.scope.collection_name, record_id=record.id)
        return record

    async def insert(self, record: T) -> T:
        """Store a new record under the next free identifier of its scope."""
        document = record.to_mongo()
        identifier = await self.core.services.sequence.insert_with_next_id(self.scope, document)
        logger.info("record_created", collection=self.scope.collection_name, identifier=identifier, record_id=record.id)
        return self.record_class.model_validate(document)

    async def apply_update(self, record_id: UUID, changes: dict[str, Any]) -> T:
        """Set the given stored fields and bump `updated_at`."""
        changes["updated_at"] = now()
        await self.collection.update_one({"_id": record_id}, {"$set": changes})
        logger.debug("record_updated", collection=self.scope.collection_name, record_id=record_id, fields=sorted(changes))
        return await self.get_record(record_id)

    async def _find_document(self, reference: str | UUID) -> dict[str, Any]:
        doc = await self.collection.find_one(record_query(reference, self.scope.id_field))
        if doc is None:
            raise NotFoundError(f"{self.label} not found")
        return doc
