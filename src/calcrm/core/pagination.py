"""Pagination, search and filter engine shared by every list endpoint.

Raw query parameters arrive untrusted and as strings. They are normalized into a
bounded `PageRequest` and a MongoDB filter document, executed against a
collection, and shaped into a `PageResult` with page metadata.
"""

import asyncio
import math
import re
from collections.abc import Mapping, Sequence
from enum import IntEnum
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pymongo.asynchronous.collection import AsyncCollection

from calcrm.utils import parse_leading_int

logger = structlog.get_logger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
DEFAULT_SORT_BY = "createdAt"

# Query keys that control paging and never become equality filters
PAGINATION_KEYS = frozenset({"page", "limit", "sortBy", "sortOrder", "search"})


class SortOrder(IntEnum):
    ASC = 1
    DESC = -1


class PageRequest(BaseModel):
    """Normalized page request derived from raw query input."""

    page: int = Field(DEFAULT_PAGE, ge=1)
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    skip: int = Field(0, ge=0)
    sort_by: str = DEFAULT_SORT_BY
    sort_order: SortOrder = SortOrder.DESC


class PageMeta(BaseModel):
    """Pagination metadata returned next to every list."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = Field(..., ge=0, description="Total number of matching records across all pages")
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    has_next_page: bool
    has_prev_page: bool


T = TypeVar("T")


class PageResult(BaseModel, Generic[T]):
    """One page of records plus its metadata."""

    data: list[T] = Field(..., description="Records in the current page")
    pagination: PageMeta


class RelatedExpansion(BaseModel):
    """Instruction to inline a subset of a referenced record's fields.

    The value stored in `field` is looked up in `collection_name` by
    `foreign_field`; the matched sub-document (or None) is written to `target`,
    which defaults to `field` itself.
    """

    model_config = ConfigDict(frozen=True)

    field: str
    collection_name: str
    fields: tuple[str, ...]
    foreign_field: str = "_id"
    target: str | None = None

    @property
    def target_field(self) -> str:
        return self.target or self.field


def parse_page_request(raw_query: Mapping[str, Any], sort_fields: Mapping[str, str] | None = None) -> PageRequest:
    """Build a bounded PageRequest; malformed input silently falls back to defaults.

    `sort_fields` maps public sort keys (camelCase) to stored field names.
    """
    page = max(1, parse_leading_int(raw_query.get("page")) or DEFAULT_PAGE)
    limit = min(MAX_LIMIT, max(1, parse_leading_int(raw_query.get("limit")) or DEFAULT_LIMIT))
    sort_by = raw_query.get("sortBy") or DEFAULT_SORT_BY
    if sort_fields:
        sort_by = sort_fields.get(sort_by, sort_by)
    sort_order = SortOrder.ASC if raw_query.get("sortOrder") == "asc" else SortOrder.DESC

    return PageRequest(page=page, limit=limit, skip=(page - 1) * limit, sort_by=str(sort_by), sort_order=sort_order)


def build_page_meta(total: int, page: int, limit: int) -> PageMeta:
    total_pages = math.ceil(total / limit)
    return PageMeta(
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


def build_search_condition(search: str, searchable_fields: Sequence[str]) -> dict[str, Any]:
    """Build an $or of case-insensitive substring matches over the given fields."""
    pattern = re.escape(search)
    return {"$or": [{field: {"$regex": pattern, "$options": "i"}} for field in searchable_fields]}


def build_filter(
    raw_query: Mapping[str, Any],
    searchable_fields: Sequence[str] = (),
    field_map: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Translate raw query parameters into a MongoDB filter document.

    Falsy values ("" or 0) are treated as absent and dropped.

    Args:
        raw_query: Query parameters as received
        searchable_fields: Stored field names the `search` term is matched against
        field_map: Optional translation of public query keys to stored field names

    Returns:
        MongoDB filter document
    """
    query: dict[str, Any] = {}

    search = raw_query.get("search")
    if search and searchable_fields:
        query.update(build_search_condition(str(search), searchable_fields))

    for key, value in raw_query.items():
        if key in PAGINATION_KEYS or not value:
            continue
        field = field_map.get(key, key) if field_map else key
        query[field] = value

    return query


async def expand_related(
    docs: list[dict[str, Any]],
    expansion: RelatedExpansion,
    collection: AsyncCollection[dict[str, Any]],
) -> None:
    """Inline referenced records into `docs` in place."""
    values = list({doc[expansion.field] for doc in docs if doc.get(expansion.field) is not None})
    related: dict[Any, dict[str, Any]] = {}
    if values:
        projection = dict.fromkeys((*expansion.fields, expansion.foreign_field), 1)
        cursor = collection.find({expansion.foreign_field: {"$in": values}}, projection)
        related = {item[expansion.foreign_field]: item async for item in cursor}

    for doc in docs:
        value = doc.get(expansion.field)
        doc[expansion.target_field] = related.get(value) if value is not None else None


async def execute(
    collection: AsyncCollection[dict[str, Any]],
    query: dict[str, Any],
    page_request: PageRequest,
    expansions: Sequence[RelatedExpansion] = (),
) -> PageResult[dict[str, Any]]:
    """Fetch one page of matching records and the total count concurrently."""
    cursor = (
        collection.find(query)
        .sort(page_request.sort_by, int(page_request.sort_order))
        .skip(page_request.skip)
        .limit(page_request.limit)
    )
    docs, total = await asyncio.gather(cursor.to_list(), collection.count_documents(query))

    database = collection.database
    for expansion in expansions:
        await expand_related(docs, expansion, database.get_collection(expansion.collection_name))

    logger.debug(
        "page_fetched",
        collection=collection.name,
        query=query,
        page=page_request.page,
        limit=page_request.limit,
        sort_by=page_request.sort_by,
        total=total,
        returned=len(docs),
    )
    return PageResult(data=docs, pagination=build_page_meta(total, page_request.page, page_request.limit))
