"""In-memory stand-ins for the async pymongo collection and database.

Only the subset of the query language used by the services is supported:
equality, `$in`, `$regex`/`$options` and `$or`.
"""

import copy
import re
from collections.abc import Callable, Iterable
from types import SimpleNamespace
from typing import Any

from pymongo.errors import DuplicateKeyError


def matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    for key, condition in query.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
            continue
        value = doc.get(key)
        if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
            if not _matches_operators(value, condition):
                return False
        elif value != condition:
            return False
    return True


def _matches_operators(value: Any, condition: dict[str, Any]) -> bool:
    if "$in" in condition and value not in condition["$in"]:
        return False
    if "$regex" in condition:
        flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
        if not isinstance(value, str) or re.search(condition["$regex"], value, flags) is None:
            return False
    return True


def project(doc: dict[str, Any], projection: dict[str, int] | None) -> dict[str, Any]:
    if not projection:
        return copy.deepcopy(doc)
    if any(projection.values()):
        keys = {k for k, v in projection.items() if v}
        if projection.get("_id", 1):
            keys.add("_id")
        return {k: copy.deepcopy(v) for k, v in doc.items() if k in keys}
    return {k: copy.deepcopy(v) for k, v in doc.items() if projection.get(k, 1)}


def sort_docs(docs: list[dict[str, Any]], keys: list[tuple[str, int]]) -> list[dict[str, Any]]:
    result = list(docs)
    for field, direction in reversed(keys):
        result.sort(key=lambda d, f=field: (d.get(f) is not None, d.get(f)), reverse=direction < 0)
    return result


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]], projection: dict[str, int] | None = None) -> None:
        self._docs = docs
        self._projection = projection
        self._sort: list[tuple[str, int]] = []
        self._skip = 0
        self._limit = 0

    def sort(self, key: str | list[tuple[str, int]], direction: int = 1) -> "FakeCursor":
        self._sort = [(key, direction)] if isinstance(key, str) else list(key)
        return self

    def skip(self, count: int) -> "FakeCursor":
        self._skip = count
        return self

    def limit(self, count: int) -> "FakeCursor":
        self._limit = count
        return self

    def _results(self) -> list[dict[str, Any]]:
        docs = sort_docs(self._docs, self._sort)[self._skip :]
        docs = docs[: self._limit] if self._limit else docs
        return [project(doc, self._projection) for doc in docs]

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        docs = self._results()
        return docs[:length] if length else docs

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for doc in self._results():
            yield doc


class FakeCollection:
    def __init__(self, database: "FakeDatabase", name: str) -> None:
        self.database = database
        self.name = name
        self.docs: list[dict[str, Any]] = []
        self.unique_fields: set[str] = set()
        self.indexes: list[list[tuple[str, int]]] = []
        self.before_insert: Callable[[dict[str, Any]], None] | None = None

    async def create_index(self, keys: list[tuple[str, int]], unique: bool = False) -> str:
        self.indexes.append(list(keys))
        if unique:
            self.unique_fields.update(field for field, _ in keys)
        return "_".join(f"{field}_{direction}" for field, direction in keys)

    async def insert_one(self, document: dict[str, Any]) -> SimpleNamespace:
        if self.before_insert is not None:
            hook, self.before_insert = self.before_insert, None
            hook(document)
        self._check_unique(document)
        self.docs.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one(
        self,
        query: dict[str, Any] | None = None,
        projection: dict[str, int] | None = None,
        sort: list[tuple[str, int]] | None = None,
    ) -> dict[str, Any] | None:
        docs = sort_docs([d for d in self.docs if matches(d, query or {})], sort or [])
        return project(docs[0], projection) if docs else None

    def find(self, query: dict[str, Any] | None = None, projection: dict[str, int] | None = None) -> FakeCursor:
        return FakeCursor([d for d in self.docs if matches(d, query or {})], projection)

    async def count_documents(self, query: dict[str, Any]) -> int:
        return sum(1 for d in self.docs if matches(d, query))

    async def update_one(self, query: dict[str, Any], update: dict[str, Any]) -> None:
        for doc in self.docs:
            if matches(doc, query):
                changes = copy.deepcopy(update.get("$set", {}))
                self._check_unique({**doc, **changes}, exclude=doc)
                doc.update(changes)
                return

    async def delete_one(self, query: dict[str, Any]) -> None:
        for index, doc in enumerate(self.docs):
            if matches(doc, query):
                del self.docs[index]
                return

    async def bulk_write(self, requests: Iterable[Any], ordered: bool = True) -> None:
        for request in requests:
            await self.update_one(request._filter, request._doc)

    def _check_unique(self, document: dict[str, Any], exclude: dict[str, Any] | None = None) -> None:
        for field in self.unique_fields:
            value = document.get(field)
            if any(other is not exclude and other.get(field) == value for other in self.docs):
                raise DuplicateKeyError(
                    f"E11000 duplicate key error collection: {self.name} dup key: {{ {field}: {value!r} }}",
                    code=11000,
                    details={"keyPattern": {field: 1}, "keyValue": {field: value}},
                )


class FakeDatabase:
    def __init__(self, name: str = "calcrm_test") -> None:
        self.name = name
        self._collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(self, name)
        return self._collections[name]

    def __getitem__(self, name: str) -> FakeCollection:
        return self.get_collection(name)
