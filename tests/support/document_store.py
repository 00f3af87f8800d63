from __future__ import annotations

import copy
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from mongo_tracker.kernel.serialization import DocumentLayout
from mongo_tracker.operations import DeleteOne, InsertOne, UpdateOne, WriteOperation
from mongo_tracker.render import render_document, render_filter, render_update
from mongo_tracker.sinks.base import BulkWriteSummary
from tests.support.clock import FakeClock

_MISSING = object()


@dataclass
class FakeDocumentCollection:
    """
    In-memory fake implementing the WriteSink protocol.

    Operations are rendered exactly as the pymongo sink renders them, then
    applied to plain dict documents keyed by `_id`. Supports the update
    operators the tracker emits and equality filters on dotted paths.
    """

    layout: DocumentLayout | None = None
    clock: FakeClock = field(default_factory=FakeClock.fixed)
    acknowledge: bool = True
    fail_with: Exception | None = None
    documents: dict[Any, dict[str, Any]] = field(default_factory=dict)
    batches: list[list[WriteOperation]] = field(default_factory=list)

    def bulk_write(
        self,
        operations: Sequence[WriteOperation],
        *,
        ordered: bool = True,
    ) -> BulkWriteSummary:
        self.batches.append(list(operations))
        if self.fail_with is not None:
            raise self.fail_with

        inserted = matched = modified = deleted = 0
        for operation in operations:
            if isinstance(operation, InsertOne):
                document = render_document(operation.document, self.layout)
                if document["_id"] in self.documents:
                    raise ValueError(f"duplicate key: {document['_id']!r}")
                self.documents[document["_id"]] = document
                inserted += 1
            elif isinstance(operation, DeleteOne):
                key = self._find(render_filter(operation.filter, self.layout))
                if key is not _MISSING:
                    del self.documents[key]
                    deleted += 1
            elif isinstance(operation, UpdateOne):
                key = self._find(render_filter(operation.filter, self.layout))
                if key is _MISSING:
                    continue
                matched += 1
                before = copy.deepcopy(self.documents[key])
                self._apply(self.documents[key], render_update(operation.patch, self.layout))
                if self.documents[key] != before:
                    modified += 1

        return BulkWriteSummary(
            acknowledged=self.acknowledge,
            inserted_count=inserted,
            matched_count=matched,
            modified_count=modified,
            deleted_count=deleted,
        )

    def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:
        key = self._find(filter)
        return None if key is _MISSING else self.documents[key]

    def _find(self, filter: dict[str, Any]) -> Any:
        for key, document in self.documents.items():
            if all(_get_path(document, path) == value for (path, value) in filter.items()):
                return key
        return _MISSING

    def _apply(self, document: dict[str, Any], update: dict[str, dict[str, Any]]) -> None:
        for operator, fields in update.items():
            for path, value in fields.items():
                if operator == "$set":
                    _set_path(document, path, copy.deepcopy(value))
                elif operator == "$unset":
                    _unset_path(document, path)
                elif operator == "$push":
                    current = _get_path(document, path)
                    items = [] if current is _MISSING or current is None else list(current)
                    items.extend(copy.deepcopy(value["$each"]))
                    _set_path(document, path, items)
                elif operator == "$pullAll":
                    current = _get_path(document, path)
                    if isinstance(current, list):
                        _set_path(document, path, [item for item in current if item not in value])
                elif operator == "$currentDate":
                    _set_path(document, path, self.clock.now())
                else:
                    raise ValueError(f"unsupported operator: {operator}")


@dataclass
class AsyncFakeDocumentCollection:
    """AsyncWriteSink view over a FakeDocumentCollection."""

    inner: FakeDocumentCollection

    async def bulk_write(
        self,
        operations: Sequence[WriteOperation],
        *,
        ordered: bool = True,
    ) -> BulkWriteSummary:
        return self.inner.bulk_write(operations, ordered=ordered)


def _get_path(document: Any, path: str) -> Any:
    node = document
    for segment in path.split("."):
        if isinstance(node, list):
            if not segment.isdigit() or int(segment) >= len(node):
                return _MISSING
            node = node[int(segment)]
        elif isinstance(node, dict):
            if segment not in node:
                return _MISSING
            node = node[segment]
        else:
            return _MISSING
    return node


def _set_path(document: dict[str, Any], path: str, value: Any) -> None:
    *parents, last = path.split(".")
    node: Any = document
    for segment in parents:
        if isinstance(node, list):
            node = node[int(segment)]
        else:
            if not isinstance(node.get(segment), (dict, list)):
                node[segment] = {}
            node = node[segment]
    if isinstance(node, list):
        node[int(last)] = value
    else:
        node[last] = value


def _unset_path(document: dict[str, Any], path: str) -> None:
    *parents, last = path.split(".")
    node = _get_path(document, ".".join(parents)) if parents else document
    if isinstance(node, dict):
        node.pop(last, None)
