"""Render operations into the MongoDB query/update dialect."""

from __future__ import annotations

from typing import Any

from mongo_tracker.kernel.serialization import DocumentLayout, to_document
from mongo_tracker.operations import Filter
from mongo_tracker.patch import (
    AppendEach,
    Patch,
    RemoveAll,
    ReplaceField,
    SetCurrentTimestamp,
    SetField,
    UnsetField,
    flatten,
)


def render_filter(filter: Filter, layout: DocumentLayout | None = None) -> dict[str, Any]:
    """Equality conjunction on distinct keys; no `$and` needed."""
    return {eq.field: to_document(eq.value, layout) for eq in filter}


def render_document(instance: Any, layout: DocumentLayout | None = None) -> dict[str, Any]:
    document = to_document(instance, layout)
    if not isinstance(document, dict):
        raise TypeError(f"Entity did not serialize to a document: {type(instance)!r}")
    return document


def render_update(patch: Patch, layout: DocumentLayout | None = None) -> dict[str, dict[str, Any]]:
    """Merge patch primitives into one update document keyed by operator."""
    update: dict[str, dict[str, Any]] = {}
    for primitive in flatten(patch):
        path = primitive.path
        if isinstance(primitive, SetField):
            update.setdefault("$set", {})[path] = to_document(primitive.value, layout)
        elif isinstance(primitive, ReplaceField):
            update.setdefault("$set", {})[path] = to_document(list(primitive.values), layout)
        elif isinstance(primitive, UnsetField):
            update.setdefault("$unset", {})[path] = ""
        elif isinstance(primitive, AppendEach):
            update.setdefault("$push", {})[path] = {"$each": to_document(list(primitive.values), layout)}
        elif isinstance(primitive, RemoveAll):
            update.setdefault("$pullAll", {})[path] = to_document(list(primitive.values), layout)
        elif isinstance(primitive, SetCurrentTimestamp):
            update.setdefault("$currentDate", {})[path] = {"$type": "date"}
        else:
            raise TypeError(f"Unsupported patch primitive: {type(primitive)!r}")
    return update
