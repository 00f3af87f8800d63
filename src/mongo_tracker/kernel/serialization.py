from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Protocol
from uuid import UUID

from bson import ObjectId

from mongo_tracker.kernel.time import UTC, to_storage_precision


class DocumentLayout(Protocol):
    """Maps a Python type to its document fields.

    Returns `(element_name, getter)` pairs, or None when the type is unknown
    and generic conversion should apply.
    """

    def document_fields(self, cls: type) -> Iterable[tuple[str, Callable[[Any], Any]]] | None:
        ...


def to_document(value: Any, layout: DocumentLayout | None = None) -> Any:
    """Coerce an object graph into document-store compatible primitives.

    This is intentionally explicit (and limited). If you need to store a new
    type, add a branch and tests.
    """
    if value is None:
        return None

    # str-based enums must not fall through to the str branch.
    if isinstance(value, Enum):
        return to_document(value.value, layout)

    if isinstance(value, (str, bool, int, float, bytes)):
        return value

    if isinstance(value, datetime):
        return to_storage_precision(value)

    if isinstance(value, date):
        # No calendar-date type in documents; store midnight UTC.
        return datetime(value.year, value.month, value.day, tzinfo=UTC)

    if isinstance(value, (UUID, ObjectId)):
        return value

    if isinstance(value, Decimal):
        # Avoid float rounding surprises; callers can cast if they need numeric.
        return str(value)

    if isinstance(value, Path):
        return str(value)

    if layout is not None:
        fields = layout.document_fields(type(value))
        if fields is not None:
            return {name: to_document(getter(value), layout) for (name, getter) in fields}

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_document(getattr(value, f.name), layout)
            for f in dataclasses.fields(value)
        }

    if isinstance(value, Mapping):
        return {str(k): to_document(v, layout) for (k, v) in value.items()}

    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_document(v, layout) for v in value]

    model_dump = getattr(value, "model_dump", None)
    if callable(model_dump):
        return to_document(model_dump(), layout)

    raise TypeError(f"Unsupported type for document serialization: {type(value)!r}")
