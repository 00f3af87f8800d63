from __future__ import annotations

from enum import Enum


class PropertyKind(str, Enum):
    """How the tracker treats a property of an entity type."""

    # Unique identifier (document key). Never diffed.
    IDENTIFIER = "identifier"

    # Plain value compared with ==.
    SCALAR = "scalar"

    # Nested object diffed field-by-field.
    TRACKED_OBJECT = "tracked_object"

    # Unordered value collection diffed as a multiset (append / remove / replace).
    COLLECTION = "collection"

    # Order-sensitive value collection, replaced wholesale on any change.
    ORDERED_COLLECTION = "ordered_collection"

    # Collection of nested objects, each diffed field-by-field.
    TRACKED_OBJECT_COLLECTION = "tracked_object_collection"

    # Timestamp touched on every update and used in the concurrency filter.
    VERSION = "version"

    # Caller-managed value used in the concurrency filter.
    CONCURRENCY_TOKEN = "concurrency_token"

    # Not persisted and not tracked.
    IGNORED = "ignored"

    @property
    def is_collection(self) -> bool:
        return self in _COLLECTION_KINDS


_COLLECTION_KINDS = frozenset(
    {
        PropertyKind.COLLECTION,
        PropertyKind.ORDERED_COLLECTION,
        PropertyKind.TRACKED_OBJECT_COLLECTION,
    }
)
