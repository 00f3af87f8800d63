from __future__ import annotations

from enum import Enum
from typing import Any, Generic, TypeVar

from mongo_tracker.kernel.errors import EntityNotModifiedError, MisuseError
from mongo_tracker.model.metadata import Model
from mongo_tracker.patch import Patch
from mongo_tracker.tracking.node import NodeTracker

T = TypeVar("T")


class EntityState(str, Enum):
    """Lifecycle of a tracked root entity within one commit cycle."""

    DEFAULT = "default"
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


class EntityTracker(Generic[T]):
    """Root NodeTracker plus lifecycle state and captured concurrency values.

    MODIFIED is derived: only `detect_changes()` assigns it. Callers set
    ADDED or DELETED, and those bypass diffing for the cycle.
    """

    def __init__(self, instance: T, model: Model, *, state: EntityState = EntityState.DEFAULT):
        self._root = NodeTracker(instance, model)
        self._state = state
        self._version = self._root.captured_version()
        self._concurrency_tokens = tuple(self._root.captured_concurrency_tokens())

    @property
    def state(self) -> EntityState:
        return self._state

    @property
    def root(self) -> NodeTracker:
        return self._root

    def mark_added(self) -> None:
        if self._state is EntityState.DELETED:
            raise MisuseError(message="Entity is marked as deleted and cannot be added")
        self._state = EntityState.ADDED

    def mark_deleted(self) -> None:
        self._state = EntityState.DELETED

    def detect_changes(self, instance: T) -> EntityState:
        """Diff `instance` against the snapshot and re-derive the state."""
        if self._state in (EntityState.ADDED, EntityState.DELETED):
            return self._state

        self._root.diff(instance)
        self._state = EntityState.MODIFIED if self._root.is_modified else EntityState.DEFAULT
        return self._state

    def compute_patch(self, *, unset_nulls: bool = False) -> Patch:
        if self._state is not EntityState.MODIFIED:
            raise EntityNotModifiedError(meta={"state": self._state.value})
        return self._root.build_patch(None, unset_nulls=unset_nulls)

    def captured_version(self) -> tuple[str, Any] | None:
        return self._version

    def captured_concurrency_tokens(self) -> tuple[tuple[str, Any], ...]:
        return self._concurrency_tokens
