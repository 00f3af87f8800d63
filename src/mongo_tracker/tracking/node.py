from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from mongo_tracker.model.kinds import PropertyKind
from mongo_tracker.model.metadata import Model, PropertyClassification
from mongo_tracker.patch import (
    Combine,
    Patch,
    SetCurrentTimestamp,
    SetField,
    UnsetField,
    combine_path,
)
from mongo_tracker.tracking.collections import (
    CollectionDiff,
    OrderedCollectionDiff,
    TrackedObjectCollectionDiff,
    ValueCollectionDiff,
    snapshot_value,
)

_SCALAR_KINDS = (PropertyKind.SCALAR, PropertyKind.CONCURRENCY_TOKEN)


class NodeTracker:
    """Snapshot and diff of one object in a tracked graph.

    The snapshot is taken once, at construction. Each `diff()` recomputes the
    delta set from scratch against that snapshot, so diffing an unchanged
    instance repeatedly never accumulates entries.

    The object graph must be a tree: a nested object that points back at an
    ancestor recurses forever.
    """

    def __init__(self, instance: Any, model: Model):
        self._model = model
        self._entity = model.entity(type(instance))
        self._children: dict[str, NodeTracker] = {}
        self._collections: dict[str, CollectionDiff] = {}
        self._changes: dict[str, Any] = {}
        # Children / collections whose value went to None in the last diff.
        self._detached: set[str] = set()

        snapshot: dict[str, Any] = {}
        for prop in self._entity.tracked_properties:
            value = prop.get(instance)
            snapshot[prop.name] = snapshot_value(value) if prop.kind in _SCALAR_KINDS else value
            if value is None:
                continue

            if prop.kind is PropertyKind.TRACKED_OBJECT:
                self._children[prop.name] = NodeTracker(value, model)
            elif prop.kind is PropertyKind.COLLECTION:
                self._collections[prop.name] = ValueCollectionDiff(value)
            elif prop.kind is PropertyKind.ORDERED_COLLECTION:
                self._collections[prop.name] = OrderedCollectionDiff(value)
            elif prop.kind is PropertyKind.TRACKED_OBJECT_COLLECTION:
                self._collections[prop.name] = TrackedObjectCollectionDiff(
                    value, lambda element: NodeTracker(element, model)
                )

        self._snapshot: Mapping[str, Any] = MappingProxyType(snapshot)

    @property
    def entity_type(self) -> type:
        return self._entity.entity_type

    @property
    def snapshot(self) -> Mapping[str, Any]:
        return self._snapshot

    @property
    def changes(self) -> Mapping[str, Any]:
        return MappingProxyType(self._changes)

    @property
    def is_modified(self) -> bool:
        if self._changes:
            return True
        if any(child.is_modified for (_, child) in self._active(self._children)):
            return True
        return any(collection.is_modified for (_, collection) in self._active(self._collections))

    def diff(self, instance: Any) -> None:
        """Compare `instance` against the snapshot."""
        self._changes = {}
        self._detached = set()

        for prop in self._entity.tracked_properties:
            if prop.kind is PropertyKind.VERSION:
                continue

            old = self._snapshot[prop.name]
            new = prop.get(instance)

            if prop.kind in _SCALAR_KINDS:
                self._diff_scalar(prop, old, new)
            elif prop.kind.is_collection:
                self._diff_collection(prop, old, new)
            else:
                self._diff_nested(prop, old, new)

    def build_patch(self, prefix: str | None = None, *, unset_nulls: bool = False) -> Patch:
        """Patch for everything the last diff found, with paths under `prefix`."""
        parts: list[Patch] = []
        version = self._entity.version

        for name, value in self._changes.items():
            if version is not None and name == version.name:
                continue
            path = self._path(prefix, name)
            if value is None and unset_nulls:
                parts.append(UnsetField(path))
            else:
                parts.append(SetField(path, value))

        for name, child in self._active(self._children):
            if child.is_modified:
                parts.append(child.build_patch(self._path(prefix, name), unset_nulls=unset_nulls))

        for name, collection in self._active(self._collections):
            if collection.is_modified:
                parts.append(collection.build_patch(self._path(prefix, name), unset_nulls=unset_nulls))

        patch = Combine.of(parts)
        if version is not None and patch.parts:
            patch = Combine(patch.parts + (SetCurrentTimestamp(self._path(prefix, version.name)),))
        return patch

    def captured_version(self) -> tuple[str, Any] | None:
        """(path, value) of the version captured at snapshot time.

        Falls back to the first nested object that declares one.
        """
        version = self._entity.version
        if version is not None:
            return (version.element_name, self._snapshot[version.name])

        for name, child in self._children.items():
            nested = child.captured_version()
            if nested is not None:
                return (combine_path(self._path(None, name), nested[0]), nested[1])
        return None

    def captured_concurrency_tokens(self) -> list[tuple[str, Any]]:
        """(path, value) pairs of concurrency tokens, this node first then nested."""
        tokens = [(p.element_name, self._snapshot[p.name]) for p in self._entity.concurrency_tokens]
        for name, child in self._children.items():
            tokens.extend(
                (combine_path(self._path(None, name), path), value)
                for (path, value) in child.captured_concurrency_tokens()
            )
        return tokens

    def _diff_scalar(self, prop: PropertyClassification, old: Any, new: Any) -> None:
        if old is None and new is None:
            return
        if old is new or old == new:
            return
        self._changes[prop.name] = new

    def _diff_nested(self, prop: PropertyClassification, old: Any, new: Any) -> None:
        if old is None and new is None:
            return
        if old is None:
            # Newly attached object is written wholesale.
            self._changes[prop.name] = new
            return
        if new is None:
            self._changes[prop.name] = None
            self._detached.add(prop.name)
            return
        self._children[prop.name].diff(new)

    def _diff_collection(self, prop: PropertyClassification, old: Any, new: Any) -> None:
        if old is None and new is None:
            return
        if old is None:
            self._changes[prop.name] = list(new)
            return
        if new is None:
            self._changes[prop.name] = None
            self._detached.add(prop.name)
            return
        self._collections[prop.name].diff(new)

    def _active(self, items: dict[str, Any]) -> list[tuple[str, Any]]:
        return [(name, item) for (name, item) in items.items() if name not in self._detached]

    def _path(self, prefix: str | None, name: str) -> str:
        return combine_path(prefix, self._entity.by_name[name].element_name)
