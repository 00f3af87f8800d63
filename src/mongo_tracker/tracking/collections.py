"""Collection differencers.

Value collections are compared as multisets under `==`; tracked-object
collections match elements by identity and recurse into retained elements.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any

from mongo_tracker.patch import (
    EMPTY,
    AppendEach,
    Combine,
    Patch,
    RemoveAll,
    ReplaceField,
    combine_path,
)

if TYPE_CHECKING:
    from mongo_tracker.tracking.node import NodeTracker


def snapshot_value(value: Any) -> Any:
    """Copy builtin mutable containers so in-place edits show up as deltas."""
    if isinstance(value, (list, dict, set, bytearray)):
        return copy.deepcopy(value)
    return value


def multiset_difference(left: Iterable[Any], right: Iterable[Any]) -> list[Any]:
    """Items of `left` with no equal counterpart left in `right`.

    Each item of `right` cancels at most one equal item of `left`, so
    duplicates are counted. Works for unhashable elements.
    """
    remaining = list(right)
    result: list[Any] = []
    for item in left:
        for index, candidate in enumerate(remaining):
            if candidate == item:
                del remaining[index]
                break
        else:
            result.append(item)
    return result


class CollectionDiff(ABC):
    """Original snapshot plus the current sequence of one collection property."""

    def __init__(self, original: Iterable[Any]):
        self.original: tuple[Any, ...] = tuple(original)
        self.current: tuple[Any, ...] = self.original

    def diff(self, current: Iterable[Any]) -> None:
        self.current = tuple(current)
        self._recompute()

    @property
    @abstractmethod
    def is_modified(self) -> bool:
        ...

    @abstractmethod
    def build_patch(self, path: str, *, unset_nulls: bool = False) -> Patch:
        ...

    @abstractmethod
    def _recompute(self) -> None:
        ...


class ValueCollectionDiff(CollectionDiff):
    """Unordered value collection: append-only, remove-only, or replace."""

    def __init__(self, original: Iterable[Any]):
        super().__init__(snapshot_value(item) for item in original)
        self.added: list[Any] = []
        self.removed: list[Any] = []

    @property
    def is_modified(self) -> bool:
        return bool(self.added or self.removed)

    def build_patch(self, path: str, *, unset_nulls: bool = False) -> Patch:
        if self.added and not self.removed:
            return AppendEach(path, tuple(self.added))
        if self.removed and not self.added:
            return RemoveAll(path, tuple(self.removed))
        if self.added and self.removed:
            return ReplaceField(path, self.current)
        return EMPTY

    def _recompute(self) -> None:
        self.added = multiset_difference(self.current, self.original)
        self.removed = multiset_difference(self.original, self.current)


class OrderedCollectionDiff(CollectionDiff):
    """Order-sensitive value collection: replaced wholesale on any difference."""

    def __init__(self, original: Iterable[Any]):
        super().__init__(snapshot_value(item) for item in original)
        self._sequence_equal = True

    @property
    def is_modified(self) -> bool:
        return not self._sequence_equal

    def build_patch(self, path: str, *, unset_nulls: bool = False) -> Patch:
        if self._sequence_equal:
            return EMPTY
        return ReplaceField(path, self.current)

    def _recompute(self) -> None:
        self._sequence_equal = self.current == self.original


class TrackedObjectCollectionDiff(CollectionDiff):
    """Collection of nested objects, each with its own NodeTracker.

    Elements are matched by identity. Indexed element patches
    (`path.<index>.field`) are only emitted when nothing was added, removed
    or reordered; every other combination replaces the whole collection.
    """

    def __init__(
        self,
        original: Iterable[Any],
        track: Callable[[Any], "NodeTracker"],
    ):
        super().__init__(original)
        # Keyed by id(); `self.original` keeps the elements alive.
        self._children: dict[int, NodeTracker] = {id(item): track(item) for item in self.original}
        # Tracking-time state of each element. `$pullAll` matches stored
        # documents exactly, so removals are written from these.
        self._pristine: dict[int, Any] = {id(item): copy.deepcopy(item) for item in self.original}
        self.added: list[Any] = []
        self.removed: list[Any] = []
        self.reordered = False
        self.elements_modified = False

    @property
    def is_modified(self) -> bool:
        return bool(self.added or self.removed or self.reordered or self.elements_modified)

    def child_for(self, element: Any) -> "NodeTracker | None":
        return self._children.get(id(element))

    def build_patch(self, path: str, *, unset_nulls: bool = False) -> Patch:
        if not self.is_modified:
            return EMPTY

        structural = self.reordered or self.elements_modified
        if self.added and not self.removed and not structural:
            return AppendEach(path, tuple(self.added))
        if self.removed and not self.added and not structural:
            return RemoveAll(path, tuple(self.removed))
        if self.elements_modified and not (self.added or self.removed or self.reordered):
            return Combine.of(
                child.build_patch(combine_path(path, str(index)), unset_nulls=unset_nulls)
                for (index, child) in self._retained_children()
                if child.is_modified
            )
        return ReplaceField(path, self.current)

    def _recompute(self) -> None:
        original_ids = [id(item) for item in self.original]
        current_ids = [id(item) for item in self.current]
        original_set = set(original_ids)
        current_set = set(current_ids)

        self.added = [item for item in self.current if id(item) not in original_set]
        self.removed = [self._pristine[id(item)] for item in self.original if id(item) not in current_set]
        self.reordered = _retained_order(current_ids, original_set) != _retained_order(
            original_ids, current_set
        )

        self.elements_modified = False
        for item in self.current:
            child = self.child_for(item)
            if child is None:
                continue
            child.diff(item)
            if child.is_modified:
                self.elements_modified = True

    def _retained_children(self) -> Sequence[tuple[int, "NodeTracker"]]:
        return [
            (index, child)
            for (index, item) in enumerate(self.current)
            if (child := self.child_for(item)) is not None
        ]


def _retained_order(ids: list[int], keep: set[int]) -> list[int]:
    return [value for value in ids if value in keep]
