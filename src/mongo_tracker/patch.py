"""Composable patch tree produced by a diff.

Primitives address a dotted document path. `Combine` groups patches; an
empty `Combine` is the no-op patch.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Union


def combine_path(prefix: str | None, name: str) -> str:
    """Join a parent path and a field name with a dot."""
    if prefix is None:
        return name
    return f"{prefix}.{name}"


@dataclass(frozen=True, slots=True)
class SetField:
    path: str
    value: Any


@dataclass(frozen=True, slots=True)
class UnsetField:
    path: str


@dataclass(frozen=True, slots=True)
class AppendEach:
    path: str
    values: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class RemoveAll:
    path: str
    values: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class ReplaceField:
    path: str
    values: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class SetCurrentTimestamp:
    path: str


Primitive = Union[SetField, UnsetField, AppendEach, RemoveAll, ReplaceField, SetCurrentTimestamp]


@dataclass(frozen=True, slots=True)
class Combine:
    parts: tuple["Patch", ...] = ()

    @classmethod
    def of(cls, parts: Iterable["Patch | None"]) -> "Combine":
        return cls(tuple(part for part in parts if part is not None and not is_empty(part)))

    def __iter__(self) -> Iterator["Patch"]:
        return iter(self.parts)


Patch = Union[Primitive, Combine]

EMPTY = Combine()


def is_empty(patch: Patch) -> bool:
    if isinstance(patch, Combine):
        return all(is_empty(part) for part in patch.parts)
    return False


def flatten(patch: Patch) -> list[Primitive]:
    """Depth-first list of primitives in emission order."""
    if not isinstance(patch, Combine):
        return [patch]
    primitives: list[Primitive] = []
    for part in patch.parts:
        primitives.extend(flatten(part))
    return primitives


def paths(patch: Patch) -> list[str]:
    return [primitive.path for primitive in flatten(patch)]
