"""Write operations handed to a write sink."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Union

from mongo_tracker.patch import Patch


@dataclass(frozen=True, slots=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class Filter:
    """Conjunction of equality predicates."""

    predicates: tuple[Eq, ...]

    @classmethod
    def by_identifier(cls, element_name: str, value: Any) -> "Filter":
        return cls((Eq(element_name, value),))

    def and_eq(self, field: str, value: Any) -> "Filter":
        return Filter(self.predicates + (Eq(field, value),))

    def __iter__(self) -> Iterator[Eq]:
        return iter(self.predicates)

    def as_dict(self) -> dict[str, Any]:
        return {predicate.field: predicate.value for predicate in self.predicates}


@dataclass(frozen=True, slots=True)
class InsertOne:
    document: Any


@dataclass(frozen=True, slots=True)
class DeleteOne:
    filter: Filter


@dataclass(frozen=True, slots=True)
class UpdateOne:
    filter: Filter
    patch: Patch


WriteOperation = Union[InsertOne, DeleteOne, UpdateOne]
