from __future__ import annotations

import operator
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Any

from mongo_tracker.kernel.errors import ConfigurationError
from mongo_tracker.model.discovery import discover_fields
from mongo_tracker.model.kinds import PropertyKind


@dataclass(frozen=True, slots=True)
class PropertyClassification:
    """Classification of one property of an entity type."""

    name: str
    declared_type: Any
    kind: PropertyKind
    element_name: str
    getter: Callable[[Any], Any] = field(compare=False, repr=False)

    @classmethod
    def create(
        cls,
        name: str,
        declared_type: Any,
        kind: PropertyKind = PropertyKind.SCALAR,
        element_name: str | None = None,
    ) -> "PropertyClassification":
        return cls(
            name=name,
            declared_type=declared_type,
            kind=kind,
            element_name=element_name or name,
            getter=operator.attrgetter(name),
        )

    def get(self, instance: Any) -> Any:
        return self.getter(instance)


@dataclass(frozen=True)
class EntityModel:
    """Ordered property classifications for one type."""

    entity_type: type
    properties: tuple[PropertyClassification, ...]

    @cached_property
    def by_name(self) -> Mapping[str, PropertyClassification]:
        return MappingProxyType({p.name: p for p in self.properties})

    @cached_property
    def identifier(self) -> PropertyClassification | None:
        return self._first(PropertyKind.IDENTIFIER)

    @cached_property
    def version(self) -> PropertyClassification | None:
        return self._first(PropertyKind.VERSION)

    @cached_property
    def concurrency_tokens(self) -> tuple[PropertyClassification, ...]:
        return tuple(p for p in self.properties if p.kind is PropertyKind.CONCURRENCY_TOKEN)

    @cached_property
    def tracked_properties(self) -> tuple[PropertyClassification, ...]:
        """Properties captured in a snapshot: everything but identifier and ignored."""
        skipped = (PropertyKind.IDENTIFIER, PropertyKind.IGNORED)
        return tuple(p for p in self.properties if p.kind not in skipped)

    @property
    def name(self) -> str:
        return self.entity_type.__name__

    def require_identifier(self) -> PropertyClassification:
        if self.identifier is None:
            raise ConfigurationError(
                message=f"Entity '{self.name}' has no identifier property configured.",
                meta={"entity": self.name},
            )
        return self.identifier

    def identifier_of(self, instance: Any) -> Any:
        return self.require_identifier().get(instance)

    def _first(self, kind: PropertyKind) -> PropertyClassification | None:
        return next((p for p in self.properties if p.kind is kind), None)


class Model:
    """Immutable mapping of entity type -> EntityModel.

    Owned by a session (never process-wide). Types reached while walking an
    object graph that were never configured get an implicit all-scalar model,
    cached per Model instance.
    """

    def __init__(self, entities: Mapping[type, EntityModel]):
        self._entities: Mapping[type, EntityModel] = MappingProxyType(dict(entities))
        self._implicit: dict[type, EntityModel] = {}

    @property
    def entities(self) -> Mapping[type, EntityModel]:
        return self._entities

    def __contains__(self, cls: object) -> bool:
        return cls in self._entities

    def entity(self, cls: type) -> EntityModel:
        configured = self._entities.get(cls)
        if configured is not None:
            return configured

        implicit = self._implicit.get(cls)
        if implicit is None:
            implicit = EntityModel(
                entity_type=cls,
                properties=tuple(
                    PropertyClassification.create(f.name, f.declared_type)
                    for f in discover_fields(cls).values()
                ),
            )
            self._implicit[cls] = implicit
        return implicit

    def root(self, cls: type) -> EntityModel:
        """Model for a type used as a tracking root. Requires an identifier."""
        entity = self._entities.get(cls)
        if entity is None or entity.identifier is None:
            raise ConfigurationError(
                message=f"Entity '{cls.__name__}' has no identifier property configured.",
                meta={"entity": cls.__name__},
            )
        return entity

    def document_fields(self, cls: type) -> Iterable[tuple[str, Callable[[Any], Any]]] | None:
        entity = self.entity(cls)
        if not entity.properties:
            return None
        return [
            (p.element_name, p.getter)
            for p in entity.properties
            if p.kind is not PropertyKind.IGNORED
        ]
