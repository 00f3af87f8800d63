"""Fluent model configuration.

    builder = ModelBuilder()
    book = builder.entity(Book)
    book.property("id").is_identifier()
    book.property("tags").is_collection()
    book.property("updated_at").is_version()
    model = builder.build()

Invalid configuration fails here, never while diffing.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar

import structlog

from mongo_tracker.kernel.errors import ConfigurationError
from mongo_tracker.model.discovery import (
    DiscoveredField,
    discover_fields,
    is_collection_type,
    is_datetime_type,
)
from mongo_tracker.model.kinds import PropertyKind
from mongo_tracker.model.metadata import EntityModel, Model, PropertyClassification

logger = structlog.get_logger()

TEntity = TypeVar("TEntity")

ID_ELEMENT_NAME = "_id"


class PropertyBuilder:
    """Configures a single property. Every method returns `self`."""

    def __init__(self, entity_name: str, discovered: DiscoveredField):
        self._entity_name = entity_name
        self._field = discovered
        self.kind = PropertyKind.SCALAR
        self.element_name: str | None = None

    @property
    def name(self) -> str:
        return self._field.name

    @property
    def declared_type(self) -> Any:
        return self._field.declared_type

    def is_identifier(self) -> "PropertyBuilder":
        self.kind = PropertyKind.IDENTIFIER
        return self

    def is_tracked_object(self) -> "PropertyBuilder":
        self.kind = PropertyKind.TRACKED_OBJECT
        return self

    def is_collection(self) -> "PropertyBuilder":
        self._require_collection("Collection")
        self.kind = PropertyKind.COLLECTION
        return self

    def is_ordered_collection(self) -> "PropertyBuilder":
        self._require_collection("OrderedCollection")
        self.kind = PropertyKind.ORDERED_COLLECTION
        return self

    def is_tracked_object_collection(self) -> "PropertyBuilder":
        self._require_collection("TrackedObjectCollection")
        self.kind = PropertyKind.TRACKED_OBJECT_COLLECTION
        return self

    def is_version(self) -> "PropertyBuilder":
        if not is_datetime_type(self.declared_type):
            raise ConfigurationError(
                message=(
                    f"Property '{self._entity_name}.{self.name}' must be of type datetime "
                    "to be used as a version field."
                ),
                meta={"entity": self._entity_name, "property": self.name},
            )
        self.kind = PropertyKind.VERSION
        return self

    def is_concurrency_token(self) -> "PropertyBuilder":
        self.kind = PropertyKind.CONCURRENCY_TOKEN
        return self

    def is_ignored(self) -> "PropertyBuilder":
        self.kind = PropertyKind.IGNORED
        return self

    def has_element_name(self, element_name: str) -> "PropertyBuilder":
        if not element_name or "." in element_name or element_name.startswith("$"):
            raise ConfigurationError(
                message=f"Invalid element name {element_name!r} for '{self._entity_name}.{self.name}'.",
                meta={"entity": self._entity_name, "property": self.name},
            )
        self.element_name = element_name
        return self

    def build(self) -> PropertyClassification:
        element_name = self.element_name
        if element_name is None and self.kind is PropertyKind.IDENTIFIER:
            element_name = ID_ELEMENT_NAME
        return PropertyClassification.create(
            self.name,
            self.declared_type,
            kind=self.kind,
            element_name=element_name,
        )

    def _require_collection(self, label: str) -> None:
        if not is_collection_type(self.declared_type):
            raise ConfigurationError(
                message=(
                    f"Property '{self._entity_name}.{self.name}' is configured as {label} "
                    "but is not a collection type."
                ),
                meta={"entity": self._entity_name, "property": self.name, "kind": label},
            )


class EntityBuilder(Generic[TEntity]):
    """Configures the properties of one entity type."""

    def __init__(self, entity_type: type[TEntity]):
        self.entity_type = entity_type
        self._discovered = discover_fields(entity_type)
        self._properties: dict[str, PropertyBuilder] = {}

    @property
    def name(self) -> str:
        return self.entity_type.__name__

    def property(self, name: str) -> PropertyBuilder:
        existing = self._properties.get(name)
        if existing is not None:
            return existing

        discovered = self._discovered.get(name)
        if discovered is None:
            raise ConfigurationError(
                message=f"Property '{name}' is not a readable and writable field of '{self.name}'.",
                meta={"entity": self.name, "property": name},
            )

        builder = PropertyBuilder(self.name, discovered)
        self._properties[name] = builder
        return builder

    def build(self) -> EntityModel:
        properties = tuple(
            self._properties[name].build()
            if name in self._properties
            else PropertyClassification.create(name, discovered.declared_type)
            for (name, discovered) in self._discovered.items()
        )

        for kind in (PropertyKind.IDENTIFIER, PropertyKind.VERSION):
            names = [p.name for p in properties if p.kind is kind]
            if len(names) > 1:
                raise ConfigurationError(
                    message=f"Entity '{self.name}' has more than one {kind.value} property: {names}.",
                    meta={"entity": self.name, "kind": kind.value, "properties": names},
                )

        return EntityModel(entity_type=self.entity_type, properties=properties)


class ModelBuilder:
    """Collects entity configuration and produces an immutable Model."""

    def __init__(self) -> None:
        self._entities: dict[type, EntityBuilder[Any]] = {}

    def entity(
        self,
        entity_type: type[TEntity],
        configure: Callable[[EntityBuilder[TEntity]], None] | None = None,
    ) -> EntityBuilder[TEntity]:
        builder = self._entities.get(entity_type)
        if builder is None:
            builder = EntityBuilder(entity_type)
            self._entities[entity_type] = builder
        if configure is not None:
            configure(builder)
        return builder

    def build(self) -> Model:
        entities = {cls: builder.build() for (cls, builder) in self._entities.items()}
        logger.debug(
            "Tracker model built",
            entities=[entity.name for entity in entities.values()],
        )
        return Model(entities)
