"""Entity model configuration consumed by the change tracker."""

from mongo_tracker.model.builder import EntityBuilder, ModelBuilder, PropertyBuilder
from mongo_tracker.model.kinds import PropertyKind
from mongo_tracker.model.metadata import EntityModel, Model, PropertyClassification

__all__ = [
    "EntityBuilder",
    "EntityModel",
    "Model",
    "ModelBuilder",
    "PropertyBuilder",
    "PropertyClassification",
    "PropertyKind",
]
