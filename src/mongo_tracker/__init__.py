"""Change tracking for document-store object graphs.

Track live objects, mutate them with plain attribute assignment, then commit
to get the minimal insert / delete / field-level update operations.
"""

from mongo_tracker.config import TrackerSettings, get_settings
from mongo_tracker.kernel.errors import (
    AlreadyTrackedError,
    ConfigurationError,
    EntityNotModifiedError,
    MisuseError,
    NotTrackedError,
    TrackerError,
)
from mongo_tracker.model import ModelBuilder, Model, PropertyKind
from mongo_tracker.operations import DeleteOne, Eq, Filter, InsertOne, UpdateOne
from mongo_tracker.session import TrackingSession
from mongo_tracker.tracking import EntityState, EntityTracker, NodeTracker

__all__ = [
    "AlreadyTrackedError",
    "ConfigurationError",
    "DeleteOne",
    "EntityNotModifiedError",
    "EntityState",
    "EntityTracker",
    "Eq",
    "Filter",
    "InsertOne",
    "MisuseError",
    "Model",
    "ModelBuilder",
    "NodeTracker",
    "NotTrackedError",
    "PropertyKind",
    "TrackerError",
    "TrackerSettings",
    "TrackingSession",
    "UpdateOne",
    "get_settings",
]
