"""Snapshot and diff engine."""

from mongo_tracker.tracking.collections import (
    CollectionDiff,
    OrderedCollectionDiff,
    TrackedObjectCollectionDiff,
    ValueCollectionDiff,
)
from mongo_tracker.tracking.entity import EntityState, EntityTracker
from mongo_tracker.tracking.node import NodeTracker

__all__ = [
    "CollectionDiff",
    "EntityState",
    "EntityTracker",
    "NodeTracker",
    "OrderedCollectionDiff",
    "TrackedObjectCollectionDiff",
    "ValueCollectionDiff",
]
