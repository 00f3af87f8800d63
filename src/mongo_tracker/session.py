"""
Tracking Session

Registry of tracked root entities of one type and the commit orchestrator
that turns their lifecycle state and detected changes into write operations.

Not thread-safe: callers owning a session serialize access to it.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from typing import Any, Generic, TypeVar

import structlog

from mongo_tracker.config import TrackerSettings, get_settings
from mongo_tracker.kernel.errors import AlreadyTrackedError, MisuseError, NotTrackedError
from mongo_tracker.model.metadata import Model
from mongo_tracker.operations import DeleteOne, Filter, InsertOne, UpdateOne, WriteOperation
from mongo_tracker.sinks.base import AsyncWriteSink, BulkWriteSummary, WriteSink
from mongo_tracker.tracking.entity import EntityState, EntityTracker

logger = structlog.get_logger()

T = TypeVar("T")


class TrackingSession(Generic[T]):
    """Tracks root entities of `entity_type` and prepares their writes."""

    def __init__(
        self,
        model: Model,
        entity_type: type[T],
        *,
        settings: TrackerSettings | None = None,
    ):
        self._model = model
        self._entity = model.root(entity_type)
        self._settings = settings or get_settings()
        self._trackers: dict[Hashable, EntityTracker[T]] = {}
        self._objects: dict[Hashable, T] = {}

    @property
    def model(self) -> Model:
        return self._model

    @property
    def entity_type(self) -> type[T]:
        return self._entity.entity_type

    def __len__(self) -> int:
        return len(self._trackers)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._trackers

    def entries(self) -> Iterator[tuple[Hashable, EntityState]]:
        """(identifier, state) pairs in registration order."""
        for entity_id, tracker in self._trackers.items():
            yield entity_id, tracker.state

    def state_of(self, entity_id: Hashable) -> EntityState:
        tracker = self._trackers.get(entity_id)
        if tracker is None:
            raise self._not_tracked(entity_id)
        return tracker.state

    def track(self, instance: T) -> T:
        """Start tracking `instance`.

        If its identifier is already tracked, the already-tracked instance is
        returned and the argument is ignored.
        """
        entity_id = self._identify(instance)
        existing = self._objects.get(entity_id)
        if existing is not None:
            return existing

        self._register(entity_id, instance, EntityTracker(instance, self._model))
        return instance

    def add(self, instance: T) -> None:
        """Register a new entity to be inserted on the next commit."""
        entity_id = self._identify(instance)
        existing = self._trackers.get(entity_id)
        if existing is not None:
            reason = "marked as deleted" if existing.state is EntityState.DELETED else "already tracked"
            raise AlreadyTrackedError(
                message=f"Entity '{self._entity.name}' with id {entity_id!r} is {reason}",
                meta={"entity": self._entity.name, "id": repr(entity_id)},
            )

        tracker = EntityTracker(instance, self._model)
        tracker.mark_added()
        self._register(entity_id, instance, tracker)

    def delete(self, instance: T) -> None:
        """Mark the entity with the instance's identifier as deleted."""
        entity_id = self._identify(instance)
        tracker = self._trackers.get(entity_id)
        if tracker is None:
            raise self._not_tracked(entity_id)

        if tracker.state is EntityState.ADDED:
            # Never written; dropping it is enough.
            self._forget(entity_id)
            logger.debug("Pending insert discarded", entity=self._entity.name, entity_id=repr(entity_id))
            return

        tracker.mark_deleted()

    def get(self, entity_id: Hashable) -> T:
        instance = self._objects.get(entity_id)
        if instance is None:
            raise self._not_tracked(entity_id)
        return instance

    def commit(self) -> list[WriteOperation]:
        """Compute the write operations for every tracked entity.

        Inserts come first (registration order), then deletes, then updates.
        Deleted entities are deregistered and updated ones rebased onto
        their current state. Added entities stay pending until
        `accept_added()`, so a failed write can be committed again.
        """
        added: list[Hashable] = []
        deleted: list[Hashable] = []
        candidates: list[Hashable] = []
        for entity_id, tracker in self._trackers.items():
            if tracker.state is EntityState.ADDED:
                added.append(entity_id)
            elif tracker.state is EntityState.DELETED:
                deleted.append(entity_id)
            else:
                candidates.append(entity_id)

        operations: list[WriteOperation] = [InsertOne(self._objects[entity_id]) for entity_id in added]

        for entity_id in deleted:
            operations.append(DeleteOne(self._filter_for(entity_id, self._trackers[entity_id])))
            self._forget(entity_id)

        updated = 0
        for entity_id in candidates:
            tracker = self._trackers[entity_id]
            instance = self._objects[entity_id]
            if tracker.detect_changes(instance) is not EntityState.MODIFIED:
                continue

            patch = tracker.compute_patch(unset_nulls=self._settings.unset_null_fields)
            operations.append(UpdateOne(self._filter_for(entity_id, tracker), patch))
            self._trackers[entity_id] = EntityTracker(instance, self._model)
            updated += 1

        logger.debug(
            "Tracker commit prepared",
            entity=self._entity.name,
            inserts=len(added),
            deletes=len(deleted),
            updates=updated,
        )
        return operations

    def accept_added(self) -> int:
        """Promote pending inserts to tracked entities after a successful write."""
        accepted = 0
        for entity_id, tracker in list(self._trackers.items()):
            if tracker.state is not EntityState.ADDED:
                continue
            self._trackers[entity_id] = EntityTracker(self._objects[entity_id], self._model)
            accepted += 1
        if accepted:
            logger.debug("Added entities accepted", entity=self._entity.name, count=accepted)
        return accepted

    def save_changes(self, sink: WriteSink) -> BulkWriteSummary | None:
        """Commit and execute through `sink`. Returns None when there is nothing to write."""
        operations = self.commit()
        if not operations:
            return None
        result = sink.bulk_write(operations, ordered=self._settings.ordered_bulk_write)
        self._after_write(result)
        return result

    async def save_changes_async(self, sink: AsyncWriteSink) -> BulkWriteSummary | None:
        operations = self.commit()
        if not operations:
            return None
        result = await sink.bulk_write(operations, ordered=self._settings.ordered_bulk_write)
        self._after_write(result)
        return result

    def _after_write(self, result: BulkWriteSummary) -> None:
        if result.acknowledged:
            self.accept_added()
            return
        logger.warning(
            "Bulk write not acknowledged; added entities stay pending",
            entity=self._entity.name,
        )

    def _filter_for(self, entity_id: Hashable, tracker: EntityTracker[T]) -> Filter:
        identifier = self._entity.require_identifier()
        filter = Filter.by_identifier(identifier.element_name, entity_id)

        version = tracker.captured_version()
        if version is not None:
            filter = filter.and_eq(*version)

        for path, value in tracker.captured_concurrency_tokens():
            filter = filter.and_eq(path, value)
        return filter

    def _identify(self, instance: Any) -> Hashable:
        if not isinstance(instance, self._entity.entity_type):
            raise MisuseError(
                message=(
                    f"Expected an instance of '{self._entity.name}', "
                    f"got '{type(instance).__name__}'"
                ),
                meta={"entity": self._entity.name},
            )
        entity_id = self._entity.identifier_of(instance)
        try:
            hash(entity_id)
        except TypeError as exc:
            raise MisuseError(
                message=f"Identifier of '{self._entity.name}' must be hashable",
                meta={"entity": self._entity.name, "id_type": type(entity_id).__name__},
            ) from exc
        return entity_id

    def _register(self, entity_id: Hashable, instance: T, tracker: EntityTracker[T]) -> None:
        self._trackers[entity_id] = tracker
        self._objects[entity_id] = instance

    def _forget(self, entity_id: Hashable) -> None:
        self._trackers.pop(entity_id, None)
        self._objects.pop(entity_id, None)

    def _not_tracked(self, entity_id: Any) -> NotTrackedError:
        return NotTrackedError(
            message=f"Entity '{self._entity.name}' with id {entity_id!r} is not tracked",
            meta={"entity": self._entity.name, "id": repr(entity_id)},
        )
