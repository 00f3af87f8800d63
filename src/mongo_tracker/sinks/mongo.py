"""
MongoDB write sinks.

Translate tracker operations into pymongo bulk requests and run them through
a pymongo `Collection` or a motor `AsyncIOMotorCollection`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog
from pymongo import DeleteOne as MongoDeleteOne
from pymongo import InsertOne as MongoInsertOne
from pymongo import UpdateOne as MongoUpdateOne

from mongo_tracker.kernel.serialization import DocumentLayout
from mongo_tracker.operations import DeleteOne, InsertOne, UpdateOne, WriteOperation
from mongo_tracker.render import render_document, render_filter, render_update
from mongo_tracker.sinks.base import BulkWriteSummary

logger = structlog.get_logger()


def build_requests(
    operations: Sequence[WriteOperation],
    layout: DocumentLayout | None = None,
) -> list[MongoInsertOne | MongoDeleteOne | MongoUpdateOne]:
    requests: list[MongoInsertOne | MongoDeleteOne | MongoUpdateOne] = []
    for operation in operations:
        if isinstance(operation, InsertOne):
            requests.append(MongoInsertOne(render_document(operation.document, layout)))
        elif isinstance(operation, DeleteOne):
            requests.append(MongoDeleteOne(render_filter(operation.filter, layout)))
        elif isinstance(operation, UpdateOne):
            requests.append(
                MongoUpdateOne(
                    render_filter(operation.filter, layout),
                    render_update(operation.patch, layout),
                )
            )
        else:
            raise TypeError(f"Unsupported write operation: {type(operation)!r}")
    return requests


def summarize(result: Any) -> BulkWriteSummary:
    """Convert a pymongo BulkWriteResult. Counts are unavailable when unacknowledged."""
    if not result.acknowledged:
        return BulkWriteSummary(acknowledged=False)
    return BulkWriteSummary(
        acknowledged=True,
        inserted_count=result.inserted_count,
        matched_count=result.matched_count,
        modified_count=result.modified_count,
        deleted_count=result.deleted_count,
    )


class PyMongoWriteSink:
    """Synchronous sink over a pymongo Collection."""

    def __init__(self, collection: Any, layout: DocumentLayout | None = None, session: Any = None):
        self._collection = collection
        self._layout = layout
        self._session = session

    def bulk_write(
        self,
        operations: Sequence[WriteOperation],
        *,
        ordered: bool = True,
    ) -> BulkWriteSummary:
        requests = build_requests(operations, self._layout)
        result = self._collection.bulk_write(requests, ordered=ordered, session=self._session)
        summary = summarize(result)
        logger.info(
            "Bulk write executed",
            collection=getattr(self._collection, "name", None),
            requests=len(requests),
            acknowledged=summary.acknowledged,
            matched=summary.matched_count,
            deleted=summary.deleted_count,
        )
        return summary


class MotorWriteSink:
    """Asynchronous sink over a motor (or pymongo async) collection."""

    def __init__(self, collection: Any, layout: DocumentLayout | None = None, session: Any = None):
        self._collection = collection
        self._layout = layout
        self._session = session

    async def bulk_write(
        self,
        operations: Sequence[WriteOperation],
        *,
        ordered: bool = True,
    ) -> BulkWriteSummary:
        requests = build_requests(operations, self._layout)
        result = await self._collection.bulk_write(requests, ordered=ordered, session=self._session)
        summary = summarize(result)
        logger.info(
            "Bulk write executed",
            collection=getattr(self._collection, "name", None),
            requests=len(requests),
            acknowledged=summary.acknowledged,
            matched=summary.matched_count,
            deleted=summary.deleted_count,
        )
        return summary


def motor_collection(uri: str, database: str, collection: str) -> Any:
    """Open a motor collection handle. Imported lazily like the other drivers."""
    from motor.motor_asyncio import AsyncIOMotorClient

    client = AsyncIOMotorClient(uri)
    return client[database][collection]
