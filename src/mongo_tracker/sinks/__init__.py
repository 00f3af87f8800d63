"""Write sinks executing tracker operations."""

from mongo_tracker.sinks.base import AsyncWriteSink, BulkWriteSummary, WriteSink
from mongo_tracker.sinks.mongo import MotorWriteSink, PyMongoWriteSink, build_requests

__all__ = [
    "AsyncWriteSink",
    "BulkWriteSummary",
    "MotorWriteSink",
    "PyMongoWriteSink",
    "WriteSink",
    "build_requests",
]
