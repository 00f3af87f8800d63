from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from mongo_tracker.operations import WriteOperation


@dataclass(frozen=True, slots=True)
class BulkWriteSummary:
    acknowledged: bool
    inserted_count: int = 0
    matched_count: int = 0
    modified_count: int = 0
    deleted_count: int = 0


class WriteSink(Protocol):
    """Executes write operations against the backing store."""

    def bulk_write(
        self,
        operations: Sequence[WriteOperation],
        *,
        ordered: bool = True,
    ) -> BulkWriteSummary:
        ...


class AsyncWriteSink(Protocol):
    async def bulk_write(
        self,
        operations: Sequence[WriteOperation],
        *,
        ordered: bool = True,
    ) -> BulkWriteSummary:
        ...
