"""In-memory implementation of the workflow context store."""

from __future__ import annotations

import time
from typing import Callable, Dict, Tuple

from .models import WorkflowRecord
from .repository import WorkflowContextStore


class InMemoryContextStore(WorkflowContextStore):
    """Store workflow context in local memory.

    Non-terminal records live ``ttl_seconds`` after their last write; records
    in a terminal state are kept ``terminal_retention_seconds`` so their
    outcome stays queryable. Once a terminal record is purged its identifier
    is still remembered as finished for ``ttl_seconds``, so a redelivered
    outcome is not mistaken for an unknown workflow. Expired entries are
    purged when touched. Data is not persisted across process restarts.
    """

    def __init__(
        self,
        ttl_seconds: float = 24 * 60 * 60,
        terminal_retention_seconds: float = 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._records: Dict[str, Tuple[WorkflowRecord, float]] = {}
        self._finished: Dict[str, float] = {}
        self._ttl = ttl_seconds
        self._terminal_retention = terminal_retention_seconds
        self._clock = clock

    def _expires_at(self, record: WorkflowRecord) -> float:
        lifetime = self._terminal_retention if record.is_terminal else self._ttl
        return self._clock() + lifetime

    # ------------------------------------------------------------------
    async def get(self, workflow_id: str) -> WorkflowRecord | None:
        entry = self._records.get(workflow_id)
        if entry is None:
            return None
        record, expires_at = entry
        if expires_at <= self._clock():
            del self._records[workflow_id]
            return None
        return record

    async def put(self, workflow_id: str, record: WorkflowRecord) -> None:
        self._records[workflow_id] = (record, self._expires_at(record))
        if record.is_terminal:
            self._finished[workflow_id] = self._clock() + max(
                self._ttl, self._terminal_retention
            )
        else:
            self._finished.pop(workflow_id, None)

    async def remove(self, workflow_id: str) -> None:
        self._records.pop(workflow_id, None)
        self._finished.pop(workflow_id, None)

    async def was_finished(self, workflow_id: str) -> bool:
        expires_at = self._finished.get(workflow_id)
        if expires_at is None:
            return False
        if expires_at <= self._clock():
            del self._finished[workflow_id]
            return False
        return True

    def __len__(self) -> int:
        return len(self._records)
