"""Store abstraction for workflow context."""

from __future__ import annotations

from typing import Protocol

from .models import WorkflowRecord


class WorkflowContextStore(Protocol):
    """Keyed store mapping a workflow identifier to its context.

    ``put`` overwrites unconditionally. Implementations may expire entries;
    an expired entry is reported as absent.
    """

    async def get(self, workflow_id: str) -> WorkflowRecord | None:
        """Return the record for ``workflow_id`` or ``None``."""

    async def put(self, workflow_id: str, record: WorkflowRecord) -> None:
        """Store ``record`` under ``workflow_id``."""

    async def remove(self, workflow_id: str) -> None:
        """Drop the record for ``workflow_id`` if present."""

    async def was_finished(self, workflow_id: str) -> bool:
        """Whether ``workflow_id`` ended, even after its record expired."""
