"""Data models for in-flight workflow state."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..contracts import WorkflowOrder
from ..state import WorkflowEvent, WorkflowState, transition


class StockUpdateRecord(BaseModel):
    """Outcome of the final catalog stock call."""

    product_id: str
    quantity: int
    success: bool
    message: Optional[str] = None


class WorkflowRecord(BaseModel):
    """Context kept for one workflow identifier."""

    workflow_id: str
    order: WorkflowOrder
    state: Optional[WorkflowState] = None
    reason: Optional[str] = None
    recovered: bool = False
    stock_update: Optional[StockUpdateRecord] = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def apply(self, event: WorkflowEvent, reason: Optional[str] = None) -> WorkflowState:
        """Advance the record; raises ``InvalidTransition`` if not allowed."""
        self.state = transition(self.workflow_id, self.state, event)
        if reason is not None:
            self.reason = reason
        self.updated_at = datetime.now(timezone.utc)
        return self.state

    @property
    def is_terminal(self) -> bool:
        return self.state is not None and self.state.is_terminal

    def summary(self) -> dict[str, Any]:
        """JSON-friendly view used by the status endpoint."""
        return {
            "state": self.state.value if self.state else None,
            "reason": self.reason,
            "recovered": self.recovered,
            "stockUpdate": self.stock_update.model_dump() if self.stock_update else None,
            "updatedAt": self.updated_at.isoformat(),
        }
