"""Explicit saga state machine.

Each workflow identifier moves through::

    initiated -> payment_requested -> payment_settled -> shipping_requested
              -> shipping_settled -> stock_updated | stock_update_failed | completed

A failed payment or shipping outcome, or a command that could not be
published, ends the workflow in ``failed``.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple

from .errors import InvalidTransition


class WorkflowState(str, Enum):
    INITIATED = "initiated"
    PAYMENT_REQUESTED = "payment_requested"
    PAYMENT_SETTLED = "payment_settled"
    SHIPPING_REQUESTED = "shipping_requested"
    SHIPPING_SETTLED = "shipping_settled"
    STOCK_UPDATED = "stock_updated"
    STOCK_UPDATE_FAILED = "stock_update_failed"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


class WorkflowEvent(str, Enum):
    INITIATE = "initiate"
    PAYMENT_REQUESTED = "payment_requested"
    PAYMENT_COMPLETED = "payment_completed"
    PAYMENT_FAILED = "payment_failed"
    SHIPPING_REQUESTED = "shipping_requested"
    SHIPPING_COMPLETED = "shipping_completed"
    SHIPPING_FAILED = "shipping_failed"
    STOCK_UPDATED = "stock_updated"
    STOCK_UPDATE_FAILED = "stock_update_failed"
    FINISH = "finish"
    PUBLISH_FAILED = "publish_failed"


TERMINAL_STATES = frozenset(
    {
        WorkflowState.STOCK_UPDATED,
        WorkflowState.STOCK_UPDATE_FAILED,
        WorkflowState.COMPLETED,
        WorkflowState.FAILED,
    }
)

_TRANSITIONS: Dict[Tuple[Optional[WorkflowState], WorkflowEvent], WorkflowState] = {
    (None, WorkflowEvent.INITIATE): WorkflowState.INITIATED,
    (WorkflowState.INITIATED, WorkflowEvent.PAYMENT_REQUESTED): WorkflowState.PAYMENT_REQUESTED,
    (WorkflowState.PAYMENT_REQUESTED, WorkflowEvent.PAYMENT_COMPLETED): WorkflowState.PAYMENT_SETTLED,
    (WorkflowState.PAYMENT_REQUESTED, WorkflowEvent.PAYMENT_FAILED): WorkflowState.FAILED,
    (WorkflowState.PAYMENT_SETTLED, WorkflowEvent.SHIPPING_REQUESTED): WorkflowState.SHIPPING_REQUESTED,
    (WorkflowState.SHIPPING_REQUESTED, WorkflowEvent.SHIPPING_COMPLETED): WorkflowState.SHIPPING_SETTLED,
    (WorkflowState.SHIPPING_REQUESTED, WorkflowEvent.SHIPPING_FAILED): WorkflowState.FAILED,
    (WorkflowState.SHIPPING_SETTLED, WorkflowEvent.STOCK_UPDATED): WorkflowState.STOCK_UPDATED,
    (WorkflowState.SHIPPING_SETTLED, WorkflowEvent.STOCK_UPDATE_FAILED): WorkflowState.STOCK_UPDATE_FAILED,
    (WorkflowState.SHIPPING_SETTLED, WorkflowEvent.FINISH): WorkflowState.COMPLETED,
}


def transition(
    workflow_id: str, current: Optional[WorkflowState], event: WorkflowEvent
) -> WorkflowState:
    """Return the state reached by applying ``event`` to ``current``.

    Raises:
        InvalidTransition: ``event`` is out of order or was already applied.
    """
    if event is WorkflowEvent.PUBLISH_FAILED:
        if current is not None and not current.is_terminal:
            return WorkflowState.FAILED
    else:
        target = _TRANSITIONS.get((current, event))
        if target is not None:
            return target
    raise InvalidTransition(
        workflow_id, current.value if current else "unknown", event.value
    )
