"""sagagate: saga orchestration with bearer-token security for order workflows."""

from .contracts import PaymentOutcome, ShippingAddress, ShippingOutcome, WorkflowOrder
from .dispatch import OrderDispatcher
from .orchestrator import SagaOrchestrator
from .persistence import get_context_store
from .security import TokenService
from .services import ServiceClient
from .state import WorkflowState
from .transports import get_transport

__version__ = "0.1.0"
__all__ = [
    "OrderDispatcher",
    "PaymentOutcome",
    "SagaOrchestrator",
    "ServiceClient",
    "ShippingAddress",
    "ShippingOutcome",
    "TokenService",
    "WorkflowOrder",
    "WorkflowState",
    "get_context_store",
    "get_transport",
]
