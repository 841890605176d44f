"""Order dispatcher: entry point of a new saga."""

from __future__ import annotations

import logging

from .constants import ORDER_INITIATION_QUEUE
from .contracts import WorkflowOrder
from .errors import TransportUnavailable, ValidationError
from .services import ServiceClient
from .transports import BaseTransport

logger = logging.getLogger(__name__)


class OrderDispatcher:
    """Creates orders in the orders service and announces them for orchestration."""

    def __init__(self, transport: BaseTransport, services: ServiceClient) -> None:
        self._transport = transport
        self._services = services

    @staticmethod
    def validate(order: WorkflowOrder) -> None:
        if not order.id:
            raise ValidationError("invalid_request", "Order id is required")
        if not order.item:
            raise ValidationError("invalid_request", "Order item is required")
        if order.quantity is None or order.quantity <= 0:
            raise ValidationError("invalid_request", "Quantity must be a positive number")

    async def place_order(self, order: WorkflowOrder) -> str:
        """Create ``order`` upstream and publish it on the initiation queue.

        Returns:
            The workflow identifier (the order id).

        Raises:
            ValidationError: the order is missing its id, item or a positive quantity.
            TransportUnavailable: the broker is not connected or the publish failed.
            UpstreamUnavailable: the orders service rejected or did not answer.
        """
        self.validate(order)
        if not self._transport.is_connected:
            raise TransportUnavailable("Orchestrator failed to connect to message broker.")

        logger.info(f"Creating order {order.id} in orders service")
        await self._services.create_order(order)
        logger.info(f"Order {order.id} created in orders service")

        try:
            await self._transport.publish(ORDER_INITIATION_QUEUE, order)
        except Exception as e:
            logger.error(f"Failed to publish initiation for order {order.id}: {e!r}")
            raise TransportUnavailable(
                f"Order {order.id} created but initiation could not be published: {e}"
            ) from e
        logger.info(f"Order {order.id} sent for workflow processing")
        return order.id
