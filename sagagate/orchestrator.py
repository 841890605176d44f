"""Saga orchestrator driving order -> payment -> shipping -> stock update."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from .constants import (
    ORDER_INITIATION_QUEUE,
    PAYMENT_COMMAND_QUEUE,
    PAYMENT_COMPLETED_QUEUE,
    SHIPPING_COMMAND_QUEUE,
    SHIPPING_COMPLETED_QUEUE,
)
from .contracts import Contract, PaymentOutcome, ShippingOutcome, WorkflowOrder
from .errors import InvalidTransition, NotFound, UpstreamUnavailable
from .persistence import StockUpdateRecord, WorkflowContextStore, WorkflowRecord
from .services import ServiceClient
from .state import WorkflowEvent, WorkflowState
from .transports import BaseTransport

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[Optional[WorkflowRecord]]]


class SagaOrchestrator:
    """Consumes workflow events, advances state and issues downstream commands.

    Every consumed message is acknowledged once its handler returns, including
    when a downstream call failed: there is no idempotency key that would make
    redelivery safe.
    """

    def __init__(
        self,
        transport: BaseTransport,
        store: WorkflowContextStore,
        services: ServiceClient,
    ) -> None:
        self._transport = transport
        self._store = store
        self._services = services

    async def start(self, lifespan: Optional[float] = None) -> None:
        """Consume the three inbound queues until ``lifespan`` elapses.

        Each queue is processed one message at a time in delivery order. If
        any consumer fails the others are cancelled and the error propagates.
        """
        consumers = [
            asyncio.ensure_future(self._consume(queue, model, handler, lifespan))
            for queue, model, handler in (
                (ORDER_INITIATION_QUEUE, WorkflowOrder, self.handle_initiation),
                (PAYMENT_COMPLETED_QUEUE, PaymentOutcome, self.handle_payment_outcome),
                (SHIPPING_COMPLETED_QUEUE, ShippingOutcome, self.handle_shipping_outcome),
            )
        ]
        try:
            await asyncio.gather(*consumers)
        except BaseException:
            # one consumer failing stops all of them
            for consumer in consumers:
                consumer.cancel()
            await asyncio.gather(*consumers, return_exceptions=True)
            raise

    async def _consume(
        self,
        queue: str,
        model: Type[Contract],
        handler: Handler,
        lifespan: Optional[float],
    ) -> None:
        async for raw_message, payload in self._transport.subscribe(
            queue, model, lifespan=lifespan
        ):
            try:
                await handler(payload)
            except Exception:
                logger.exception(f"Failed to process message from {queue}")
            await self._transport.ack(raw_message)

    async def _publish(
        self, record: WorkflowRecord, queue: str, order: WorkflowOrder
    ) -> bool:
        try:
            await self._transport.publish(queue, order)
        except Exception as e:
            logger.error(
                f"Failed to publish to {queue} for order {record.workflow_id}: {e!r}"
            )
            record.apply(WorkflowEvent.PUBLISH_FAILED, reason=f"{queue} publish failed: {e}")
            await self._store.put(record.workflow_id, record)
            return False
        return True

    # ------------------------------------------------------------------
    # Queue handlers
    # ------------------------------------------------------------------
    async def handle_initiation(self, order: WorkflowOrder) -> Optional[WorkflowRecord]:
        """Store a new order and send the payment command."""
        logger.info(f"Received initial order {order.id}")
        if not order.id:
            logger.error("Initiation message carries no order id; dropping it")
            return None

        existing = await self._store.get(order.id)
        if existing is not None or await self._store.was_finished(order.id):
            logger.warning(f"Ignoring duplicate initiation for order {order.id}")
            return None

        record = WorkflowRecord(workflow_id=order.id, order=order)
        record.apply(WorkflowEvent.INITIATE)
        # recorded before publishing: the outcome may arrive before publish returns
        record.apply(WorkflowEvent.PAYMENT_REQUESTED)
        await self._store.put(order.id, record)

        if not await self._publish(record, PAYMENT_COMMAND_QUEUE, order):
            return record
        logger.info(f"Sent payment command for order {order.id}")
        return record

    async def handle_payment_outcome(
        self, outcome: PaymentOutcome
    ) -> Optional[WorkflowRecord]:
        """Forward the stored order to shipping, or halt on a failed payment."""
        workflow_id = outcome.order_id
        logger.info(f"Received payment outcome '{outcome.status}' for order {workflow_id}")
        if not workflow_id:
            logger.error("Payment outcome carries no order id; dropping it")
            return None

        record = await self._store.get(workflow_id)
        if record is None and await self._store.was_finished(workflow_id):
            logger.warning(f"Ignoring payment outcome for finished workflow {workflow_id}")
            return None
        if record is None:
            logger.error(
                f"Could not find complete order data for order {workflow_id}; "
                "shipping command will be rebuilt from the payment outcome without an address"
            )
            record = WorkflowRecord(
                workflow_id=workflow_id,
                order=WorkflowOrder(
                    id=workflow_id, item=outcome.item, quantity=outcome.quantity
                ),
                state=WorkflowState.PAYMENT_REQUESTED,
                recovered=True,
            )

        try:
            if not outcome.succeeded:
                record.apply(
                    WorkflowEvent.PAYMENT_FAILED,
                    reason=f"payment_failed: status={outcome.status or 'unknown'}",
                )
                await self._store.put(workflow_id, record)
                logger.warning(f"Payment failed for order {workflow_id}; saga halted")
                return record
            record.apply(WorkflowEvent.PAYMENT_COMPLETED)
        except InvalidTransition as e:
            logger.warning(f"Ignoring payment outcome: {e}")
            return None
        record.apply(WorkflowEvent.SHIPPING_REQUESTED)
        await self._store.put(workflow_id, record)

        if not await self._publish(record, SHIPPING_COMMAND_QUEUE, record.order):
            return record
        logger.info(
            f"Sent shipping command for order {workflow_id}"
            + (" with fallback data" if record.recovered else " with complete data")
        )
        return record

    async def handle_shipping_outcome(
        self, outcome: ShippingOutcome
    ) -> Optional[WorkflowRecord]:
        """Finish the workflow, decrementing catalog stock when shipping succeeded."""
        workflow_id = outcome.order_id
        logger.info(f"Received shipping outcome '{outcome.status}' for order {workflow_id}")
        if not workflow_id:
            logger.error("Shipping outcome carries no order id; dropping it")
            return None

        record = await self._store.get(workflow_id)
        if record is None and await self._store.was_finished(workflow_id):
            logger.warning(f"Ignoring shipping outcome for finished workflow {workflow_id}")
            return None
        if record is None:
            logger.warning(
                f"No stored context for order {workflow_id}; continuing from the shipping outcome"
            )
            record = WorkflowRecord(
                workflow_id=workflow_id,
                order=WorkflowOrder(
                    id=workflow_id, item=outcome.product_id, quantity=outcome.quantity
                ),
                state=WorkflowState.SHIPPING_REQUESTED,
                recovered=True,
            )

        try:
            if not outcome.succeeded:
                reason = outcome.error or f"status={outcome.status or 'unknown'}"
                record.apply(WorkflowEvent.SHIPPING_FAILED, reason=f"shipping_failed: {reason}")
                await self._store.put(workflow_id, record)
                logger.warning(f"Shipping failed for order {workflow_id}: {reason}")
                return record
            record.apply(WorkflowEvent.SHIPPING_COMPLETED)
        except InvalidTransition as e:
            logger.warning(f"Ignoring shipping outcome: {e}")
            return None
        await self._store.put(workflow_id, record)

        if outcome.product_id and outcome.quantity:
            result = await self._services.update_stock(outcome.product_id, outcome.quantity)
            record.stock_update = StockUpdateRecord(
                product_id=outcome.product_id,
                quantity=outcome.quantity,
                success=result.success,
                message=result.message,
            )
            if result.success:
                record.apply(WorkflowEvent.STOCK_UPDATED)
                logger.info(
                    f"Order {workflow_id} workflow completed successfully with stock update"
                )
            else:
                record.apply(WorkflowEvent.STOCK_UPDATE_FAILED, reason=result.message)
                logger.error(f"Order {workflow_id} workflow completed but stock update failed")
        else:
            record.apply(WorkflowEvent.FINISH)
            logger.info(f"Order {workflow_id} workflow completed successfully")
        await self._store.put(workflow_id, record)
        return record

    # ------------------------------------------------------------------
    # Status aggregation
    # ------------------------------------------------------------------
    async def workflow_status(self, order_id: str) -> Dict[str, Any]:
        """Fetch order, payment and shipping legs; a failing leg never aborts the others."""
        order, payment, shipping = await asyncio.gather(
            self._fetch_leg("Order", self._services.get_order, order_id),
            self._fetch_leg("Payment", self._services.get_payment, order_id),
            self._fetch_leg("Shipping", self._services.get_shipping, order_id),
        )
        record = await self._store.get(order_id)
        return {
            "orderId": order_id,
            "details": {"order": order, "payment": payment, "shipping": shipping},
            "workflow": record.summary() if record else None,
        }

    async def _fetch_leg(
        self, leg: str, fetch: Callable[[str], Awaitable[Any]], order_id: str
    ) -> Any:
        try:
            return await fetch(order_id)
        except NotFound:
            logger.warning(f"{leg} details for order {order_id} not found")
            return {"status": "not_found", "message": f"{leg} details not found."}
        except UpstreamUnavailable as e:
            logger.warning(f"Could not fetch {leg.lower()} for order {order_id}: {e}")
            return {
                "status": "unavailable",
                "message": f"{leg} service unavailable.",
            }
