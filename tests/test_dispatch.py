"""Order placement."""

import pytest

from sagagate.constants import ORDER_INITIATION_QUEUE
from sagagate.contracts import WorkflowOrder
from sagagate.dispatch import OrderDispatcher
from sagagate.errors import TransportUnavailable, UpstreamUnavailable, ValidationError
from sagagate.transports import InMemoryTransport
from sagagate.transports.rabbitmq import RabbitMQTransport


@pytest.mark.asyncio
async def test_place_order_creates_then_publishes(services, collaborators):
    transport = InMemoryTransport()
    dispatcher = OrderDispatcher(transport, services)
    order = WorkflowOrder(id="W1", item="BOOK-1", quantity=1, customer_name="Ada")

    assert await dispatcher.place_order(order) == "W1"
    assert collaborators.orders["W1"]["customerName"] == "Ada"
    [body] = transport.pending(ORDER_INITIATION_QUEUE)
    assert WorkflowOrder.from_json(body) == order


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "order",
    [
        WorkflowOrder(item="BOOK-1", quantity=1),
        WorkflowOrder(id="W1", quantity=1),
        WorkflowOrder(id="W1", item="BOOK-1", quantity=0),
        WorkflowOrder(id="W1", item="BOOK-1"),
    ],
)
async def test_place_order_validates(services, collaborators, order):
    dispatcher = OrderDispatcher(InMemoryTransport(), services)
    with pytest.raises(ValidationError) as exc:
        await dispatcher.place_order(order)
    assert exc.value.code == "invalid_request"
    assert collaborators.requests == []


@pytest.mark.asyncio
async def test_place_order_refuses_when_broker_disconnected(services, collaborators):
    dispatcher = OrderDispatcher(RabbitMQTransport("amqp://nowhere/"), services)
    with pytest.raises(TransportUnavailable):
        await dispatcher.place_order(WorkflowOrder(id="W1", item="BOOK-1", quantity=1))
    assert collaborators.requests == []


@pytest.mark.asyncio
async def test_place_order_surfaces_orders_outage(services, collaborators):
    collaborators.down.add("orders")
    transport = InMemoryTransport()
    dispatcher = OrderDispatcher(transport, services)

    with pytest.raises(UpstreamUnavailable):
        await dispatcher.place_order(WorkflowOrder(id="W1", item="BOOK-1", quantity=1))
    assert transport.pending(ORDER_INITIATION_QUEUE) == []
