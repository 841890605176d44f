"""Transport tests."""

import pytest

from sagagate.config import SagaGateConfig
from sagagate.contracts import PaymentOutcome, WorkflowOrder
from sagagate.transports import InMemoryTransport, get_transport


@pytest.mark.asyncio
async def test_inmemory_transport_preserves_order_per_queue():
    transport = InMemoryTransport()
    for i in range(3):
        await transport.publish("q", WorkflowOrder(id=f"W{i}"))

    seen = []
    async for raw, order in transport.subscribe("q", WorkflowOrder, lifespan=0.3):
        seen.append(order.id)
        await transport.ack(raw)

    assert seen == ["W0", "W1", "W2"]
    assert len(transport.acked) == 3


@pytest.mark.asyncio
async def test_inmemory_transport_skips_undecodable_bodies():
    transport = InMemoryTransport()
    transport._queues["q"].append(("q", b"not json"))
    await transport.publish("q", PaymentOutcome(order_id="W1", status="completed"))

    received = [o async for _, o in transport.subscribe("q", PaymentOutcome, lifespan=0.3)]
    assert [o.order_id for o in received] == ["W1"]


def test_get_transport_backends():
    config = SagaGateConfig()
    assert isinstance(get_transport(config=config), InMemoryTransport)

    config.transport.url = "amqp://user:pw@broker/"
    rabbit = get_transport("rabbitmq", config=config)
    assert rabbit.url == "amqp://user:pw@broker/"
    assert not rabbit.is_connected

    with pytest.raises(ValueError):
        get_transport("carrier-pigeon", config=config)
