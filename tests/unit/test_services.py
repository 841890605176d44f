"""Collaborator HTTP client."""

import json

import httpx
import pytest

from sagagate.config import ServicesConfig
from sagagate.contracts import WorkflowOrder
from sagagate.errors import NotFound, UpstreamUnavailable
from sagagate.services import ServiceClient


@pytest.mark.asyncio
async def test_requests_carry_service_token(services, collaborators, token_service):
    await services.create_order(WorkflowOrder(id="W1", item="BOOK-1", quantity=1))

    request = collaborators.requests[0]
    scheme, token = request.headers["Authorization"].split(" ")
    assert scheme == "Bearer"
    principal = token_service.verify(token)
    assert principal.subject == "orchestrator-service"
    assert principal.principal_type == "service"
    assert collaborators.orders["W1"]["item"] == "BOOK-1"


@pytest.mark.asyncio
async def test_get_maps_404_and_outages(services, collaborators):
    collaborators.orders["W1"] = {"id": "W1"}
    assert await services.get_order("W1") == {"id": "W1"}

    with pytest.raises(NotFound):
        await services.get_payment("W1")

    collaborators.down.add("shipping")
    with pytest.raises(UpstreamUnavailable):
        await services.get_shipping("W1")


@pytest.mark.asyncio
async def test_update_stock_success(services, collaborators):
    result = await services.update_stock("P1", 3)

    assert result.success
    assert result.product == {"id": "P1", "quantity": 7}
    [call] = collaborators.stock_calls()
    assert call.url.path == "/api/products/P1/stock"
    assert json.loads(call.content) == {"quantity": 3}


@pytest.mark.asyncio
async def test_update_stock_uses_body_flag_not_status(token_service):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "message": "Insufficient stock"})

    client = ServiceClient(
        token_service,
        ServicesConfig(),
        http=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    result = await client.update_stock("P1", 3)
    assert not result.success
    assert result.message == "Insufficient stock"


@pytest.mark.asyncio
async def test_update_stock_failures_do_not_raise(services, collaborators):
    collaborators.stock_success = False
    result = await services.update_stock("P1", 3)
    assert not result.success
    assert result.message == "Product not found"

    collaborators.down.add("catalog")
    result = await services.update_stock("P1", 3)
    assert not result.success
    assert len(collaborators.stock_calls()) == 2
