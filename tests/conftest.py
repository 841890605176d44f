"""Shared fixtures: a token service and fake collaborator services."""

import json
import time

import httpx
import pytest

from sagagate.config import ServicesConfig
from sagagate.security import Client, KeyProvider, TokenService
from sagagate.services import ServiceClient

SECRET = "unit-test-signing-secret-0123456789abcdef"
ORDERS_CLIENT = Client(
    client_id="orders-service-client",
    client_secret="orders-service-secret",
    redirect_uris=("http://localhost:3000/auth/callback",),
    scopes=("read", "write"),
)


class FakeClock:
    def __init__(self) -> None:
        self.now = time.time()

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCollaborators:
    """Answers orders/payments/shipping/catalog requests and records them."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.orders: dict = {}
        self.payments: dict = {}
        self.shippings: dict = {}
        self.down: set[str] = set()
        self.stock_success = True

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host in self.down:
            raise httpx.ConnectError("connection refused", request=request)

        path = request.url.path
        if request.method == "POST" and path == "/orders":
            body = json.loads(request.content)
            self.orders[body["id"]] = body
            return httpx.Response(201, json=body)
        if request.method == "GET":
            for prefix, records in (
                ("/orders/", self.orders),
                ("/payments/", self.payments),
                ("/shipping/", self.shippings),
            ):
                if path.startswith(prefix):
                    record = records.get(path[len(prefix):])
                    if record is None:
                        return httpx.Response(404, json={"message": "not found"})
                    return httpx.Response(200, json=record)
        if request.method == "PUT" and path.startswith("/api/products/"):
            product_id = path.split("/")[3]
            if self.stock_success:
                return httpx.Response(
                    200,
                    json={
                        "success": True,
                        "message": "Stock updated successfully",
                        "product": {"id": product_id, "quantity": 7},
                    },
                )
            return httpx.Response(
                500, json={"success": False, "message": "Product not found", "product": None}
            )
        return httpx.Response(404)

    def stock_calls(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "PUT"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_service(clock):
    return TokenService([ORDERS_CLIENT], KeyProvider.hmac(SECRET), clock=clock)


@pytest.fixture
def collaborators():
    return FakeCollaborators()


@pytest.fixture
def services(token_service, collaborators):
    http = httpx.AsyncClient(transport=httpx.MockTransport(collaborators.handler))
    return ServiceClient(token_service, ServicesConfig(), http=http)
