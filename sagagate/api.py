"""HTTP surface of the orchestrator service."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from numbers import Number
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from .config import SagaGateConfig, load_config
from .constants import ALL_QUEUES
from .contracts import WorkflowOrder
from .dispatch import OrderDispatcher
from .errors import SagaGateError
from .orchestrator import SagaOrchestrator
from .persistence import WorkflowContextStore, get_context_store
from .security.context import Principal, TokenResponse
from .security.middleware import require_scope
from .security.tokens import TokenService
from .services import ServiceClient
from .transports import BaseTransport, get_transport
from .utils.retry import connect_with_retry

logger = logging.getLogger(__name__)

SERVICE_NAME = "Orchestrator Service"

ENDPOINTS = {
    "GET /": "Service status",
    "GET /health": "Health check",
    "POST /place-order": "Place a new order (requires write scope)",
    "GET /workflow-status/{orderId}": "Check order workflow status (requires read scope)",
    "PUT /update-catalog-stock/{productId}": "Update catalog stock (requires write scope)",
    "GET /oauth/authorize": "OAuth2 authorization endpoint",
    "POST /oauth/token": "OAuth2 token endpoint",
    "GET /oauth/clients": "List OAuth2 clients (requires admin scope)",
}


async def _json_object(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _text(body: Dict[str, Any], field: str) -> Optional[str]:
    value = body.get(field)
    return value if isinstance(value, str) else None


async def _run_consumers(app: FastAPI, config: SagaGateConfig) -> None:
    """Connect and consume; any failure leaves the service degraded, not down."""
    transport: BaseTransport = app.state.transport
    try:
        connected = await connect_with_retry(
            transport,
            attempts=config.transport.connect_attempts,
            delay=config.transport.connect_delay,
        )
        if not connected:
            app.state.consumers = "degraded"
            return
        await transport.declare_queues(ALL_QUEUES)
        logger.info("Orchestrator connected to message broker")
        app.state.consumers = "running"
        await app.state.orchestrator.start()
        app.state.consumers = "stopped"
    except Exception:
        app.state.consumers = "degraded"
        logger.exception("Queue consumers stopped; orchestrator is no longer consuming")


def create_app(
    config: Optional[SagaGateConfig] = None,
    *,
    token_service: Optional[TokenService] = None,
    transport: Optional[BaseTransport] = None,
    store: Optional[WorkflowContextStore] = None,
    services: Optional[ServiceClient] = None,
    consume: bool = True,
) -> FastAPI:
    """Build the orchestrator application.

    Components not passed in are built from ``config``. When ``consume`` is
    true the app lifespan connects to the broker (with bounded retries) and
    runs the queue consumers in the background.
    """
    config = config or load_config()
    token_service = token_service or TokenService.from_config(config.auth)
    transport = transport or get_transport(config=config)
    store = store or get_context_store(config)
    services = services or ServiceClient(token_service, config.services)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        task = asyncio.create_task(_run_consumers(app, config)) if consume else None
        try:
            yield
        finally:
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            await transport.disconnect()
            await services.aclose()

    app = FastAPI(title="sagagate orchestrator", lifespan=lifespan)
    app.state.token_service = token_service
    app.state.transport = transport
    app.state.store = store
    app.state.services = services
    app.state.orchestrator = SagaOrchestrator(transport, store, services)
    app.state.dispatcher = OrderDispatcher(transport, services)
    app.state.consumers = "starting" if consume else "disabled"

    @app.exception_handler(SagaGateError)
    async def _sagagate_error(request: Request, exc: SagaGateError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.code, "message": str(exc)},
        )

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else "Malformed request body"
        return JSONResponse(
            status_code=400,
            content={"error": "invalid_request", "message": message},
        )

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "Orchestrator Service API - OAuth2 Server"

    @app.get("/health")
    async def health() -> dict:
        degraded = app.state.consumers == "degraded"
        return {
            "status": "degraded" if degraded else "healthy",
            "service": SERVICE_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "consumers": app.state.consumers,
        }

    @app.get("/api-docs")
    async def api_docs() -> dict:
        return {"message": "Orchestrator Service API", "endpoints": ENDPOINTS}

    @app.post("/place-order", response_class=PlainTextResponse)
    async def place_order(
        order: WorkflowOrder,
        principal: Principal = Depends(require_scope("write")),
    ) -> str:
        order_id = await app.state.dispatcher.place_order(order)
        logger.info(f"Order {order_id} placed by {principal.subject}")
        return f"Order {order_id} created and initiation request sent to orchestrator."

    @app.get("/workflow-status/{order_id}")
    async def workflow_status(
        order_id: str, _: Principal = Depends(require_scope("read"))
    ) -> dict:
        return await app.state.orchestrator.workflow_status(order_id)

    @app.put("/update-catalog-stock/{product_id}")
    async def update_catalog_stock(
        product_id: str,
        request: Request,
        _: Principal = Depends(require_scope("write")),
    ) -> JSONResponse:
        quantity = (await _json_object(request)).get("quantity")
        if (
            isinstance(quantity, bool)
            or not isinstance(quantity, Number)
            or quantity <= 0
        ):
            return JSONResponse(
                status_code=400,
                content={"error": "Quantity must be a positive number"},
            )

        result = await app.state.services.update_stock(product_id, quantity)
        if result.success:
            return JSONResponse(
                {"message": f"Stock updated successfully for product {product_id}"}
            )
        return JSONResponse(
            status_code=500,
            content={
                "error": f"Failed to update stock for product {product_id}",
                "message": result.message,
            },
        )

    @app.get("/oauth/authorize")
    async def oauth_authorize(
        client_id: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        scope: Optional[str] = None,
        state: Optional[str] = None,
        response_type: Optional[str] = None,
    ) -> RedirectResponse:
        url = token_service.authorize(
            client_id, redirect_uri, scope=scope, response_type=response_type, state=state
        )
        return RedirectResponse(url, status_code=302)

    @app.post("/oauth/token", response_model=TokenResponse)
    async def oauth_token(request: Request) -> TokenResponse:
        body = await _json_object(request)
        return token_service.exchange_token(
            _text(body, "grant_type"),
            _text(body, "code"),
            _text(body, "client_id"),
            _text(body, "client_secret"),
            redirect_uri=_text(body, "redirect_uri"),
        )

    @app.get("/oauth/clients")
    async def oauth_clients(_: Principal = Depends(require_scope("admin"))) -> dict:
        return {
            "message": "OAuth2 clients registered",
            "clients": token_service.client_ids(),
        }

    return app
