"""FastAPI dependencies applying bearer-token checks per route."""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..errors import InsufficientScope, InvalidToken
from .context import Principal
from .policy import has_scope
from .tokens import TokenService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """Verify the bearer token and attach the principal to ``request.state``.

    Raises ``InvalidToken`` (401) when the header is missing or the token
    does not verify.
    """
    if credentials is None:
        raise InvalidToken("Missing bearer token")
    token_service: TokenService = request.app.state.token_service
    principal = token_service.verify(credentials.credentials)
    request.state.principal = principal
    return principal


def require_scope(required: str) -> Callable[..., Awaitable[Principal]]:
    """Dependency factory enforcing ``required`` (or ``admin``) on a route."""

    async def _check(principal: Principal = Depends(get_principal)) -> Principal:
        if not has_scope(principal, required):
            raise InsufficientScope(required)
        return principal

    return _check
