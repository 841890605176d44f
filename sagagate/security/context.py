"""Security models shared by the token service and the request middleware."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

PrincipalType = Literal["user", "service", "client"]


class Client(BaseModel):
    """Registered OAuth2 client, fixed at process start."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str
    redirect_uris: tuple[str, ...] = ()
    scopes: tuple[str, ...] = ("read",)


class AuthorizationGrant(BaseModel):
    """One-time authorization code awaiting redemption."""

    code: str
    client_id: str
    redirect_uri: str
    scopes: List[str]
    expires_at: float


class AccessToken(BaseModel):
    """Opaque access token issued on grant redemption."""

    token: str
    client_id: str
    scopes: List[str]
    expires_at: float


class TokenResponse(BaseModel):
    """Body returned by the token endpoint."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    scope: str
    jwt_token: str


class Principal(BaseModel):
    """Identity extracted from a verified signed claims token."""

    subject: str
    scopes: List[str] = Field(default_factory=list)
    principal_type: PrincipalType = "user"
    email: Optional[str] = None
