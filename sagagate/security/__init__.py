"""Token issuance, verification and scope enforcement."""

from .context import AccessToken, AuthorizationGrant, Client, Principal, TokenResponse
from .keys import KeyProvider
from .policy import has_scope, parse_scope
from .tokens import TokenService

__all__ = [
    "AccessToken",
    "AuthorizationGrant",
    "Client",
    "KeyProvider",
    "Principal",
    "TokenResponse",
    "TokenService",
    "has_scope",
    "parse_scope",
]
