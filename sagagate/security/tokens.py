"""Token issuance and validation.

The authorization-code grant and the opaque access token table exist only
for the interactive OAuth2 handshake. Request authorization everywhere else
relies on the self-contained signed claims token checked by :meth:`verify`.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Dict, Iterable, List, Optional
from urllib.parse import urlencode

import jwt

from ..config import AuthConfig
from ..constants import (
    ACCESS_TOKEN_TTL,
    AUTHORIZATION_CODE_TTL,
    CLAIMS_TTL,
    DEFAULT_SCOPE,
    DEFAULT_SERVICE_NAME,
    SERVICE_SCOPE,
)
from ..errors import InvalidToken, ServiceIdentityNotAllowed, ValidationError
from .context import (
    AccessToken,
    AuthorizationGrant,
    Client,
    Principal,
    PrincipalType,
    TokenResponse,
)
from .keys import KeyProvider
from .policy import parse_scope

logger = logging.getLogger(__name__)

AUTHORIZATION_CODE_GRANT = "authorization_code"


class TokenService:
    """Issues authorization codes, access tokens and signed claims tokens."""

    def __init__(
        self,
        clients: Iterable[Client],
        keys: KeyProvider,
        service_identities: Iterable[str] = (DEFAULT_SERVICE_NAME,),
        authorization_code_ttl: int = AUTHORIZATION_CODE_TTL,
        access_token_ttl: int = ACCESS_TOKEN_TTL,
        claims_ttl: int = CLAIMS_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clients: Dict[str, Client] = {c.client_id: c for c in clients}
        self._keys = keys
        self._service_identities = frozenset(service_identities)
        self._authorization_code_ttl = authorization_code_ttl
        self._access_token_ttl = access_token_ttl
        self._claims_ttl = claims_ttl
        self._clock = clock
        self._grants: Dict[str, AuthorizationGrant] = {}
        self._access_tokens: Dict[str, AccessToken] = {}

    @classmethod
    def from_config(cls, config: AuthConfig) -> "TokenService":
        clients = [
            Client(
                client_id=c.client_id,
                client_secret=c.client_secret,
                redirect_uris=tuple(c.redirect_uris),
                scopes=tuple(c.scopes),
            )
            for c in config.clients
        ]
        return cls(
            clients,
            KeyProvider.from_config(config),
            service_identities=config.service_identities,
            authorization_code_ttl=config.authorization_code_ttl,
            access_token_ttl=config.access_token_ttl,
            claims_ttl=config.claims_ttl,
        )

    def client_ids(self) -> List[str]:
        return list(self._clients)

    # ------------------------------------------------------------------
    # Authorization-code grant
    # ------------------------------------------------------------------
    def authorize(
        self,
        client_id: Optional[str],
        redirect_uri: Optional[str],
        scope: Optional[str] = None,
        response_type: Optional[str] = None,
        state: Optional[str] = None,
    ) -> str:
        """Validate an authorize request and return the callback redirect URL.

        Raises:
            ValidationError: ``unsupported_response_type``, ``invalid_client``
                or ``invalid_redirect_uri``. No grant is stored in that case.
        """
        if response_type != "code":
            raise ValidationError("unsupported_response_type")
        client = self._clients.get(client_id or "")
        if client is None:
            raise ValidationError("invalid_client")
        if redirect_uri not in client.redirect_uris:
            raise ValidationError("invalid_redirect_uri")

        code = str(uuid.uuid4())
        scopes = parse_scope(scope) or [DEFAULT_SCOPE]
        self._grants[code] = AuthorizationGrant(
            code=code,
            client_id=client.client_id,
            redirect_uri=redirect_uri,
            scopes=scopes,
            expires_at=self._clock() + self._authorization_code_ttl,
        )
        logger.info(f"Issued authorization code for client {client.client_id}")
        query = urlencode({"code": code, "state": state or ""})
        return f"{redirect_uri}?{query}"

    def exchange_token(
        self,
        grant_type: Optional[str],
        code: Optional[str],
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: Optional[str] = None,
    ) -> TokenResponse:
        """Redeem an authorization code for an access token and claims token.

        Raises:
            ValidationError: ``unsupported_grant_type``, ``invalid_client`` or
                ``invalid_grant``.
        """
        if grant_type != AUTHORIZATION_CODE_GRANT:
            raise ValidationError("unsupported_grant_type")
        client = self._clients.get(client_id or "")
        if client is None or client.client_secret != client_secret:
            raise ValidationError("invalid_client")

        grant = self._grants.get(code or "")
        if grant is None or grant.client_id != client.client_id:
            raise ValidationError("invalid_grant")
        if self._clock() > grant.expires_at:
            del self._grants[grant.code]
            logger.info(f"Rejected expired authorization code for client {client.client_id}")
            raise ValidationError("invalid_grant", "Authorization code expired")
        if redirect_uri is not None and redirect_uri != grant.redirect_uri:
            raise ValidationError("invalid_grant", "redirect_uri does not match grant")

        del self._grants[grant.code]
        token = str(uuid.uuid4())
        self._access_tokens[token] = AccessToken(
            token=token,
            client_id=client.client_id,
            scopes=grant.scopes,
            expires_at=self._clock() + self._access_token_ttl,
        )
        claims = self.issue_claims(client.client_id, grant.scopes, "client")
        logger.info(f"Issued access token for client {client.client_id}")
        return TokenResponse(
            access_token=token,
            expires_in=self._access_token_ttl,
            scope=" ".join(grant.scopes),
            jwt_token=claims,
        )

    def validate_access_token(self, token: str) -> Optional[AccessToken]:
        """Return the stored access token, purging it if it has expired."""
        data = self._access_tokens.get(token)
        if data is None:
            return None
        if self._clock() > data.expires_at:
            del self._access_tokens[token]
            return None
        return data

    def pending_grants(self) -> int:
        return len(self._grants)

    # ------------------------------------------------------------------
    # Signed claims
    # ------------------------------------------------------------------
    def issue_claims(
        self,
        subject: str,
        scopes: Iterable[str] | str,
        principal_type: PrincipalType = "user",
        email: Optional[str] = None,
    ) -> str:
        now = int(self._clock())
        payload = {
            "sub": subject,
            "email": email or subject,
            "scope": " ".join(parse_scope(scopes)),
            "type": principal_type,
            "iat": now,
            "exp": now + self._claims_ttl,
        }
        return jwt.encode(
            payload,
            self._keys.get_signing_key(),
            algorithm=self._keys.algorithm,
            headers={"kid": self._keys.signing_key_id},
        )

    def mint_service_claims(self, service_name: str, scope: str = SERVICE_SCOPE) -> str:
        """Mint a claims token for an internal service identity.

        Raises:
            ServiceIdentityNotAllowed: ``service_name`` is not enabled in
                ``auth.service_identities``.
        """
        if service_name not in self._service_identities:
            raise ServiceIdentityNotAllowed(
                f"Service identity '{service_name}' may not mint tokens"
            )
        return self.issue_claims(
            service_name, scope, "service", email=f"{service_name}@internal"
        )

    def verify(self, token: Optional[str]) -> Principal:
        """Check signature and expiry of a claims token.

        Raises:
            InvalidToken: token missing, malformed, expired, or signed with an
                unknown key.
        """
        if not token:
            raise InvalidToken("Missing token")
        try:
            header = jwt.get_unverified_header(token)
            key = self._keys.get_verification_key(header.get("kid"))
            if key is None:
                raise InvalidToken(f"Unknown signing key '{header.get('kid')}'")
            claims = jwt.decode(
                token,
                key,
                algorithms=[self._keys.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidToken(str(e)) from e

        principal_type = claims.get("type", "user")
        if principal_type not in ("user", "service", "client"):
            raise InvalidToken(f"Unknown principal type '{principal_type}'")
        return Principal(
            subject=claims["sub"],
            scopes=parse_scope(claims.get("scope")),
            principal_type=principal_type,
            email=claims.get("email"),
        )
