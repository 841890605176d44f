"""Exception hierarchy for sagagate.

HTTP handlers translate these into responses (see :mod:`sagagate.api`);
queue handlers log them and still acknowledge the message.
"""

from __future__ import annotations

from typing import Optional


class SagaGateError(Exception):
    """Base class for all sagagate errors."""

    status_code: int = 500
    code: str = "internal_error"


class ConfigurationError(SagaGateError):
    """Raised when required configuration (keys, clients) is missing."""

    code = "configuration_error"


class AuthError(SagaGateError):
    """Authentication or authorization failure."""

    status_code = 401
    code = "missing_or_invalid_token"


class InvalidToken(AuthError):
    """Token is missing, malformed, expired or carries a bad signature."""


class InsufficientScope(AuthError):
    status_code = 403
    code = "insufficient_scope"

    def __init__(self, required: str) -> None:
        super().__init__(f"Scope '{required}' required")
        self.required = required


class ServiceIdentityNotAllowed(AuthError):
    """Service token requested for an identity not enabled in configuration."""

    status_code = 403
    code = "service_identity_not_allowed"


class ValidationError(SagaGateError):
    """Malformed client, grant, redirect or request body.

    ``code`` mirrors the OAuth2 error codes (``invalid_client``,
    ``invalid_grant``, ``invalid_redirect_uri``, ``unsupported_response_type``,
    ``unsupported_grant_type``) plus ``invalid_request`` for bad bodies.
    """

    status_code = 400

    def __init__(self, code: str, message: Optional[str] = None) -> None:
        super().__init__(message or code)
        self.code = code


class UpstreamUnavailable(SagaGateError):
    """A collaborator service call failed or timed out."""

    code = "upstream_unavailable"

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message


class NotFound(UpstreamUnavailable):
    """The collaborator answered 404 for the requested record."""

    code = "not_found"


class TransportUnavailable(SagaGateError):
    """The message broker is unreachable."""

    status_code = 503
    code = "transport_unavailable"


class InvalidTransition(SagaGateError):
    """A workflow event arrived out of order or was already applied."""

    code = "invalid_transition"

    def __init__(self, workflow_id: str, state: str, event: str) -> None:
        super().__init__(
            f"Event '{event}' not allowed for workflow {workflow_id} in state '{state}'"
        )
        self.workflow_id = workflow_id
        self.state = state
        self.event = event
