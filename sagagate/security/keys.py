"""Key management for signing and verifying claims tokens."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..config import AuthConfig
from ..errors import ConfigurationError


class KeyProvider:
    """Provides the active signing key and all verification keys by ``kid``.

    Rotation works by adding a new key, pointing ``signing_key_id`` at it and
    keeping the old key in the verification set until tokens signed with it
    have expired.
    """

    def __init__(
        self,
        algorithm: str,
        signing_key_id: str,
        signing_key: Any,
        verification_keys: Dict[str, Any],
    ) -> None:
        if signing_key is None:
            raise ConfigurationError(f"No signing key configured for kid '{signing_key_id}'")
        if signing_key_id not in verification_keys:
            raise ConfigurationError(f"Signing key '{signing_key_id}' has no verification key")
        self.algorithm = algorithm
        self.signing_key_id = signing_key_id
        self._signing_key = signing_key
        self._verification_keys = dict(verification_keys)

    @classmethod
    def hmac(cls, secret: str, kid: str = "default") -> "KeyProvider":
        """Build a provider around a single HS256 shared secret."""
        return cls("HS256", kid, secret, {kid: secret})

    @classmethod
    def from_config(cls, config: AuthConfig) -> "KeyProvider":
        if not config.keys:
            raise ConfigurationError(
                "auth.keys is empty; set SAGAGATE_JWT_SECRET or configure keys"
            )
        verification: Dict[str, Any] = {}
        signing: Optional[Any] = None
        for kid, key in config.keys.items():
            if config.algorithm == "HS256":
                if not key.secret:
                    raise ConfigurationError(f"HS256 key '{kid}' has no secret")
                verification[kid] = key.secret
                if kid == config.signing_key_id:
                    signing = key.secret
            else:
                if not key.public_key:
                    raise ConfigurationError(f"RS256 key '{kid}' has no public_key")
                verification[kid] = key.public_key
                if kid == config.signing_key_id:
                    signing = key.private_key
        return cls(config.algorithm, config.signing_key_id, signing, verification)

    def get_signing_key(self) -> Any:
        """Return the current key used for signing."""
        return self._signing_key

    def get_verification_key(self, kid: Optional[str]) -> Optional[Any]:
        """Return the verification key for ``kid`` (signing kid when absent)."""
        return self._verification_keys.get(kid or self.signing_key_id)
