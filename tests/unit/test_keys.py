"""Key provider construction, RS256 signing and key rotation."""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from sagagate.config import AuthConfig, KeyConfig
from sagagate.errors import ConfigurationError, InvalidToken
from sagagate.security import KeyProvider, TokenService


def generate_keys():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


def test_from_config_requires_keys():
    with pytest.raises(ConfigurationError):
        KeyProvider.from_config(AuthConfig())


def test_from_config_requires_signing_key_present():
    config = AuthConfig(signing_key_id="v2", keys={"v1": KeyConfig(secret="x" * 40)})
    with pytest.raises(ConfigurationError):
        KeyProvider.from_config(config)


def test_rs256_round_trip():
    private_pem, public_pem = generate_keys()
    config = AuthConfig(
        algorithm="RS256",
        signing_key_id="rsa-1",
        keys={"rsa-1": KeyConfig(private_key=private_pem, public_key=public_pem)},
    )
    service = TokenService.from_config(config)

    principal = service.verify(service.mint_service_claims("orchestrator-service"))
    assert principal.subject == "orchestrator-service"
    assert principal.principal_type == "service"


def test_rotation_keeps_old_tokens_valid():
    old = AuthConfig(signing_key_id="v1", keys={"v1": KeyConfig(secret="a" * 40)})
    rotated = AuthConfig(
        signing_key_id="v2",
        keys={"v1": KeyConfig(secret="a" * 40), "v2": KeyConfig(secret="b" * 40)},
    )
    retired = AuthConfig(signing_key_id="v2", keys={"v2": KeyConfig(secret="b" * 40)})

    old_token = TokenService.from_config(old).issue_claims("alice", "read")
    rotated_service = TokenService.from_config(rotated)

    assert rotated_service.verify(old_token).subject == "alice"
    new_token = rotated_service.issue_claims("alice", "read")
    assert TokenService.from_config(retired).verify(new_token).subject == "alice"
    with pytest.raises(InvalidToken):
        TokenService.from_config(retired).verify(old_token)
