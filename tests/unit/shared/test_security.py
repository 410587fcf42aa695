from datetime import timedelta

import pytest

from src.shared.exceptions import CryptoError, UnauthorizedError
from src.shared.permissions import group_permissions, invalid_tenant_permissions, is_console_permission
from src.shared.security import (
    SecretBox,
    constant_time_equals,
    create_access_token,
    decode_token,
    generate_opaque_token,
    hash_token,
)


def test_access_token_roundtrip():
    token = create_access_token("u-1", tenant_id="acme", role="support", permissions=["b", "a", "a"])
    claims = decode_token(token)
    assert claims["sub"] == "u-1"
    assert claims["tenant_id"] == "acme"
    assert claims["role"] == "support"
    assert claims["permissions"] == ["a", "b"]
    assert "is_system_admin" not in claims


def test_expired_and_tampered_tokens():
    expired = create_access_token("u-1", expires_delta=timedelta(seconds=-5))
    with pytest.raises(UnauthorizedError) as exc:
        decode_token(expired)
    assert exc.value.code == "invalid_token"

    with pytest.raises(UnauthorizedError):
        decode_token(create_access_token("u-1") + "x")


def test_opaque_tokens_are_hashed():
    token = generate_opaque_token()
    assert len(token) == 64
    assert hash_token(token) != token
    assert constant_time_equals(hash_token(token), hash_token(token))
    assert not constant_time_equals(hash_token(token), hash_token(generate_opaque_token()))


def test_secret_box_roundtrip():
    box = SecretBox(SecretBox.generate_key())
    cipher = box.encrypt("webhook-secret")
    assert cipher != "webhook-secret"
    assert box.decrypt(cipher) == "webhook-secret"


def test_secret_box_rejects_foreign_ciphertext():
    cipher = SecretBox(SecretBox.generate_key()).encrypt("s")
    with pytest.raises(CryptoError):
        SecretBox(SecretBox.generate_key()).decrypt(cipher)


def test_secret_box_rejects_bad_key():
    with pytest.raises(CryptoError):
        SecretBox("not-a-fernet-key")


def test_permission_catalog():
    assert invalid_tenant_permissions(["tenant.users.view", "console.logs.view", "made.up"]) == [
        "console.logs.view",
        "made.up",
    ]
    assert is_console_permission("support.impersonate")
    assert group_permissions(["tenant.users.view", "tenant.users.edit", "solo"]) == {
        "users": ["tenant.users.view", "tenant.users.edit"],
        "other": ["solo"],
    }
