# src/shared/security.py

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional, Union
from uuid import UUID

import jwt
from cryptography.fernet import Fernet, InvalidToken

from src.config import settings
from src.shared.exceptions import CryptoError, UnauthorizedError


def create_access_token(
    sub: Union[str, UUID],
    *,
    tenant_id: Optional[str] = None,
    role: Optional[str] = None,
    is_system_admin: bool = False,
    permissions: Optional[Iterable[str]] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token with user claims.

    Token issuance lives with the identity provider; this helper is used by
    tooling and tests to mint tokens the API accepts.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=60))
    payload: Dict[str, Any] = {
        "sub": str(sub),
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "typ": "access",
    }
    if tenant_id:
        payload["tenant_id"] = str(tenant_id)
    if role:
        payload["role"] = role
    if is_system_admin:
        payload["is_system_admin"] = True
    if permissions:
        payload["permissions"] = sorted(set(permissions))
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a JWT token.

    Raises:
        UnauthorizedError: If token is invalid, expired, or malformed
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM], options={"verify_exp": True})
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired", code="invalid_token")
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError(f"Invalid token: {e}", code="invalid_token")


# ---------------------------------------------------------------------
# Opaque tokens (impersonation)
# ---------------------------------------------------------------------

def generate_opaque_token(num_bytes: int = 32) -> str:
    """Random hex token; 32 bytes -> 64 hex chars."""
    return secrets.token_hex(num_bytes)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def constant_time_equals(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


# ---------------------------------------------------------------------
# Secret encryption at rest (agent endpoint secrets)
# ---------------------------------------------------------------------

class SecretBox:
    """Fernet wrapper for storing webhook secrets encrypted in the DB."""

    def __init__(self, key: Optional[str] = None) -> None:
        key = key or settings.APP_ENCRYPTION_KEY
        if not key:
            raise CryptoError("APP_ENCRYPTION_KEY is not configured")
        try:
            self._fernet = Fernet(key.encode())
        except (ValueError, TypeError) as exc:
            raise CryptoError("APP_ENCRYPTION_KEY is not a valid Fernet key") from exc

    def encrypt(self, plain: str) -> str:
        return self._fernet.encrypt(plain.encode()).decode()

    def decrypt(self, cipher: str) -> str:
        try:
            return self._fernet.decrypt(cipher.encode()).decode()
        except InvalidToken:
            raise CryptoError("Decryption failed - invalid key or corrupted data")

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode()
