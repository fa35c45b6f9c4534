"""
Authentication for the marketplace API.

Session tokens are compact HS256 JWTs signed with ``settings.secret_key``
and carry the account e-mail as ``sub``. Password reset tokens use the
same format with a ``purpose`` claim and are refused as session tokens.
Passwords are stored as ``salt$hash`` using PBKDF2-HMAC-SHA256.
"""

import base64
import hashlib
import hmac
import json
import os
import time
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .db import ROLE_ADMIN, get_connection

PBKDF2_ITERATIONS = 100_000
PASSWORD_RESET_PURPOSE = "password_reset"


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, Any], expires_delta: Optional[int] = None) -> str:
    """Sign ``data`` as a token that expires after ``expires_delta`` seconds.

    Without ``expires_delta`` the session lifetime from
    ``ACCESS_TOKEN_EXPIRE_MINUTES`` applies.
    """
    claims = dict(data)
    lifetime = expires_delta or settings.access_token_expire_minutes * 60
    claims["exp"] = int(time.time()) + lifetime
    header = {"alg": settings.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(claims, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT token.

    Returns the payload if the signature matches and the token has not
    expired, otherwise ``None``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected_sig = _sign(signing_input, settings.secret_key)
    try:
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        # binascii.Error and JSONDecodeError are both ValueErrors
        return None
    if not isinstance(data, dict):
        return None
    if data.get("exp") is None or int(data["exp"]) < int(time.time()):
        return None
    return data


def create_password_reset_token(email: str) -> str:
    return create_access_token(
        {"sub": email, "purpose": PASSWORD_RESET_PURPOSE},
        expires_delta=settings.password_reset_expire_minutes * 60,
    )


security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Dict[str, Any]:
    """Dependency that retrieves the current authenticated user.

    Returns the decoded token payload extended with ``user_id`` and
    ``role_id`` from the ``users`` table.  A missing or invalid token,
    a deleted user or a deactivated account yields HTTP 401.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")
    token = credentials.credentials

    # Static integration token, see ADMIN_API_TOKEN.
    if settings.admin_static_token and hmac.compare_digest(token, settings.admin_static_token):
        return {"sub": "static_admin", "user_id": 1, "role_id": ROLE_ADMIN}

    payload = decode_access_token(token)
    if not payload or payload.get("purpose"):
        # Purpose-bound tokens (password reset) never authenticate requests.
        raise _unauthorized("Invalid or expired token")

    conn = get_connection()
    try:
        user_row = conn.execute(
            "SELECT id, role_id, is_active FROM users WHERE email = ?",
            (payload.get("sub"),),
        ).fetchone()
    finally:
        conn.close()
    if not user_row:
        raise _unauthorized("User no longer exists")
    if not user_row["is_active"]:
        raise _unauthorized("User account disabled")
    payload["user_id"] = user_row["id"]
    payload["role_id"] = user_row["role_id"]
    return payload


def require_roles(*role_ids: int) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    """Dependency factory to enforce that the current user has one of the specified roles.

    Use this in FastAPI endpoints via ``Depends(require_roles(ROLE_ADMIN))``.
    Role IDs correspond to entries in the ``roles`` table created
    during database migrations.  Other roles receive HTTP 403.
    """

    def _role_dependency(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if current_user.get("role_id") not in role_ids:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _role_dependency


def is_admin(current_user: Dict[str, Any]) -> bool:
    return current_user.get("role_id") == ROLE_ADMIN


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256.

    A 16‑byte random salt is generated for each password.  The result
    is ``"<salt hex>$<hash hex>"``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a stored salt+hash string."""
    if not hashed_password or "$" not in hashed_password:
        return False
    salt_hex, hash_hex = hashed_password.split("$", 1)
    try:
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)
