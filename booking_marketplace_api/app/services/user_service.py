"""
Business logic for user accounts.

Covers sign-up, sign-in, profile maintenance, administrative updates
and password resets.  Passwords are stored as PBKDF2 hashes; the first
account ever created becomes the administrator, every later sign-up is
a client.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from booking_marketplace_api.app.core.db import (
    ROLE_ADMIN,
    ROLE_CLIENT,
    dumps_json,
    get_connection,
    loads_json,
    utcnow_iso,
)
from booking_marketplace_api.app.core.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from booking_marketplace_api.app.core.security import (
    PASSWORD_RESET_PURPOSE,
    create_access_token,
    create_password_reset_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from booking_marketplace_api.app.schemas.user import UserCreate, UserRead
from booking_marketplace_api.app.services.audit_service import AuditService

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("full_name", "phone", "avatar_url", "date_of_birth", "location", "bio", "preferences")
ADMIN_FIELDS = ("role_id", "is_active", "is_verified")


def row_to_user(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        email=row["email"],
        full_name=row["full_name"],
        phone=row["phone"],
        role_id=row["role_id"],
        is_verified=bool(row["is_verified"]),
        avatar_url=row["avatar_url"],
        date_of_birth=row["date_of_birth"],
        location=row["location"],
        bio=row["bio"],
        preferences=loads_json(row["preferences"], {}),
        is_active=bool(row["is_active"]),
        last_login=row["last_login"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class UserService:
    """Service for user accounts and authentication."""

    @classmethod
    async def sign_up(cls, data: UserCreate) -> UserRead:
        """Register a new account and return it.

        Raises ``ConflictError`` when the email is already registered.
        """
        logger.info("Registering user %s", data.email)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT COUNT(*) AS count FROM users").fetchone()
            role_id = ROLE_ADMIN if row["count"] == 0 else ROLE_CLIENT
            try:
                cursor.execute(
                    "INSERT INTO users (email, full_name, phone, password, role_id) VALUES (?, ?, ?, ?, ?)",
                    (data.email, data.full_name, data.phone, hash_password(data.password), role_id),
                )
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                raise ConflictError("Este email já está registado.") from exc
            user_id = cursor.lastrowid
            conn.commit()
            created = cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        await AuditService.log(user_id, "create", "user", user_id, {"email": data.email, "role_id": role_id})
        return row_to_user(created)

    @classmethod
    async def sign_in(cls, email: str, password: str) -> Optional[Dict[str, str]]:
        """Verify credentials and issue an access token.

        Returns ``None`` on wrong credentials so the endpoint can answer
        with a plain 401.  Disabled accounts raise ``PermissionDeniedError``.
        """
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, email, password, is_active FROM users WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
            if not row or not verify_password(password, row["password"]):
                logger.info("Failed sign-in for %s", email)
                return None
            if not row["is_active"]:
                raise PermissionDeniedError("Conta desativada.")
            conn.execute("UPDATE users SET last_login = ? WHERE id = ?", (utcnow_iso(), row["id"]))
            conn.commit()
        finally:
            conn.close()
        token = create_access_token({"sub": row["email"]})
        return {"access_token": token, "token_type": "bearer"}

    @classmethod
    async def get_user_by_id(cls, user_id: int) -> UserRead:
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError(f"User {user_id} not found")
        return row_to_user(row)

    @classmethod
    async def list_users(cls, role_id: Optional[int] = None) -> List[UserRead]:
        conn = get_connection()
        try:
            if role_id is None:
                rows = conn.execute("SELECT * FROM users ORDER BY id").fetchall()
            else:
                rows = conn.execute("SELECT * FROM users WHERE role_id = ? ORDER BY id", (role_id,)).fetchall()
            return [row_to_user(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def _apply_updates(cls, user_id: int, updates: Dict[str, Any]) -> UserRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if not cursor.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone():
                raise NotFoundError(f"User {user_id} not found")
            if updates:
                fields = []
                values: List[Any] = []
                for key, value in updates.items():
                    if key == "preferences":
                        value = dumps_json(value)
                    elif isinstance(value, bool):
                        value = 1 if value else 0
                    fields.append(f"{key} = ?")
                    values.append(value)
                fields.append("updated_at = ?")
                values.extend([utcnow_iso(), user_id])
                cursor.execute(f"UPDATE users SET {', '.join(fields)} WHERE id = ?", tuple(values))
                conn.commit()
            row = cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return row_to_user(row)
        finally:
            conn.close()

    @classmethod
    async def update_profile(cls, user_id: int, updates: Dict[str, Any]) -> UserRead:
        """Update the caller's own profile.  Unknown keys are ignored."""
        filtered = {k: v for k, v in updates.items() if k in PROFILE_FIELDS}
        user = await cls._apply_updates(user_id, filtered)
        if filtered:
            await AuditService.log(user_id, "update", "user", user_id, {"fields": sorted(filtered)})
        return user

    @classmethod
    async def update_user(cls, user_id: int, updates: Dict[str, Any], admin_id: Optional[int] = None) -> UserRead:
        """Change role, activation or verification of an account (administrators)."""
        filtered = {k: v for k, v in updates.items() if k in ADMIN_FIELDS and v is not None}
        if admin_id == user_id and (
            filtered.get("is_active") is False
            or ("role_id" in filtered and filtered["role_id"] != ROLE_ADMIN)
        ):
            raise ValidationFailedError("Administrators cannot demote or disable themselves")
        user = await cls._apply_updates(user_id, filtered)
        if filtered:
            await AuditService.log(admin_id, "update", "user", user_id, filtered)
        return user

    @classmethod
    async def request_password_reset(cls, email: str) -> Optional[str]:
        """Issue a password reset token.

        Returns the token, or ``None`` for an unknown email.  The token
        would normally be delivered by mail; here it is only logged.
        """
        conn = get_connection()
        try:
            row = conn.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
        finally:
            conn.close()
        if not row:
            logger.info("Password reset requested for unknown email %s", email)
            return None
        token = create_password_reset_token(email)
        logger.info("Password reset token issued for user %s", row["id"])
        logger.debug("Password reset token for %s: %s", email, token)
        return token

    @classmethod
    async def confirm_password_reset(cls, token: str, new_password: str) -> None:
        payload = decode_access_token(token)
        if not payload or payload.get("purpose") != PASSWORD_RESET_PURPOSE:
            raise ValidationFailedError("Token de recuperação inválido ou expirado.")
        conn = get_connection()
        try:
            cursor = conn.execute(
                "UPDATE users SET password = ?, updated_at = ? WHERE email = ?",
                (hash_password(new_password), utcnow_iso(), payload.get("sub")),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise NotFoundError("User not found")
            user_row = conn.execute("SELECT id FROM users WHERE email = ?", (payload.get("sub"),)).fetchone()
        finally:
            conn.close()
        await AuditService.log(user_row["id"], "password_reset", "user", user_row["id"])
