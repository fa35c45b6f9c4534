"""
Runtime settings stored in the ``settings`` table.

Values are kept as text next to a type tag (``int``, ``float``,
``bool``, ``str`` or ``json``) and converted on the way in and out.
Settings here override the environment-level defaults in
``core.config``; bookings read ``deposit_rate`` this way.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from booking_marketplace_api.app.core.db import get_connection
from booking_marketplace_api.app.core.errors import ValidationFailedError
from booking_marketplace_api.app.schemas.setting import SettingRead
from booking_marketplace_api.app.services.audit_service import AuditService

logger = logging.getLogger(__name__)

FALSE_STRINGS = {"0", "false", "no", "off", ""}


def _bool_to_text(value: Any) -> str:
    if isinstance(value, str):
        return "0" if value.strip().lower() in FALSE_STRINGS else "1"
    return "1" if value else "0"


_ENCODERS: Dict[str, Callable[[Any], str]] = {
    "int": lambda v: str(int(v)),
    "float": lambda v: str(float(v)),
    "bool": _bool_to_text,
    "str": str,
    "json": lambda v: json.dumps(v, ensure_ascii=False),
}

_DECODERS: Dict[str, Callable[[str], Any]] = {
    "int": int,
    "float": float,
    "bool": lambda raw: raw.lower() not in FALSE_STRINGS,
    "str": lambda raw: raw,
    "json": json.loads,
}


def _to_read(key: str, raw: str, type_str: str) -> SettingRead:
    return SettingRead(key=key, value=_DECODERS[type_str](raw), type=type_str)


class SettingsService:
    """Read and change runtime settings."""

    @classmethod
    async def list_settings(cls) -> List[SettingRead]:
        conn = get_connection()
        try:
            rows = conn.execute("SELECT key, value, type FROM settings ORDER BY key").fetchall()
        finally:
            conn.close()
        return [_to_read(row["key"], row["value"], row["type"]) for row in rows]

    @classmethod
    async def get_setting(cls, key: str) -> Optional[SettingRead]:
        conn = get_connection()
        try:
            row = conn.execute("SELECT key, value, type FROM settings WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        return _to_read(row["key"], row["value"], row["type"]) if row else None

    @classmethod
    async def get_value(cls, key: str, default: Any = None) -> Any:
        """Converted value of ``key``, or ``default`` when it is not set."""
        setting = await cls.get_setting(key)
        return default if setting is None else setting.value

    @classmethod
    async def upsert_setting(
        cls, key: str, value: Any, type_str: str, user_id: Optional[int] = None
    ) -> SettingRead:
        """Create or replace ``key``.

        Raises ``ValidationFailedError`` for an unknown type or a value
        that does not convert to it.
        """
        encode = _ENCODERS.get(type_str)
        if encode is None:
            raise ValidationFailedError(f"Unknown setting type {type_str!r}")
        try:
            raw = encode(value)
        except (TypeError, ValueError) as exc:
            raise ValidationFailedError(f"Value for {key} is not a valid {type_str}") from exc
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO settings (key, value, type) VALUES (?, ?, ?)"
                " ON CONFLICT(key) DO UPDATE SET value = excluded.value, type = excluded.type",
                (key, raw, type_str),
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("Setting %s set to %s (%s)", key, raw, type_str)
        await AuditService.log(user_id, "update", "setting", details={"key": key, "value": raw})
        return _to_read(key, raw, type_str)

    @classmethod
    async def delete_setting(cls, key: str, user_id: Optional[int] = None) -> None:
        """Remove ``key``; missing keys are ignored."""
        conn = get_connection()
        try:
            deleted = conn.execute("DELETE FROM settings WHERE key = ?", (key,)).rowcount
            conn.commit()
        finally:
            conn.close()
        if deleted:
            logger.info("Setting %s deleted", key)
            await AuditService.log(user_id, "delete", "setting", details={"key": key})
