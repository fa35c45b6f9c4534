"""
Settings endpoints for API v1.

Administrators view and change runtime settings, for example the
booking ``deposit_rate``.  Each setting is stored with a type so its
value can be converted back when read.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from booking_marketplace_api.app.core.db import ROLE_ADMIN
from booking_marketplace_api.app.core.security import require_roles
from booking_marketplace_api.app.schemas.setting import SettingRead, SettingWrite
from booking_marketplace_api.app.services.settings_service import SettingsService

router = APIRouter()


@router.get("/", response_model=List[SettingRead])
async def list_settings(current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> List[SettingRead]:
    return await SettingsService.list_settings()


@router.get("/{key}", response_model=SettingRead)
async def get_setting(key: str, current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> SettingRead:
    setting = await SettingsService.get_setting(key)
    if not setting:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Setting not found")
    return setting


@router.put("/{key}", response_model=SettingRead)
async def upsert_setting(
    key: str, body: SettingWrite, current_user: dict = Depends(require_roles(ROLE_ADMIN))
) -> SettingRead:
    """Insert or update a setting.

    Supported types are ``int``, ``float``, ``bool``, ``str`` and ``json``.
    """
    return await SettingsService.upsert_setting(key, body.value, body.type, current_user.get("user_id"))


@router.delete("/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_setting(key: str, current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> None:
    await SettingsService.delete_setting(key, current_user.get("user_id"))
