"""Settings routes — key/value application settings (e.g. hourly_rate)."""
import logging

from fastapi import APIRouter, Depends, HTTPException

from burnboard.api.deps import get_storage
from burnboard.models.schemas import (
    SettingOut,
    SettingResponse,
    SettingsListResponse,
    SettingUpsertRequest,
)
from burnboard.services.storage import Storage

router = APIRouter(prefix="/api/settings", tags=["Settings"])
logger = logging.getLogger("burnboard-api")


@router.get("", response_model=SettingsListResponse)
async def list_settings(storage: Storage = Depends(get_storage)):
    settings = await storage.list_settings()
    return SettingsListResponse(settings=[SettingOut.model_validate(s) for s in settings])


@router.get("/{key}", response_model=SettingResponse)
async def get_setting(key: str, storage: Storage = Depends(get_storage)):
    setting = await storage.get_setting(key)
    if not setting:
        raise HTTPException(status_code=404, detail="Setting not found")
    return SettingResponse(setting=SettingOut.model_validate(setting))


@router.post("", response_model=SettingResponse)
async def upsert_setting(
    payload: SettingUpsertRequest,
    storage: Storage = Depends(get_storage),
):
    """Create or overwrite a setting. Values are stored as strings with a type tag."""
    setting = await storage.set_setting(payload.key, payload.value, payload.value_type)
    logger.info(f"Setting {payload.key} updated ({payload.value_type})")
    return SettingResponse(setting=SettingOut.model_validate(setting))
