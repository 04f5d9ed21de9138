from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from signage.core.dependencies import get_hub
from signage.db.session import get_db
from signage.realtime.hub import BroadcastHub
from signage.schemas.settings import SettingsPayload, SettingsSaveResponse
from signage.services.settings_service import get_current_settings, save_settings

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
async def get_settings(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    return await get_current_settings(db)


@router.post("", response_model=SettingsSaveResponse)
async def update_settings(
    body: SettingsPayload,
    db: AsyncSession = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    record = await save_settings(db, body)
    await db.commit()

    await hub.broadcast_settings_update(body.to_json())
    return SettingsSaveResponse(version=record.version)
