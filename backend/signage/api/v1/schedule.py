"""
Schedule endpoints: read the active schedule, browse versions, save a new one.
"""
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from signage.config import settings
from signage.core.dependencies import get_hub
from signage.core.exceptions import BadRequestError
from signage.db.session import get_db
from signage.realtime.hub import BroadcastHub
from signage.schemas.schedule import ScheduleHistoryItem, ScheduleSaveResponse, validate_schedule
from signage.services.schedule_service import (
    get_current_schedule,
    get_schedule_record,
    list_schedule_history,
    normalize_schedule_data,
    save_schedule,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get("")
async def get_schedule(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    """Active schedule; an empty default when nothing valid is stored."""
    schedule = await get_current_schedule(db)
    return schedule.to_json()


@router.get("/history", response_model=list[ScheduleHistoryItem])
async def get_history(
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
):
    return await list_schedule_history(db, limit=min(limit, settings.SCHEDULE_HISTORY_MAX))


@router.post("", response_model=ScheduleSaveResponse)
async def create_schedule(
    body: Any = Body(...),
    db: AsyncSession = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    result = validate_schedule(body)
    if not result.ok:
        raise BadRequestError({"error": "validation-failed", "details": result.errors})

    record = await save_schedule(db, result.schedule)
    await db.commit()

    payload = result.schedule.to_json()
    await hub.broadcast_schedule_update(payload)
    return ScheduleSaveResponse(version=record.version, id=record.id)


@router.get("/{schedule_id}")
async def get_schedule_version(schedule_id: str, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    record = await get_schedule_record(db, schedule_id)
    return normalize_schedule_data(record.data).to_json()
