"""
Schedule service: versioned schedule storage and fail-safe normalization.

Persisted schedule JSON is untrusted: it may predate the preset format or be
hand-edited. normalize_schedule_data() never raises; anything that does not
validate degrades to an empty schedule at the best version we can recover.
"""
import logging
import math
from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from signage.core.exceptions import ConflictError, NotFoundError
from signage.models.schedule_record import ScheduleRecord
from signage.schemas.schedule import (
    DEFAULT_SAUNAS,
    PRESET_KEYS,
    DaySchedule,
    Schedule,
    validate_schedule,
)

logger = logging.getLogger(__name__)


def create_empty_day_schedule(saunas: Iterable[str] = DEFAULT_SAUNAS) -> DaySchedule:
    return DaySchedule(saunas=list(saunas), rows=[])


def create_default_schedule(version: int | float = 1) -> Schedule:
    """Empty schedule with every preset present; version clamped to a positive int."""
    return Schedule(
        version=max(1, math.floor(version)),
        presets={key: create_empty_day_schedule() for key in PRESET_KEYS},
        autoPlay=False,
    )


def _recover_version(raw: Any) -> int | float:
    candidate = raw.get("version") if isinstance(raw, dict) else None
    if isinstance(candidate, bool) or not isinstance(candidate, (int, float)):
        return 1
    if isinstance(candidate, float) and not math.isfinite(candidate):
        return 1
    return candidate


def normalize_schedule_data(raw: Any) -> Schedule:
    result = validate_schedule(raw)
    if result.ok:
        return result.schedule

    version = _recover_version(raw)
    if raw is not None:
        logger.warning(
            "Stored schedule is not valid, serving empty schedule v%s instead (%d errors, first: %s)",
            version, len(result.errors), result.errors[0] if result.errors else None,
        )
    return create_default_schedule(version)


# ==================== Storage ====================
async def get_active_schedule(db: AsyncSession) -> ScheduleRecord | None:
    result = await db.execute(
        select(ScheduleRecord)
        .where(ScheduleRecord.is_active.is_(True))
        .order_by(ScheduleRecord.version.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def deactivate_all_active(db: AsyncSession) -> int:
    result = await db.execute(
        update(ScheduleRecord)
        .where(ScheduleRecord.is_active.is_(True))
        .values(is_active=False)
    )
    return result.rowcount or 0


async def insert_schedule(
    db: AsyncSession, version: int, data: dict[str, Any], is_active: bool = True
) -> ScheduleRecord:
    record = ScheduleRecord(version=version, data=data, is_active=is_active)
    db.add(record)
    await db.flush()
    await db.refresh(record)
    return record


async def get_latest_version(db: AsyncSession) -> int | None:
    result = await db.execute(select(func.max(ScheduleRecord.version)))
    return result.scalar_one_or_none()


async def get_current_schedule(db: AsyncSession) -> Schedule:
    record = await get_active_schedule(db)
    return normalize_schedule_data(record.data if record else None)


async def save_schedule(db: AsyncSession, schedule: Schedule) -> ScheduleRecord:
    """Replace the active schedule. Versions must strictly increase.

    The UPDATE takes the write lock before the version check, so concurrent
    saves are checked one after another. The unique version column covers
    databases where the UPDATE does not block other writers.
    """
    replaced = await deactivate_all_active(db)

    latest = await get_latest_version(db)
    if latest is not None and schedule.version <= latest:
        raise ConflictError(
            f"Schedule version {schedule.version} is not newer than latest version {latest}"
        )

    try:
        record = await insert_schedule(db, schedule.version, schedule.to_json())
    except IntegrityError as e:
        raise ConflictError(f"Schedule version {schedule.version} already exists") from e
    logger.info("Saved schedule v%d (deactivated %d previous)", record.version, replaced)
    return record


async def list_schedule_history(db: AsyncSession, limit: int = 10) -> list[ScheduleRecord]:
    result = await db.execute(
        select(ScheduleRecord)
        .order_by(ScheduleRecord.created_at.desc(), ScheduleRecord.version.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_schedule_record(db: AsyncSession, schedule_id: str) -> ScheduleRecord:
    result = await db.execute(select(ScheduleRecord).where(ScheduleRecord.id == schedule_id))
    record = result.scalar_one_or_none()
    if not record:
        raise NotFoundError(f"Schedule {schedule_id} not found")
    return record
