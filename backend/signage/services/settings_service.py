import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from signage.models.settings_record import SettingsRecord
from signage.schemas.settings import SettingsPayload

logger = logging.getLogger(__name__)

DEFAULT_HEADER: dict[str, Any] = {
    "enabled": True,
    "showLogo": True,
    "logoText": "HTML Signage",
    "showClock": True,
    "showDate": True,
    "subtitle": "Premium Wellness & Spa Dashboard",
    "height": 8,
}


def normalize_settings_data(raw: Any) -> dict[str, Any]:
    """Copy of ``raw`` as a dict, with the default header filled in when missing."""
    data = dict(raw) if isinstance(raw, dict) else {}
    if not isinstance(data.get("header"), dict):
        data["header"] = dict(DEFAULT_HEADER)
    return data


def deep_merge(base: Any, override: Any) -> Any:
    """Recursively merge ``override`` into ``base``; non-dict values replace."""
    if not isinstance(base, dict):
        return override
    if not isinstance(override, dict):
        return base

    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


async def get_active_settings(db: AsyncSession) -> SettingsRecord | None:
    result = await db.execute(
        select(SettingsRecord)
        .where(SettingsRecord.is_active.is_(True))
        .order_by(SettingsRecord.version.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_current_settings(db: AsyncSession) -> dict[str, Any]:
    record = await get_active_settings(db)
    if not record:
        return {"version": 1}
    return record.data


async def save_settings(db: AsyncSession, payload: SettingsPayload) -> SettingsRecord:
    await db.execute(
        update(SettingsRecord)
        .where(SettingsRecord.is_active.is_(True))
        .values(is_active=False)
    )
    record = SettingsRecord(version=payload.version, data=payload.to_json(), is_active=True)
    db.add(record)
    await db.flush()
    await db.refresh(record)
    logger.info("Saved settings v%d", record.version)
    return record
