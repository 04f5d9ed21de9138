import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from signage.core.exceptions import NotFoundError
from signage.models.device import Device, DeviceMode, DeviceOverride
from signage.schemas.device import DeviceCreate, DeviceOverridesUpdate, DeviceUpdate, DisplayConfig
from signage.schemas.schedule import validate_schedule
from signage.services.schedule_service import get_current_schedule
from signage.services.settings_service import deep_merge, get_active_settings, normalize_settings_data

logger = logging.getLogger(__name__)


async def create_device(db: AsyncSession, data: DeviceCreate) -> Device:
    device = Device(
        name=data.name,
        mode=data.mode,
        paired_at=datetime.now(timezone.utc),
    )
    db.add(device)
    await db.flush()
    return await get_device(db, device.id)


async def get_device(db: AsyncSession, device_id: str) -> Device:
    result = await db.execute(
        select(Device)
        .options(selectinload(Device.overrides))
        .where(Device.id == device_id)
        .execution_options(populate_existing=True)
    )
    device = result.scalar_one_or_none()
    if not device:
        raise NotFoundError(f"Device {device_id} not found")
    return device


async def list_devices(db: AsyncSession) -> list[Device]:
    result = await db.execute(
        select(Device)
        .options(selectinload(Device.overrides))
        .order_by(Device.last_seen.desc(), Device.created_at.desc())
    )
    return list(result.scalars().all())


async def update_device(db: AsyncSession, device_id: str, data: DeviceUpdate) -> Device:
    device = await get_device(db, device_id)
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(device, field, value)
    await db.flush()
    return await get_device(db, device_id)


async def delete_device(db: AsyncSession, device_id: str) -> None:
    device = await get_device(db, device_id)
    await db.delete(device)
    await db.flush()


async def record_heartbeat(db: AsyncSession, device_id: str) -> Device:
    device = await get_device(db, device_id)
    device.last_seen = datetime.now(timezone.utc)
    await db.flush()
    return await get_device(db, device_id)


async def set_overrides(db: AsyncSession, device_id: str, data: DeviceOverridesUpdate) -> Device:
    """Store per-device overrides and switch the device to override mode."""
    device = await get_device(db, device_id)
    schedule = data.schedule.to_json() if data.schedule else None

    if device.overrides is None:
        device.overrides = DeviceOverride(
            device_id=device.id,
            schedule=schedule or {},
            settings=data.settings or {},
        )
    else:
        if schedule is not None:
            device.overrides.schedule = schedule
        if data.settings is not None:
            device.overrides.settings = data.settings

    device.mode = DeviceMode.OVERRIDE
    await db.flush()
    return await get_device(db, device_id)


async def clear_overrides(db: AsyncSession, device_id: str) -> Device:
    device = await get_device(db, device_id)
    if device.overrides is not None:
        await db.delete(device.overrides)
    device.mode = DeviceMode.AUTO
    await db.flush()
    return await get_device(db, device_id)


def _has_settings_override(raw: Any) -> bool:
    return isinstance(raw, dict) and len(raw) > 0


async def get_display_config(db: AsyncSession, device_id: str) -> DisplayConfig:
    """Effective schedule/settings for a device: overrides win only in override mode."""
    device = await get_device(db, device_id)

    global_schedule = (await get_current_schedule(db)).to_json()
    settings_record = await get_active_settings(db)
    global_settings = normalize_settings_data(settings_record.data if settings_record else None)

    overrides = device.overrides
    override_schedule = validate_schedule(overrides.schedule) if overrides else None
    has_schedule_override = bool(override_schedule and override_schedule.ok)
    has_settings_override = bool(overrides and _has_settings_override(overrides.settings))

    is_override_mode = device.mode == DeviceMode.OVERRIDE
    schedule = global_schedule
    if is_override_mode and has_schedule_override:
        schedule = override_schedule.schedule.to_json()

    settings = global_settings
    if is_override_mode and has_settings_override:
        settings = deep_merge(global_settings, normalize_settings_data(overrides.settings))

    return DisplayConfig(
        deviceId=device.id,
        mode=device.mode,
        hasScheduleOverride=has_schedule_override,
        hasSettingsOverride=has_settings_override,
        schedule=schedule,
        settings=settings,
    )
