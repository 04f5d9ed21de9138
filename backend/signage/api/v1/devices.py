"""
Device registry endpoints. Every roster change is pushed to all realtime
clients; control commands go only to the targeted device's channel.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from signage.core.dependencies import get_hub
from signage.db.session import get_db
from signage.realtime.hub import BroadcastHub
from signage.schemas.device import (
    ControlCommand,
    DeviceCreate,
    DeviceOverridesUpdate,
    DeviceResponse,
    DeviceUpdate,
    DisplayConfig,
    OkResponse,
)
from signage.services.device_service import (
    clear_overrides,
    create_device,
    delete_device,
    get_device,
    get_display_config,
    list_devices,
    record_heartbeat,
    set_overrides,
    update_device,
)

router = APIRouter(prefix="/devices", tags=["devices"])


def _device_payload(device) -> dict:
    return DeviceResponse.model_validate(device).model_dump(mode="json")


@router.get("", response_model=list[DeviceResponse])
async def list_all(db: AsyncSession = Depends(get_db)):
    return await list_devices(db)


@router.post("", response_model=DeviceResponse, status_code=201)
async def create(
    body: DeviceCreate,
    db: AsyncSession = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    device = await create_device(db, body)
    payload = _device_payload(device)
    await db.commit()

    await hub.publish_device_update(payload)
    return payload


@router.get("/{device_id}/display-config", response_model=DisplayConfig)
async def display_config(device_id: str, db: AsyncSession = Depends(get_db)):
    return await get_display_config(db, device_id)


@router.get("/{device_id}", response_model=DeviceResponse)
async def get_one(device_id: str, db: AsyncSession = Depends(get_db)):
    return await get_device(db, device_id)


@router.patch("/{device_id}", response_model=DeviceResponse)
async def update(
    device_id: str,
    body: DeviceUpdate,
    db: AsyncSession = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    device = await update_device(db, device_id, body)
    payload = _device_payload(device)
    await db.commit()

    await hub.publish_device_update(payload)
    return payload


@router.delete("/{device_id}", response_model=OkResponse)
async def delete(
    device_id: str,
    db: AsyncSession = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    await delete_device(db, device_id)
    await db.commit()

    await hub.publish_device_update({"id": device_id, "deleted": True})
    return OkResponse()


@router.post("/{device_id}/heartbeat", response_model=OkResponse)
async def heartbeat(device_id: str, db: AsyncSession = Depends(get_db)):
    await record_heartbeat(db, device_id)
    return OkResponse()


@router.post("/{device_id}/control", response_model=OkResponse)
async def control(
    device_id: str,
    body: ControlCommand,
    hub: BroadcastHub = Depends(get_hub),
):
    await hub.broadcast_device_command(device_id, {"command": body.action})
    return OkResponse()


@router.post("/{device_id}/overrides", response_model=OkResponse)
async def put_overrides(
    device_id: str,
    body: DeviceOverridesUpdate,
    db: AsyncSession = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    await set_overrides(db, device_id, body)
    await db.commit()

    await hub.publish_device_update({"id": device_id, "overridesUpdated": True})
    return OkResponse()


@router.delete("/{device_id}/overrides", response_model=OkResponse)
async def remove_overrides(
    device_id: str,
    db: AsyncSession = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
):
    await clear_overrides(db, device_id)
    await db.commit()

    await hub.publish_device_update({"id": device_id, "overridesCleared": True})
    return OkResponse()
