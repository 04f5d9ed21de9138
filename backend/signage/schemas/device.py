"""
Pydantic schemas for display devices, their overrides and control commands.
"""
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from signage.models.device import DeviceMode
from signage.schemas.schedule import Schedule


class DeviceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    mode: DeviceMode = DeviceMode.AUTO


class DeviceUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    mode: DeviceMode | None = None


class ControlCommand(BaseModel):
    action: Literal["reload", "restart", "clear-cache"]


class DeviceOverridesUpdate(BaseModel):
    schedule: Schedule | None = None
    settings: dict[str, Any] | None = None

    @model_validator(mode="after")
    def require_one_override(self) -> "DeviceOverridesUpdate":
        if not self.schedule and not self.settings:
            raise ValueError("At least one override (schedule or settings) is required")
        return self


class DeviceOverrideResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    schedule: dict[str, Any] | None = None
    settings: dict[str, Any] | None = None


class DeviceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    mode: DeviceMode
    last_seen: datetime | None = None
    paired_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    overrides: DeviceOverrideResponse | None = None


class DisplayConfig(BaseModel):
    """Effective schedule and settings a device should render."""

    deviceId: str
    mode: DeviceMode
    hasScheduleOverride: bool
    hasSettingsOverride: bool
    schedule: dict[str, Any]
    settings: dict[str, Any]


class OkResponse(BaseModel):
    ok: bool = True
