"""
Pydantic schemas for the weekly preset schedule.

A schedule holds one DaySchedule per preset (weekdays plus the optional and
event slots). Each DaySchedule is a grid: sauna columns across, time rows
down, with an optional CellEntry per (time, sauna) cell.

JSON keys are camelCase (``autoPlay``, ``activePreset``) to match what the
display clients store and send.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

PRESET_KEYS: tuple[str, ...] = (
    "Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun", "Opt", "Evt1", "Evt2",
)

PresetKey = Literal["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun", "Opt", "Evt1", "Evt2"]

DEFAULT_SAUNAS: tuple[str, ...] = ("Vulkan", "Nordisch", "Bio")

_TIME_PATTERN = re.compile(r"([0-9]{1,2}):([0-9]{2})")


def time_to_minutes(value: str) -> int:
    """Minutes since midnight for an ``H:MM`` / ``HH:MM`` string."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class _ScheduleModel(BaseModel):
    # Unknown keys are kept so a valid document round-trips unchanged.
    # Aliased fields only accept their JSON (camelCase) name.
    model_config = ConfigDict(extra="allow")


class CellEntry(_ScheduleModel):
    title: StrictStr
    subtitle: StrictStr | None = None
    badges: list[StrictStr] | None = None
    duration: StrictInt | StrictFloat | None = None  # minutes
    notes: StrictStr | None = None
    flames: Annotated[StrictInt, Field(ge=1, le=4)] | None = None  # intensity
    description: StrictStr | None = None


class TimeRow(_ScheduleModel):
    time: StrictStr
    # One slot per sauna column; None means no program at this time
    entries: list[CellEntry | None]

    @field_validator("time")
    @classmethod
    def check_time(cls, v: str) -> str:
        match = _TIME_PATTERN.fullmatch(v)
        if not match:
            raise ValueError(f"invalid time '{v}', expected HH:MM")
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            raise ValueError(f"time '{v}' out of range")
        return v


class DaySchedule(_ScheduleModel):
    saunas: list[StrictStr]
    rows: list[TimeRow]

    @model_validator(mode="after")
    def check_grid(self) -> "DaySchedule":
        if len(set(self.saunas)) != len(self.saunas):
            raise ValueError("sauna names must be unique")

        width = len(self.saunas)
        for index, row in enumerate(self.rows):
            if len(row.entries) != width:
                raise ValueError(
                    f"rows[{index}] has {len(row.entries)} entries for {width} saunas"
                )

        minutes = [time_to_minutes(row.time) for row in self.rows]
        for index in range(1, len(minutes)):
            if minutes[index] < minutes[index - 1]:
                raise ValueError(f"rows[{index}] is out of time order")
        return self


class Schedule(_ScheduleModel):
    version: Annotated[StrictInt, Field(gt=0)]
    presets: dict[StrictStr, DaySchedule]
    auto_play: StrictBool = Field(alias="autoPlay")
    active_preset: PresetKey | None = Field(None, alias="activePreset")

    @field_validator("presets")
    @classmethod
    def check_preset_keys(cls, v: dict[str, DaySchedule]) -> dict[str, DaySchedule]:
        missing = [key for key in PRESET_KEYS if key not in v]
        if missing:
            raise ValueError(f"missing presets: {', '.join(missing)}")
        unknown = [key for key in v if key not in PRESET_KEYS]
        if unknown:
            raise ValueError(f"unknown presets: {', '.join(unknown)}")
        # Stable display order
        return {key: v[key] for key in PRESET_KEYS}

    def to_json(self) -> dict[str, Any]:
        """JSON document exactly as validated: no defaults added, camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


@dataclass(frozen=True)
class ScheduleValidation:
    """Tagged result of validate_schedule: either a schedule or a list of errors."""

    schedule: Schedule | None = None
    errors: list[dict[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.schedule is not None


def validate_schedule(raw: Any) -> ScheduleValidation:
    """Structurally check ``raw`` against the Schedule shape without raising."""
    try:
        schedule = Schedule.model_validate(raw)
    except ValidationError as exc:
        errors = [
            {
                "loc": ".".join(str(part) for part in err["loc"]),
                "msg": err["msg"],
            }
            for err in exc.errors()
        ]
        return ScheduleValidation(errors=errors)
    return ScheduleValidation(schedule=schedule)


class ScheduleSaveResponse(BaseModel):
    ok: bool = True
    version: int
    id: str


class ScheduleHistoryItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    version: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
