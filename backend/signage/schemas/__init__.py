# Schemas package
from signage.schemas.schedule import (
    DEFAULT_SAUNAS,
    PRESET_KEYS,
    CellEntry,
    DaySchedule,
    Schedule,
    ScheduleValidation,
    TimeRow,
    validate_schedule,
)
from signage.schemas.settings import SettingsPayload
from signage.schemas.device import (
    ControlCommand,
    DeviceCreate,
    DeviceOverridesUpdate,
    DeviceResponse,
    DeviceUpdate,
    DisplayConfig,
)
