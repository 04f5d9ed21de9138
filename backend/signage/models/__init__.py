from signage.models.schedule_record import ScheduleRecord
from signage.models.settings_record import SettingsRecord
from signage.models.device import Device, DeviceMode, DeviceOverride

__all__ = [
    "ScheduleRecord",
    "SettingsRecord",
    "Device", "DeviceMode", "DeviceOverride",
]
