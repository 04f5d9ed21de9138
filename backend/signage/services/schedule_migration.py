"""
One-shot migration of the legacy schedule format to preset-keyed schedules.

Legacy schedules are a flat list of rows, one per (day offset, sauna), each
holding that sauna's cells for the day:

    {"version": 3, "rows": [
        {"dayOffset": 1, "sauna": "Vulkan", "cells": [{"time": "09:00", "title": "Aufguss"}]},
    ]}

The converted schedule keys days by preset and pivots every day into time
rows with one entry slot per sauna column.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from signage.core.exceptions import MigrationError
from signage.schemas.schedule import PRESET_KEYS, time_to_minutes
from signage.services.schedule_service import (
    create_default_schedule,
    deactivate_all_active,
    get_active_schedule,
    insert_schedule,
)

logger = logging.getLogger(__name__)

# Legacy day offsets count from Sunday
DAY_OFFSET_PRESETS: dict[int, str] = {
    0: "Sun",
    1: "Mon",
    2: "Tue",
    3: "Wed",
    4: "Thu",
    5: "Fri",
    6: "Sat",
}
FALLBACK_PRESET = "Mon"

ENTRY_FIELDS = ("title", "subtitle", "badges", "duration", "notes")


class MigrationStatus(str, enum.Enum):
    MIGRATED = "migrated"
    BOOTSTRAPPED = "bootstrapped"
    ALREADY_MIGRATED = "already_migrated"


@dataclass(frozen=True)
class MigrationResult:
    status: MigrationStatus
    version: int


def _day_offset(row: dict[str, Any]) -> int:
    return int(row.get("dayOffset") or 0)


def _entry_from_cell(cell: dict[str, Any]) -> dict[str, Any]:
    return {name: cell[name] for name in ENTRY_FIELDS if cell.get(name) is not None}


def _pivot_day(day_rows: list[dict[str, Any]], saunas: list[str]) -> list[dict[str, Any]]:
    """Turn one day's rows-by-sauna into rows-by-time aligned to ``saunas``."""
    cells_by_time: dict[str, dict[str, dict[str, Any]]] = {}
    for row in day_rows:
        for cell in row.get("cells") or []:
            cells_by_time.setdefault(cell["time"], {})[row.get("sauna")] = _entry_from_cell(cell)

    time_rows = [
        {"time": time, "entries": [by_sauna.get(sauna) for sauna in saunas]}
        for time, by_sauna in cells_by_time.items()
    ]
    # Stable: rows with the same time keep their pivot order
    time_rows.sort(key=lambda row: time_to_minutes(row["time"]))
    return time_rows


def convert_legacy_schedule(data: dict[str, Any], fallback_version: int | None = None) -> dict[str, Any]:
    """Convert a legacy ``{version, rows}`` document into the preset format.

    Every preset shares the sauna columns collected across all legacy rows.
    Day offsets outside 0-6 land on Monday; when several offsets map to the
    same preset the one processed last (highest offset) wins.
    """
    legacy_rows = data.get("rows") or []

    rows_by_day: dict[int, list[dict[str, Any]]] = {}
    for row in legacy_rows:
        rows_by_day.setdefault(_day_offset(row), []).append(row)

    saunas = list(dict.fromkeys(row["sauna"] for row in legacy_rows if row.get("sauna")))

    presets = {key: {"saunas": list(saunas), "rows": []} for key in PRESET_KEYS}

    for day_offset in sorted(rows_by_day):
        preset_key = DAY_OFFSET_PRESETS.get(day_offset, FALLBACK_PRESET)
        presets[preset_key]["rows"] = _pivot_day(rows_by_day[day_offset], saunas)

    old_version = data.get("version")
    if isinstance(old_version, bool) or not isinstance(old_version, (int, float)):
        if fallback_version is None:
            raise MigrationError("Legacy schedule has no numeric version")
        old_version = fallback_version

    return {
        "version": int(old_version) + 1,
        "presets": presets,
        "autoPlay": False,
    }


async def migrate_schedule(db: AsyncSession) -> MigrationResult:
    """Upgrade the active schedule record to the preset format.

    Runs in a single transaction on a session with no transaction in progress.
    Nothing is written when any step fails; the error is raised as
    MigrationError.
    """
    try:
        async with db.begin():
            record = await get_active_schedule(db)

            if record is None:
                default = create_default_schedule(1)
                await insert_schedule(db, default.version, default.to_json())
                logger.info("No active schedule found, created default v%d", default.version)
                return MigrationResult(MigrationStatus.BOOTSTRAPPED, default.version)

            if isinstance(record.data, dict) and record.data.get("presets"):
                logger.info("Active schedule v%d already uses presets", record.version)
                return MigrationResult(MigrationStatus.ALREADY_MIGRATED, record.version)

            converted = convert_legacy_schedule(record.data, fallback_version=record.version)
            await deactivate_all_active(db)
            await insert_schedule(db, converted["version"], converted)
    except MigrationError:
        raise
    except Exception as e:
        raise MigrationError(f"Schedule migration failed: {e}") from e

    logger.info("Migrated legacy schedule v%d to preset schedule v%d", record.version, converted["version"])
    return MigrationResult(MigrationStatus.MIGRATED, converted["version"])
