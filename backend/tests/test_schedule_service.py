import copy

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from signage.core.exceptions import ConflictError, NotFoundError
from signage.models.schedule_record import ScheduleRecord
from signage.schemas.schedule import DEFAULT_SAUNAS, PRESET_KEYS, validate_schedule
from signage.services.schedule_service import (
    create_default_schedule,
    create_empty_day_schedule,
    get_active_schedule,
    get_current_schedule,
    get_schedule_record,
    list_schedule_history,
    normalize_schedule_data,
    save_schedule,
)


def _assert_empty_default(schedule, version: int):
    data = schedule.to_json()
    assert data["version"] == version
    assert data["autoPlay"] is False
    assert list(data["presets"]) == list(PRESET_KEYS)
    for day in data["presets"].values():
        assert day == {"saunas": list(DEFAULT_SAUNAS), "rows": []}


def test_create_empty_day_schedule_copies_saunas():
    saunas = ["A", "B"]
    day = create_empty_day_schedule(saunas)
    saunas.append("C")
    assert day.saunas == ["A", "B"]
    assert day.rows == []
    assert create_empty_day_schedule().saunas == ["Vulkan", "Nordisch", "Bio"]


@pytest.mark.parametrize("version,expected", [(1, 1), (7, 7), (3.9, 3), (0, 1), (-4, 1), (0.5, 1)])
def test_create_default_schedule_clamps_version(version, expected):
    _assert_empty_default(create_default_schedule(version), expected)


def test_default_schedule_is_itself_valid():
    data = create_default_schedule(5).to_json()
    assert validate_schedule(data).ok


def test_default_presets_do_not_share_state():
    schedule = create_default_schedule()
    schedule.presets["Mon"].saunas.append("Extra")
    assert schedule.presets["Tue"].saunas == list(DEFAULT_SAUNAS)


def test_normalize_passes_valid_schedule_through(schedule_payload: dict):
    original = copy.deepcopy(schedule_payload)
    assert normalize_schedule_data(schedule_payload).to_json() == original


def test_normalize_is_idempotent(schedule_payload: dict):
    once = normalize_schedule_data(schedule_payload).to_json()
    assert normalize_schedule_data(once).to_json() == once


@pytest.mark.parametrize(
    "raw,version",
    [
        (None, 1),
        ("garbage", 1),
        ([1, 2, 3], 1),
        ({}, 1),
        ({"version": 6, "rows": []}, 6),
        ({"version": 4.7, "presets": {}}, 4),
        ({"version": -2, "presets": {}}, 1),
        ({"version": "9", "presets": {}}, 1),
        ({"version": True}, 1),
        ({"version": float("nan")}, 1),
        ({"version": float("inf")}, 1),
    ],
)
def test_normalize_falls_back_to_default(raw, version):
    _assert_empty_default(normalize_schedule_data(raw), version)


def test_normalize_discards_grid_with_misaligned_entries(schedule_payload: dict):
    schedule_payload["presets"]["Mon"]["rows"][1]["entries"] = [None]
    schedule_payload["version"] = 12
    _assert_empty_default(normalize_schedule_data(schedule_payload), 12)


@pytest.mark.asyncio
async def test_current_schedule_defaults_when_storage_empty(db_session: AsyncSession):
    _assert_empty_default(await get_current_schedule(db_session), 1)


@pytest.mark.asyncio
async def test_save_schedule_replaces_active_record(db_session: AsyncSession, schedule_payload: dict):
    first = validate_schedule(schedule_payload).schedule
    await save_schedule(db_session, first)

    schedule_payload["version"] = 3
    second = validate_schedule(schedule_payload).schedule
    record = await save_schedule(db_session, second)
    await db_session.commit()

    active = await get_active_schedule(db_session)
    assert active.id == record.id
    assert active.version == 3

    result = await db_session.execute(select(ScheduleRecord).where(ScheduleRecord.is_active.is_(True)))
    assert len(result.scalars().all()) == 1

    current = await get_current_schedule(db_session)
    assert current.to_json() == schedule_payload


@pytest.mark.asyncio
async def test_save_schedule_rejects_stale_version(db_session: AsyncSession, schedule_payload: dict):
    await save_schedule(db_session, validate_schedule(schedule_payload).schedule)
    with pytest.raises(ConflictError):
        await save_schedule(db_session, validate_schedule(schedule_payload).schedule)


@pytest.mark.asyncio
async def test_save_schedule_checks_against_every_stored_version(
    db_session: AsyncSession, schedule_payload: dict
):
    db_session.add(ScheduleRecord(version=5, data={"version": 5}, is_active=False))
    db_session.add(ScheduleRecord(version=1, data={"version": 1}, is_active=True))
    await db_session.commit()

    schedule_payload["version"] = 3
    with pytest.raises(ConflictError):
        await save_schedule(db_session, validate_schedule(schedule_payload).schedule)
    await db_session.rollback()

    active = await get_active_schedule(db_session)
    assert active.version == 1


@pytest.mark.asyncio
async def test_schedule_versions_are_unique(db_session: AsyncSession):
    db_session.add(ScheduleRecord(version=2, data={}, is_active=False))
    db_session.add(ScheduleRecord(version=2, data={}, is_active=True))
    with pytest.raises(IntegrityError):
        await db_session.commit()


@pytest.mark.asyncio
async def test_corrupt_active_record_degrades_to_default(db_session: AsyncSession):
    db_session.add(ScheduleRecord(version=8, data={"version": 8, "presets": "broken"}, is_active=True))
    await db_session.commit()

    _assert_empty_default(await get_current_schedule(db_session), 8)


@pytest.mark.asyncio
async def test_history_and_lookup(db_session: AsyncSession, schedule_payload: dict):
    for version in (2, 3, 4):
        schedule_payload["version"] = version
        await save_schedule(db_session, validate_schedule(schedule_payload).schedule)
    await db_session.commit()

    history = await list_schedule_history(db_session, limit=2)
    assert len(history) == 2
    assert history[0].version == 4

    record = await get_schedule_record(db_session, history[1].id)
    assert record.version == 3
    assert record.is_active is False

    with pytest.raises(NotFoundError):
        await get_schedule_record(db_session, "missing")
