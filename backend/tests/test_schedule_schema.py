import copy

import pytest

from signage.schemas.schedule import PRESET_KEYS, Schedule, time_to_minutes, validate_schedule


def test_valid_schedule_is_accepted(schedule_payload: dict):
    result = validate_schedule(schedule_payload)
    assert result.ok
    assert result.errors == []
    assert isinstance(result.schedule, Schedule)
    assert result.schedule.auto_play is True


def test_valid_schedule_round_trips_unchanged(schedule_payload: dict):
    original = copy.deepcopy(schedule_payload)
    result = validate_schedule(schedule_payload)
    assert result.schedule.to_json() == original
    # No defaults injected into entries
    assert result.schedule.to_json()["presets"]["Mon"]["rows"][0]["entries"][0] == {
        "title": "Birke", "duration": 15, "badges": ["Classic"],
    }


def test_unknown_keys_are_preserved(schedule_payload: dict):
    schedule_payload["activePreset"] = "Fri"
    schedule_payload["presets"]["Tue"]["accent"] = "#ff0000"
    result = validate_schedule(schedule_payload)
    assert result.ok
    assert result.schedule.to_json() == schedule_payload


def test_field_names_must_use_json_spelling(schedule_payload: dict):
    schedule_payload["auto_play"] = schedule_payload.pop("autoPlay")
    result = validate_schedule(schedule_payload)
    assert not result.ok
    assert any(error["loc"] == "autoPlay" for error in result.errors)


def test_presets_come_back_in_display_order(schedule_payload: dict):
    schedule_payload["presets"] = dict(reversed(list(schedule_payload["presets"].items())))
    result = validate_schedule(schedule_payload)
    assert list(result.schedule.to_json()["presets"]) == list(PRESET_KEYS)


@pytest.mark.parametrize("raw", [None, [], "schedule", 42, {"version": 1, "rows": []}])
def test_non_schedule_values_are_rejected(raw):
    result = validate_schedule(raw)
    assert not result.ok
    assert result.schedule is None
    assert result.errors


def test_missing_preset_is_rejected(schedule_payload: dict):
    del schedule_payload["presets"]["Evt2"]
    result = validate_schedule(schedule_payload)
    assert not result.ok
    assert any("Evt2" in error["msg"] for error in result.errors)


def test_unknown_preset_is_rejected(schedule_payload: dict):
    schedule_payload["presets"]["Holiday"] = {"saunas": [], "rows": []}
    result = validate_schedule(schedule_payload)
    assert not result.ok
    assert any("Holiday" in error["msg"] for error in result.errors)


def test_entries_must_match_sauna_count(schedule_payload: dict):
    schedule_payload["presets"]["Mon"]["rows"][0]["entries"].append(None)
    result = validate_schedule(schedule_payload)
    assert not result.ok
    assert result.errors[0]["loc"] == "presets.Mon"
    assert "4 entries for 3 saunas" in result.errors[0]["msg"]


@pytest.mark.parametrize("time", ["24:00", "12:60", "9", "09:5", "ab:cd", "09:00:00", " 09:00"])
def test_malformed_times_are_rejected(schedule_payload: dict, time: str):
    schedule_payload["presets"]["Mon"]["rows"][0]["time"] = time
    assert not validate_schedule(schedule_payload).ok


def test_single_digit_hour_is_accepted(schedule_payload: dict):
    schedule_payload["presets"]["Mon"]["rows"][0]["time"] = "9:00"
    assert validate_schedule(schedule_payload).ok


def test_rows_out_of_time_order_are_rejected(schedule_payload: dict):
    rows = schedule_payload["presets"]["Mon"]["rows"]
    rows.reverse()
    result = validate_schedule(schedule_payload)
    assert not result.ok
    assert "out of time order" in result.errors[0]["msg"]


def test_duplicate_saunas_are_rejected(schedule_payload: dict):
    schedule_payload["presets"]["Sun"]["saunas"] = ["Bio", "Bio"]
    assert not validate_schedule(schedule_payload).ok


@pytest.mark.parametrize(
    "field,value",
    [
        ("version", 0),
        ("version", -3),
        ("version", "2"),
        ("version", 2.5),
        ("version", True),
        ("autoPlay", "yes"),
        ("autoPlay", 1),
    ],
)
def test_top_level_types_are_strict(schedule_payload: dict, field: str, value):
    schedule_payload[field] = value
    assert not validate_schedule(schedule_payload).ok


def test_entry_title_is_required(schedule_payload: dict):
    schedule_payload["presets"]["Mon"]["rows"][0]["entries"][0] = {"subtitle": "no title"}
    assert not validate_schedule(schedule_payload).ok


def test_entry_flames_range(schedule_payload: dict):
    entry = schedule_payload["presets"]["Mon"]["rows"][0]["entries"][0]
    entry["flames"] = 4
    assert validate_schedule(schedule_payload).ok
    entry["flames"] = 5
    assert not validate_schedule(schedule_payload).ok


def test_time_to_minutes():
    assert time_to_minutes("00:00") == 0
    assert time_to_minutes("9:15") == 555
    assert time_to_minutes("23:59") == 1439
