"""
Tests for the schedule, todo and user models.
"""
from datetime import date

import pytest
from pydantic import ValidationError

from nikovplan.models.schedule import (
    DaySchedule,
    DayCommit,
    ScheduleSlot,
    SlotStatus,
    SlotUpdate,
    format_time_slot,
    from_display_status,
    parse_time_slot,
    to_display_status,
)
from nikovplan.models.todo import TodoCreate, TodoItem
from nikovplan.models.user import OAuthCallback, SessionUser, UserRecord, discord_avatar_url

DAY = date(2026, 10, 19)


@pytest.mark.unit
def test_format_time_slot():
    assert format_time_slot(0) == "00:00:00"
    assert format_time_slot(9) == "09:00:00"
    assert format_time_slot(23) == "23:00:00"


@pytest.mark.unit
@pytest.mark.parametrize("hour", [-1, 24])
def test_format_time_slot_rejects_out_of_range(hour):
    with pytest.raises(ValueError):
        format_time_slot(hour)


@pytest.mark.unit
def test_parse_time_slot_accepts_store_and_display_forms():
    assert parse_time_slot("14:00:00") == 14
    assert parse_time_slot("07:00") == 7


@pytest.mark.unit
@pytest.mark.parametrize("value", ["14:30:00", "24:00:00", "noon", "14", None])
def test_parse_time_slot_rejects_invalid(value):
    with pytest.raises(ValueError):
        parse_time_slot(value)


@pytest.mark.unit
def test_display_status_mapping():
    assert to_display_status(SlotStatus.FREE) == "available"
    assert to_display_status(SlotStatus.BUSY) == "unavailable"
    assert from_display_status("available") is SlotStatus.FREE
    assert from_display_status("unavailable") is SlotStatus.BUSY


@pytest.mark.unit
def test_slot_from_row_fills_nullable_columns():
    """Null status is free, null activity follows the status, null description is empty"""
    free = ScheduleSlot.from_row(DAY, {"time_slot": "08:00:00", "status": None, "activity": None, "description": None})
    assert free.status is SlotStatus.FREE
    assert free.activity == "Available"
    assert free.description == ""

    busy = ScheduleSlot.from_row(DAY, {"time_slot": "09:00:00", "status": "busy", "activity": None})
    assert busy.activity == "Busy"


@pytest.mark.unit
def test_slot_from_row_keeps_empty_activity():
    slot = ScheduleSlot.from_row(DAY, {"time_slot": "09:00:00", "status": "busy", "activity": ""})
    assert slot.activity == ""


@pytest.mark.unit
def test_slot_from_row_parses_updated_at():
    slot = ScheduleSlot.from_row(DAY, {"time_slot": "10:00:00", "updated_at": "2026-10-19T10:05:00Z"})
    assert slot.updated_at.year == 2026
    assert slot.updated_at.tzinfo is not None


@pytest.mark.unit
@pytest.mark.parametrize(
    "value, microsecond",
    [
        ("2026-10-19T14:00:00.12+00:00", 120000),
        ("2026-10-19T14:00:00.12345+00:00", 123450),
        ("2026-10-19T14:00:00+00:00", 0),
    ],
)
def test_slot_from_row_parses_trimmed_fractional_seconds(value, microsecond):
    slot = ScheduleSlot.from_row(DAY, {"time_slot": "14:00:00", "updated_at": value})
    assert slot.updated_at.microsecond == microsecond
    assert slot.updated_at.utcoffset().total_seconds() == 0


@pytest.mark.unit
def test_slot_from_row_treats_unknown_status_as_busy():
    slot = ScheduleSlot.from_row(DAY, {"time_slot": "11:00:00", "status": "tentative", "activity": None})
    assert slot.status is SlotStatus.BUSY
    assert slot.activity == "Busy"


@pytest.mark.unit
def test_slot_to_dict():
    slot = ScheduleSlot(DAY, 14, SlotStatus.BUSY, "Gym", "leg day")
    assert slot.to_dict() == {
        "time_slot": "14:00:00",
        "time": "14:00",
        "status": "busy",
        "display_status": "unavailable",
        "activity": "Gym",
        "description": "leg day",
    }


@pytest.mark.unit
def test_day_schedule_default_fills_missing_hours():
    schedule = DaySchedule.from_rows(DAY, [{"time_slot": "14:00:00", "status": "busy", "activity": "Gym"}])

    assert len(schedule) == 24
    assert [slot.hour for slot in schedule] == list(range(24))
    assert schedule.slot(14).activity == "Gym"
    assert schedule.slot(13).status is SlotStatus.FREE
    assert schedule.slot(13).activity == "Available"


@pytest.mark.unit
def test_day_schedule_requires_24_slots():
    with pytest.raises(ValueError):
        DaySchedule(DAY, [ScheduleSlot.default(DAY, 0)])


@pytest.mark.unit
def test_slot_update_limits():
    with pytest.raises(ValidationError):
        SlotUpdate(status="maybe")
    with pytest.raises(ValidationError):
        SlotUpdate(activity="x" * 201)


@pytest.mark.unit
def test_day_commit_normalizes_keys():
    commit = DayCommit(slots={"09:00": {"status": "busy"}, "10:00:00": {}})
    assert set(commit.slots) == {"09:00:00", "10:00:00"}

    with pytest.raises(ValidationError):
        DayCommit(slots={"09:30": {}})


@pytest.mark.unit
def test_todo_create_strips_and_rejects_blank():
    assert TodoCreate(text="  buy milk ").text == "buy milk"
    with pytest.raises(ValidationError):
        TodoCreate(text="   ")


@pytest.mark.unit
def test_todo_from_row():
    todo = TodoItem.from_row({"id": 7, "text": "call mom", "completed": None})
    assert todo.id == "7"
    assert todo.completed is False
    assert todo.to_dict() == {"id": "7", "text": "call mom", "completed": False}


@pytest.mark.unit
def test_avatar_url():
    assert discord_avatar_url("42", "abc") == "https://cdn.discordapp.com/avatars/42/abc.png?size=128"
    assert discord_avatar_url("42", None) == "/placeholder.svg?height=40&width=40"


@pytest.mark.unit
def test_oauth_callback_from_discord_user():
    callback = OAuthCallback.from_discord_user(
        {"id": 123, "username": "niko", "global_name": "Niko", "avatar": "abc", "email": "n@example.com"}
    )
    assert callback.provider_account_id == "123"
    assert callback.display_name == "Niko"
    assert callback.email == "n@example.com"


@pytest.mark.unit
def test_user_record_row_drops_missing_fields():
    row = UserRecord(id="1", username="niko").to_row()
    assert row == {"id": "1", "username": "niko"}


@pytest.mark.unit
def test_session_user_claims_round_trip():
    user = SessionUser(id="1", name="Niko", avatar="abc")
    claims = user.to_claims()
    assert claims["sub"] == "1"
    assert "id" not in claims
    assert SessionUser.from_claims(claims) == user
