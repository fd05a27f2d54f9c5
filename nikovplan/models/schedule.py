from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional

from pydantic import BaseModel, Field, TypeAdapter, field_validator

# ScheduleSlot: one hour of one calendar day, keyed by (date, time_slot)

HOURS_PER_DAY = 24
DEFAULT_ACTIVITY = "Available"
BUSY_ACTIVITY = "Busy"

_TIMESTAMP = TypeAdapter(datetime)


class SlotStatus(str, Enum):
    FREE = "free"
    BUSY = "busy"


# Stored status -> label shown in the consoles
DISPLAY_STATUS = {
    SlotStatus.FREE: "available",
    SlotStatus.BUSY: "unavailable",
}


def format_time_slot(hour: int) -> str:
    """Hour of day -> "HH:00:00" store key"""
    if not 0 <= hour < HOURS_PER_DAY:
        raise ValueError(f"Hour must be between 0 and 23, got {hour}")
    return f"{hour:02d}:00:00"


def parse_time_slot(value: str) -> int:
    """
    Parse a "HH:MM:SS" (or display "HH:MM") time slot back to its hour.

    Minutes and seconds must be zero.
    """
    if not isinstance(value, str):
        raise ValueError(f"Invalid time slot: {value!r}")
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid time slot: {value!r}")

    hour = int(parts[0])
    if any(int(part) != 0 for part in parts[1:]):
        raise ValueError(f"Time slot must be on the hour: {value!r}")
    if not 0 <= hour < HOURS_PER_DAY:
        raise ValueError(f"Hour must be between 0 and 23, got {hour}")
    return hour


def display_time(time_slot: str) -> str:
    """Truncate "HH:MM:SS" to "HH:MM" """
    return time_slot[:5]


def default_activity(status: SlotStatus) -> str:
    return DEFAULT_ACTIVITY if SlotStatus(status) == SlotStatus.FREE else BUSY_ACTIVITY


def to_display_status(status: SlotStatus) -> str:
    return DISPLAY_STATUS[SlotStatus(status)]


def from_display_status(label: str) -> SlotStatus:
    return SlotStatus.FREE if label == "available" else SlotStatus.BUSY


@dataclass
class ScheduleSlot:
    """
    One hour of one day.

    Attributes:
        date: Calendar date
        hour: Hour of day (0-23)
        status: free or busy
        activity: Short label, may be empty
        description: Free text, may be empty
        updated_at: Last write time, None for slots never written
    """
    date: date
    hour: int
    status: SlotStatus = SlotStatus.FREE
    activity: str = DEFAULT_ACTIVITY
    description: str = ""
    updated_at: Optional[datetime] = None

    @property
    def time_slot(self) -> str:
        return format_time_slot(self.hour)

    @property
    def display_time(self) -> str:
        return display_time(self.time_slot)

    @property
    def display_status(self) -> str:
        return to_display_status(self.status)

    @classmethod
    def default(cls, day: date, hour: int) -> "ScheduleSlot":
        return cls(date=day, hour=hour)

    @classmethod
    def from_row(cls, day: date, row: Mapping[str, Any]) -> "ScheduleSlot":
        """
        Build a slot from a store row.

        Nullable columns are defaulted here and nowhere else: a missing status is
        free, a missing activity falls back to the status default, a missing
        description is empty. Any status other than "free" counts as busy.
        """
        raw_status = row.get("status")
        status = SlotStatus.BUSY if raw_status and raw_status != SlotStatus.FREE.value else SlotStatus.FREE
        activity = row.get("activity")
        if activity is None:
            activity = default_activity(status)

        updated_at = row.get("updated_at")
        if isinstance(updated_at, str):
            updated_at = _TIMESTAMP.validate_python(updated_at)

        return cls(
            date=day,
            hour=parse_time_slot(row["time_slot"]),
            status=status,
            activity=activity,
            description=row.get("description") or "",
            updated_at=updated_at,
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "time_slot": self.time_slot,
            "status": self.status.value,
            "activity": self.activity,
            "description": self.description,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time_slot": self.time_slot,
            "time": self.display_time,
            "status": self.status.value,
            "display_status": self.display_status,
            "activity": self.activity,
            "description": self.description,
        }


@dataclass
class DaySchedule:
    """All 24 slots of one day, in hour order"""
    date: date
    slots: List[ScheduleSlot] = field(default_factory=list)

    def __post_init__(self):
        if len(self.slots) != HOURS_PER_DAY:
            raise ValueError(f"A day has exactly {HOURS_PER_DAY} slots, got {len(self.slots)}")

    @classmethod
    def empty(cls, day: date) -> "DaySchedule":
        return cls(date=day, slots=[ScheduleSlot.default(day, hour) for hour in range(HOURS_PER_DAY)])

    @classmethod
    def from_rows(cls, day: date, rows: List[Mapping[str, Any]]) -> "DaySchedule":
        """Default-fill the hours the store has no row for"""
        schedule = cls.empty(day)
        for row in rows:
            slot = ScheduleSlot.from_row(day, row)
            schedule.slots[slot.hour] = slot
        return schedule

    def __iter__(self) -> Iterator[ScheduleSlot]:
        return iter(self.slots)

    def __len__(self) -> int:
        return len(self.slots)

    def slot(self, hour: int) -> ScheduleSlot:
        format_time_slot(hour)
        return self.slots[hour]

    def by_time_slot(self) -> Dict[str, ScheduleSlot]:
        return {slot.time_slot: slot for slot in self.slots}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "slots": [slot.to_dict() for slot in self.slots],
        }


@dataclass
class ActivityStat:
    """Occurrences of one activity label over the statistics window"""
    activity: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"activity": self.activity, "count": self.count}


# Pydantic models for request validation

class SlotUpdate(BaseModel):
    status: SlotStatus = SlotStatus.FREE
    activity: Optional[str] = Field(None, max_length=200)
    description: str = Field("", max_length=2000)


class BatchUpdate(SlotUpdate):
    start_hour: int = Field(..., ge=0, le=23)
    end_hour: int = Field(..., ge=0, le=23)


class DayCommit(BaseModel):
    """Full working day keyed by "HH:MM:SS" (or "HH:MM") time slot"""
    slots: Dict[str, SlotUpdate]

    @field_validator("slots")
    @classmethod
    def validate_time_slots(cls, v: Dict[str, SlotUpdate]) -> Dict[str, SlotUpdate]:
        normalized = {}
        for key, update in v.items():
            normalized[format_time_slot(parse_time_slot(key))] = update
        return normalized
