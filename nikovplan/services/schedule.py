"""
Schedule Service
CRUD over the Supabase ``schedules`` table, keyed by (date, time_slot)
"""

import logging
import random
from collections import Counter
from datetime import date, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx

from nikovplan.config.supabase import SimpleSupabaseClient, SupabaseError
from nikovplan.models.schedule import (
    DEFAULT_ACTIVITY,
    ActivityStat,
    DaySchedule,
    ScheduleSlot,
    SlotStatus,
    SlotUpdate,
    default_activity,
    format_time_slot,
    parse_time_slot,
)
from nikovplan.services.exceptions import StoreNotConfiguredError, StoreReadError, StoreWriteError
from nikovplan.utils.clock import SystemClock, TimeSource

logger = logging.getLogger(__name__)

SCHEDULES_TABLE = "schedules"
SCHEDULE_COLUMNS = "date,time_slot,status,activity,description,updated_at"
SCHEDULE_KEY = "date,time_slot"

# Trailing window for activity statistics: today minus 29 days through today
STATS_WINDOW_DAYS = 30
STATS_LIMIT = 10

SlotInput = Union[ScheduleSlot, SlotUpdate, Mapping[str, Any]]


def stats_window(today: date) -> tuple:
    return today - timedelta(days=STATS_WINDOW_DAYS - 1), today


def count_activities(activities: List[Optional[str]], limit: int = STATS_LIMIT) -> List[ActivityStat]:
    """
    Count activity labels, most frequent first.

    "Available" entries are excluded. Ties keep the order in which labels were
    first seen.
    """
    counts = Counter(activity for activity in activities if activity is not None and activity != DEFAULT_ACTIVITY)
    return [ActivityStat(activity=activity, count=count) for activity, count in counts.most_common(limit)]


def _slot_values(slot: SlotInput) -> Dict[str, Any]:
    if isinstance(slot, ScheduleSlot):
        return {"status": slot.status, "activity": slot.activity, "description": slot.description}
    if isinstance(slot, SlotUpdate):
        return slot.model_dump()
    return {
        "status": slot.get("status") or SlotStatus.FREE.value,
        "activity": slot.get("activity"),
        "description": slot.get("description"),
    }


class ScheduleService:
    """
    Schedule store adapter backed by Supabase
    """

    def __init__(self, client: SimpleSupabaseClient, clock: Optional[TimeSource] = None):
        self.client = client
        self.clock = clock or SystemClock()

    def today(self) -> date:
        return self.clock.now().date()

    def _row(self, day: date, hour: int, status: SlotStatus, activity: Optional[str], description: Optional[str]) -> Dict[str, Any]:
        status = SlotStatus(status)
        return {
            "date": day.isoformat(),
            "time_slot": format_time_slot(hour),
            "status": status.value,
            "activity": activity or default_activity(status),
            "description": description or "",
            # Local wall-clock time, stored as UTC
            "updated_at": self.clock.now().astimezone(timezone.utc).isoformat(),
        }

    async def get_day(self, day: date) -> DaySchedule:
        """
        Get the 24-slot schedule for a date

        Args:
            day: Calendar date

        Returns:
            DaySchedule with every hour present; hours without a row default to
            free / "Available"
        """
        try:
            rows = await self.client.query(
                SCHEDULES_TABLE,
                "GET",
                filters={"date": day.isoformat()},
                select=SCHEDULE_COLUMNS,
                order="time_slot.asc",
            )
        except (SupabaseError, httpx.HTTPError) as e:
            logger.error(f"Error fetching schedule for {day}: {str(e)}")
            raise StoreReadError(f"Could not fetch schedule for {day}") from e

        try:
            return DaySchedule.from_rows(day, rows or [])
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Malformed schedule row for {day}: {str(e)}")
            raise StoreReadError(f"Could not read schedule for {day}") from e

    async def get_today(self) -> DaySchedule:
        return await self.get_day(self.today())

    async def get_range(self, start: date, end: date) -> Dict[date, DaySchedule]:
        """Get every day in the inclusive range [start, end], default-filled"""
        if end < start:
            start, end = end, start

        try:
            rows = await self.client.query(
                SCHEDULES_TABLE,
                "GET",
                filters={"date": [("gte", start.isoformat()), ("lte", end.isoformat())]},
                select=SCHEDULE_COLUMNS,
                order="date.asc,time_slot.asc",
            )
        except (SupabaseError, httpx.HTTPError) as e:
            logger.error(f"Error fetching schedules from {start} to {end}: {str(e)}")
            raise StoreReadError(f"Could not fetch schedules from {start} to {end}") from e

        grouped: Dict[date, List[Mapping[str, Any]]] = {}
        days = {}
        try:
            for row in rows or []:
                grouped.setdefault(date.fromisoformat(row["date"]), []).append(row)

            current = start
            while current <= end:
                days[current] = DaySchedule.from_rows(current, grouped.get(current, []))
                current += timedelta(days=1)
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Malformed schedule row between {start} and {end}: {str(e)}")
            raise StoreReadError(f"Could not read schedules from {start} to {end}") from e
        return days

    async def save_slot(
        self,
        day: date,
        hour: int,
        status: SlotStatus,
        activity: Optional[str] = None,
        description: str = "",
    ) -> ScheduleSlot:
        """
        Create or update one hour of one day

        Args:
            day: Calendar date
            hour: Hour of day (0-23)
            status: free or busy
            activity: Label; defaults to "Available" (free) or "Busy" (busy)
            description: Free text

        Returns:
            The slot as written
        """
        row = self._row(day, hour, status, activity, description)

        try:
            await self.client.query(SCHEDULES_TABLE, "POST", data=row, on_conflict=SCHEDULE_KEY)
        except (SupabaseError, httpx.HTTPError) as e:
            logger.error(f"Error saving time slot {row['time_slot']} on {day}: {str(e)}")
            raise StoreWriteError(f"Could not save {row['time_slot']} on {day}") from e

        return ScheduleSlot.from_row(day, row)

    async def save_day(self, day: date, slots: Union[DaySchedule, Mapping[str, SlotInput]]) -> List[ScheduleSlot]:
        """
        Bulk create-or-update the provided slots of one day in a single request.

        A failure may leave part of the day written; it is reported as one
        StoreWriteError.
        """
        if isinstance(slots, DaySchedule):
            slots = slots.by_time_slot()

        rows = []
        for time_slot, slot in slots.items():
            values = _slot_values(slot)
            rows.append(
                self._row(day, parse_time_slot(time_slot), values["status"], values["activity"], values["description"])
            )

        if not rows:
            return []

        try:
            await self.client.query(SCHEDULES_TABLE, "POST", data=rows, on_conflict=SCHEDULE_KEY)
        except (SupabaseError, httpx.HTTPError) as e:
            logger.error(f"Error saving day schedule for {day}: {str(e)}")
            raise StoreWriteError(f"Could not save schedule for {day}") from e

        logger.info(f"Saved {len(rows)} slots for {day}")
        return [ScheduleSlot.from_row(day, row) for row in rows]

    async def get_activity_stats(self) -> List[ActivityStat]:
        """Top activities over the trailing 30 days, excluding "Available" """
        start, end = stats_window(self.today())

        try:
            rows = await self.client.query(
                SCHEDULES_TABLE,
                "GET",
                filters={
                    "date": [("gte", start.isoformat()), ("lte", end.isoformat())],
                    "activity": ("neq", DEFAULT_ACTIVITY),
                },
                select="activity",
            )
        except (SupabaseError, httpx.HTTPError) as e:
            logger.error(f"Error fetching activity stats: {str(e)}")
            raise StoreReadError("Could not fetch activity statistics") from e

        return count_activities([row.get("activity") for row in rows or []])

    async def get_available_dates(self) -> List[date]:
        """Distinct dates that have schedule data, newest first"""
        try:
            rows = await self.client.query(SCHEDULES_TABLE, "GET", select="date", order="date.desc")
        except (SupabaseError, httpx.HTTPError) as e:
            logger.error(f"Error fetching available dates: {str(e)}")
            raise StoreReadError("Could not fetch available dates") from e

        seen = []
        try:
            for row in rows or []:
                value = date.fromisoformat(row["date"])
                if value not in seen:
                    seen.append(value)
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Malformed date in schedules: {str(e)}")
            raise StoreReadError("Could not read available dates") from e
        return seen


# Demo data served when Supabase is not configured

DEMO_HISTORY_ACTIVITIES = ["Work", "Meeting", "Personal", "Sleep"]
DEMO_STATS = [
    ActivityStat("Work meeting", 8),
    ActivityStat("Personal time", 5),
    ActivityStat("Sleeping", 4),
    ActivityStat("Dinner", 2),
]


def demo_today(day: date) -> DaySchedule:
    schedule = DaySchedule.empty(day)
    for slot in schedule:
        if 4 <= slot.hour <= 7:
            slot.status, slot.activity = SlotStatus.BUSY, "Sleeping"
        elif 10 <= slot.hour <= 12:
            slot.status, slot.activity = SlotStatus.BUSY, "Work meeting"
        elif slot.hour == 18:
            slot.status, slot.activity = SlotStatus.BUSY, "Dinner"
        elif slot.hour >= 22:
            slot.status, slot.activity = SlotStatus.BUSY, "Personal time"
    return schedule


def demo_history(day: date) -> DaySchedule:
    # Seeded by the date so the same day always looks the same
    rng = random.Random(day.toordinal())
    schedule = DaySchedule.empty(day)
    for slot in schedule:
        if rng.random() <= 0.3:
            slot.status = SlotStatus.BUSY
            slot.activity = rng.choice(DEMO_HISTORY_ACTIVITIES)
    return schedule


class DemoScheduleService:
    """Read-only stand-in used when no store handle exists"""

    def __init__(self, clock: Optional[TimeSource] = None):
        self.clock = clock or SystemClock()

    def today(self) -> date:
        return self.clock.now().date()

    async def get_day(self, day: date) -> DaySchedule:
        return demo_today(day) if day == self.today() else demo_history(day)

    async def get_today(self) -> DaySchedule:
        return await self.get_day(self.today())

    async def get_range(self, start: date, end: date) -> Dict[date, DaySchedule]:
        if end < start:
            start, end = end, start
        days = {}
        for offset in range((end - start).days + 1):
            current = start + timedelta(days=offset)
            days[current] = await self.get_day(current)
        return days

    async def save_slot(self, day: date, hour: int, status: SlotStatus, activity: Optional[str] = None, description: str = "") -> ScheduleSlot:
        raise StoreNotConfiguredError("Supabase is not configured")

    async def save_day(self, day: date, slots) -> List[ScheduleSlot]:
        raise StoreNotConfiguredError("Supabase is not configured")

    async def get_activity_stats(self) -> List[ActivityStat]:
        return [ActivityStat(stat.activity, stat.count) for stat in DEMO_STATS]

    async def get_available_dates(self) -> List[date]:
        start, end = stats_window(self.today())
        return [end - timedelta(days=offset) for offset in range((end - start).days + 1)]


def get_schedule_service(
    client: Optional[SimpleSupabaseClient], clock: Optional[TimeSource] = None
) -> Union[ScheduleService, DemoScheduleService]:
    """Route to the Supabase-backed service, or demo data when there is no store handle"""
    if client is None:
        return DemoScheduleService(clock)
    return ScheduleService(client, clock)
