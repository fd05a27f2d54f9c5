"""
Guest Console
Read-only public view: today's grid, a 30-day history browser, activity
statistics and the to-do list.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple, Union

from nikovplan.console import i18n
from nikovplan.models.schedule import ActivityStat, DaySchedule, ScheduleSlot, SlotStatus, format_time_slot
from nikovplan.models.todo import TodoItem
from nikovplan.services.exceptions import StoreError
from nikovplan.services.schedule import STATS_WINDOW_DAYS, DemoScheduleService, ScheduleService
from nikovplan.services.todos import DemoTodoService, TodoService
from nikovplan.utils.clock import SystemClock, TimeSource

logger = logging.getLogger(__name__)


def history_bounds(today: date) -> Tuple[date, date]:
    """The history browser covers today minus 29 days through today"""
    return today - timedelta(days=STATS_WINDOW_DAYS - 1), today


def in_history(day: date, today: date) -> bool:
    earliest, latest = history_bounds(today)
    return earliest <= day <= latest


@dataclass
class GuestRow:
    time: str
    time_slot: str
    activity: str
    status: SlotStatus
    status_label: str
    is_current: bool = False

    def to_dict(self):
        return {
            "time": self.time,
            "time_slot": self.time_slot,
            "activity": self.activity,
            "status": self.status.value,
            "status_label": self.status_label,
            "is_current": self.is_current,
        }


@dataclass
class ActivityBar:
    activity: str
    count: int
    percentage: float

    def to_dict(self):
        return {"activity": self.activity, "count": self.count, "percentage": self.percentage}


def stat_bars(stats: List[ActivityStat]) -> List[ActivityBar]:
    """Bar widths relative to the most frequent activity"""
    if not stats:
        return []
    top = max(stat.count for stat in stats) or 1
    return [ActivityBar(stat.activity, stat.count, round(stat.count / top * 100, 1)) for stat in stats]


class GuestConsole:
    def __init__(
        self,
        schedule_service: Union[ScheduleService, DemoScheduleService],
        todo_service: Union[TodoService, DemoTodoService],
        clock: Optional[TimeSource] = None,
        lang: str = i18n.DEFAULT_LANGUAGE,
    ):
        self.schedule_service = schedule_service
        self.todo_service = todo_service
        self.clock = clock or SystemClock()
        self.lang = i18n.normalize_language(lang)

        today = self.today()
        self.today_schedule = DaySchedule.empty(today)
        self.stats: List[ActivityStat] = []
        self.todos: List[TodoItem] = []

        self.show_history = False
        self.history_date = today
        self.history_schedule: Optional[DaySchedule] = None

        self.loading = True
        self._scrolled = False
        self._active = True

    def dispose(self):
        self._active = False

    def today(self) -> date:
        return self.clock.now().date()

    def current_hour(self) -> str:
        """Wall-clock time truncated to the hour, as a time slot key"""
        return format_time_slot(self.clock.now().hour)

    def current_slot(self) -> ScheduleSlot:
        return self.today_schedule.slot(self.clock.now().hour)

    # Loading

    async def load(self):
        await asyncio.gather(self.load_today(), self.load_stats(), self.load_todos())
        self.loading = False

    async def load_today(self) -> bool:
        try:
            schedule = await self.schedule_service.get_today()
        except StoreError as e:
            logger.error(f"Error loading today's schedule: {e}")
            return False
        if self._active:
            self.today_schedule = schedule
        return True

    async def load_stats(self) -> bool:
        try:
            stats = await self.schedule_service.get_activity_stats()
        except StoreError as e:
            logger.error(f"Error loading activity stats: {e}")
            if self._active:
                self.stats = []
            return False
        if self._active:
            self.stats = stats
        return True

    async def load_todos(self):
        try:
            todos = await self.todo_service.list()
        except StoreError as e:
            logger.error(f"Error loading todos: {e}")
            return
        if self._active:
            self.todos = todos

    async def refresh(self):
        await self.load()
        if self.show_history:
            await self.load_history()

    # Today

    def today_rows(self) -> List[GuestRow]:
        return self._rows(self.today_schedule, highlight=self.current_hour())

    def consume_scroll_target(self) -> Optional[str]:
        """The row to scroll into view: the current hour once per page load, then None"""
        if self._scrolled:
            return None
        self._scrolled = True
        return self.current_hour()

    def _rows(self, schedule: DaySchedule, highlight: Optional[str] = None) -> List[GuestRow]:
        labels = self.strings()
        return [
            GuestRow(
                time=slot.display_time,
                time_slot=slot.time_slot,
                activity=slot.activity,
                status=slot.status,
                status_label=labels["free"] if slot.status is SlotStatus.FREE else labels["busy"],
                is_current=slot.time_slot == highlight,
            )
            for slot in schedule
        ]

    # History

    def history_bounds(self) -> Tuple[date, date]:
        return history_bounds(self.today())

    async def toggle_history(self):
        self.show_history = not self.show_history
        if self.show_history:
            await self.load_history()

    async def load_history(self) -> bool:
        day = self.history_date
        try:
            schedule = await self.schedule_service.get_day(day)
        except StoreError as e:
            logger.error(f"Error loading historical schedule: {e}")
            return False
        if self._active and self.history_date == day:
            self.history_schedule = schedule
        return True

    async def navigate(self, direction: str) -> bool:
        """Move the history browser one day; stepping past either bound does nothing"""
        if direction not in ("prev", "next"):
            raise ValueError(f"Unknown direction: {direction}")

        step = timedelta(days=1 if direction == "next" else -1)
        candidate = self.history_date + step
        if not in_history(candidate, self.today()):
            return False

        self.history_date = candidate
        if self.show_history:
            await self.load_history()
        return True

    def history_rows(self) -> List[GuestRow]:
        if self.history_schedule is None:
            return []
        return self._rows(self.history_schedule)

    def history_label(self) -> str:
        return i18n.format_long_date(self.history_date, self.lang)

    # Statistics and text

    def stat_bars(self) -> List[ActivityBar]:
        return stat_bars(self.stats)

    def strings(self):
        return i18n.strings(self.lang)

    def toggle_language(self) -> str:
        self.lang = i18n.other_language(self.lang)
        return self.lang

    def today_label(self) -> str:
        return i18n.format_long_date(self.today(), self.lang)
