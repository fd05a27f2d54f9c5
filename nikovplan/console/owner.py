"""
Owner Console
Server-side view model of the admin page: the working day, the single-slot
and range batch edit dialogs, commit, and the to-do editor.

Every save goes straight to the store. ``commit`` re-sends the whole working
day on top of that.

This is the view-model contract the admin client follows. Over HTTP the edit
form route opens its single-slot dialog; range picking and the batch dialog
run in the browser and reach the API as ``POST /schedule/{day}/batch``.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Union

from nikovplan.models.schedule import DaySchedule, ScheduleSlot, SlotStatus, default_activity
from nikovplan.models.todo import TodoItem
from nikovplan.services.exceptions import BatchApplyError, StoreError, StoreWriteError
from nikovplan.services.schedule import DemoScheduleService, ScheduleService
from nikovplan.services.todos import DemoTodoService, TodoService
from nikovplan.utils.auth import SessionStatus
from nikovplan.utils.clock import SystemClock, TimeSource

logger = logging.getLogger(__name__)

ScheduleBackend = Union[ScheduleService, DemoScheduleService]
TodoBackend = Union[TodoService, DemoTodoService]


class AdminAccess(str, Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    ALLOW = "allow"


def resolve_admin_access(session_status: SessionStatus) -> AdminAccess:
    """Signed-out visitors go back to "/"; while sign-in is still running, show a loading state"""
    if session_status is SessionStatus.LOADING:
        return AdminAccess.LOADING
    if session_status is SessionStatus.AUTHENTICATED:
        return AdminAccess.ALLOW
    return AdminAccess.REDIRECT


def select_range(start_hour: int, end_hour: int) -> List[int]:
    """Inclusive span of hours between two clicks, in either order"""
    low, high = sorted((start_hour, end_hour))
    return list(range(low, high + 1))


async def write_batch(
    service: ScheduleBackend,
    day: date,
    hours: List[int],
    status: SlotStatus,
    activity: Optional[str] = None,
    description: str = "",
) -> List[ScheduleSlot]:
    """
    Write the same values to each hour, one upsert at a time.

    Raises:
        BatchApplyError: when a write fails; hours written before it stay written
    """
    written: List[ScheduleSlot] = []
    for hour in hours:
        try:
            slot = await service.save_slot(day, hour, status, activity or None, description)
        except StoreWriteError as e:
            raise BatchApplyError(
                f"Batch update stopped at {hour:02d}:00 after {len(written)} slot(s)",
                written_hours=[s.hour for s in written],
                failed_hour=hour,
            ) from e
        written.append(slot)
    return written


class EditMode(str, Enum):
    IDLE = "idle"
    SINGLE_EDIT = "single_edit"
    RANGE_SELECTING = "range_selecting"
    BATCH_EDIT = "batch_edit"


class ConsoleStateError(Exception):
    """An action that is not valid in the console's current mode"""


@dataclass
class SlotForm:
    status: SlotStatus = SlotStatus.FREE
    activity: str = ""
    description: str = ""


@dataclass
class Notice:
    kind: str  # "success" or "error"
    message: str


@dataclass
class RangeSelection:
    start: Optional[int] = None
    end: Optional[int] = None
    hours: List[int] = field(default_factory=list)


class OwnerConsole:
    def __init__(
        self,
        schedule_service: ScheduleBackend,
        todo_service: TodoBackend,
        clock: Optional[TimeSource] = None,
    ):
        self.schedule_service = schedule_service
        self.todo_service = todo_service
        self.clock = clock or SystemClock()

        self.selected_date: date = self.clock.now().date()
        self.day = DaySchedule.empty(self.selected_date)
        self.todos: List[TodoItem] = []
        self.notices: List[Notice] = []

        self.mode = EditMode.IDLE
        self.editing_hour: Optional[int] = None
        self.form = SlotForm()
        self.selection = RangeSelection()
        self.batch_form = SlotForm()

        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self):
        """Stop applying results of calls that finish after the page is gone"""
        self._active = False

    def _notify(self, kind: str, message: str):
        if self._active:
            self.notices.append(Notice(kind, message))

    def _require(self, *modes: EditMode):
        if self.mode not in modes:
            raise ConsoleStateError(f"Not allowed while {self.mode.value}")

    def _put_slot(self, slot: ScheduleSlot):
        if slot.date == self.day.date:
            self.day.slots[slot.hour] = slot

    # Loading

    async def load(self):
        await self.select_date(self.selected_date)
        await self.load_todos()

    async def select_date(self, day: date):
        self.selected_date = day
        try:
            schedule = await self.schedule_service.get_day(day)
        except StoreError as e:
            logger.error(f"Error fetching schedule from DB: {e}")
            if self._active and self.day.date != day:
                self.day = DaySchedule.empty(day)
            return

        if self._active and self.selected_date == day:
            self.day = schedule

    async def load_todos(self):
        try:
            todos = await self.todo_service.list()
        except StoreError as e:
            logger.error(f"Error fetching todos: {e}")
            return
        if self._active:
            self.todos = todos

    # Single-slot edit

    def click_slot(self, hour: int) -> Optional[SlotForm]:
        """A grid click opens the edit form, or picks a range end while batch selecting"""
        if self.mode is EditMode.RANGE_SELECTING:
            self.click_range_cell(hour)
            return None
        return self.open_single_edit(hour)

    def open_single_edit(self, hour: int) -> SlotForm:
        self._require(EditMode.IDLE, EditMode.SINGLE_EDIT)
        slot = self.day.slot(hour)
        self.mode = EditMode.SINGLE_EDIT
        self.editing_hour = hour
        # Activity is always typed in again, never pre-filled
        self.form = SlotForm(status=slot.status, activity="", description=slot.description)
        return self.form

    def cancel_single_edit(self):
        self._require(EditMode.SINGLE_EDIT)
        self._close_single_edit()

    def _close_single_edit(self):
        self.mode = EditMode.IDLE
        self.editing_hour = None
        self.form = SlotForm()

    async def save_single_edit(self) -> Optional[ScheduleSlot]:
        self._require(EditMode.SINGLE_EDIT)
        hour, form = self.editing_hour, self.form
        try:
            slot = await self.schedule_service.save_slot(
                self.selected_date, hour, form.status, form.activity or None, form.description
            )
        except StoreError as e:
            logger.error(f"Error saving time slot: {e}")
            self._notify("error", e.user_message)
            return None

        if self._active:
            self._put_slot(slot)
            self._close_single_edit()
            self._notify("success", "Time slot saved successfully!")
        return slot

    # Range batch edit

    def start_range_mode(self):
        self._require(EditMode.IDLE)
        self.mode = EditMode.RANGE_SELECTING
        self.selection = RangeSelection()

    def click_range_cell(self, hour: int):
        self._require(EditMode.RANGE_SELECTING)
        self.day.slot(hour)

        if self.selection.start is None:
            self.selection = RangeSelection(start=hour, hours=[hour])
            return
        if hour == self.selection.start:
            return

        self.selection.end = hour
        self.selection.hours = select_range(self.selection.start, hour)
        self.batch_form = SlotForm()
        self.mode = EditMode.BATCH_EDIT

    def toggle_batch_slot(self, hour: int):
        """Legacy multi-select inside the batch dialog"""
        self._require(EditMode.BATCH_EDIT)
        self.day.slot(hour)
        hours = set(self.selection.hours)
        hours.symmetric_difference_update({hour})
        self.selection.hours = sorted(hours)

    def close_batch_modal(self):
        """Leaving the batch dialog by any path drops the whole range selection"""
        self.mode = EditMode.IDLE
        self.selection = RangeSelection()
        self.batch_form = SlotForm()

    async def apply_batch(self) -> List[ScheduleSlot]:
        self._require(EditMode.BATCH_EDIT)
        hours, form = list(self.selection.hours), self.batch_form
        written: List[ScheduleSlot] = []

        try:
            if hours:
                written = await write_batch(
                    self.schedule_service, self.selected_date, hours, form.status, form.activity, form.description
                )
                self._notify("success", "Batch update applied to selected slots!")
        except BatchApplyError as e:
            logger.error(f"Error applying batch update: {e}")
            # Slots written before the failure stay written
            written = [
                ScheduleSlot(
                    date=self.selected_date,
                    hour=hour,
                    status=form.status,
                    activity=form.activity or default_activity(form.status),
                    description=form.description,
                )
                for hour in e.written_hours
            ]
            if self._active:
                for slot in written:
                    self._put_slot(slot)
            self._notify("error", e.user_message)
            self.close_batch_modal()
            return written
        except StoreError as e:
            logger.error(f"Error applying batch update: {e}")
            self._notify("error", e.user_message)
            self.close_batch_modal()
            return []

        if self._active:
            for slot in written:
                self._put_slot(slot)
        self.close_batch_modal()
        return written

    # Commit

    async def commit(self) -> bool:
        """Bulk re-write the entire working day, edited or not"""
        try:
            await self.schedule_service.save_day(self.selected_date, self.day)
        except StoreError as e:
            logger.error(f"Error committing data: {e}")
            self._notify("error", e.user_message)
            return False

        self._notify("success", "Schedule committed to database successfully!")
        return True

    # To-do editor

    async def add_todo(self, text: str) -> Optional[TodoItem]:
        text = text.strip()
        if not text:
            return None
        try:
            todo = await self.todo_service.add(text)
        except StoreError as e:
            logger.error(f"Error adding todo: {e}")
            return None
        if self._active:
            self.todos.append(todo)
        return todo

    async def toggle_todo(self, todo_id: str):
        todo = next((t for t in self.todos if t.id == todo_id), None)
        if todo is None:
            return
        try:
            await self.todo_service.update(todo_id, not todo.completed)
        except StoreError as e:
            logger.error(f"Error updating todo: {e}")
            return
        if self._active:
            todo.completed = not todo.completed

    async def delete_todo(self, todo_id: str):
        try:
            await self.todo_service.delete(todo_id)
        except StoreError as e:
            logger.error(f"Error deleting todo: {e}")
            return
        if self._active:
            self.todos = [t for t in self.todos if t.id != todo_id]
