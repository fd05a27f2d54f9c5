"""Owner console routes. Everything under /api/admin needs the owner's session."""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Response, status
from fastapi.responses import RedirectResponse

from nikovplan.api.deps import get_clock, schedule_service_dependency, todo_service_dependency
from nikovplan.console.owner import AdminAccess, OwnerConsole, resolve_admin_access, select_range, write_batch
from nikovplan.models.schedule import BatchUpdate, DayCommit, SlotUpdate, format_time_slot
from nikovplan.models.todo import TodoCreate, TodoUpdate
from nikovplan.models.user import SessionUser
from nikovplan.services.identity import SIGN_IN_PAGE
from nikovplan.utils.auth import SessionStatus, get_current_user_dependency, get_optional_user
from nikovplan.utils.clock import TimeSource

logger = logging.getLogger(__name__)

page_router = APIRouter()
router = APIRouter(prefix="/api/admin", dependencies=[Depends(get_current_user_dependency)])


def owner_console_dependency(
    schedule_service=Depends(schedule_service_dependency),
    todo_service=Depends(todo_service_dependency),
    clock: TimeSource = Depends(get_clock),
) -> OwnerConsole:
    return OwnerConsole(schedule_service, todo_service, clock=clock)


@page_router.get("/admin")
async def admin_page(
    user: Optional[SessionUser] = Depends(get_optional_user),
    clock: TimeSource = Depends(get_clock),
):
    session_status = SessionStatus.AUTHENTICATED if user else SessionStatus.UNAUTHENTICATED
    if resolve_admin_access(session_status) is not AdminAccess.ALLOW:
        return RedirectResponse(SIGN_IN_PAGE, status_code=status.HTTP_302_FOUND)

    return {
        "user": user.model_dump(),
        "avatar_url": user.avatar_url,
        "today": clock.now().date().isoformat(),
    }


@router.get("/schedule/{day}")
async def get_schedule(day: date, schedule_service=Depends(schedule_service_dependency)):
    schedule = await schedule_service.get_day(day)
    return schedule.to_dict()


@router.get("/schedule/{day}/slots/{hour}/form")
async def slot_form(
    day: date,
    hour: int = Path(..., ge=0, le=23),
    console: OwnerConsole = Depends(owner_console_dependency),
):
    """Values the single-slot edit dialog opens with"""
    await console.select_date(day)
    form = console.open_single_edit(hour)
    return {
        "date": day.isoformat(),
        "time_slot": format_time_slot(hour),
        "status": form.status.value,
        "activity": form.activity,
        "description": form.description,
    }


@router.put("/schedule/{day}/slots/{hour}")
async def save_slot(
    day: date,
    update: SlotUpdate,
    hour: int = Path(..., ge=0, le=23),
    schedule_service=Depends(schedule_service_dependency),
):
    slot = await schedule_service.save_slot(day, hour, update.status, update.activity, update.description)
    return slot.to_dict()


@router.post("/schedule/{day}/batch")
async def apply_batch(day: date, update: BatchUpdate, schedule_service=Depends(schedule_service_dependency)):
    """Apply one edit to every hour between two picked cells, slot by slot"""
    hours = select_range(update.start_hour, update.end_hour)
    written = await write_batch(schedule_service, day, hours, update.status, update.activity, update.description)
    logger.info(f"Batch update wrote {len(written)} slots on {day}")
    return {"date": day.isoformat(), "updated": [slot.to_dict() for slot in written]}


@router.put("/schedule/{day}")
async def commit_day(day: date, commit: DayCommit, schedule_service=Depends(schedule_service_dependency)):
    """Bulk re-write the whole working day"""
    saved = await schedule_service.save_day(day, commit.slots)
    return {"date": day.isoformat(), "saved": len(saved)}


@router.get("/todos")
async def list_todos(todo_service=Depends(todo_service_dependency)):
    return [todo.to_dict() for todo in await todo_service.list()]


@router.post("/todos", status_code=status.HTTP_201_CREATED)
async def add_todo(todo: TodoCreate, todo_service=Depends(todo_service_dependency)):
    created = await todo_service.add(todo.text)
    return created.to_dict()


@router.patch("/todos/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_todo(todo_id: str, update: TodoUpdate, todo_service=Depends(todo_service_dependency)):
    await todo_service.update(todo_id, update.completed)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/todos/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_todo(todo_id: str, todo_service=Depends(todo_service_dependency)):
    await todo_service.delete(todo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
