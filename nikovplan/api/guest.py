"""Public, read-only guest routes"""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from nikovplan.api.deps import get_clock, schedule_service_dependency, todo_service_dependency
from nikovplan.console import i18n
from nikovplan.console.guest import GuestConsole, in_history
from nikovplan.utils.clock import TimeSource

router = APIRouter(prefix="/api/guest")


def guest_console_dependency(
    lang: str = Query(i18n.DEFAULT_LANGUAGE),
    schedule_service=Depends(schedule_service_dependency),
    todo_service=Depends(todo_service_dependency),
    clock: TimeSource = Depends(get_clock),
) -> GuestConsole:
    return GuestConsole(schedule_service, todo_service, clock=clock, lang=lang)


def _today_view(console: GuestConsole):
    current = console.current_slot()
    return {
        "date": console.today().isoformat(),
        "label": console.today_label(),
        "current_hour": console.current_hour(),
        "current_status": current.status.value,
        "current_activity": current.activity,
        "rows": [row.to_dict() for row in console.today_rows()],
    }


@router.get("")
async def guest_page(console: GuestConsole = Depends(guest_console_dependency)):
    """Everything the guest page shows on load"""
    await console.load()
    view = _today_view(console)
    view.update(
        {
            "lang": console.lang,
            "strings": console.strings(),
            "scroll_to": console.consume_scroll_target(),
            "stats": [bar.to_dict() for bar in console.stat_bars()],
            "todos": [todo.to_dict() for todo in console.todos],
        }
    )
    return view


@router.get("/today")
async def today(console: GuestConsole = Depends(guest_console_dependency)):
    await console.load_today()
    return _today_view(console)


@router.get("/history/{day}")
async def history(day: date, console: GuestConsole = Depends(guest_console_dependency)):
    earliest, latest = console.history_bounds()
    if not in_history(day, console.today()):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"History is available from {earliest.isoformat()} to {latest.isoformat()}",
        )

    console.history_date = day
    if not await console.load_history():
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not load data. Please try again.")

    return {
        "date": day.isoformat(),
        "label": console.history_label(),
        "earliest": earliest.isoformat(),
        "latest": latest.isoformat(),
        "rows": [row.to_dict() for row in console.history_rows()],
    }


@router.get("/stats")
async def stats(console: GuestConsole = Depends(guest_console_dependency)):
    await console.load_stats()
    return [bar.to_dict() for bar in console.stat_bars()]


@router.get("/todos")
async def todos(console: GuestConsole = Depends(guest_console_dependency)):
    await console.load_todos()
    return [todo.to_dict() for todo in console.todos]


@router.get("/strings")
async def strings(lang: str = Query(i18n.DEFAULT_LANGUAGE)):
    lang = i18n.normalize_language(lang)
    return {"lang": lang, "other": i18n.other_language(lang), "strings": i18n.strings(lang)}
