"""
Guest console tests: today view, history browser, statistics and language.
"""
from datetime import date, timedelta

import pytest

from nikovplan.console import i18n
from nikovplan.console.guest import GuestConsole, history_bounds, in_history, stat_bars
from nikovplan.models.schedule import ActivityStat, SlotStatus
from nikovplan.services.schedule import DemoScheduleService
from nikovplan.services.todos import DemoTodoService

TODAY = date(2026, 10, 19)


@pytest.fixture
def console(schedule_service, todo_service, clock):
    return GuestConsole(schedule_service, todo_service, clock)


@pytest.mark.unit
def test_history_bounds():
    earliest, latest = history_bounds(TODAY)
    assert latest == TODAY
    assert earliest == TODAY - timedelta(days=29)
    assert in_history(earliest, TODAY)
    assert not in_history(earliest - timedelta(days=1), TODAY)
    assert not in_history(TODAY + timedelta(days=1), TODAY)


@pytest.mark.asyncio
async def test_load_marks_current_hour(console, schedule_service):
    await schedule_service.save_slot(TODAY, 14, SlotStatus.BUSY, "Gym")

    await console.load()

    assert console.loading is False
    assert console.current_hour() == "14:00:00"
    assert console.current_slot().activity == "Gym"
    current = [row for row in console.today_rows() if row.is_current]
    assert len(current) == 1
    assert current[0].time == "14:00"
    assert current[0].status_label == "Zauzet"


@pytest.mark.unit
def test_scroll_target_is_returned_once(console):
    assert console.consume_scroll_target() == "14:00:00"
    assert console.consume_scroll_target() is None


@pytest.mark.asyncio
async def test_navigation_stays_inside_the_window(console):
    await console.toggle_history()
    assert console.show_history is True
    assert console.history_date == TODAY

    assert await console.navigate("next") is False
    assert console.history_date == TODAY

    for _ in range(29):
        assert await console.navigate("prev") is True
    assert console.history_date == TODAY - timedelta(days=29)

    assert await console.navigate("prev") is False
    assert console.history_date == TODAY - timedelta(days=29)
    assert len(console.history_rows()) == 24


@pytest.mark.asyncio
async def test_navigate_rejects_unknown_direction(console):
    with pytest.raises(ValueError):
        await console.navigate("sideways")


@pytest.mark.asyncio
async def test_stats_failure_shows_empty_list(console, fake_store):
    console.stats = [ActivityStat("Work", 3)]
    fake_store.fail("GET", "schedules")

    assert await console.load_stats() is False
    assert console.stats == []


@pytest.mark.asyncio
async def test_refresh_reloads_open_history_day(console, schedule_service):
    await console.load()
    await console.toggle_history()
    await console.navigate("prev")

    yesterday = TODAY - timedelta(days=1)
    await schedule_service.save_slot(yesterday, 20, SlotStatus.BUSY, "Movie")
    await schedule_service.save_slot(TODAY, 9, SlotStatus.BUSY, "Work")
    await console.refresh()

    assert console.history_schedule.slot(20).activity == "Movie"
    assert console.today_schedule.slot(9).activity == "Work"
    assert [bar.activity for bar in console.stat_bars()] == ["Movie", "Work"]


@pytest.mark.unit
def test_stat_bars_are_relative_to_the_top_activity():
    bars = stat_bars([ActivityStat("Work", 8), ActivityStat("Gym", 3)])
    assert [(b.activity, b.percentage) for b in bars] == [("Work", 100.0), ("Gym", 37.5)]
    assert stat_bars([]) == []


@pytest.mark.asyncio
async def test_language_changes_only_rendering(console):
    await console.load()
    croatian = console.today_rows()

    assert console.toggle_language() == "en"
    english = console.today_rows()

    assert [row.status for row in croatian] == [row.status for row in english]
    assert english[0].status_label == "Free"
    assert croatian[0].status_label == "Slobodan"
    assert console.today_label() == "Monday, October 19, 2026"


@pytest.mark.unit
def test_croatian_long_date():
    assert i18n.format_long_date(TODAY, "hr") == "ponedjeljak, 19. listopada 2026."
    assert i18n.normalize_language("de") == "hr"


@pytest.mark.asyncio
async def test_demo_console(clock):
    console = GuestConsole(DemoScheduleService(clock), DemoTodoService(), clock)

    await console.load()

    assert console.today_schedule.slot(4).activity == "Sleeping"
    assert [bar.activity for bar in console.stat_bars()][0] == "Work meeting"
    assert console.todos == []
