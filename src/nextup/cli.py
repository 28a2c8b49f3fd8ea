"""nextup CLI - tasks and calendars in one list."""

import asyncio
import json
import logging
import sys
from datetime import date, datetime

import click

from .adapters.ticktick_api import authorize
from .config import load_config
from .core.items import Item, SourceKind, format_event_span, format_time
from .core.visibility import cycle_source, sort_by_title
from .core.window import is_overdue, localize, week_days
from .engine import Engine, build_engine
from .errors import NextupError, ProviderUnavailable
from .timers import SchedulerTimer
from .views import TaskView

logger = logging.getLogger(__name__)

TASK_VIEWS = ("today", "next", "all", "completed")


def _engine() -> Engine:
    return build_engine(load_config())


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _item_json(item: Item) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "list": item.source_title or item.source_id,
        "kind": item.kind.value,
        "due": item.due_at.isoformat() if item.due_at else None,
        "start": item.start_at.isoformat() if item.start_at else None,
        "end": item.end_at.isoformat() if item.end_at else None,
        "completed": item.is_completed,
        "completed_at": item.completed_at.isoformat() if item.completed_at else None,
        "recurring": item.has_recurrence,
        "priority": item.priority,
        "notes": item.notes,
    }


def _task_line(index: int, item: Item, engine: Engine) -> str:
    parts = [item.source_title or item.source_id]
    if item.due_at:
        due = localize(item.due_at, engine.tz)
        when = format_time(due)
        if is_overdue(due, engine.clock(), engine.tz):
            when = f"OVERDUE {due.strftime('%b %d')} {when}".rstrip()
        elif due.date() != engine.clock().date():
            when = f"{due.strftime('%b %d')} {when}".rstrip()
        if when:
            parts.append(when)
    if item.notes:
        parts.append("+notes")
    return f"{index:3}. [{item.marker()}] {item.title}  ({', '.join(parts)})"


def _show_tasks(items: list[Item], engine: Engine, as_json: bool, empty_msg: str) -> None:
    """Shared task display logic."""
    if as_json:
        click.echo(json.dumps([_item_json(i) for i in items], indent=2))
        return
    if not items:
        click.echo(empty_msg)
        return
    for index, item in enumerate(items, start=1):
        click.echo(_task_line(index, item, engine))


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a YYYY-MM-DD date")


def _view_by_name(engine: Engine, name: str) -> TaskView:
    match name:
        case "today":
            return engine.today_view()
        case "next":
            return engine.next_view()
        case "all":
            return engine.all_view()
        case "completed":
            return engine.completed_view()
    raise click.BadParameter(f"Unknown view '{name}'")


async def _refresh(view: TaskView) -> list[Item]:
    items = await view.refresh()
    if view.last_error is not None:
        raise view.last_error
    return items


def _run_view(view: TaskView, engine: Engine, as_json: bool, empty_msg: str) -> None:
    try:
        items = asyncio.run(_refresh(view))
    except NextupError as e:
        _fail(str(e))
    _show_tasks(items, engine, as_json, empty_msg)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.version_option()
def main(debug: bool):
    """nextup - tasks and calendars in one list."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
def auth():
    """Authenticate with TickTick."""
    try:
        authorize()
    except ProviderUnavailable as e:
        _fail(str(e))


@main.command()
@click.option("--kind", type=click.Choice(["task", "event"]), default="task", show_default=True)
@click.option("--all", "include_hidden", is_flag=True, help="Include hidden lists")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def sources(kind: str, include_hidden: bool, as_json: bool):
    """List task lists or calendars."""
    engine = _engine()
    source_kind = SourceKind(kind)
    try:
        found = asyncio.run(engine.sources(source_kind, include_hidden=include_hidden))
    except NextupError as e:
        _fail(str(e))

    hidden = engine.preferences.hidden_sources(source_kind)
    if as_json:
        click.echo(
            json.dumps(
                [
                    {"id": s.id, "title": s.title, "color": s.color, "hidden": s.id in hidden}
                    for s in found
                ],
                indent=2,
            )
        )
        return

    if not found:
        click.echo("No lists.")
        return
    for s in sort_by_title(found):
        flag = " (hidden)" if s.id in hidden else ""
        click.echo(f"{s.title}{flag}  [{s.id}]")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def today(as_json: bool):
    """List tasks due today."""
    engine = _engine()
    _run_view(engine.today_view(), engine, as_json, "Nothing due today.")


@main.command()
@click.argument("target_date")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def day(target_date: str, as_json: bool):
    """List tasks due on a date (YYYY-MM-DD)."""
    target = _parse_date(target_date)
    engine = _engine()
    _run_view(engine.day_view(target), engine, as_json, f"Nothing due on {target}.")


@main.command("next")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def next_(as_json: bool):
    """List today's tasks in your manual order."""
    engine = _engine()
    _run_view(engine.next_view(), engine, as_json, "Nothing next.")


@main.command("all")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def all_(as_json: bool):
    """List all outstanding tasks."""
    engine = _engine()
    _run_view(engine.all_view(), engine, as_json, "No outstanding tasks.")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def completed(as_json: bool):
    """List completed tasks, most recent first."""
    engine = _engine()
    _run_view(engine.completed_view(), engine, as_json, "No completed tasks.")


@main.command()
@click.argument("target_date", required=False)
def week(target_date: str | None):
    """Show tasks for each day of a week (defaults to this week)."""
    engine = _engine()
    target = _parse_date(target_date) if target_date else engine.clock().date()
    views = [engine.day_view(d) for d in week_days(target)]

    async def run():
        return await asyncio.gather(*(_refresh(v) for v in views))

    try:
        results = asyncio.run(run())
    except NextupError as e:
        _fail(str(e))

    for day_, items in zip(week_days(target), results):
        click.echo(f"### {day_.strftime('%a %b %d')}")
        if not items:
            click.echo("  Nothing due.")
        for index, item in enumerate(items, start=1):
            click.echo(f"  {_task_line(index, item, engine)}")


@main.command("list")
@click.argument("source_id", required=False)
@click.option("--after", "after_id", default=None, help="Show the list after this one")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_(source_id: str | None, after_id: str | None, as_json: bool):
    """List outstanding tasks of one list.

    Without SOURCE_ID, shows the first visible list by title, or the one after
    --after, wrapping around.
    """
    engine = _engine()
    if source_id is None:
        try:
            lists = sort_by_title(asyncio.run(engine.sources(SourceKind.TASK)))
        except NextupError as e:
            _fail(str(e))
        current = next((s for s in lists if s.id == after_id), None)
        chosen = cycle_source(lists, current)
        if chosen is None:
            _fail("No visible lists")
        if not as_json:
            click.echo(f"### {chosen.title}  [{chosen.id}]")
        source_id = chosen.id
    _run_view(engine.list_view(source_id), engine, as_json, "List is empty.")


@main.command()
@click.argument("target_date", required=False)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def agenda(target_date: str | None, as_json: bool):
    """Show a day's events and tasks (defaults to today)."""
    target = _parse_date(target_date) if target_date else None
    engine = _engine()
    view = engine.agenda_view(target)

    try:
        result = asyncio.run(view.refresh())
    except NextupError as e:
        _fail(str(e))
    if view.last_error is not None:
        _fail(str(view.last_error))

    if as_json:
        click.echo(
            json.dumps(
                {
                    "date": view.day.isoformat(),
                    "events": [_item_json(e) for e in result.events],
                    "tasks": [_item_json(t) for t in result.tasks],
                },
                indent=2,
            )
        )
        return

    click.echo(f"### {view.day.strftime('%A, %B %d')}")
    click.echo("\nEvents")
    if not result.events:
        click.echo("  No events.")
    for event in result.events:
        click.echo(f"  {format_event_span(event):14} {event.title}  ({event.source_title})")

    click.echo("\nTasks")
    if not result.tasks:
        click.echo("  No tasks.")
    for index, task in enumerate(result.tasks, start=1):
        click.echo(f"  {_task_line(index, task, engine)}")


@main.command()
@click.argument("view_name", type=click.Choice(TASK_VIEWS))
@click.argument("index", type=int)
def toggle(view_name: str, index: int):
    """Toggle completion of the INDEX-th item of a view."""
    timer = SchedulerTimer()
    engine = build_engine(load_config(), timer=timer)
    view = _view_by_name(engine, view_name)

    async def run():
        items = await _refresh(view)
        if not 1 <= index <= len(items):
            raise click.BadParameter(f"No item {index} in '{view_name}' ({len(items)} items)")
        item = items[index - 1]
        try:
            await view.toggle(item)
            await view.toggler.drain()
        finally:
            timer.shutdown()
        return item

    try:
        item = asyncio.run(run())
    except NextupError as e:
        _fail(str(e))

    if view.toggler.failures:
        _fail(str(view.toggler.failures[-1]))
    state = "done" if item.is_completed else "not done"
    click.echo(f"✓ {item.title} marked {state}")


@main.command()
@click.argument("from_index", type=int)
@click.argument("to_index", type=int)
def move(from_index: int, to_index: int):
    """Move an item of the 'next' list from one position to another."""
    engine = _engine()
    view = engine.next_view()
    try:
        asyncio.run(_refresh(view))
        items = view.reorder(from_index - 1, to_index - 1)
    except NextupError as e:
        _fail(str(e))
    except IndexError as e:
        _fail(str(e))
    _show_tasks(items, engine, False, "Nothing next.")


def _set_visibility(kind: str, source_id: str, visible: bool) -> None:
    engine = _engine()
    try:
        asyncio.run(engine.set_visibility(SourceKind(kind), source_id, visible))
    except NextupError as e:
        # The preference is saved before the badge refresh
        logger.warning(f"Badge not refreshed: {e}")
    click.echo(f"{'Showing' if visible else 'Hiding'} {source_id}")


@main.command()
@click.argument("kind", type=click.Choice(["task", "event"]))
@click.argument("source_id")
def hide(kind: str, source_id: str):
    """Hide a task list or calendar from every view."""
    _set_visibility(kind, source_id, visible=False)


@main.command()
@click.argument("kind", type=click.Choice(["task", "event"]))
@click.argument("source_id")
def show(kind: str, source_id: str):
    """Show a hidden task list or calendar again."""
    _set_visibility(kind, source_id, visible=True)


@main.command()
@click.option("--on/--off", "enabled", default=None, help="Enable or disable the badge")
def badge(enabled: bool | None):
    """Recompute the badge count, optionally switching badges on or off."""
    engine = _engine()
    try:
        if enabled is None:
            count = asyncio.run(engine.recompute_badge())
        else:
            count = asyncio.run(engine.set_badges_enabled(enabled))
    except NextupError as e:
        _fail(str(e))
    state = "on" if engine.preferences.badges_enabled() else "off"
    click.echo(f"Badge: {count} (badges {state})")


@main.command()
@click.argument("title")
@click.option("--list", "source_id", required=True, help="Task list id")
@click.option("--due", default=None, help="Due date/time (ISO 8601)")
@click.option("--notes", default=None, help="Notes")
def add(title: str, source_id: str, due: str | None, notes: str | None):
    """Add a task to a list."""
    engine = _engine()
    due_at = None
    if due:
        try:
            due_at = localize(datetime.fromisoformat(due), engine.tz)
        except ValueError:
            raise click.BadParameter(f"'{due}' is not an ISO 8601 date/time")
    try:
        item = asyncio.run(engine.create_item(source_id, title, due_at, notes))
    except NextupError as e:
        _fail(str(e))
    click.echo(f"✓ Added {item.title}")


@main.command()
@click.option("--interval", default=5, show_default=True, help="Minutes between badge refreshes")
def watch(interval: int):
    """Keep the badge count fresh until interrupted."""
    from apscheduler.triggers.interval import IntervalTrigger

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )
    timer = SchedulerTimer()
    engine = build_engine(load_config(), timer=timer)

    async def refresh_badge():
        try:
            count = await engine.recompute_badge()
            logger.info(f"Badge count: {count}")
        except NextupError as e:
            logger.warning(f"Badge refresh failed: {e}")

    async def run():
        timer.scheduler.add_job(
            refresh_badge,
            IntervalTrigger(minutes=interval),
            id="badge",
            next_run_time=datetime.now(engine.tz),
        )
        timer.scheduler.start()
        logger.info(f"Refreshing badge every {interval} min")
        try:
            await asyncio.Event().wait()
        finally:
            timer.shutdown()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        click.echo("\nStopped.")


if __name__ == "__main__":
    main()
