"""
Entry points for CLI commands.

Each command opens the configured store, runs one service call and prints
the result. Exit codes: 0 = success, 1 = unexpected error, 2 = domain error
(unknown tracker/stage, invalid transition, stale write).
"""

from __future__ import annotations

import argparse
import contextlib
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path

# Load .env file BEFORE importing settings
from dotenv import load_dotenv

for env_path in [
    Path.cwd() / ".env",  # Current working directory
    Path(__file__).parent.parent.parent.parent / ".env",  # Project root
]:
    if env_path.exists():
        load_dotenv(env_path)
        break
else:
    load_dotenv()  # Fallback: search default locations

from rich.console import Console  # noqa: E402

from funding_stages.adapters.messaging.event_bus import InMemoryEventBus  # noqa: E402
from funding_stages.adapters.store.sqlite import SQLiteTrackerStore  # noqa: E402
from funding_stages.config.settings import Settings, get_settings  # noqa: E402
from funding_stages.domain.catalog import seeds_from_names  # noqa: E402
from funding_stages.domain.errors import DomainError  # noqa: E402
from funding_stages.observability.logging import get_logger, setup_logging  # noqa: E402
from funding_stages.services.announcements import MilestoneAnnouncer  # noqa: E402
from funding_stages.services.tracker_service import FundingTrackerService  # noqa: E402
from funding_stages.ui.report import (  # noqa: E402
    format_amount,
    history_table,
    milestones_table,
    render_tracker,
    stage_detail_panel,
)
from funding_stages.utils.numbers import safe_int  # noqa: E402

console = Console()

CommandHandler = Callable[[FundingTrackerService, argparse.Namespace], Awaitable[int]]


def load_settings(env: str, db_path: str | None = None) -> Settings:
    """Resolve settings for a CLI run; --db overrides database.path."""
    settings = get_settings(env)
    if db_path:
        settings = settings.model_copy(
            update={"database": settings.database.model_copy(update={"path": db_path})}
        )
    return settings


@contextlib.asynccontextmanager
async def open_service(settings: Settings) -> AsyncIterator[FundingTrackerService]:
    """Open store and event bus, yield the service, always clean up."""
    store = SQLiteTrackerStore(settings)
    event_bus = InMemoryEventBus()
    announcer = MilestoneAnnouncer(event_bus, console)
    try:
        await store.initialize()
        announcer.start()
        await event_bus.start()
        yield FundingTrackerService(settings, store, event_bus)
    finally:
        with contextlib.suppress(Exception):
            await event_bus.stop()
        announcer.stop()
        with contextlib.suppress(Exception):
            await store.close()


# =============================================================================
# Commands
# =============================================================================


async def _cmd_init(service: FundingTrackerService, args: argparse.Namespace) -> int:
    seeds = None
    if args.stages:
        seeds = seeds_from_names([name.strip() for name in args.stages.split(",") if name.strip()])
    snapshot = await service.create_tracker(args.owner, seeds)
    console.print(f"Created tracker for [bold]{snapshot.owner_id}[/bold] with {len(snapshot.stages)} stages")
    render_tracker(snapshot, console)
    return 0


async def _cmd_show(service: FundingTrackerService, args: argparse.Namespace) -> int:
    snapshot = await service.get_snapshot(args.owner)
    if args.json:
        print(json.dumps(snapshot.to_dict(), indent=2))
    else:
        render_tracker(snapshot, console)
    return 0


async def _cmd_milestones(service: FundingTrackerService, args: argparse.Namespace) -> int:
    console.print(milestones_table(await service.milestones(args.owner)))
    return 0


async def _cmd_progress(service: FundingTrackerService, args: argparse.Namespace) -> int:
    stage = await service.update_stage_progress(
        args.owner, args.stage, safe_int(args.progress), safe_int(args.raised)
    )
    console.print(stage_detail_panel(stage))
    return 0


async def _cmd_complete(service: FundingTrackerService, args: argparse.Namespace) -> int:
    snapshot = await service.complete_stage(args.owner, args.stage, on=args.date)
    render_tracker(snapshot, console)
    return 0


async def _cmd_select(service: FundingTrackerService, args: argparse.Namespace) -> int:
    stage = await service.set_current_stage(args.owner, args.stage)
    console.print(stage_detail_panel(stage))
    return 0


async def _cmd_amounts(service: FundingTrackerService, args: argparse.Namespace) -> int:
    snapshot = await service.update_funding_amounts(
        args.owner, safe_int(args.total_target), safe_int(args.total_raised)
    )
    console.print(
        f"Totals: target {format_amount(snapshot.total_target_amount)}, "
        f"raised {format_amount(snapshot.total_raised_amount)}"
    )
    return 0


async def _cmd_edit(service: FundingTrackerService, args: argparse.Namespace) -> int:
    snapshot = await service.apply_stage_edit(
        args.owner,
        args.stage,
        safe_int(args.progress),
        safe_int(args.raised),
        total_target=safe_int(args.total_target) if args.total_target is not None else None,
        total_raised=safe_int(args.total_raised) if args.total_raised is not None else None,
        auto_complete=False if args.no_auto_complete else None,
    )
    render_tracker(snapshot, console)
    return 0


async def _cmd_history(service: FundingTrackerService, args: argparse.Namespace) -> int:
    console.print(history_table(await service.history(args.owner, limit=args.limit)))
    return 0


async def _cmd_owners(service: FundingTrackerService, args: argparse.Namespace) -> int:
    owners = await service.list_owners()
    for owner_id in owners:
        console.print(owner_id)
    if not owners:
        console.print("No trackers stored", style="dim")
    return 0


COMMANDS: dict[str, CommandHandler] = {
    "init": _cmd_init,
    "show": _cmd_show,
    "milestones": _cmd_milestones,
    "progress": _cmd_progress,
    "complete": _cmd_complete,
    "select": _cmd_select,
    "amounts": _cmd_amounts,
    "edit": _cmd_edit,
    "history": _cmd_history,
    "owners": _cmd_owners,
}


async def run_command(args: argparse.Namespace) -> int:
    """Run one CLI command and map errors to exit codes."""
    settings = load_settings(args.env, args.db)
    setup_logging(settings)
    logger = get_logger(__name__)

    config_errors = settings.validate_config()
    for error in config_errors:
        logger.error(f"Config error: {error}")
    if config_errors:
        return 2

    handler = COMMANDS[args.command]
    try:
        async with open_service(settings) as service:
            return await handler(service, args)
    except DomainError as e:
        logger.error(f"{e.error_code}: {e.message}", extra={"error_code": e.error_code, "owner_id": e.owner_id})
        console.print(f"[red]Error:[/red] {e.message}")
        return 2
    except Exception as e:
        logger.exception(f"Command {args.command} failed: {e}")
        return 1
