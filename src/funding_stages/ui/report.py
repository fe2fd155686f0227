"""
Rich renderables for funding trackers.

Used by the CLI to print a tracker's stage list, milestones and event
history.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from funding_stages.domain.events import DomainEvent
from funding_stages.domain.models import StageSnapshot, StageStatus, TrackerSnapshot

STATUS_STYLES = {
    StageStatus.COMPLETED: "green",
    StageStatus.CURRENT: "bold cyan",
    StageStatus.UPCOMING: "dim",
}


def format_amount(value: int) -> str:
    return f"${value:,}"


def _status_text(status: StageStatus) -> Text:
    return Text(status.value.upper(), style=STATUS_STYLES.get(status, ""))


def _build_header(snapshot: TrackerSnapshot) -> Panel:
    completed = snapshot.completed_count
    total = len(snapshot.stages)

    grid = Table.grid(expand=True)
    grid.add_column(ratio=2)
    grid.add_column(ratio=2)
    grid.add_column(justify="right", ratio=2)

    left = Text()
    left.append(f"Funding stages: {snapshot.owner_id}", style="bold white")
    left.append(f"\n{completed}/{total} completed", style="dim")

    mid = Text()
    if snapshot.is_terminal:
        mid.append("Fundraising complete", style="bold green")
    else:
        current = snapshot.current_stage
        mid.append(f"Current: {current.name if current else '-'}", style="bold cyan")
    if snapshot.selected_stage_id != snapshot.current_stage_id:
        mid.append(f"\nViewing: {snapshot.selected_stage.name}", style="dim")

    right = Text()
    right.append(f"Target: {format_amount(snapshot.total_target_amount)}\n", style="bold")
    right.append(f"Raised: {format_amount(snapshot.total_raised_amount)}", style="bold")

    grid.add_row(left, mid, right)
    return Panel(grid, box=box.ROUNDED, border_style="blue")


def stages_table(stages: Sequence[StageSnapshot], *, selected_stage_id: str | None = None) -> Table:
    t = Table(box=box.MINIMAL_DOUBLE_HEAD, expand=True)
    t.add_column("#", justify="right", style="dim")
    t.add_column("Stage", style="bold")
    t.add_column("Status")
    t.add_column("Progress", justify="right")
    t.add_column("Raised / Target", justify="right")
    t.add_column("Date")

    for i, stage in enumerate(stages, start=1):
        marker = " *" if stage.id == selected_stage_id else ""
        t.add_row(
            str(i),
            f"{stage.name}{marker}",
            _status_text(stage.status),
            f"{stage.progress}%",
            f"{format_amount(stage.raised_amount)} / {format_amount(stage.target_amount)}",
            stage.date.isoformat() if stage.date else "-",
        )

    if not stages:
        t.add_row("-", "-", "-", "-", "-", "-")
    return t


def stage_detail_panel(stage: StageSnapshot) -> Panel:
    """Detail card of one stage (the dashboard's stage view)."""
    body = Text()
    body.append(f"{stage.name}  ", style="bold")
    body.append_text(_status_text(stage.status))
    if stage.description:
        body.append(f"\n{stage.description}", style="dim")
    body.append(
        f"\n\n{format_amount(stage.raised_amount)} / {format_amount(stage.target_amount)}"
        f" ({stage.raised_percentage:.1f}% of target)\n"
    )
    bar = ProgressBar(total=100, completed=stage.progress, width=40)
    return Panel(Group(body, bar, Text(f"Progress: {stage.progress}%")), box=box.ROUNDED, border_style="cyan")


def milestones_table(rows: Sequence[dict[str, Any]]) -> Table:
    t = Table(box=box.SIMPLE_HEAVY, expand=True)
    t.add_column("Milestone", style="bold")
    t.add_column("Status")
    t.add_column("Date")
    t.add_column("Progress", justify="right")

    for row in rows:
        t.add_row(
            row["stage"],
            _status_text(StageStatus(row["status"])),
            row["date"] or "-",
            f"{row['progress']}%",
        )
    return t


def history_table(events: Sequence[DomainEvent]) -> Table:
    t = Table(box=box.SIMPLE_HEAVY, expand=True)
    t.add_column("Time", no_wrap=True)
    t.add_column("Event", style="bold", no_wrap=True)
    t.add_column("Details")

    for event in events:
        details = ", ".join(f"{k}={v}" for k, v in event.payload().items())
        t.add_row(event.timestamp.strftime("%Y-%m-%d %H:%M:%S"), event.event_type, details)

    if not events:
        t.add_row("-", "-", "-")
    return t


def render_tracker(snapshot: TrackerSnapshot, console: Console | None = None) -> None:
    console = console or Console()
    console.print(_build_header(snapshot))
    console.print(stages_table(snapshot.stages, selected_stage_id=snapshot.selected_stage_id))
    console.print(stage_detail_panel(snapshot.selected_stage))
