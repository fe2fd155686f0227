from datetime import date

from rich.console import Console

from funding_stages.domain.events import StageCompleted
from funding_stages.ui.report import format_amount, history_table, milestones_table, render_tracker


def _console() -> Console:
    return Console(record=True, width=120, color_system=None)


def test_format_amount():
    assert format_amount(1_000_000) == "$1,000,000"
    assert format_amount(0) == "$0"


def test_render_tracker_shows_current_and_selected(tracker):
    tracker.complete_stage("pre-seed", on=date(2024, 7, 1))
    tracker.set_current_stage("series-a")
    console = _console()

    render_tracker(tracker.snapshot(), console)
    text = console.export_text()

    assert "1/3 completed" in text
    assert "Current: Seed" in text
    assert "Viewing: Series A" in text
    assert "2024-07-01" in text
    assert "Series A *" in text


def test_render_terminal_tracker(tracker):
    for stage_id in ("pre-seed", "seed", "series-a"):
        tracker.complete_stage(stage_id)
    console = _console()

    render_tracker(tracker.snapshot(), console)

    assert "Fundraising complete" in console.export_text()


def test_milestones_and_history_tables(tracker):
    console = _console()
    console.print(milestones_table(tracker.milestones()))
    console.print(history_table([StageCompleted(owner_id="o", stage_id="seed", completed_on="2024-01-01")]))
    console.print(history_table([]))
    text = console.export_text()

    assert "CURRENT" in text
    assert "StageCompleted" in text
    assert "completed_on=2024-01-01" in text
