"""
UI components for funding-stage trackers.
"""

from funding_stages.ui.report import (
    format_amount,
    history_table,
    milestones_table,
    render_tracker,
    stage_detail_panel,
    stages_table,
)

__all__ = [
    "format_amount",
    "history_table",
    "milestones_table",
    "render_tracker",
    "stage_detail_panel",
    "stages_table",
]
