"""
Entry point for running funding_stages as a module.

Usage:
    python -m funding_stages [options] <command> [args]

Commands:
    init OWNER          Create a tracker (default catalog or --stages)
    show OWNER          Show stages, current and selected stage
    milestones OWNER    Milestone list (stage, status, date, progress)
    progress OWNER STAGE PROGRESS RAISED
    complete OWNER STAGE
    select OWNER STAGE  Select a stage for viewing
    amounts OWNER TARGET RAISED
    edit OWNER STAGE PROGRESS RAISED
    history OWNER       Stored tracker events, newest first
    owners              List owners with a tracker

Options:
    --env ENV           Environment (development/production)
    --db PATH           Override database.path
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="funding_stages",
        description="Funding stage lifecycle tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--env",
        default="development",
        help="Environment (development/production)",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite database path (overrides config)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", help="Create a tracker for an owner")
    p.add_argument("owner")
    p.add_argument("--stages", default=None, help="Comma-separated stage names (default: configured catalog)")

    p = sub.add_parser("show", help="Show a tracker")
    p.add_argument("owner")
    p.add_argument("--json", action="store_true", help="Print the snapshot as JSON")

    p = sub.add_parser("milestones", help="Show the milestone list")
    p.add_argument("owner")

    p = sub.add_parser("progress", help="Set a stage's progress and raised amount")
    p.add_argument("owner")
    p.add_argument("stage")
    p.add_argument("progress")
    p.add_argument("raised")

    p = sub.add_parser("complete", help="Complete the current stage")
    p.add_argument("owner")
    p.add_argument("stage")
    p.add_argument("--date", type=date.fromisoformat, default=None, help="Completion date (YYYY-MM-DD)")

    p = sub.add_parser("select", help="Select a stage for viewing")
    p.add_argument("owner")
    p.add_argument("stage")

    p = sub.add_parser("amounts", help="Set the aggregate target/raised totals")
    p.add_argument("owner")
    p.add_argument("total_target")
    p.add_argument("total_raised")

    p = sub.add_parser("edit", help="Save a stage edit (auto-completes at 100%%)")
    p.add_argument("owner")
    p.add_argument("stage")
    p.add_argument("progress")
    p.add_argument("raised")
    p.add_argument("--total-target", default=None)
    p.add_argument("--total-raised", default=None)
    p.add_argument("--no-auto-complete", action="store_true")

    p = sub.add_parser("history", help="Show stored tracker events")
    p.add_argument("owner")
    p.add_argument("--limit", type=int, default=None)

    sub.add_parser("owners", help="List owners with a tracker")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    # Import here to avoid slow startup for --help
    from funding_stages.app.run import run_command

    try:
        return asyncio.run(run_command(args))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
