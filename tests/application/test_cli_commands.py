"""
CLI tests: `python -m funding_stages` commands against a temporary database.
"""

from __future__ import annotations

import json

import pytest

from funding_stages.__main__ import build_parser, main
from funding_stages.config.settings import get_settings


@pytest.fixture
def cli(tmp_path, monkeypatch):
    monkeypatch.delenv("FUNDING_DB_PATH", raising=False)
    get_settings.cache_clear()
    db = str(tmp_path / "cli.db")

    def run(*argv: str) -> int:
        return main(["--db", db, *argv])

    yield run
    get_settings.cache_clear()


def test_full_lifecycle(cli, capsys):
    assert cli("init", "acme", "--stages", "Pre-seed, Seed, Series A") == 0
    assert "Created tracker" in capsys.readouterr().out

    assert cli("progress", "acme", "pre-seed", "150", "-5") == 0
    assert cli("complete", "acme", "pre-seed", "--date", "2024-03-01") == 0
    assert "Milestone: acme completed pre-seed on 2024-03-01" in capsys.readouterr().out
    assert cli("select", "acme", "series-a") == 0
    assert cli("amounts", "acme", "6250000", "250000") == 0
    capsys.readouterr()

    assert cli("show", "acme", "--json") == 0
    data = json.loads(capsys.readouterr().out)

    assert data["current_stage_id"] == "seed"
    assert data["selected_stage_id"] == "series-a"
    assert data["total_target_amount"] == 6_250_000
    assert data["stages"][0] == {
        "id": "pre-seed",
        "name": "Pre-seed",
        "status": "completed",
        "target_amount": 0,
        "raised_amount": 0,
        "progress": 100,
        "date": "2024-03-01",
        "description": "",
    }


def test_invalid_transition_exits_with_domain_error(cli, capsys):
    cli("init", "acme", "--stages", "Pre-seed,Seed,Series A")
    capsys.readouterr()

    assert cli("complete", "acme", "series-a") == 2
    assert "Cannot complete stage" in capsys.readouterr().out


def test_unknown_owner_exits_with_domain_error(cli):
    assert cli("show", "ghost") == 2


def test_duplicate_init_exits_with_domain_error(cli):
    assert cli("init", "acme") == 0
    assert cli("init", "acme") == 2


def test_edit_auto_completes_current_stage(cli, capsys):
    cli("init", "acme", "--stages", "Pre-seed,Seed")
    assert cli("edit", "acme", "pre-seed", "100", "1000", "--total-raised", "1000") == 0
    capsys.readouterr()

    cli("show", "acme", "--json")
    data = json.loads(capsys.readouterr().out)
    assert data["current_stage_id"] == "seed"
    assert data["total_raised_amount"] == 1000


def test_owners_milestones_and_history(cli, capsys):
    cli("init", "beta")
    cli("init", "alpha")
    capsys.readouterr()

    assert cli("owners") == 0
    out = capsys.readouterr().out
    assert out.index("alpha") < out.index("beta")

    assert cli("milestones", "alpha") == 0
    assert "Pre-seed" in capsys.readouterr().out

    assert cli("history", "alpha", "--limit", "5") == 0
    assert "TrackerCreated" in capsys.readouterr().out


def test_parser_rejects_bad_date():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["complete", "acme", "seed", "--date", "yesterday"])
