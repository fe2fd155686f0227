from datetime import UTC, datetime

from funding_stages.domain.errors import InvalidStageTransitionError, StageNotFoundError
from funding_stages.domain.events import (
    DomainEvent,
    StageCompleted,
    TrackerCreated,
    event_from_record,
)


def test_payload_excludes_envelope():
    event = StageCompleted(owner_id="acme", stage_id="seed", completed_on="2024-01-01", next_stage_id="series-a")

    assert event.event_type == "StageCompleted"
    assert event.payload() == {"stage_id": "seed", "completed_on": "2024-01-01", "next_stage_id": "series-a"}


def test_event_from_record_restores_tuple_fields():
    ts = datetime(2024, 1, 1, tzinfo=UTC)
    event = event_from_record(
        "TrackerCreated",
        owner_id="acme",
        event_id="e1",
        timestamp=ts,
        payload={"stage_ids": ["a", "b"], "current_stage_id": "a", "dropped_field": 1},
    )

    assert event == TrackerCreated(
        owner_id="acme", event_id="e1", timestamp=ts, stage_ids=("a", "b"), current_stage_id="a"
    )


def test_event_from_record_unknown_type_falls_back_to_base():
    ts = datetime(2024, 1, 1, tzinfo=UTC)
    event = event_from_record("Renamed", owner_id="acme", event_id="e2", timestamp=ts, payload={"x": 1})

    assert type(event) is DomainEvent
    assert event.owner_id == "acme"


def test_error_to_dict_carries_transition_details():
    err = InvalidStageTransitionError(
        "nope", owner_id="acme", stage_id="series-a", status="upcoming", current_stage_id="seed"
    )

    assert err.to_dict() == {
        "error_code": "INVALID_STAGE_TRANSITION",
        "message": "nope",
        "owner_id": "acme",
        "stage_id": "series-a",
        "details": {"status": "upcoming", "current_stage_id": "seed"},
    }
    assert StageNotFoundError("missing").error_code == "STAGE_NOT_FOUND"
