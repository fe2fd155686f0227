from decimal import Decimal

import pytest

from funding_stages.domain.catalog import DEFAULT_STAGE_CATALOG, seeds_from_names, slugify_stage_id
from funding_stages.domain.errors import ValidationError
from funding_stages.domain.models import StageSeed, StageStatus
from funding_stages.domain.rules import (
    check_positional_order,
    clamp_amount,
    clamp_progress,
    is_full_progress,
    validate_seeds,
)
from funding_stages.utils.numbers import clamp, safe_int

C, U, D = StageStatus.CURRENT, StageStatus.UPCOMING, StageStatus.COMPLETED


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(150, 100), (100, 100), (0, 0), (-5, 0), (42, 42), ("77", 77), (None, 0), (float("nan"), 0)],
)
def test_clamp_progress(raw, expected):
    assert clamp_progress(raw) == expected


def test_clamp_amount_floors_at_zero():
    assert clamp_amount(-5) == 0
    assert clamp_amount(10**12) == 10**12


def test_is_full_progress():
    assert is_full_progress(100)
    assert not is_full_progress(99)


def test_safe_int_behaves_like_form_parsing():
    assert safe_int("12.9") == 12
    assert safe_int("") == 0
    assert safe_int("abc", default=-1) == -1
    assert safe_int(Decimal("3.5")) == 3
    assert safe_int(True) == 0
    assert safe_int(float("inf")) == 0


def test_clamp_without_upper_bound():
    assert clamp(5, 0) == 5
    assert clamp(-1, 0) == 0
    assert clamp(11, 0, 10) == 10


@pytest.mark.parametrize(
    "layout",
    [[C, U, U], [D, C, U], [D, D, C], [D, D, D], [C]],
)
def test_positional_order_accepts_valid_layouts(layout):
    assert check_positional_order(layout).passed


@pytest.mark.parametrize(
    ("layout", "reason"),
    [
        ([C, C, U], "current stages"),
        ([U, U, U], "no current stage"),
        ([D, U, C], "not completed"),
        ([C, D, U], "not upcoming"),
        ([], "no stages"),
    ],
)
def test_positional_order_rejects_invalid_layouts(layout, reason):
    result = check_positional_order(layout)
    assert not result.passed
    assert reason in result.reason


def test_validate_seeds_blank_name():
    with pytest.raises(ValidationError, match="blank name"):
        validate_seeds([StageSeed(id="x", name=" ")])


def test_validate_seeds_blank_id():
    with pytest.raises(ValidationError, match="blank id"):
        validate_seeds([StageSeed(id="", name="X")])


@pytest.mark.parametrize("target", [2.7, 1_000_000.0, "500", Decimal("10"), True, None])
def test_validate_seeds_rejects_non_integer_target(target):
    with pytest.raises(ValidationError, match="whole number") as exc_info:
        validate_seeds([StageSeed(id="a", name="A", target_amount=target)])
    assert exc_info.value.stage_id == "a"


class TestCatalog:
    def test_default_catalog_order(self):
        assert [s.id for s in DEFAULT_STAGE_CATALOG] == [
            "pre-seed",
            "seed",
            "series-a",
            "series-b",
            "series-c",
            "series-d-plus",
        ]
        validate_seeds(DEFAULT_STAGE_CATALOG)

    def test_slugify(self):
        assert slugify_stage_id("Series D+") == "series-d-plus"
        assert slugify_stage_id("  Pre-seed ") == "pre-seed"
        assert slugify_stage_id("Series A") == "series-a"

    def test_seeds_from_names(self):
        seeds = seeds_from_names(["Pre-seed", "Seed"])
        assert [(s.id, s.name, s.target_amount) for s in seeds] == [("pre-seed", "Pre-seed", 0), ("seed", "Seed", 0)]
