"""
Default funding-stage catalog.

Lifecycle stages offered by the incubator's startup profile wizard, in
pursuit order. Non-lifecycle options (bridge rounds, convertible notes,
grants, bootstrapping) are not stages of the ordered journey.
"""

from __future__ import annotations

import re

from funding_stages.domain.models import StageSeed

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify_stage_id(name: str) -> str:
    """
    Derive a stable stage id from a display name.

    >>> slugify_stage_id("Series D+")
    'series-d-plus'
    """
    text = name.strip().lower().replace("+", " plus")
    return _SLUG_RE.sub("-", text).strip("-")


DEFAULT_STAGE_CATALOG: tuple[StageSeed, ...] = (
    StageSeed(
        id="pre-seed",
        name="Pre-seed",
        target_amount=250_000,
        description="Founders, friends and angels fund the first prototype and team.",
    ),
    StageSeed(
        id="seed",
        name="Seed",
        target_amount=1_000_000,
        description="Seed investors back product-market fit and early traction.",
    ),
    StageSeed(
        id="series-a",
        name="Series A",
        target_amount=5_000_000,
        description="Venture round to scale a proven business model.",
    ),
    StageSeed(
        id="series-b",
        name="Series B",
        target_amount=15_000_000,
        description="Growth capital for market expansion and team scaling.",
    ),
    StageSeed(
        id="series-c",
        name="Series C",
        target_amount=40_000_000,
        description="Late-stage round for new markets, products or acquisitions.",
    ),
    StageSeed(
        id="series-d-plus",
        name="Series D+",
        target_amount=100_000_000,
        description="Pre-exit rounds ahead of an IPO or acquisition.",
    ),
)


def seeds_from_names(names: list[str]) -> list[StageSeed]:
    """Build bare seeds (no targets) from display names."""
    return [StageSeed(id=slugify_stage_id(name), name=name) for name in names]
