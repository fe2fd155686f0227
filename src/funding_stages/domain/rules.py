"""
Domain Rules: input normalisation and reporting checks.

Pure functions. Out-of-range inputs are clamped silently; clamping is
never an error condition.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from funding_stages.domain.errors import ValidationError
from funding_stages.domain.models import FundingStage, StageSeed, StageStatus
from funding_stages.observability.logging import get_logger
from funding_stages.utils.numbers import clamp, safe_int

logger = get_logger(__name__)

PROGRESS_MIN = 0
PROGRESS_MAX = 100
COMPLETE_PROGRESS = PROGRESS_MAX


@dataclass(frozen=True)
class RuleResult:
    """Result of a rule check."""

    passed: bool
    reason: str = ""


# =============================================================================
# Normalisation
# =============================================================================


def clamp_progress(progress: Any) -> int:
    """Clamp a progress percentage into [0, 100]."""
    raw = safe_int(progress)
    value = clamp(raw, PROGRESS_MIN, PROGRESS_MAX)
    if value != raw:
        logger.debug(f"Progress {raw} clamped to {value}")
    return value


def clamp_amount(amount: Any) -> int:
    """Clamp a currency amount to >= 0 (negative becomes 0)."""
    raw = safe_int(amount)
    value = clamp(raw, 0)
    if value != raw:
        logger.debug(f"Amount {raw} clamped to {value}")
    return value


def is_full_progress(progress: int) -> bool:
    return progress >= COMPLETE_PROGRESS


# =============================================================================
# Seed Validation
# =============================================================================


def validate_seeds(seeds: Sequence[StageSeed]) -> None:
    """
    Validate a stage catalog before a tracker is built from it.

    Raises ValidationError for an empty catalog, blank ids/names,
    duplicate ids, non-integer or negative targets.
    """
    if not seeds:
        raise ValidationError("A tracker needs at least one funding stage")

    seen: set[str] = set()
    for index, seed in enumerate(seeds):
        if not seed.id or not seed.id.strip():
            raise ValidationError(f"Stage #{index} has a blank id", details={"index": index})
        if not seed.name or not seed.name.strip():
            raise ValidationError(f"Stage {seed.id!r} has a blank name", stage_id=seed.id)
        if not isinstance(seed.target_amount, int) or isinstance(seed.target_amount, bool):
            raise ValidationError(
                f"Stage {seed.id!r} target amount must be a whole number",
                stage_id=seed.id,
                details={"target_amount": repr(seed.target_amount)},
            )
        if seed.target_amount < 0:
            raise ValidationError(
                f"Stage {seed.id!r} has a negative target amount",
                stage_id=seed.id,
                details={"target_amount": seed.target_amount},
            )
        if seed.id in seen:
            raise ValidationError(f"Duplicate stage id {seed.id!r}", stage_id=seed.id)
        seen.add(seed.id)


def check_positional_order(statuses: Iterable[StageStatus]) -> RuleResult:
    """
    Check the lifecycle invariant: completed* current? upcoming*.

    Exactly one current stage, or none when every stage is completed.
    """
    statuses = list(statuses)
    if not statuses:
        return RuleResult(False, "no stages")

    currents = [i for i, s in enumerate(statuses) if s == StageStatus.CURRENT]
    if len(currents) > 1:
        return RuleResult(False, f"{len(currents)} current stages")

    if not currents:
        if all(s == StageStatus.COMPLETED for s in statuses):
            return RuleResult(True)
        return RuleResult(False, "no current stage but not all stages completed")

    pivot = currents[0]
    if any(s != StageStatus.COMPLETED for s in statuses[:pivot]):
        return RuleResult(False, f"stage before current (#{pivot}) is not completed")
    if any(s != StageStatus.UPCOMING for s in statuses[pivot + 1 :]):
        return RuleResult(False, f"stage after current (#{pivot}) is not upcoming")
    return RuleResult(True)


# =============================================================================
# Reporting
# =============================================================================


def stage_sums(stages: Iterable[FundingStage]) -> tuple[int, int]:
    """Sum of per-stage (target, raised)."""
    target = 0
    raised = 0
    for stage in stages:
        target += stage.target_amount
        raised += stage.raised_amount
    return target, raised


def check_aggregates_reconciled(
    stages: Iterable[FundingStage],
    total_target_amount: int,
    total_raised_amount: int,
) -> RuleResult:
    """
    Compare the directly-set totals with per-stage sums.

    Reporting only: totals are independent fields and are never
    rewritten from this check.
    """
    target, raised = stage_sums(stages)
    problems = []
    if target != total_target_amount:
        problems.append(f"target {total_target_amount} != stage sum {target}")
    if raised != total_raised_amount:
        problems.append(f"raised {total_raised_amount} != stage sum {raised}")
    if problems:
        return RuleResult(False, "; ".join(problems))
    return RuleResult(True)
