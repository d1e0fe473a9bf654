from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class Criticality(str, Enum):
    CRITICAL = "critical"
    BEST_EFFORT = "best_effort"


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    WARNING = "warning"
    FAILED = "failed"


class Step(Protocol):
    """A single idempotent step.

    is_satisfied() is a read-only query of live system state; run() performs
    the change and returns warnings for partial success, or raises on failure.
    """

    step_id: str
    criticality: Criticality

    def is_satisfied(self, ctx: Any) -> bool:
        ...

    def run(self, ctx: Any) -> List[str]:
        ...


@dataclass(frozen=True)
class StepOutcome:
    step_id: str
    status: OutcomeStatus
    reason: str = ""


@dataclass(frozen=True)
class PipelineResult:
    outcomes: List[StepOutcome]
    aborted_at: Optional[str] = None

    @property
    def status(self) -> OutcomeStatus:
        return OutcomeStatus.FAILED if self.aborted_at is not None else OutcomeStatus.SUCCESS

    @property
    def ok(self) -> bool:
        return self.aborted_at is None

    def counts(self) -> Dict[str, int]:
        counts = {s.value: 0 for s in OutcomeStatus}
        for o in self.outcomes:
            counts[o.status.value] += 1
        counts["attempted"] = len(self.outcomes)
        return counts


def _check_unique(steps: Sequence[Step]) -> None:
    seen: set[str] = set()
    for step in steps:
        if step.step_id in seen:
            raise ValueError(f"Duplicate step id: {step.step_id}")
        seen.add(step.step_id)


def _precondition_met(step: Step, ctx: Any) -> bool:
    try:
        return bool(step.is_satisfied(ctx))
    except Exception as e:
        # Unknown state counts as unmet: the action decides the outcome.
        logger.info("Could not evaluate precondition for %s (%s), running it", step.step_id, e)
        return False


def run_pipeline(*, ctx: Any, steps: Sequence[Step]) -> PipelineResult:
    """Run steps in order.

    Critical failures stop the run; best-effort failures become warnings.
    """

    _check_unique(steps)
    outcomes: List[StepOutcome] = []

    for step in steps:
        if _precondition_met(step, ctx):
            logger.info("Skipping step %s (already satisfied)", step.step_id)
            outcomes.append(StepOutcome(step.step_id, OutcomeStatus.SKIPPED))
            continue

        logger.info("Running step %s", step.step_id)
        try:
            warnings = step.run(ctx) or []
        except Exception as e:
            if step.criticality is Criticality.CRITICAL:
                logger.error("Critical step %s failed: %s", step.step_id, e)
                outcomes.append(StepOutcome(step.step_id, OutcomeStatus.FAILED, str(e)))
                return PipelineResult(outcomes=outcomes, aborted_at=step.step_id)
            logger.warning("Step %s failed, continuing: %s", step.step_id, e)
            outcomes.append(StepOutcome(step.step_id, OutcomeStatus.WARNING, str(e)))
            continue

        if warnings:
            reason = "; ".join(warnings)
            logger.warning("Step %s completed with warnings: %s", step.step_id, reason)
            outcomes.append(StepOutcome(step.step_id, OutcomeStatus.WARNING, reason))
        else:
            logger.info("Step %s completed", step.step_id)
            outcomes.append(StepOutcome(step.step_id, OutcomeStatus.SUCCESS))

    return PipelineResult(outcomes=outcomes)
