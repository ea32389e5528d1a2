"""DTOs describing the background optimization loop."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from predictcore.domain.entities.optimization import (
    OptimizationOutcome,
    OptimizationStatus,
)


class OptimizationOutcomeDTO(BaseModel):
    status: OptimizationStatus
    base_version_id: int
    candidate_id: Optional[int] = None
    trials: int = 0
    baseline_score: Optional[float] = None
    best_score: Optional[float] = None
    message: str = ""
    finished_at: datetime

    @classmethod
    def from_domain(cls, outcome: OptimizationOutcome) -> "OptimizationOutcomeDTO":
        return cls(
            status=outcome.status,
            base_version_id=outcome.base_version_id,
            candidate_id=outcome.candidate_id,
            trials=outcome.trials,
            baseline_score=outcome.baseline_score,
            best_score=outcome.best_score,
            message=outcome.message,
            finished_at=outcome.finished_at,
        )


class OptimizerStatusDTO(BaseModel):
    """DTO returned by GET /optimizer."""

    in_flight: bool = Field(description="Whether a job is currently running")
    coalesced_triggers: int = Field(
        description="Triggers absorbed by an already running job"
    )
    degraded_streak: int = Field(
        description="Consecutive DEGRADED verdicts observed for the active version"
    )
    degraded_cycles_before_trigger: int
    metric: str
    max_trials: int
    last_outcome: Optional[OptimizationOutcomeDTO] = None
