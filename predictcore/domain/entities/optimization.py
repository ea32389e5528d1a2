"""Domain entities describing optimization runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from predictcore.domain.entities.evaluation import EvaluationResult
from predictcore.domain.entities.model_version import Hyperparameters, ModelVersion


class OptimizationStatus(str, Enum):
    """Terminal state of an optimization job."""

    PROMOTED = "promoted"
    REJECTED = "rejected"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class TrialResult:
    """Score of a single hyperparameter trial on held-out data."""

    trial: int
    hyperparameters: Hyperparameters
    score: float


@dataclass
class OptimizationJob:
    """Transient record of one optimization run."""

    evaluation: EvaluationResult
    base_version: ModelVersion
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    trials: List[TrialResult] = field(default_factory=list)
    baseline_score: Optional[float] = None
    candidate: Optional[ModelVersion] = None

    @property
    def best_trial(self) -> Optional[TrialResult]:
        if not self.trials:
            return None
        return max(self.trials, key=lambda trial: trial.score)


@dataclass(frozen=True)
class OptimizationOutcome:
    """Operational report of a finished optimization job."""

    status: OptimizationStatus
    base_version_id: int
    candidate_id: Optional[int] = None
    trials: int = 0
    baseline_score: Optional[float] = None
    best_score: Optional[float] = None
    message: str = ""
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
