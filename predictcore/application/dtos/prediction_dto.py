"""
Application DTOs - Prediction

Data Transfer Objects for serving requests, their responses and the
evaluation reports attached to labeled batches.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel, Field

from predictcore.domain.entities.evaluation import EvaluationResult, Verdict
from predictcore.domain.entities.prediction import Outcome

if TYPE_CHECKING:
    from predictcore.application.use_cases.prediction_core import (
        BatchOutcome,
        ServedPrediction,
    )


class PredictionRequestDTO(BaseModel):
    """Raw record to score."""

    features: Dict[str, Any] = Field(description="Raw feature values keyed by name")

    model_config = {
        "json_schema_extra": {"example": {"features": {"a": 1.0, "b": "x"}}}
    }


class OutcomeDTO(BaseModel):
    """Observed label for one record of a batch."""

    label: int = Field(ge=0, le=1, description="Observed binary label")
    attributes: Dict[str, str] = Field(
        default_factory=dict,
        description="Sensitive attributes used for fairness slices; "
        "taken from the record when omitted",
    )

    def to_domain(self) -> Outcome:
        return Outcome(label=self.label, attributes=dict(self.attributes))


class BatchPredictionRequestDTO(BaseModel):
    """Records to score, optionally with their observed outcomes."""

    records: List[Dict[str, Any]] = Field(min_length=1)
    outcomes: Optional[List[OutcomeDTO]] = Field(
        default=None,
        description="When present, the batch is evaluated after serving",
    )


class PredictionResponseDTO(BaseModel):
    """DTO returned for every served prediction."""

    value: int
    confidence: float
    score: float
    model_version_id: int
    fingerprint: str
    latency_ms: float
    generated_at: datetime
    source: str = Field(description="hit, miss or stale")

    model_config = {"protected_namespaces": ()}

    @classmethod
    def from_domain(cls, served: ServedPrediction) -> "PredictionResponseDTO":
        prediction = served.prediction
        return cls(
            value=prediction.value,
            confidence=prediction.confidence,
            score=prediction.score,
            model_version_id=prediction.model_version_id,
            fingerprint=prediction.fingerprint,
            latency_ms=prediction.latency_ms,
            generated_at=prediction.generated_at,
            source=served.source.value,
        )


class MetricScoreDTO(BaseModel):
    value: float
    verdict: Verdict
    warning: Optional[float] = None
    critical: Optional[float] = None


class EvaluationDTO(BaseModel):
    """Evaluation report of a labeled batch."""

    verdict: Verdict
    metrics: Dict[str, MetricScoreDTO]
    breached: List[str]
    sample_size: int
    slice_accuracy: Dict[str, Dict[str, float]] = Field(default_factory=dict)
    evaluated_at: datetime

    @classmethod
    def from_domain(cls, result: EvaluationResult) -> "EvaluationDTO":
        return cls(
            verdict=result.verdict,
            metrics={
                name: MetricScoreDTO(
                    value=score.value,
                    verdict=score.verdict,
                    warning=score.threshold.warning if score.threshold else None,
                    critical=score.threshold.critical if score.threshold else None,
                )
                for name, score in result.scores.items()
            },
            breached=list(result.breached),
            sample_size=result.sample_size,
            slice_accuracy=result.slice_accuracy,
            evaluated_at=result.evaluated_at,
        )


class BatchPredictionResponseDTO(BaseModel):
    predictions: List[PredictionResponseDTO]
    evaluation: Optional[EvaluationDTO] = None
    optimization_triggered: bool = False

    @classmethod
    def from_domain(cls, outcome: BatchOutcome) -> "BatchPredictionResponseDTO":
        return cls(
            predictions=[
                PredictionResponseDTO.from_domain(served)
                for served in outcome.predictions
            ],
            evaluation=EvaluationDTO.from_domain(outcome.evaluation)
            if outcome.evaluation
            else None,
            optimization_triggered=outcome.optimization_triggered,
        )
