"""
Domain Entities - Evaluation

Threshold policy and evaluation results. A verdict is FAIL when any metric
breaches its critical threshold, DEGRADED when any breaches only its warning
threshold, PASS otherwise.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from predictcore.domain.entities.prediction import Prediction


class Verdict(str, Enum):
    """Overall outcome of an evaluation cycle."""

    PASS = "pass"
    DEGRADED = "degraded"
    FAIL = "fail"


class Metric(str, Enum):
    """Metrics computed by the evaluator."""

    ACCURACY = "accuracy"
    PRECISION = "precision"
    RECALL = "recall"
    F1_SCORE = "f1_score"
    FAIRNESS = "fairness"
    LATENCY_MS = "latency_ms"


LOWER_IS_BETTER = frozenset({Metric.LATENCY_MS.value})

_SEVERITY = {Verdict.PASS: 0, Verdict.DEGRADED: 1, Verdict.FAIL: 2}


def worst(verdicts: List[Verdict]) -> Verdict:
    """Most severe verdict of a collection (PASS when empty)."""
    result = Verdict.PASS
    for verdict in verdicts:
        if _SEVERITY[verdict] > _SEVERITY[result]:
            result = verdict
    return result


@dataclass(frozen=True)
class MetricThreshold:
    """Warning and critical limits for a single metric."""

    warning: float
    critical: float
    higher_is_better: bool = True

    def __post_init__(self) -> None:
        if not (math.isfinite(self.warning) and math.isfinite(self.critical)):
            raise ValueError("Threshold values must be finite numbers.")
        if self.higher_is_better and self.critical > self.warning:
            raise ValueError(
                "Critical threshold cannot exceed the warning threshold "
                "for a higher-is-better metric."
            )
        if not self.higher_is_better and self.critical < self.warning:
            raise ValueError(
                "Critical threshold cannot be below the warning threshold "
                "for a lower-is-better metric."
            )

    def assess(self, value: float) -> Verdict:
        if self.higher_is_better:
            if value < self.critical:
                return Verdict.FAIL
            if value < self.warning:
                return Verdict.DEGRADED
            return Verdict.PASS
        if value > self.critical:
            return Verdict.FAIL
        if value > self.warning:
            return Verdict.DEGRADED
        return Verdict.PASS


@dataclass(frozen=True)
class MetricScore:
    """Score of one metric and its standing against the thresholds."""

    name: str
    value: float
    threshold: Optional[MetricThreshold] = None
    verdict: Verdict = Verdict.PASS

    @property
    def passed_warning(self) -> bool:
        return self.verdict is Verdict.PASS

    @property
    def passed_critical(self) -> bool:
        return self.verdict is not Verdict.FAIL


@dataclass(frozen=True)
class EvaluationSummary:
    """Persisted digest of an evaluation, attached to model versions."""

    verdict: Verdict
    metrics: Dict[str, float] = field(default_factory=dict)
    breached: Tuple[str, ...] = ()
    sample_size: int = 0
    evaluated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def passed(self) -> bool:
        return self.verdict is Verdict.PASS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "metrics": dict(self.metrics),
            "breached": list(self.breached),
            "sample_size": self.sample_size,
            "evaluated_at": self.evaluated_at,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EvaluationSummary":
        evaluated_at = payload.get("evaluated_at") or datetime.now(timezone.utc)
        if isinstance(evaluated_at, str):
            evaluated_at = datetime.fromisoformat(evaluated_at)
        if evaluated_at.tzinfo is None:
            evaluated_at = evaluated_at.replace(tzinfo=timezone.utc)
        return cls(
            verdict=Verdict(payload["verdict"]),
            metrics={k: float(v) for k, v in (payload.get("metrics") or {}).items()},
            breached=tuple(payload.get("breached") or ()),
            sample_size=int(payload.get("sample_size", 0)),
            evaluated_at=evaluated_at,
        )


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of one evaluation cycle over a batch of predictions."""

    scores: Dict[str, MetricScore]
    verdict: Verdict
    predictions: Tuple[Prediction, ...] = ()
    slice_accuracy: Dict[str, Dict[str, float]] = field(default_factory=dict)
    evaluated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def sample_size(self) -> int:
        return len(self.predictions)

    @property
    def breached(self) -> Tuple[str, ...]:
        return tuple(
            name
            for name, score in self.scores.items()
            if score.verdict is not Verdict.PASS
        )

    def metric(self, name: str) -> Optional[float]:
        score = self.scores.get(name)
        return score.value if score else None

    def summary(self) -> EvaluationSummary:
        return EvaluationSummary(
            verdict=self.verdict,
            metrics={name: score.value for name, score in self.scores.items()},
            breached=self.breached,
            sample_size=self.sample_size,
            evaluated_at=self.evaluated_at,
        )
