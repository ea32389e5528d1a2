"""
Monitoring strategies - Infrastructure Layer

Each class implements ``IPredictionMonitor`` on its own; combine them with
``CompositePredictionMonitor``.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import structlog

from predictcore.domain.entities.evaluation import EvaluationResult
from predictcore.domain.entities.model_version import ModelVersion
from predictcore.domain.entities.optimization import OptimizationOutcome
from predictcore.domain.entities.prediction import Prediction
from predictcore.domain.ports.prediction_monitor import IPredictionMonitor

logger = structlog.get_logger(__name__)


class StructlogPredictionMonitor:
    """Emits every signal as a structured log event."""

    def __init__(self, log_predictions: bool = False):
        self.log_predictions = log_predictions

    def on_prediction(self, prediction: Prediction, source: str) -> None:
        if self.log_predictions:
            logger.debug(
                "monitor.prediction",
                source=source,
                model_version_id=prediction.model_version_id,
                value=prediction.value,
                confidence=prediction.confidence,
            )

    def on_evaluation(self, result: EvaluationResult) -> None:
        log = logger.warning if result.breached else logger.info
        log(
            "monitor.evaluation",
            verdict=result.verdict.value,
            breached=list(result.breached),
            metrics={name: score.value for name, score in result.scores.items()},
        )

    def on_optimization(self, outcome: OptimizationOutcome) -> None:
        logger.info(
            "monitor.optimization",
            status=outcome.status.value,
            base_version_id=outcome.base_version_id,
            candidate_id=outcome.candidate_id,
            message=outcome.message,
        )

    def on_version_change(
        self, previous: Optional[ModelVersion], current: ModelVersion, reason: str
    ) -> None:
        logger.info(
            "monitor.version_change",
            previous_version_id=previous.id if previous else None,
            version_id=current.id,
            reason=reason,
        )


class MetricsPredictionMonitor:
    """Keeps counters and the latest evaluation in memory for the HTTP surface."""

    def __init__(self) -> None:
        self.predictions: Counter[str] = Counter()
        self.verdicts: Counter[str] = Counter()
        self.optimizations: Counter[str] = Counter()
        self.version_changes: Counter[str] = Counter()
        self.last_evaluation: Optional[Dict[str, Any]] = None
        self.last_optimization: Optional[OptimizationOutcome] = None
        self.started_at = datetime.now(timezone.utc)

    def on_prediction(self, prediction: Prediction, source: str) -> None:
        self.predictions[source] += 1

    def on_evaluation(self, result: EvaluationResult) -> None:
        self.verdicts[result.verdict.value] += 1
        self.last_evaluation = result.summary().to_dict()

    def on_optimization(self, outcome: OptimizationOutcome) -> None:
        self.optimizations[outcome.status.value] += 1
        self.last_optimization = outcome

    def on_version_change(
        self, previous: Optional[ModelVersion], current: ModelVersion, reason: str
    ) -> None:
        self.version_changes[reason] += 1

    def snapshot(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "predictions": dict(self.predictions),
            "verdicts": dict(self.verdicts),
            "optimizations": dict(self.optimizations),
            "version_changes": dict(self.version_changes),
            "last_evaluation": self.last_evaluation,
        }


class CompositePredictionMonitor:
    """Fans each signal out to several monitors; one failing monitor never affects the others."""

    def __init__(self, monitors: Sequence[IPredictionMonitor]):
        self.monitors: List[IPredictionMonitor] = list(monitors)

    def on_prediction(self, prediction: Prediction, source: str) -> None:
        self._dispatch("on_prediction", prediction, source)

    def on_evaluation(self, result: EvaluationResult) -> None:
        self._dispatch("on_evaluation", result)

    def on_optimization(self, outcome: OptimizationOutcome) -> None:
        self._dispatch("on_optimization", outcome)

    def on_version_change(
        self, previous: Optional[ModelVersion], current: ModelVersion, reason: str
    ) -> None:
        self._dispatch("on_version_change", previous, current, reason)

    def _dispatch(self, method: str, *args: Any) -> None:
        for monitor in self.monitors:
            try:
                getattr(monitor, method)(*args)
            except Exception as exc:
                logger.error(
                    "monitor.failed",
                    monitor=type(monitor).__name__,
                    signal=method,
                    error=str(exc),
                    exc_info=exc,
                )
