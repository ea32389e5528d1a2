"""
Domain port for monitoring the prediction core.

Monitors are strategies: implementations are swapped or combined rather than
specialized by inheritance.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from predictcore.domain.entities.evaluation import EvaluationResult
from predictcore.domain.entities.model_version import ModelVersion
from predictcore.domain.entities.optimization import OptimizationOutcome
from predictcore.domain.entities.prediction import Prediction


class IPredictionMonitor(Protocol):
    """Receives operational signals from the prediction core."""

    def on_prediction(self, prediction: Prediction, source: str) -> None:
        """A prediction was served (``source`` is hit, miss or stale)."""
        ...

    def on_evaluation(self, result: EvaluationResult) -> None:
        """An evaluation cycle finished."""
        ...

    def on_optimization(self, outcome: OptimizationOutcome) -> None:
        """An optimization job finished."""
        ...

    def on_version_change(
        self, previous: Optional[ModelVersion], current: ModelVersion, reason: str
    ) -> None:
        """The active model version changed."""
        ...


class IPredictionMetrics(Protocol):
    """Monitor that also keeps an in-memory snapshot of what it observed."""

    last_evaluation: Optional[Dict[str, Any]]

    def snapshot(self) -> Dict[str, Any]:
        ...
