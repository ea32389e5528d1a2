from __future__ import annotations

from predictcore.domain.entities.evaluation import EvaluationResult, MetricScore, Verdict
from predictcore.domain.entities.optimization import (
    OptimizationOutcome,
    OptimizationStatus,
)
from predictcore.infrastructure.monitoring import (
    CompositePredictionMonitor,
    MetricsPredictionMonitor,
    StructlogPredictionMonitor,
)
from tests.conftest import make_prediction, make_version


class _BrokenMonitor:
    def on_prediction(self, prediction, source) -> None:
        raise RuntimeError("sink down")

    def on_evaluation(self, result) -> None:
        raise RuntimeError("sink down")

    def on_optimization(self, outcome) -> None:
        raise RuntimeError("sink down")

    def on_version_change(self, previous, current, reason) -> None:
        raise RuntimeError("sink down")


def _evaluation(verdict: Verdict) -> EvaluationResult:
    return EvaluationResult(
        scores={"accuracy": MetricScore(name="accuracy", value=0.7, verdict=verdict)},
        verdict=verdict,
    )


def test_metrics_monitor_counts_signals() -> None:
    monitor = MetricsPredictionMonitor()

    monitor.on_prediction(make_prediction(), "miss")
    monitor.on_prediction(make_prediction(), "hit")
    monitor.on_prediction(make_prediction(), "hit")
    monitor.on_evaluation(_evaluation(Verdict.FAIL))
    monitor.on_optimization(
        OptimizationOutcome(status=OptimizationStatus.PROMOTED, base_version_id=1)
    )
    monitor.on_version_change(None, make_version(), "bootstrap")

    snapshot = monitor.snapshot()
    assert snapshot["predictions"] == {"miss": 1, "hit": 2}
    assert snapshot["verdicts"] == {"fail": 1}
    assert snapshot["optimizations"] == {"promoted": 1}
    assert snapshot["version_changes"] == {"bootstrap": 1}
    assert snapshot["last_evaluation"]["breached"] == ["accuracy"]
    assert monitor.last_optimization.status is OptimizationStatus.PROMOTED


def test_composite_isolates_failing_monitor() -> None:
    metrics = MetricsPredictionMonitor()
    composite = CompositePredictionMonitor(
        [_BrokenMonitor(), StructlogPredictionMonitor(log_predictions=True), metrics]
    )

    composite.on_prediction(make_prediction(), "stale")
    composite.on_evaluation(_evaluation(Verdict.PASS))
    composite.on_optimization(
        OptimizationOutcome(status=OptimizationStatus.CANCELLED, base_version_id=1)
    )
    composite.on_version_change(make_version(1), make_version(2), "promote")

    assert metrics.predictions["stale"] == 1
    assert metrics.verdicts["pass"] == 1
    assert metrics.optimizations["cancelled"] == 1
    assert metrics.version_changes["promote"] == 1
