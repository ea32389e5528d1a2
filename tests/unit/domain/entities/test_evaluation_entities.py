from __future__ import annotations

from datetime import datetime

import pytest

from predictcore.domain.entities.evaluation import (
    EvaluationResult,
    EvaluationSummary,
    MetricScore,
    MetricThreshold,
    Verdict,
    worst,
)


def test_threshold_assess_higher_is_better() -> None:
    threshold = MetricThreshold(warning=0.85, critical=0.75)

    assert threshold.assess(0.9) is Verdict.PASS
    assert threshold.assess(0.85) is Verdict.PASS
    assert threshold.assess(0.80) is Verdict.DEGRADED
    assert threshold.assess(0.70) is Verdict.FAIL


def test_threshold_assess_lower_is_better() -> None:
    threshold = MetricThreshold(warning=50.0, critical=100.0, higher_is_better=False)

    assert threshold.assess(10.0) is Verdict.PASS
    assert threshold.assess(75.0) is Verdict.DEGRADED
    assert threshold.assess(150.0) is Verdict.FAIL


@pytest.mark.parametrize(
    "warning, critical, higher_is_better",
    [
        (0.7, 0.8, True),
        (100.0, 50.0, False),
        (float("nan"), 0.5, True),
        (0.9, float("inf"), True),
    ],
)
def test_threshold_rejects_inconsistent_limits(
    warning: float, critical: float, higher_is_better: bool
) -> None:
    with pytest.raises(ValueError):
        MetricThreshold(
            warning=warning, critical=critical, higher_is_better=higher_is_better
        )


def test_worst_picks_most_severe_verdict() -> None:
    assert worst([]) is Verdict.PASS
    assert worst([Verdict.PASS, Verdict.DEGRADED]) is Verdict.DEGRADED
    assert worst([Verdict.DEGRADED, Verdict.FAIL, Verdict.PASS]) is Verdict.FAIL


def test_result_summary_lists_breached_metrics() -> None:
    result = EvaluationResult(
        scores={
            "accuracy": MetricScore(name="accuracy", value=0.8, verdict=Verdict.DEGRADED),
            "recall": MetricScore(name="recall", value=0.95),
        },
        verdict=Verdict.DEGRADED,
    )

    digest = result.summary()

    assert result.breached == ("accuracy",)
    assert result.metric("recall") == 0.95
    assert result.metric("fairness") is None
    assert digest.metrics == {"accuracy": 0.8, "recall": 0.95}
    assert digest.passed is False


def test_summary_from_dict_accepts_iso_strings() -> None:
    restored = EvaluationSummary.from_dict(
        {
            "verdict": "pass",
            "metrics": {"accuracy": "0.91"},
            "breached": [],
            "sample_size": 12,
            "evaluated_at": "2024-05-01T10:00:00",
        }
    )

    assert restored.passed is True
    assert restored.metrics == {"accuracy": 0.91}
    assert restored.evaluated_at.tzinfo is not None
    assert isinstance(restored.to_dict()["evaluated_at"], datetime)
