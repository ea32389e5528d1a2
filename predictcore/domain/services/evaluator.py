"""
Domain Service - Evaluation

Scores a batch of predictions against ground truth (or a proxy for it).
The evaluator is stateless: identical inputs always produce the same scores
and verdict.
"""

from collections import defaultdict
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from sklearn.metrics import accuracy_score, f1_score, precision_score, recall_score

from predictcore.domain.entities.errors import MalformedInputError
from predictcore.domain.entities.evaluation import (
    EvaluationResult,
    Metric,
    MetricScore,
    MetricThreshold,
    Verdict,
    worst,
)
from predictcore.domain.entities.prediction import Outcome, Prediction

LATENCY_PERCENTILE = 95


class Evaluator:
    """Computes quality metrics and applies the threshold policy."""

    def __init__(
        self,
        thresholds: Mapping[str, MetricThreshold],
        sensitive_features: Sequence[str] = (),
    ):
        self.thresholds = dict(thresholds)
        self.sensitive_features = tuple(sensitive_features)

    def evaluate(
        self, predictions: Sequence[Prediction], outcomes: Sequence[Outcome]
    ) -> EvaluationResult:
        """
        Evaluate ``predictions`` against the aligned ``outcomes``.

        Raises:
            MalformedInputError: If the batch is empty, misaligned, or carries
                labels other than 0/1.
        """
        self._validate(predictions, outcomes)

        y_true = [outcome.label for outcome in outcomes]
        y_pred = [prediction.value for prediction in predictions]

        values: Dict[str, float] = {
            Metric.ACCURACY.value: float(accuracy_score(y_true, y_pred)),
            Metric.PRECISION.value: float(
                precision_score(y_true, y_pred, labels=[0, 1], zero_division=1.0)
            ),
            Metric.RECALL.value: float(
                recall_score(y_true, y_pred, labels=[0, 1], zero_division=1.0)
            ),
            Metric.F1_SCORE.value: float(
                f1_score(y_true, y_pred, labels=[0, 1], zero_division=1.0)
            ),
            Metric.LATENCY_MS.value: float(
                np.percentile(
                    [prediction.latency_ms for prediction in predictions],
                    LATENCY_PERCENTILE,
                )
            ),
        }

        fairness, slices = self._fairness(y_true, y_pred, outcomes)
        if fairness is not None:
            values[Metric.FAIRNESS.value] = fairness

        scores = {name: self._score(name, value) for name, value in values.items()}
        return EvaluationResult(
            scores=scores,
            verdict=worst([score.verdict for score in scores.values()]),
            predictions=tuple(predictions),
            slice_accuracy=slices,
        )

    def _score(self, name: str, value: float) -> MetricScore:
        threshold = self.thresholds.get(name)
        verdict = threshold.assess(value) if threshold else Verdict.PASS
        return MetricScore(name=name, value=value, threshold=threshold, verdict=verdict)

    def _fairness(
        self,
        y_true: Sequence[int],
        y_pred: Sequence[int],
        outcomes: Sequence[Outcome],
    ) -> Tuple[Optional[float], Dict[str, Dict[str, float]]]:
        """Lowest ratio of worst to best slice accuracy across sensitive features."""
        slices: Dict[str, Dict[str, float]] = {}
        ratios: List[float] = []
        for feature in self.sensitive_features:
            hits: Dict[str, List[int]] = defaultdict(list)
            for truth, predicted, outcome in zip(y_true, y_pred, outcomes):
                group = outcome.attributes.get(feature)
                if group is None:
                    continue
                hits[group].append(1 if truth == predicted else 0)
            if len(hits) < 2:
                continue

            accuracy = {group: sum(v) / len(v) for group, v in sorted(hits.items())}
            slices[feature] = accuracy
            best = max(accuracy.values())
            ratios.append(min(accuracy.values()) / best if best > 0 else 1.0)

        return (min(ratios) if ratios else None), slices

    @staticmethod
    def _validate(
        predictions: Sequence[Prediction], outcomes: Sequence[Outcome]
    ) -> None:
        errors: List[str] = []
        if not predictions:
            errors.append("At least one prediction is required.")
        if len(predictions) != len(outcomes):
            errors.append(
                f"Got {len(predictions)} predictions but {len(outcomes)} outcomes."
            )
        invalid = [i for i, o in enumerate(outcomes) if o.label not in (0, 1)]
        if invalid:
            errors.append(f"Outcome labels must be 0 or 1 (indexes {invalid}).")
        if errors:
            raise MalformedInputError(
                "Evaluation inputs are invalid.", details={"errors": errors}
            )
