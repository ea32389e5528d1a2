"""
Domain Service - Inference

Executes a model version against a normalized feature vector. The engine is
a pure function of its inputs; it knows nothing about caching or version
lifecycle, which is what makes caching its output sound.
"""

import math
from typing import Sequence

import numpy as np

from predictcore.domain.entities.errors import InferenceError
from predictcore.domain.entities.features import FeatureVector
from predictcore.domain.entities.model_version import ModelKind, ModelVersion
from predictcore.domain.entities.prediction import Prediction, RawPrediction


def _sigmoid(z: float) -> float:
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    exp_z = math.exp(z)
    return exp_z / (1.0 + exp_z)


class InferenceEngine:
    """Runs linear models on normalized features."""

    def infer(self, features: FeatureVector, model_version: ModelVersion) -> RawPrediction:
        """
        Score a feature vector with ``model_version``.

        Raises:
            InferenceError: If the vector was normalized under a different schema
                or its width does not match the model's weights.
        """
        config = model_version.config
        if features.schema_fingerprint != config.feature_schema.fingerprint:
            raise InferenceError(
                "Features were normalized for a different model schema.",
                details={
                    "model_version_id": model_version.id,
                    "expected_schema": config.feature_schema.fingerprint,
                    "received_schema": features.schema_fingerprint,
                },
            )

        weights = config.architecture.weights
        if len(features) != len(weights):
            raise InferenceError(
                "Feature vector shape does not match the model input.",
                details={
                    "model_version_id": model_version.id,
                    "expected_width": len(weights),
                    "received_width": len(features),
                },
            )

        if config.architecture.kind is not ModelKind.LOGISTIC:
            raise InferenceError(
                f"Unsupported model kind '{config.architecture.kind.value}'."
            )

        z = self._linear(features.values, weights, config.architecture.bias)
        return RawPrediction(score=_sigmoid(z), model_version_id=model_version.id)

    @staticmethod
    def _linear(values: Sequence[float], weights: Sequence[float], bias: float) -> float:
        x = np.asarray(values, dtype=np.float64)
        w = np.asarray(weights, dtype=np.float64)
        return float(np.dot(w, x)) + float(bias)


def to_prediction(
    raw: RawPrediction,
    *,
    decision_threshold: float,
    fingerprint: str,
    latency_ms: float = 0.0,
) -> Prediction:
    """Post-process a raw score into a served prediction."""
    value = 1 if raw.score >= decision_threshold else 0
    confidence = raw.score if value == 1 else 1.0 - raw.score
    return Prediction(
        value=value,
        confidence=confidence,
        score=raw.score,
        model_version_id=raw.model_version_id,
        fingerprint=fingerprint,
        latency_ms=latency_ms,
    )
