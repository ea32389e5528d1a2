"""
Application Service - Shadow Evaluation

Runs a model version over held-out labeled records without exposing its
outputs to live traffic, and scores the result with the evaluator.
"""

from __future__ import annotations

import time
from typing import List

import structlog

from predictcore.domain.entities.dataset import LabeledDataset
from predictcore.domain.entities.errors import MalformedInputError
from predictcore.domain.entities.evaluation import EvaluationResult
from predictcore.domain.entities.model_version import ModelVersion
from predictcore.domain.entities.prediction import Outcome, Prediction
from predictcore.domain.ports.labeled_data import ILabeledDataProvider
from predictcore.domain.services.evaluator import Evaluator
from predictcore.domain.services.feature_processor import (
    FeatureProcessor,
    sensitive_attributes,
)
from predictcore.domain.services.inference_engine import InferenceEngine, to_prediction

logger = structlog.get_logger(__name__)


class ShadowEvaluator:
    """Evaluates versions against held-out data."""

    def __init__(
        self,
        engine: InferenceEngine,
        evaluator: Evaluator,
        data_provider: ILabeledDataProvider,
    ):
        self.engine = engine
        self.evaluator = evaluator
        self.data_provider = data_provider

    async def evaluate_version(self, version: ModelVersion) -> EvaluationResult:
        """Shadow-evaluate ``version`` on the provider's held-out set."""
        holdout = await self.data_provider.holdout_set()
        result = self.evaluate_on(version, holdout)
        logger.info(
            "shadow_evaluation.completed",
            version_id=version.id,
            verdict=result.verdict.value,
            sample_size=result.sample_size,
        )
        return result

    def evaluate_on(
        self,
        version: ModelVersion,
        dataset: LabeledDataset,
    ) -> EvaluationResult:
        """
        Score ``version`` on ``dataset``.

        Records the version's schema rejects are skipped.

        Raises:
            MalformedInputError: If no record of the dataset can be scored.
        """
        processor = FeatureProcessor(version.config.feature_schema)
        sensitive = self.evaluator.sensitive_features
        predictions: List[Prediction] = []
        outcomes: List[Outcome] = []
        skipped = 0

        for record in dataset.records:
            try:
                features = processor.process(record.features)
            except MalformedInputError:
                skipped += 1
                continue
            started = time.perf_counter()
            raw = self.engine.infer(features, version)
            latency_ms = (time.perf_counter() - started) * 1000.0
            predictions.append(
                to_prediction(
                    raw,
                    decision_threshold=version.config.decision_threshold,
                    fingerprint=features.fingerprint,
                    latency_ms=latency_ms,
                )
            )
            outcomes.append(
                Outcome(
                    label=record.label,
                    attributes=sensitive_attributes(record.features, sensitive),
                )
            )

        if skipped:
            logger.warning(
                "shadow_evaluation.records_skipped",
                version_id=version.id,
                skipped=skipped,
                total=len(dataset),
            )
        if not predictions:
            raise MalformedInputError(
                "No held-out record could be scored by the model version.",
                details={"version_id": version.id, "records": len(dataset)},
            )

        return self.evaluator.evaluate(predictions, outcomes)
