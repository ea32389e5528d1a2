"""
Application Service - Optimizer

Searches a bounded hyperparameter and feature-selection space for a model
that beats the current version on held-out data, and proposes the winner to
the registry as a CANDIDATE. The optimizer never promotes; that decision
belongs to whoever shadow-evaluates the candidate.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import replace
from typing import List, Sequence, Tuple

import numpy as np
import structlog

from predictcore.application.services.model_registry import ModelRegistry
from predictcore.application.services.shadow_evaluator import ShadowEvaluator
from predictcore.domain.entities.dataset import LabeledDataset
from predictcore.domain.entities.errors import (
    MalformedInputError,
    OptimizationExhaustedError,
)
from predictcore.domain.entities.evaluation import EvaluationResult, Metric
from predictcore.domain.entities.features import FeatureSchema
from predictcore.domain.entities.model_version import (
    Hyperparameters,
    ModelArchitecture,
    ModelConfig,
    ModelVersion,
    VersionSource,
)
from predictcore.domain.entities.optimization import OptimizationJob, TrialResult
from predictcore.domain.ports.labeled_data import ILabeledDataProvider
from predictcore.domain.ports.model_trainer import IModelTrainer
from predictcore.domain.services.feature_processor import (
    FeatureProcessor,
    fit_normalization,
)

logger = structlog.get_logger(__name__)

REGULARIZATION_GRID = (0.01, 0.03, 0.1, 0.3, 1.0, 3.0, 10.0, 30.0, 100.0)
CLASS_WEIGHT_GRID = (None, "balanced")

# unregistered versions scored during the search use an id the registry never allocates
TRIAL_VERSION_ID = 0


def _column_owners(schema: FeatureSchema) -> List[str]:
    owners: List[str] = []
    for spec in schema.features:
        owners.extend([spec.name] * len(spec.output_names()))
    return owners


class Optimizer:
    """Bounded search for an improving candidate model."""

    def __init__(
        self,
        registry: ModelRegistry,
        trainer: IModelTrainer,
        data_provider: ILabeledDataProvider,
        shadow_evaluator: ShadowEvaluator,
        metric: str = Metric.F1_SCORE.value,
        max_trials: int = 100,
        min_improvement: float = 0.01,
        seed: int = 0,
    ):
        if max_trials < 1:
            raise ValueError("max_trials must be at least 1")
        self.registry = registry
        self.trainer = trainer
        self.data_provider = data_provider
        self.shadow_evaluator = shadow_evaluator
        self.metric = metric
        self.max_trials = max_trials
        self.min_improvement = min_improvement
        self.seed = seed

    async def optimize(
        self, evaluation: EvaluationResult, base_version: ModelVersion
    ) -> ModelVersion:
        """
        Produce a CANDIDATE improving on ``base_version``.

        Each trial runs in a worker thread; cancelling the calling task stops
        the search at the next trial boundary and nothing is proposed.

        Raises:
            OptimizationExhaustedError: If no trial improves the baseline by at
                least ``min_improvement`` or no labeled data is available.
        """
        job = OptimizationJob(evaluation=evaluation, base_version=base_version)
        logger.info(
            "optimizer.started",
            base_version_id=base_version.id,
            trigger_verdict=evaluation.verdict.value,
            breached=list(evaluation.breached),
            max_trials=self.max_trials,
        )

        training = await self.data_provider.training_set()
        holdout = await self.data_provider.holdout_set()
        if not training or not holdout:
            raise OptimizationExhaustedError(
                "No labeled data available for optimization",
                details={"training": len(training), "holdout": len(holdout)},
            )

        job.baseline_score = await asyncio.to_thread(
            self._score, base_version, holdout
        )

        schema = fit_normalization(
            base_version.config.feature_schema,
            [record.features for record in training.records],
        )
        features, labels = self._matrix(schema, training)
        if len(set(labels.tolist())) < 2:
            raise OptimizationExhaustedError(
                "Training data must contain both classes",
                details={"training": len(training)},
            )

        for index, hyperparameters in enumerate(
            self._search_space(base_version.config.hyperparameters, schema)
        ):
            config = await asyncio.to_thread(
                self._fit, base_version.config, schema, features, labels, hyperparameters
            )
            score = await asyncio.to_thread(
                self._score,
                ModelVersion(id=TRIAL_VERSION_ID, config=config),
                holdout,
            )
            job.trials.append(
                TrialResult(trial=index, hyperparameters=hyperparameters, score=score)
            )
            logger.debug(
                "optimizer.trial_completed",
                trial=index,
                score=score,
                regularization=hyperparameters.regularization,
                class_weight=hyperparameters.class_weight,
                dropped_features=list(hyperparameters.dropped_features),
            )

        best = job.best_trial
        details = {
            "base_version_id": base_version.id,
            "trials": len(job.trials),
            "baseline_score": job.baseline_score,
            "best_score": best.score if best else None,
            "metric": self.metric,
        }
        if best is None or best.score < job.baseline_score + self.min_improvement:
            logger.warning("optimizer.exhausted", **details)
            raise OptimizationExhaustedError(
                f"No candidate improved {self.metric} by {self.min_improvement}",
                details=details,
            )

        best_config = await asyncio.to_thread(
            self._fit,
            base_version.config,
            schema,
            features,
            labels,
            best.hyperparameters,
        )
        job.candidate = await self.registry.propose_candidate(
            best_config, source=VersionSource.OPTIMIZER, parent_id=base_version.id
        )
        logger.info("optimizer.candidate_found", candidate_id=job.candidate.id, **details)
        return job.candidate

    def _search_space(
        self, base: Hyperparameters, schema: FeatureSchema
    ) -> List[Hyperparameters]:
        """Base hyperparameters first, then a seeded sample of the grid."""
        selections: List[Tuple[str, ...]] = [()]
        if len(schema.features) > 1:
            selections.extend((spec.name,) for spec in schema.features)

        grid = [
            Hyperparameters(
                regularization=regularization,
                class_weight=class_weight,
                max_iter=base.max_iter,
                dropped_features=dropped,
            )
            for regularization, class_weight, dropped in itertools.product(
                REGULARIZATION_GRID, CLASS_WEIGHT_GRID, selections
            )
        ]
        rng = np.random.default_rng(self.seed)
        ordered = [grid[i] for i in rng.permutation(len(grid))]
        candidates = [base] + [h for h in ordered if h != base]
        return candidates[: self.max_trials]

    def _matrix(
        self, schema: FeatureSchema, dataset: LabeledDataset
    ) -> Tuple[np.ndarray, np.ndarray]:
        processor = FeatureProcessor(schema)
        rows: List[Sequence[float]] = []
        labels: List[int] = []
        for record in dataset.records:
            try:
                rows.append(processor.process(record.features).values)
            except MalformedInputError:
                continue
            labels.append(record.label)
        if not rows:
            raise OptimizationExhaustedError(
                "No training record matches the feature schema",
                details={"training": len(dataset)},
            )
        return np.asarray(rows, dtype=np.float64), np.asarray(labels, dtype=np.int64)

    def _fit(
        self,
        base_config: ModelConfig,
        schema: FeatureSchema,
        features: np.ndarray,
        labels: np.ndarray,
        hyperparameters: Hyperparameters,
    ) -> ModelConfig:
        owners = _column_owners(schema)
        keep = [i for i, owner in enumerate(owners) if owner not in hyperparameters.dropped_features]
        trained = self.trainer.train(features[:, keep], labels, hyperparameters)

        weights = np.zeros(len(owners), dtype=np.float64)
        weights[keep] = trained.weights
        return replace(
            base_config,
            feature_schema=schema,
            architecture=ModelArchitecture(
                kind=trained.kind,
                weights=tuple(float(w) for w in weights),
                bias=float(trained.bias),
            ),
            hyperparameters=hyperparameters,
        )

    def _score(self, version: ModelVersion, holdout: LabeledDataset) -> float:
        result = self.shadow_evaluator.evaluate_on(version, holdout)
        value = result.metric(self.metric)
        return float(value) if value is not None else 0.0
