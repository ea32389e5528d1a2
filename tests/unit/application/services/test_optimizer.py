from __future__ import annotations

from typing import Sequence

import pytest

from predictcore.application.services.model_registry import ModelRegistry
from predictcore.application.services.optimizer import Optimizer
from predictcore.application.services.shadow_evaluator import ShadowEvaluator
from predictcore.domain.entities.dataset import LabeledDataset, LabeledRecord
from predictcore.domain.entities.errors import OptimizationExhaustedError
from predictcore.domain.entities.evaluation import EvaluationResult, Verdict
from predictcore.domain.entities.features import Normalization
from predictcore.domain.entities.model_version import (
    Hyperparameters,
    ModelStatus,
    ModelVersion,
    VersionSource,
)
from predictcore.domain.services.evaluator import Evaluator
from predictcore.domain.services.inference_engine import InferenceEngine
from predictcore.infrastructure.data import InMemoryLabeledDataProvider
from predictcore.infrastructure.repositories import InMemoryModelStore
from predictcore.infrastructure.training import SklearnLogisticTrainer
from tests.conftest import make_config, make_schema, threshold_records

FAILED = EvaluationResult(scores={}, verdict=Verdict.FAIL)


def _optimizer(
    registry: ModelRegistry,
    training: Sequence[LabeledRecord] = (),
    holdout: Sequence[LabeledRecord] = (),
    **kwargs,
) -> Optimizer:
    provider = InMemoryLabeledDataProvider(training=training, holdout=holdout)
    shadow = ShadowEvaluator(InferenceEngine(), Evaluator(thresholds={}), provider)
    kwargs.setdefault("max_trials", 4)
    return Optimizer(
        registry=registry,
        trainer=SklearnLogisticTrainer(seed=0),
        data_provider=provider,
        shadow_evaluator=shadow,
        **kwargs,
    )


async def _uninformed_base(registry: ModelRegistry) -> ModelVersion:
    # all-zero weights score 0.5 everywhere and predict the positive class
    return await registry.bootstrap(
        make_config(
            weights=(0.0, 0.0, 0.0),
            bias=0.0,
            schema=make_schema(Normalization.STANDARD),
        )
    )


@pytest.mark.asyncio
async def test_optimize_proposes_improving_candidate() -> None:
    registry = ModelRegistry(InMemoryModelStore())
    base = await _uninformed_base(registry)
    optimizer = _optimizer(
        registry,
        training=threshold_records(range(0, 100, 2)),
        holdout=threshold_records(range(1, 100, 2)),
    )

    candidate = await optimizer.optimize(FAILED, base)

    assert candidate.status is ModelStatus.CANDIDATE
    assert candidate.source is VersionSource.OPTIMIZER
    assert candidate.parent_id == base.id
    assert registry.get_active().id == base.id

    spec = candidate.config.feature_schema.get("a")
    assert spec.mean == pytest.approx(49.0)
    assert candidate.config.architecture.weights[0] > 0

    holdout = LabeledDataset.of(threshold_records(range(1, 100, 2)))
    score = optimizer.shadow_evaluator.evaluate_on(candidate, holdout).metric("f1_score")
    assert score > 0.9


@pytest.mark.asyncio
async def test_optimize_without_data_is_exhausted() -> None:
    registry = ModelRegistry(InMemoryModelStore())
    base = await _uninformed_base(registry)

    with pytest.raises(OptimizationExhaustedError) as exc:
        await _optimizer(registry).optimize(FAILED, base)

    assert exc.value.details == {"training": 0, "holdout": 0}


@pytest.mark.asyncio
async def test_optimize_with_single_class_training_is_exhausted() -> None:
    registry = ModelRegistry(InMemoryModelStore())
    base = await _uninformed_base(registry)
    optimizer = _optimizer(
        registry,
        training=threshold_records(range(60, 100, 2)),
        holdout=threshold_records(range(1, 100, 2)),
    )

    with pytest.raises(OptimizationExhaustedError):
        await optimizer.optimize(FAILED, base)


@pytest.mark.asyncio
async def test_optimize_without_enough_improvement_is_exhausted() -> None:
    registry = ModelRegistry(InMemoryModelStore())
    base = await _uninformed_base(registry)
    optimizer = _optimizer(
        registry,
        training=threshold_records(range(0, 100, 2)),
        holdout=threshold_records(range(1, 100, 2)),
        min_improvement=1.0,
    )

    with pytest.raises(OptimizationExhaustedError) as exc:
        await optimizer.optimize(FAILED, base)

    assert exc.value.details["trials"] == 4
    assert exc.value.details["baseline_score"] == pytest.approx(2 / 3)
    assert [v.id for v in registry.list_versions()] == [base.id]


def test_search_space_starts_with_base_and_respects_budget() -> None:
    registry = ModelRegistry(InMemoryModelStore())
    base = Hyperparameters(regularization=1.0)
    schema = make_schema()

    space = _optimizer(registry, max_trials=10)._search_space(base, schema)
    again = _optimizer(registry, max_trials=10)._search_space(base, schema)

    assert space[0] == base
    assert len(space) == 10
    assert space == again
    assert len(set(space)) == len(space)


def test_dropped_features_get_zero_weights() -> None:
    registry = ModelRegistry(InMemoryModelStore())
    optimizer = _optimizer(registry)
    schema = make_schema(Normalization.STANDARD)
    dataset = LabeledDataset.of(threshold_records(range(0, 100, 2)))
    features, labels = optimizer._matrix(schema, dataset)

    config = optimizer._fit(
        make_config(schema=schema),
        schema,
        features,
        labels,
        Hyperparameters(dropped_features=("b",)),
    )

    assert len(config.architecture.weights) == 3
    assert config.architecture.weights[1:] == (0.0, 0.0)
    assert config.hyperparameters.dropped_features == ("b",)


def test_invalid_trial_budget_is_rejected() -> None:
    with pytest.raises(ValueError):
        _optimizer(ModelRegistry(InMemoryModelStore()), max_trials=0)
