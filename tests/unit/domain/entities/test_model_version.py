from __future__ import annotations

from predictcore.domain.entities.evaluation import Verdict
from predictcore.domain.entities.model_version import (
    Hyperparameters,
    ModelConfig,
    ModelStatus,
)
from tests.conftest import make_version, summary


def test_config_dict_roundtrip(sample_config) -> None:
    config = ModelConfig(
        feature_schema=sample_config.feature_schema,
        architecture=sample_config.architecture,
        hyperparameters=Hyperparameters(
            regularization=0.3, class_weight="balanced", dropped_features=("b",)
        ),
        decision_threshold=0.7,
    )

    assert ModelConfig.from_dict(config.to_dict()) == config


def test_with_status_returns_new_instance_and_keeps_evaluation() -> None:
    version = make_version(status=ModelStatus.CANDIDATE, evaluation=summary())

    promoted = version.with_status(ModelStatus.ACTIVE)

    assert version.status is ModelStatus.CANDIDATE
    assert promoted.status is ModelStatus.ACTIVE
    assert promoted.evaluation == version.evaluation
    assert promoted.status_changed_at >= version.status_changed_at


def test_has_passing_evaluation() -> None:
    assert make_version().has_passing_evaluation is False
    assert make_version(evaluation=summary(Verdict.DEGRADED)).has_passing_evaluation is False
    assert make_version(evaluation=summary(Verdict.PASS)).has_passing_evaluation is True
