from __future__ import annotations

import pytest

from predictcore.application.dtos.model_dto import ModelConfigDTO
from predictcore.application.services.model_registry import ModelRegistry
from predictcore.application.services.shadow_evaluator import ShadowEvaluator
from predictcore.application.use_cases.model_management import ModelManagementUseCase
from predictcore.domain.entities.errors import (
    NoActiveModelError,
    PromotionRejectedError,
    UnknownVersionError,
)
from predictcore.domain.entities.evaluation import MetricThreshold, Verdict
from predictcore.domain.entities.model_version import ModelStatus, VersionSource
from predictcore.domain.services.evaluator import Evaluator
from predictcore.domain.services.inference_engine import InferenceEngine
from predictcore.infrastructure.data import InMemoryLabeledDataProvider
from predictcore.infrastructure.repositories import InMemoryModelStore
from tests.conftest import make_config, threshold_records


async def _use_case(bootstrap: bool = True) -> ModelManagementUseCase:
    registry = ModelRegistry(InMemoryModelStore())
    if bootstrap:
        await registry.bootstrap(make_config())
    shadow = ShadowEvaluator(
        InferenceEngine(),
        Evaluator(thresholds={"accuracy": MetricThreshold(warning=0.9, critical=0.8)}),
        InMemoryLabeledDataProvider(holdout=threshold_records(range(0, 100, 5))),
    )
    return ModelManagementUseCase(registry, shadow)


@pytest.mark.asyncio
async def test_propose_registers_operator_candidate() -> None:
    use_case = await _use_case()

    created = await use_case.propose(ModelConfigDTO.from_domain(make_config(bias=-45.0)))

    assert created.id == 2
    assert created.status is ModelStatus.CANDIDATE
    assert created.source is VersionSource.OPERATOR
    assert created.parent_id == 1
    assert created.evaluation is None


@pytest.mark.asyncio
async def test_propose_without_active_has_no_parent() -> None:
    use_case = await _use_case(bootstrap=False)

    created = await use_case.propose(ModelConfigDTO.from_domain(make_config()))

    assert created.parent_id is None
    with pytest.raises(NoActiveModelError):
        await use_case.get_active()


@pytest.mark.asyncio
async def test_shadow_evaluate_then_promote() -> None:
    use_case = await _use_case()
    created = await use_case.propose(ModelConfigDTO.from_domain(make_config()))

    report = await use_case.shadow_evaluate(created.id)
    promoted = await use_case.promote(created.id)

    assert report.verdict is Verdict.PASS
    assert report.sample_size == 20
    assert promoted.status is ModelStatus.ACTIVE
    assert promoted.evaluation is not None
    assert promoted.evaluation.verdict == "pass"
    assert (await use_case.get_active()).id == created.id


@pytest.mark.asyncio
async def test_failing_candidate_cannot_be_promoted() -> None:
    use_case = await _use_case()
    inverted = make_config(weights=(-1.0, 0.0, 0.0), bias=50.0)
    created = await use_case.propose(ModelConfigDTO.from_domain(inverted))

    report = await use_case.shadow_evaluate(created.id)

    assert report.verdict is Verdict.FAIL
    with pytest.raises(PromotionRejectedError):
        await use_case.promote(created.id)


@pytest.mark.asyncio
async def test_shadow_evaluate_rejects_non_candidates() -> None:
    use_case = await _use_case()

    with pytest.raises(UnknownVersionError):
        await use_case.shadow_evaluate(1)
    with pytest.raises(UnknownVersionError):
        await use_case.shadow_evaluate(99)


@pytest.mark.asyncio
async def test_rollback_list_and_prune() -> None:
    use_case = await _use_case()
    created = await use_case.propose(ModelConfigDTO.from_domain(make_config()))
    await use_case.shadow_evaluate(created.id)
    await use_case.promote(created.id)

    restored = await use_case.rollback(1)
    retired = await use_case.list_versions(ModelStatus.RETIRED)

    assert restored.id == 1
    assert [v.id for v in retired] == [created.id]
    assert len(await use_case.list_versions()) == 2
    assert (await use_case.get_version(created.id)).status is ModelStatus.RETIRED
    # the highest allocated id is never pruned
    assert await use_case.prune(keep=0) == []
