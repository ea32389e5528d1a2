from __future__ import annotations

import pytest

from predictcore.application.services.shadow_evaluator import ShadowEvaluator
from predictcore.domain.entities.dataset import LabeledDataset, LabeledRecord
from predictcore.domain.entities.errors import MalformedInputError
from predictcore.domain.entities.evaluation import MetricThreshold, Verdict
from predictcore.domain.services.evaluator import Evaluator
from predictcore.domain.services.inference_engine import InferenceEngine
from predictcore.infrastructure.data import InMemoryLabeledDataProvider
from tests.conftest import make_config, make_version, threshold_records


def _shadow(holdout, sensitive=()) -> ShadowEvaluator:
    evaluator = Evaluator(
        thresholds={"accuracy": MetricThreshold(warning=0.9, critical=0.8)},
        sensitive_features=sensitive,
    )
    return ShadowEvaluator(
        InferenceEngine(), evaluator, InMemoryLabeledDataProvider(holdout=holdout)
    )


@pytest.mark.asyncio
async def test_matching_model_passes_on_holdout() -> None:
    shadow = _shadow(threshold_records(range(0, 100, 5)))

    result = await shadow.evaluate_version(make_version())

    assert result.verdict is Verdict.PASS
    assert result.metric("accuracy") == 1.0
    assert result.sample_size == 20


@pytest.mark.asyncio
async def test_wrong_model_fails_on_holdout() -> None:
    shadow = _shadow(threshold_records(range(0, 100, 5)))
    inverted = make_version(config=make_config(weights=(-1.0, 0.0, 0.0), bias=50.0))

    result = await shadow.evaluate_version(inverted)

    assert result.verdict is Verdict.FAIL


def test_unscorable_records_are_skipped() -> None:
    records = threshold_records([10, 90]) + [LabeledRecord(features={"a": 5}, label=0)]
    shadow = _shadow(())

    result = shadow.evaluate_on(make_version(), LabeledDataset.of(records))

    assert result.sample_size == 2


def test_no_scorable_record_raises() -> None:
    shadow = _shadow(())

    with pytest.raises(MalformedInputError):
        shadow.evaluate_on(
            make_version(),
            LabeledDataset.of([LabeledRecord(features={"a": "bad"}, label=1)]),
        )


def test_sensitive_attributes_come_from_records() -> None:
    records = [
        LabeledRecord(features={"a": 90.0, "b": "x", "group": "g1"}, label=1),
        LabeledRecord(features={"a": 10.0, "b": "y", "group": "g2"}, label=1),
    ]
    shadow = _shadow((), sensitive=["group"])

    result = shadow.evaluate_on(make_version(), LabeledDataset.of(records))

    assert result.slice_accuracy == {"group": {"g1": 1.0, "g2": 0.0}}
