from __future__ import annotations

import json
from pathlib import Path

import pytest

from predictcore.domain.entities.errors import MalformedInputError
from predictcore.infrastructure.data import FileLabeledDataProvider


def _write(path: Path, payload) -> str:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


@pytest.mark.asyncio
async def test_file_provider_loads_both_sections(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "dataset.json",
        {
            "training": [
                {"features": {"a": 1, "b": "x"}, "label": 0},
                {"features": {"a": 90, "b": "y"}, "label": 1},
            ],
            "holdout": [{"features": {"a": 70, "b": "x"}, "label": 1}],
        },
    )
    provider = FileLabeledDataProvider(path)

    training = await provider.training_set()
    holdout = await provider.holdout_set()

    assert len(training) == 2
    assert training.labels == [0, 1]
    assert holdout.records[0].features == {"a": 70, "b": "x"}


@pytest.mark.asyncio
async def test_missing_file_yields_empty_datasets(tmp_path: Path) -> None:
    provider = FileLabeledDataProvider(str(tmp_path / "missing.json"))

    assert not await provider.training_set()
    assert not await provider.holdout_set()


@pytest.mark.asyncio
async def test_no_path_yields_empty_datasets() -> None:
    provider = FileLabeledDataProvider(None)

    assert len(await provider.holdout_set()) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"training": {"features": {}}},
        {"holdout": [{"label": 1}]},
        {"holdout": [{"features": {"a": 1}, "label": 2}]},
        {"holdout": [{"features": {"a": 1}, "label": True}]},
    ],
)
async def test_malformed_file_is_rejected(tmp_path: Path, payload) -> None:
    provider = FileLabeledDataProvider(_write(tmp_path / "dataset.json", payload))

    with pytest.raises(MalformedInputError):
        await provider.training_set()
