"""
Labeled data providers - Infrastructure Layer

The file provider reads a JSON document of the form::

    {
        "training": [{"features": {...}, "label": 0}, ...],
        "holdout":  [{"features": {...}, "label": 1}, ...]
    }

It is loaded lazily on first use and kept in memory afterwards.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import structlog

from predictcore.domain.entities.dataset import LabeledDataset, LabeledRecord
from predictcore.domain.entities.errors import MalformedInputError

logger = structlog.get_logger(__name__)


def _parse_records(payload: Any, section: str) -> List[LabeledRecord]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise MalformedInputError(f"Dataset section '{section}' must be a list")

    records: List[LabeledRecord] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict) or not isinstance(item.get("features"), dict):
            raise MalformedInputError(
                f"Record {index} of '{section}' needs a 'features' object",
                details={"section": section, "index": index},
            )
        label = item.get("label")
        if label not in (0, 1) or isinstance(label, bool):
            raise MalformedInputError(
                f"Record {index} of '{section}' needs a 0/1 'label'",
                details={"section": section, "index": index},
            )
        records.append(LabeledRecord(features=item["features"], label=int(label)))
    return records


class FileLabeledDataProvider:
    """ILabeledDataProvider reading a JSON dataset file."""

    def __init__(self, path: Optional[str]):
        self.path = Path(path) if path else None
        self._training: Optional[LabeledDataset] = None
        self._holdout: Optional[LabeledDataset] = None
        self._lock = asyncio.Lock()

    async def training_set(self) -> LabeledDataset:
        await self._ensure_loaded()
        return self._training

    async def holdout_set(self) -> LabeledDataset:
        await self._ensure_loaded()
        return self._holdout

    async def _ensure_loaded(self) -> None:
        if self._training is not None:
            return
        async with self._lock:
            if self._training is not None:
                return
            if self.path is None or not self.path.exists():
                logger.warning(
                    "dataset.unavailable", path=str(self.path) if self.path else None
                )
                self._training, self._holdout = LabeledDataset(), LabeledDataset()
                return

            document: Dict[str, Any] = await asyncio.to_thread(self._read)
            self._holdout = LabeledDataset.of(
                _parse_records(document.get("holdout"), "holdout")
            )
            self._training = LabeledDataset.of(
                _parse_records(document.get("training"), "training")
            )
            logger.info(
                "dataset.loaded",
                path=str(self.path),
                training=len(self._training),
                holdout=len(self._holdout),
            )

    def _read(self) -> Dict[str, Any]:
        with self.path.open("r", encoding="utf-8") as handle:
            document = json.load(handle)
        if not isinstance(document, dict):
            raise MalformedInputError(
                "Dataset file must contain a JSON object", details={"path": str(self.path)}
            )
        return document


class InMemoryLabeledDataProvider:
    """ILabeledDataProvider over records already in memory."""

    def __init__(
        self,
        training: Sequence[LabeledRecord] = (),
        holdout: Sequence[LabeledRecord] = (),
    ):
        self._training = LabeledDataset.of(training)
        self._holdout = LabeledDataset.of(holdout)

    async def training_set(self) -> LabeledDataset:
        return self._training

    async def holdout_set(self) -> LabeledDataset:
        return self._holdout
