"""Domain entities for labeled data used in training and shadow evaluation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence, Tuple


@dataclass(frozen=True, slots=True)
class LabeledRecord:
    """Raw record with its observed label."""

    features: Mapping[str, Any]
    label: int


@dataclass(frozen=True)
class LabeledDataset:
    """Ordered collection of labeled raw records."""

    records: Tuple[LabeledRecord, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, records: Sequence[LabeledRecord]) -> "LabeledDataset":
        return cls(records=tuple(records))

    @property
    def labels(self) -> List[int]:
        return [record.label for record in self.records]

    def __len__(self) -> int:
        return len(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)
