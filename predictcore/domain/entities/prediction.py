"""Domain entities for model outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping


@dataclass(frozen=True, slots=True)
class RawPrediction:
    """Unprocessed model output: probability of the positive class."""

    score: float
    model_version_id: int


@dataclass(frozen=True, slots=True)
class Prediction:
    """Post-processed prediction served to callers."""

    value: int
    confidence: float
    score: float
    model_version_id: int
    fingerprint: str
    latency_ms: float = 0.0
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "confidence": self.confidence,
            "score": self.score,
            "model_version_id": self.model_version_id,
            "fingerprint": self.fingerprint,
            "latency_ms": self.latency_ms,
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class Outcome:
    """Ground truth (or proxy) label for one prediction."""

    label: int
    attributes: Mapping[str, str] = field(default_factory=dict)
