"""
Domain Entities - Features

Declarations of the model input schema and the normalized feature vectors
produced from raw records. Both are immutable; a FeatureVector carries a
fingerprint scoped to the schema it was normalized with.
"""

import hashlib
import json
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Any, Dict, List, Optional, Tuple


class FeatureKind(str, Enum):
    """Type of a raw input field."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    ORDINAL = "ordinal"


class Normalization(str, Enum):
    """Scaling applied to numeric fields."""

    NONE = "none"
    STANDARD = "standard"
    MINMAX = "minmax"


class Encoding(str, Enum):
    """Encoding applied to categorical and ordinal fields."""

    ONEHOT = "onehot"
    LABEL = "label"


def _canonical_digest(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


@dataclass(frozen=True)
class FeatureSpec:
    """Declaration of one raw input field and how it is normalized."""

    name: str
    kind: FeatureKind = FeatureKind.NUMERIC
    required: bool = True
    default: Optional[Any] = None

    # Numeric fields
    normalization: Normalization = Normalization.NONE
    mean: float = 0.0
    std: float = 1.0
    scale_min: float = 0.0
    scale_max: float = 1.0
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    # Categorical / ordinal fields
    encoding: Encoding = Encoding.ONEHOT
    categories: Tuple[str, ...] = ()

    def output_names(self) -> List[str]:
        """Names of the vector fields this spec expands into."""
        if self.kind is FeatureKind.CATEGORICAL and self.encoding is Encoding.ONEHOT:
            return [f"{self.name}={category}" for category in self.categories]
        return [self.name]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "required": self.required,
            "default": self.default,
            "normalization": self.normalization.value,
            "mean": self.mean,
            "std": self.std,
            "scale_min": self.scale_min,
            "scale_max": self.scale_max,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "encoding": self.encoding.value,
            "categories": list(self.categories),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "FeatureSpec":
        return cls(
            name=payload["name"],
            kind=FeatureKind(payload.get("kind", FeatureKind.NUMERIC.value)),
            required=bool(payload.get("required", True)),
            default=payload.get("default"),
            normalization=Normalization(
                payload.get("normalization", Normalization.NONE.value)
            ),
            mean=float(payload.get("mean", 0.0)),
            std=float(payload.get("std", 1.0)),
            scale_min=float(payload.get("scale_min", 0.0)),
            scale_max=float(payload.get("scale_max", 1.0)),
            min_value=_optional_float(payload.get("min_value")),
            max_value=_optional_float(payload.get("max_value")),
            encoding=Encoding(payload.get("encoding", Encoding.ONEHOT.value)),
            categories=tuple(str(c) for c in payload.get("categories", ())),
        )


@dataclass(frozen=True)
class FeatureSchema:
    """Ordered set of feature specs pinned to a model version."""

    features: Tuple[FeatureSpec, ...] = ()

    def output_names(self) -> List[str]:
        names: List[str] = []
        for spec in self.features:
            names.extend(spec.output_names())
        return names

    @property
    def width(self) -> int:
        return len(self.output_names())

    @cached_property
    def fingerprint(self) -> str:
        return _canonical_digest([spec.to_dict() for spec in self.features])

    def get(self, name: str) -> Optional[FeatureSpec]:
        for spec in self.features:
            if spec.name == name:
                return spec
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"features": [spec.to_dict() for spec in self.features]}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "FeatureSchema":
        return cls(
            features=tuple(
                FeatureSpec.from_dict(item) for item in payload.get("features", [])
            )
        )


@dataclass(frozen=True)
class FeatureVector:
    """Normalized, fixed-shape model input."""

    names: Tuple[str, ...]
    values: Tuple[float, ...]
    schema_fingerprint: str

    @cached_property
    def fingerprint(self) -> str:
        """Deterministic digest of the normalized contents and their schema."""
        return _canonical_digest(
            {
                "schema": self.schema_fingerprint,
                "fields": [[name, repr(value)] for name, value in self.as_pairs()],
            }
        )

    def as_pairs(self) -> List[Tuple[str, float]]:
        return list(zip(self.names, self.values))

    def __len__(self) -> int:
        return len(self.values)
