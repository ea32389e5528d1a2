"""
Domain Service - Feature Processing

Turns raw records into normalized feature vectors under a version-pinned
schema. Processing is pure: the same record and schema always yield a
byte-identical vector and therefore the same fingerprint.
"""

import math
from dataclasses import replace
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping

import numpy as np

from predictcore.domain.entities.errors import MalformedInputError
from predictcore.domain.entities.features import (
    Encoding,
    FeatureKind,
    FeatureSchema,
    FeatureSpec,
    FeatureVector,
    Normalization,
)

_MISSING = object()


def _canonical(value: float) -> float:
    # folds -0.0 into 0.0 so equal inputs hash identically
    return float(value) + 0.0


class FeatureProcessor:
    """Normalizes raw records according to a feature schema."""

    def __init__(self, schema: FeatureSchema):
        self.schema = schema

    def process(self, raw: Mapping[str, Any]) -> FeatureVector:
        """
        Normalize a raw record.

        Raises:
            MalformedInputError: If required fields are absent or a value falls
                outside its declared type or range.
        """
        if not isinstance(raw, Mapping):
            raise MalformedInputError(
                "Raw input must be a mapping of field names to values.",
                details={"errors": [f"Got {type(raw).__name__}"]},
            )

        errors: List[str] = []
        values: List[float] = []
        for spec in self.schema.features:
            values.extend(self._encode(spec, raw.get(spec.name, _MISSING), errors))

        if errors:
            raise MalformedInputError(
                "Raw input does not satisfy the feature schema.",
                details={"errors": errors},
            )

        return FeatureVector(
            names=tuple(self.schema.output_names()),
            values=tuple(_canonical(v) for v in values),
            schema_fingerprint=self.schema.fingerprint,
        )

    def _encode(self, spec: FeatureSpec, value: Any, errors: List[str]) -> List[float]:
        if value is _MISSING or value is None:
            if spec.required:
                errors.append(f"Field '{spec.name}' is required.")
                return self._placeholder(spec)
            if spec.default is None:
                return self._placeholder(spec)
            value = spec.default

        if spec.kind is FeatureKind.NUMERIC:
            return [self._encode_numeric(spec, value, errors)]
        return self._encode_category(spec, value, errors)

    def _placeholder(self, spec: FeatureSpec) -> List[float]:
        return [0.0] * len(spec.output_names())

    def _encode_numeric(self, spec: FeatureSpec, value: Any, errors: List[str]) -> float:
        if isinstance(value, bool) or not isinstance(value, Real):
            errors.append(
                f"Field '{spec.name}' must be numeric, got {type(value).__name__}."
            )
            return 0.0
        number = float(value)
        if not math.isfinite(number):
            errors.append(f"Field '{spec.name}' must be a finite number.")
            return 0.0
        if spec.min_value is not None and number < spec.min_value:
            errors.append(f"Field '{spec.name}' is below {spec.min_value}.")
        if spec.max_value is not None and number > spec.max_value:
            errors.append(f"Field '{spec.name}' is above {spec.max_value}.")

        if spec.normalization is Normalization.STANDARD:
            return (number - spec.mean) / spec.std
        if spec.normalization is Normalization.MINMAX:
            return (number - spec.scale_min) / (spec.scale_max - spec.scale_min)
        return number

    def _encode_category(
        self, spec: FeatureSpec, value: Any, errors: List[str]
    ) -> List[float]:
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            errors.append(
                f"Field '{spec.name}' must be a category label, "
                f"got {type(value).__name__}."
            )
            return [0.0] * len(spec.output_names())

        label = str(value)
        if label not in spec.categories:
            errors.append(
                f"Field '{spec.name}' has unknown category '{label}'."
            )
            return [0.0] * len(spec.output_names())

        if spec.kind is FeatureKind.CATEGORICAL and spec.encoding is Encoding.ONEHOT:
            return [1.0 if category == label else 0.0 for category in spec.categories]
        return [float(spec.categories.index(label))]


def _numeric_column(records: Iterable[Mapping[str, Any]], name: str) -> np.ndarray:
    column = [
        float(record[name])
        for record in records
        if isinstance(record.get(name), Real) and not isinstance(record.get(name), bool)
    ]
    return np.asarray(column, dtype=np.float64)


def fit_normalization(
    schema: FeatureSchema, records: Iterable[Mapping[str, Any]]
) -> FeatureSchema:
    """Recompute standard/minmax parameters of numeric specs from ``records``."""
    rows = list(records)
    fitted: List[FeatureSpec] = []
    for spec in schema.features:
        if spec.kind is not FeatureKind.NUMERIC or spec.normalization is Normalization.NONE:
            fitted.append(spec)
            continue
        column = _numeric_column(rows, spec.name)
        if column.size == 0:
            fitted.append(spec)
            continue

        if spec.normalization is Normalization.STANDARD:
            std = float(column.std())
            fitted.append(
                replace(spec, mean=float(column.mean()), std=std if std > 0 else 1.0)
            )
        else:
            low, high = float(column.min()), float(column.max())
            fitted.append(
                replace(spec, scale_min=low, scale_max=high if high > low else low + 1.0)
            )
    return FeatureSchema(features=tuple(fitted))


def sensitive_attributes(
    raw: Mapping[str, Any], sensitive_features: Iterable[str]
) -> Dict[str, str]:
    """Slice labels of a raw record for fairness evaluation."""
    return {
        name: str(raw[name])
        for name in sensitive_features
        if name in raw and raw[name] is not None
    }
