"""Domain service helpers for validating model configurations."""

import math
from typing import List

from predictcore.domain.entities.errors import ModelConfigurationError
from predictcore.domain.entities.features import (
    FeatureKind,
    FeatureSchema,
    FeatureSpec,
    Normalization,
)
from predictcore.domain.entities.model_version import ModelConfig

CLASS_WEIGHTS = (None, "balanced")


def _validate_numeric(spec: FeatureSpec, prefix: str, errors: List[str]) -> None:
    parameters = {
        "mean": spec.mean,
        "std": spec.std,
        "scale_min": spec.scale_min,
        "scale_max": spec.scale_max,
        "min_value": spec.min_value,
        "max_value": spec.max_value,
    }
    not_finite = [
        name
        for name, value in parameters.items()
        if value is not None and not math.isfinite(value)
    ]
    if not_finite:
        errors.append(f"{prefix} {', '.join(not_finite)} must be finite numbers.")
        return

    if spec.normalization is Normalization.STANDARD and not spec.std > 0:
        errors.append(f"{prefix} standard deviation must be greater than 0.")
    if spec.normalization is Normalization.MINMAX and not spec.scale_max > spec.scale_min:
        errors.append(f"{prefix} scale_max must be greater than scale_min.")
    if (
        spec.min_value is not None
        and spec.max_value is not None
        and spec.min_value > spec.max_value
    ):
        errors.append(f"{prefix} min_value cannot exceed max_value.")


def _validate_schema(schema: FeatureSchema, errors: List[str]) -> None:
    if not schema.features:
        errors.append("Feature schema must declare at least one feature.")
        return

    seen = set()
    for idx, spec in enumerate(schema.features, start=1):
        prefix = f"Feature #{idx} ('{spec.name}')"
        if not spec.name or not spec.name.strip():
            errors.append(f"Feature #{idx} must have a non-empty name.")
        if spec.name in seen:
            errors.append(f"{prefix} is declared more than once.")
        seen.add(spec.name)

        if spec.kind is FeatureKind.NUMERIC:
            _validate_numeric(spec, prefix, errors)
            continue
        if not spec.categories:
            errors.append(f"{prefix} must declare its categories.")
        if len(set(spec.categories)) != len(spec.categories):
            errors.append(f"{prefix} has duplicated categories.")


def validate_model_config(config: ModelConfig) -> None:
    """Validate a model configuration before it is registered.

    Raises:
        ModelConfigurationError: If one or more validation rules fail.
    """

    errors: List[str] = []

    _validate_schema(config.feature_schema, errors)

    weights = config.architecture.weights
    if len(weights) != config.feature_schema.width:
        errors.append(
            f"Model has {len(weights)} weights but the feature schema "
            f"produces {config.feature_schema.width} inputs."
        )
    if not all(math.isfinite(w) for w in weights) or not math.isfinite(
        config.architecture.bias
    ):
        errors.append("Model weights and bias must be finite numbers.")

    if not 0.0 < config.decision_threshold < 1.0:
        errors.append("Decision threshold must be between 0 and 1 (exclusive).")

    hyper = config.hyperparameters
    if not hyper.regularization > 0:
        errors.append("Regularization strength must be greater than 0.")
    if hyper.max_iter <= 0:
        errors.append("Maximum iterations must be greater than 0.")
    if hyper.class_weight not in CLASS_WEIGHTS:
        errors.append("Class weight must be empty or 'balanced'.")
    unknown = set(hyper.dropped_features) - {s.name for s in config.feature_schema.features}
    if unknown:
        errors.append(f"Dropped features are not in the schema: {sorted(unknown)}.")

    if errors:
        raise ModelConfigurationError(
            "Model configuration is invalid.", details={"errors": errors}
        )
