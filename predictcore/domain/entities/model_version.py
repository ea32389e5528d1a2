"""
Domain Entities - Model Version

A model version bundles everything needed to reproduce a prediction: the
feature schema with its normalization parameters, the trained coefficients
and the hyperparameters that produced them. Versions are immutable; every
status transition yields a new instance.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from predictcore.domain.entities.evaluation import EvaluationSummary
from predictcore.domain.entities.features import FeatureSchema


class ModelStatus(str, Enum):
    """Lifecycle status of a model version."""

    CANDIDATE = "candidate"
    ACTIVE = "active"
    RETIRED = "retired"


class ModelKind(str, Enum):
    """Supported model families."""

    LOGISTIC = "logistic"


class VersionSource(str, Enum):
    """Who created a version."""

    BOOTSTRAP = "bootstrap"
    OPERATOR = "operator"
    OPTIMIZER = "optimizer"


@dataclass(frozen=True)
class Hyperparameters:
    """Training configuration snapshot."""

    regularization: float = 1.0
    class_weight: Optional[str] = None
    max_iter: int = 200
    dropped_features: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "regularization": self.regularization,
            "class_weight": self.class_weight,
            "max_iter": self.max_iter,
            "dropped_features": list(self.dropped_features),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Hyperparameters":
        return cls(
            regularization=float(payload.get("regularization", 1.0)),
            class_weight=payload.get("class_weight"),
            max_iter=int(payload.get("max_iter", 200)),
            dropped_features=tuple(payload.get("dropped_features") or ()),
        )


@dataclass(frozen=True)
class ModelArchitecture:
    """Trained parameters of a linear model."""

    kind: ModelKind = ModelKind.LOGISTIC
    weights: Tuple[float, ...] = ()
    bias: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "weights": list(self.weights),
            "bias": self.bias,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ModelArchitecture":
        return cls(
            kind=ModelKind(payload.get("kind", ModelKind.LOGISTIC.value)),
            weights=tuple(float(w) for w in payload.get("weights", ())),
            bias=float(payload.get("bias", 0.0)),
        )


@dataclass(frozen=True)
class ModelConfig:
    """Everything a version needs to turn raw records into predictions."""

    feature_schema: FeatureSchema = field(default_factory=FeatureSchema)
    architecture: ModelArchitecture = field(default_factory=ModelArchitecture)
    hyperparameters: Hyperparameters = field(default_factory=Hyperparameters)
    decision_threshold: float = 0.5

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feature_schema": self.feature_schema.to_dict(),
            "architecture": self.architecture.to_dict(),
            "hyperparameters": self.hyperparameters.to_dict(),
            "decision_threshold": self.decision_threshold,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ModelConfig":
        return cls(
            feature_schema=FeatureSchema.from_dict(payload.get("feature_schema") or {}),
            architecture=ModelArchitecture.from_dict(payload.get("architecture") or {}),
            hyperparameters=Hyperparameters.from_dict(
                payload.get("hyperparameters") or {}
            ),
            decision_threshold=float(payload.get("decision_threshold", 0.5)),
        )


@dataclass(frozen=True)
class ModelVersion:
    """A registered, immutable model version."""

    id: int
    config: ModelConfig
    status: ModelStatus = ModelStatus.CANDIDATE
    source: VersionSource = VersionSource.OPERATOR
    parent_id: Optional[int] = None
    evaluation: Optional[EvaluationSummary] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status_changed_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def has_passing_evaluation(self) -> bool:
        return self.evaluation is not None and self.evaluation.passed

    def with_status(
        self, status: ModelStatus, evaluation: Optional[EvaluationSummary] = None
    ) -> "ModelVersion":
        """Return a copy moved to ``status``, keeping the current evaluation."""
        return replace(
            self,
            status=status,
            evaluation=evaluation or self.evaluation,
            status_changed_at=datetime.now(timezone.utc),
        )

    def with_evaluation(self, evaluation: EvaluationSummary) -> "ModelVersion":
        return replace(self, evaluation=evaluation)
