"""
Application DTOs - Model versions

Payloads for registering candidate configurations and the representation of
registered versions returned by the models endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from predictcore.domain.entities.features import Encoding, FeatureKind, Normalization
from predictcore.domain.entities.model_version import (
    ModelConfig,
    ModelKind,
    ModelStatus,
    ModelVersion,
    VersionSource,
)


class FeatureSpecDTO(BaseModel):
    """Declaration of one input field."""

    name: str = Field(min_length=1)
    kind: FeatureKind = FeatureKind.NUMERIC
    required: bool = True
    default: Optional[Any] = None
    normalization: Normalization = Normalization.NONE
    mean: float = 0.0
    std: float = 1.0
    scale_min: float = 0.0
    scale_max: float = 1.0
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    encoding: Encoding = Encoding.ONEHOT
    categories: List[str] = Field(default_factory=list)


class ArchitectureDTO(BaseModel):
    kind: ModelKind = ModelKind.LOGISTIC
    weights: List[float] = Field(default_factory=list)
    bias: float = 0.0


class HyperparametersDTO(BaseModel):
    regularization: float = Field(default=1.0, gt=0)
    class_weight: Optional[str] = None
    max_iter: int = Field(default=200, gt=0)
    dropped_features: List[str] = Field(default_factory=list)


class ModelConfigDTO(BaseModel):
    """Complete configuration of a model version."""

    features: List[FeatureSpecDTO] = Field(min_length=1)
    architecture: ArchitectureDTO
    hyperparameters: HyperparametersDTO = Field(default_factory=HyperparametersDTO)
    decision_threshold: float = Field(default=0.5, gt=0, lt=1)

    def to_domain(self) -> ModelConfig:
        payload = self.model_dump(mode="json")
        return ModelConfig.from_dict(
            {
                "feature_schema": {"features": payload["features"]},
                "architecture": payload["architecture"],
                "hyperparameters": payload["hyperparameters"],
                "decision_threshold": payload["decision_threshold"],
            }
        )

    @classmethod
    def from_domain(cls, config: ModelConfig) -> "ModelConfigDTO":
        payload = config.to_dict()
        return cls(
            features=payload["feature_schema"]["features"],
            architecture=payload["architecture"],
            hyperparameters=payload["hyperparameters"],
            decision_threshold=payload["decision_threshold"],
        )


class EvaluationSummaryDTO(BaseModel):
    verdict: str
    metrics: Dict[str, float]
    breached: List[str]
    sample_size: int
    evaluated_at: datetime


class ModelVersionResponseDTO(BaseModel):
    """DTO returned for registered model versions."""

    id: int
    status: ModelStatus
    source: VersionSource
    parent_id: Optional[int] = None
    schema_fingerprint: str
    config: ModelConfigDTO
    evaluation: Optional[EvaluationSummaryDTO] = None
    created_at: datetime
    status_changed_at: datetime

    @classmethod
    def from_domain(cls, version: ModelVersion) -> "ModelVersionResponseDTO":
        return cls(
            id=version.id,
            status=version.status,
            source=version.source,
            parent_id=version.parent_id,
            schema_fingerprint=version.config.feature_schema.fingerprint,
            config=ModelConfigDTO.from_domain(version.config),
            evaluation=EvaluationSummaryDTO(**version.evaluation.to_dict())
            if version.evaluation
            else None,
            created_at=version.created_at,
            status_changed_at=version.status_changed_at,
        )
