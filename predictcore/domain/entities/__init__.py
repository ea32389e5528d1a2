"""
Domain Entities Package

This package contains the core domain entities of the prediction service.
"""

from .dataset import LabeledDataset, LabeledRecord
from .errors import (
    DomainError,
    InferenceError,
    InferenceTimeoutError,
    MalformedInputError,
    ModelConfigurationError,
    NoActiveModelError,
    OptimizationExhaustedError,
    PromotionRejectedError,
    UnknownVersionError,
)
from .evaluation import (
    EvaluationResult,
    EvaluationSummary,
    Metric,
    MetricScore,
    MetricThreshold,
    Verdict,
)
from .features import (
    Encoding,
    FeatureKind,
    FeatureSchema,
    FeatureSpec,
    FeatureVector,
    Normalization,
)
from .model_version import (
    Hyperparameters,
    ModelArchitecture,
    ModelConfig,
    ModelKind,
    ModelStatus,
    ModelVersion,
    VersionSource,
)
from .optimization import (
    OptimizationJob,
    OptimizationOutcome,
    OptimizationStatus,
    TrialResult,
)
from .prediction import Outcome, Prediction, RawPrediction

__all__ = [
    "DomainError",
    "InferenceError",
    "InferenceTimeoutError",
    "MalformedInputError",
    "ModelConfigurationError",
    "NoActiveModelError",
    "OptimizationExhaustedError",
    "PromotionRejectedError",
    "UnknownVersionError",
    "EvaluationResult",
    "EvaluationSummary",
    "Metric",
    "MetricScore",
    "MetricThreshold",
    "Verdict",
    "Encoding",
    "FeatureKind",
    "FeatureSchema",
    "FeatureSpec",
    "FeatureVector",
    "Normalization",
    "Hyperparameters",
    "ModelArchitecture",
    "ModelConfig",
    "ModelKind",
    "ModelStatus",
    "ModelVersion",
    "VersionSource",
    "OptimizationJob",
    "OptimizationOutcome",
    "OptimizationStatus",
    "TrialResult",
    "Outcome",
    "Prediction",
    "RawPrediction",
    "LabeledDataset",
    "LabeledRecord",
]
