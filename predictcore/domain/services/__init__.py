"""Domain services package."""

from .config_validator import validate_model_config
from .evaluator import Evaluator
from .feature_processor import FeatureProcessor, fit_normalization, sensitive_attributes
from .inference_engine import InferenceEngine, to_prediction
from .trigger_policy import OptimizationTriggerPolicy

__all__ = [
    "Evaluator",
    "FeatureProcessor",
    "InferenceEngine",
    "OptimizationTriggerPolicy",
    "fit_normalization",
    "sensitive_attributes",
    "to_prediction",
    "validate_model_config",
]
