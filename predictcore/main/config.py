"""
Application Settings - Main Layer

Use Pydantic Settings for configuration management.
This module handles configuration settings provided using
environment variables, .env files and default values. Every section is
validated when the settings are constructed.
"""

from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from predictcore.domain.entities.evaluation import (
    LOWER_IS_BETTER,
    Metric,
    MetricThreshold,
)
from predictcore.shared import EnumEnvironment, EnumLogLevel, EnumStoreBackend


class ServiceSettings(BaseSettings):
    """HTTP service configuration settings."""

    title: str = Field(default="Prediction Core", description="Service title")
    description: str = Field(
        default="Versioned prediction serving with caching, evaluation "
        "and gated re-optimization",
        description="Service description",
    )
    version: str = Field(default="1.0.0", description="Service version")
    port: int = Field(default=8000, description="Port to bind the server")
    reload: bool = Field(
        default=False, description="Enable auto-reload for development"
    )

    model_config = SettingsConfigDict(
        env_prefix="SERVICE_", case_sensitive=False, extra="ignore"
    )


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    mongo_uri: str = Field(
        default="mongodb://localhost:27017/predictcore",
        description="MongoDB connection URI",
    )
    database_name: str = Field(
        default="predictcore", description="Name of the MongoDB database"
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_", case_sensitive=False, extra="ignore"
    )


class StoreSettings(BaseSettings):
    """Model version store configuration."""

    backend: EnumStoreBackend = Field(
        default=EnumStoreBackend.MEMORY, description="Where model versions are kept"
    )
    bootstrap_model_path: Optional[str] = Field(
        default=None,
        description="JSON model configuration activated when the store is empty",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_", case_sensitive=False, extra="ignore"
    )


class CacheSettings(BaseSettings):
    """Prediction cache configuration."""

    max_entries: int = Field(default=1000, gt=0, description="cache.maxEntries")
    ttl_seconds: float = Field(default=3600.0, gt=0, description="cache.ttl")
    stale_max_entries: Optional[int] = Field(
        default=None,
        ge=0,
        description="Entries kept past their TTL for timeout fallback "
        "(defaults to max_entries)",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_", case_sensitive=False, extra="ignore"
    )


class InferenceSettings(BaseSettings):
    """Inference deadline configuration."""

    timeout_seconds: float = Field(
        default=1.0, gt=0, description="Deadline for a single inference call"
    )

    model_config = SettingsConfigDict(
        env_prefix="INFERENCE_", case_sensitive=False, extra="ignore"
    )


class ThresholdSettings(BaseModel):
    warning: float
    critical: float


def _default_thresholds() -> Dict[str, ThresholdSettings]:
    return {
        Metric.ACCURACY.value: ThresholdSettings(warning=0.9, critical=0.8),
        Metric.PRECISION.value: ThresholdSettings(warning=0.85, critical=0.75),
        Metric.RECALL.value: ThresholdSettings(warning=0.85, critical=0.75),
        Metric.F1_SCORE.value: ThresholdSettings(warning=0.87, critical=0.77),
        Metric.FAIRNESS.value: ThresholdSettings(warning=0.95, critical=0.85),
    }


def build_thresholds(raw: Mapping[str, Any]) -> Dict[str, MetricThreshold]:
    """
    Convert configured thresholds into domain thresholds.

    Raises:
        ValueError: On an unknown metric or inconsistent limits.
    """
    known = {metric.value for metric in Metric}
    thresholds: Dict[str, MetricThreshold] = {}
    for name, limits in raw.items():
        if name not in known:
            raise ValueError(f"Unknown metric '{name}' in evaluation thresholds")
        if isinstance(limits, BaseModel):
            limits = limits.model_dump()
        thresholds[name] = MetricThreshold(
            warning=float(limits["warning"]),
            critical=float(limits["critical"]),
            higher_is_better=name not in LOWER_IS_BETTER,
        )
    return thresholds


class EvaluationSettings(BaseSettings):
    """Evaluation threshold policy and labeled data."""

    thresholds: Dict[str, ThresholdSettings] = Field(
        default_factory=_default_thresholds,
        description="evaluation.thresholds: metric -> {warning, critical}",
    )
    sensitive_features: List[str] = Field(
        default_factory=list,
        description="Raw features whose values define fairness slices",
    )
    dataset_path: Optional[str] = Field(
        default=None,
        description="JSON file with training and holdout labeled records",
    )

    model_config = SettingsConfigDict(
        env_prefix="EVALUATION_", case_sensitive=False, extra="ignore"
    )

    @model_validator(mode="after")
    def _validate_thresholds(self) -> "EvaluationSettings":
        build_thresholds(self.thresholds)
        return self


class OptimizerSettings(BaseSettings):
    """Background optimization configuration."""

    max_trials: int = Field(default=100, gt=0, description="optimizer.maxTrials")
    degraded_cycles_before_trigger: int = Field(
        default=3, ge=1, description="optimizer.degradedCyclesBeforeTrigger"
    )
    metric: str = Field(
        default=Metric.F1_SCORE.value,
        description="Metric the search maximizes on held-out data",
    )
    min_improvement: float = Field(
        default=0.01, ge=0, description="Required gain over the baseline score"
    )
    seed: int = Field(default=0, description="Seed of the hyperparameter search")

    model_config = SettingsConfigDict(
        env_prefix="OPTIMIZER_", case_sensitive=False, extra="ignore"
    )

    @field_validator("metric")
    @classmethod
    def _validate_metric(cls, value: str) -> str:
        if value not in {metric.value for metric in Metric}:
            raise ValueError(f"Unknown optimizer metric '{value}'")
        if value in LOWER_IS_BETTER:
            raise ValueError(f"Optimizer metric '{value}' must be higher-is-better")
        return value


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: EnumLogLevel = Field(default=EnumLogLevel.INFO, description="Logging level")
    file_path: Optional[str] = Field(
        default=None, description="Log file path (if None, logs to console)"
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_", case_sensitive=False, extra="ignore"
    )


class AppSettings(BaseSettings):
    """Main application settings, aggregating all sub-settings."""

    environment: EnumEnvironment = Field(
        default=EnumEnvironment.DEVELOPMENT, description="Application environment"
    )

    service: ServiceSettings = Field(default_factory=ServiceSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    inference: InferenceSettings = Field(default_factory=InferenceSettings)
    evaluation: EvaluationSettings = Field(default_factory=EvaluationSettings)
    optimizer: OptimizerSettings = Field(default_factory=OptimizerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


def get_settings() -> AppSettings:
    """
    Get application settings instance Factory.

    Used to be mocked in tests, allowing different settings based on environment.
    """
    return AppSettings()
