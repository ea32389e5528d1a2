"""
Dependency container injection module - Main Layer

This module implements the dependency injection container
to simplify the management and lifecycle of dependencies
in the application.
"""

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dependency_injector import containers, providers

from predictcore.application.models import SystemInfo
from predictcore.application.services.model_registry import ModelRegistry
from predictcore.application.services.optimization_coordinator import (
    OptimizationCoordinator,
)
from predictcore.application.services.optimizer import Optimizer
from predictcore.application.services.prediction_cache import PredictionCache
from predictcore.application.services.shadow_evaluator import ShadowEvaluator
from predictcore.application.use_cases.model_management import ModelManagementUseCase
from predictcore.application.use_cases.prediction_core import PredictionCore
from predictcore.application.use_cases.system_use_cases import (
    GetHealthStatusUseCase,
    GetOptimizerStatusUseCase,
)
from predictcore.domain.entities.model_version import ModelConfig
from predictcore.domain.services.evaluator import Evaluator
from predictcore.domain.services.inference_engine import InferenceEngine
from predictcore.domain.services.trigger_policy import OptimizationTriggerPolicy
from predictcore.infrastructure.data import FileLabeledDataProvider
from predictcore.infrastructure.database import MongoDatabase
from predictcore.infrastructure.monitoring import (
    CompositePredictionMonitor,
    MetricsPredictionMonitor,
    StructlogPredictionMonitor,
)
from predictcore.infrastructure.repositories import (
    InMemoryModelStore,
    MongoModelStore,
)
from predictcore.infrastructure.training import SklearnLogisticTrainer
from predictcore.shared import EnumStoreBackend, get_logger

from .config import AppSettings, build_thresholds

logger = get_logger(__name__)


def _enum_value(value):
    return value.value if hasattr(value, "value") else str(value)


class AppContainer(containers.DeclarativeContainer):
    """Composition Root using dependency-injector."""

    wiring_config = containers.WiringConfiguration(packages=["..presentation"])

    # Settings
    config = providers.Configuration()

    # Infrastructure
    mongo_database = providers.Singleton(
        MongoDatabase,
        mongo_uri=config.database.mongo_uri,
        db_name=config.database.database_name,
    )

    model_store = providers.Selector(
        providers.Callable(_enum_value, config.store.backend),
        memory=providers.Singleton(InMemoryModelStore),
        mongo=providers.Singleton(MongoModelStore, mongo_database=mongo_database),
    )

    labeled_data_provider = providers.Singleton(
        FileLabeledDataProvider,
        path=config.evaluation.dataset_path,
    )

    model_trainer = providers.Singleton(
        SklearnLogisticTrainer,
        seed=config.optimizer.seed,
    )

    structlog_monitor = providers.Singleton(StructlogPredictionMonitor)
    metrics_monitor = providers.Singleton(MetricsPredictionMonitor)
    prediction_monitor = providers.Singleton(
        CompositePredictionMonitor,
        monitors=providers.List(structlog_monitor, metrics_monitor),
    )

    # Domain services
    inference_engine = providers.Singleton(InferenceEngine)

    evaluator = providers.Singleton(
        Evaluator,
        thresholds=providers.Callable(build_thresholds, config.evaluation.thresholds),
        sensitive_features=config.evaluation.sensitive_features,
    )

    trigger_policy = providers.Singleton(
        OptimizationTriggerPolicy,
        degraded_cycles_before_trigger=config.optimizer.degraded_cycles_before_trigger,
    )

    # Application services
    model_registry = providers.Singleton(ModelRegistry, store=model_store)

    prediction_cache = providers.Singleton(
        PredictionCache,
        max_entries=config.cache.max_entries,
        ttl_seconds=config.cache.ttl_seconds,
        stale_max_entries=config.cache.stale_max_entries,
        references=model_registry,
    )

    shadow_evaluator = providers.Singleton(
        ShadowEvaluator,
        engine=inference_engine,
        evaluator=evaluator,
        data_provider=labeled_data_provider,
    )

    optimizer = providers.Singleton(
        Optimizer,
        registry=model_registry,
        trainer=model_trainer,
        data_provider=labeled_data_provider,
        shadow_evaluator=shadow_evaluator,
        metric=config.optimizer.metric,
        max_trials=config.optimizer.max_trials,
        min_improvement=config.optimizer.min_improvement,
        seed=config.optimizer.seed,
    )

    optimization_coordinator = providers.Singleton(
        OptimizationCoordinator,
        registry=model_registry,
        optimizer=optimizer,
        shadow_evaluator=shadow_evaluator,
        monitor=prediction_monitor,
    )

    prediction_core = providers.Singleton(
        PredictionCore,
        registry=model_registry,
        cache=prediction_cache,
        engine=inference_engine,
        evaluator=evaluator,
        trigger_policy=trigger_policy,
        coordinator=optimization_coordinator,
        monitor=prediction_monitor,
        inference_timeout=config.inference.timeout_seconds,
    )

    # Application (use cases)
    model_management_use_case = providers.Factory(
        ModelManagementUseCase,
        registry=model_registry,
        shadow_evaluator=shadow_evaluator,
    )

    system_info = providers.Singleton(
        SystemInfo,
        title=config.service.title,
        version=config.service.version,
        environment=providers.Callable(_enum_value, config.environment),
    )

    get_health_status_use_case = providers.Factory(
        GetHealthStatusUseCase,
        registry=model_registry,
        cache=prediction_cache,
        metrics_monitor=metrics_monitor,
        system_info=system_info,
    )

    get_optimizer_status_use_case = providers.Factory(
        GetOptimizerStatusUseCase,
        coordinator=optimization_coordinator,
        trigger_policy=trigger_policy,
    )


# -------------------------
# Global Container Instance
# -------------------------
_app_container: Optional[AppContainer] = None


def init_container(settings: AppSettings) -> AppContainer:
    """Initialize global container with application settings."""

    global _app_container

    container = AppContainer()
    container.config.from_pydantic(settings)
    _app_container = container
    return container


def get_container() -> AppContainer:
    """Get the initialized global container."""

    if _app_container is None:
        raise RuntimeError("Container has not been initialized yet")

    return _app_container


def load_bootstrap_config(path: str) -> ModelConfig:
    """Read a JSON ModelConfig document."""
    with Path(path).open("r", encoding="utf-8") as handle:
        return ModelConfig.from_dict(json.load(handle))


@asynccontextmanager
async def app_lifespan():
    """
    Centralized lifecycle management for the prediction core.

    Builds the orchestrator before the registry is loaded so its listeners
    observe the bootstrap activation, restores versions from the store,
    bootstraps the first version when the store is empty, and cancels any
    running optimization job on shutdown.
    """
    container = get_container()
    uses_mongo = (
        _enum_value(container.config.store.backend()) == EnumStoreBackend.MONGO.value
    )

    if uses_mongo:
        logger.info("container.mongo.ensure_connection")
        await container.mongo_database().create_indexes()

    prediction_core = container.prediction_core()
    coordinator = container.optimization_coordinator()
    registry = container.model_registry()

    try:
        active = await registry.load()
        bootstrap_path = container.config.store.bootstrap_model_path()
        if active is None and bootstrap_path:
            config = load_bootstrap_config(bootstrap_path)
            active = await registry.bootstrap(config)
        if active is None:
            logger.warning("container.no_active_model")

        logger.info(
            "container.resources.initialized",
            active_version_id=active.id if active else None,
            cache_max_entries=prediction_core.cache.max_entries,
        )
        yield container

    finally:
        await coordinator.shutdown()
        if uses_mongo:
            logger.info("container.mongo.close")
            container.mongo_database().close()

        logger.info("container.resources.shutdown")
