"""Use cases for the health and optimizer status endpoints."""

from datetime import datetime, timezone
from typing import Optional

from predictcore.application.dtos.health_dto import HealthDTO, ServiceStatus
from predictcore.application.dtos.optimizer_dto import (
    OptimizationOutcomeDTO,
    OptimizerStatusDTO,
)
from predictcore.application.models import SystemInfo
from predictcore.application.services.model_registry import ModelRegistry
from predictcore.application.services.optimization_coordinator import (
    OptimizationCoordinator,
)
from predictcore.application.services.prediction_cache import PredictionCache
from predictcore.domain.entities.evaluation import Verdict
from predictcore.domain.ports.prediction_monitor import IPredictionMetrics
from predictcore.domain.services.trigger_policy import OptimizationTriggerPolicy


class GetHealthStatusUseCase:
    """
    Report service availability.

    DOWN without an active model, DEGRADED when the latest evaluation did not
    pass, UP otherwise.
    """

    def __init__(
        self,
        registry: ModelRegistry,
        cache: PredictionCache,
        metrics_monitor: IPredictionMetrics,
        system_info: SystemInfo,
    ) -> None:
        self._registry = registry
        self._cache = cache
        self._metrics = metrics_monitor
        self._info = system_info

    async def execute(self, started_at: Optional[datetime]) -> HealthDTO:
        now = datetime.now(timezone.utc)
        started = started_at or now

        last_evaluation = self._metrics.last_evaluation
        if not self._registry.has_active:
            service_status = ServiceStatus.DOWN
        elif last_evaluation and last_evaluation["verdict"] != Verdict.PASS.value:
            service_status = ServiceStatus.DEGRADED
        else:
            service_status = ServiceStatus.UP

        return HealthDTO(
            status=service_status,
            name=self._info.title,
            version=self._info.version,
            environment=self._info.environment,
            started_at=started,
            uptime_seconds=max(0.0, (now - started).total_seconds()),
            active_version_id=self._registry.get_active().id
            if self._registry.has_active
            else None,
            cache=self._cache.snapshot(),
            monitoring=self._metrics.snapshot(),
        )


class GetOptimizerStatusUseCase:
    """Expose the state of the background optimization loop."""

    def __init__(
        self,
        coordinator: OptimizationCoordinator,
        trigger_policy: OptimizationTriggerPolicy,
    ) -> None:
        self._coordinator = coordinator
        self._policy = trigger_policy

    async def execute(self) -> OptimizerStatusDTO:
        outcome = self._coordinator.last_outcome
        optimizer = self._coordinator.optimizer
        return OptimizerStatusDTO(
            in_flight=self._coordinator.in_flight,
            coalesced_triggers=self._coordinator.coalesced,
            degraded_streak=self._policy.degraded_streak,
            degraded_cycles_before_trigger=self._policy.degraded_cycles_before_trigger,
            metric=optimizer.metric,
            max_trials=optimizer.max_trials,
            last_outcome=OptimizationOutcomeDTO.from_domain(outcome) if outcome else None,
        )
