"""
Application Service - Optimization Coordinator

Runs at most one optimization job at a time, in the background, off the
serving path. A job proposes a candidate, shadow-evaluates it and promotes it
only on a passing verdict. Triggers that arrive while a job runs are
coalesced into it; a change of the active version made by anyone else
cancels the job.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from predictcore.application.services.model_registry import ModelRegistry
from predictcore.application.services.optimizer import Optimizer
from predictcore.application.services.shadow_evaluator import ShadowEvaluator
from predictcore.domain.entities.errors import DomainError, OptimizationExhaustedError
from predictcore.domain.entities.evaluation import EvaluationResult
from predictcore.domain.entities.model_version import ModelVersion
from predictcore.domain.entities.optimization import (
    OptimizationOutcome,
    OptimizationStatus,
)
from predictcore.domain.ports.prediction_monitor import IPredictionMonitor

logger = structlog.get_logger(__name__)


class OptimizationCoordinator:
    """Single-flight background optimization with gated promotion."""

    def __init__(
        self,
        registry: ModelRegistry,
        optimizer: Optimizer,
        shadow_evaluator: ShadowEvaluator,
        monitor: Optional[IPredictionMonitor] = None,
    ):
        self.registry = registry
        self.optimizer = optimizer
        self.shadow_evaluator = shadow_evaluator
        self.monitor = monitor
        self.coalesced = 0
        self.last_outcome: Optional[OptimizationOutcome] = None

        self._task: Optional[asyncio.Task] = None
        self._base_version_id: Optional[int] = None
        self._promoting_id: Optional[int] = None
        registry.subscribe(self._on_version_change)

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self, evaluation: EvaluationResult, base_version: ModelVersion) -> bool:
        """
        Start a background job for ``base_version``.

        Returns False when a job is already running; the trigger is then
        absorbed by that job.
        """
        if self.in_flight:
            self.coalesced += 1
            logger.info(
                "optimization.trigger_coalesced",
                base_version_id=base_version.id,
                running_base_version_id=self._base_version_id,
            )
            return False

        self._base_version_id = base_version.id
        self._promoting_id = None
        self._task = asyncio.get_running_loop().create_task(
            self._run(evaluation, base_version),
            name=f"optimization-{base_version.id}",
        )
        logger.info(
            "optimization.triggered",
            base_version_id=base_version.id,
            verdict=evaluation.verdict.value,
        )
        return True

    async def wait(self) -> Optional[OptimizationOutcome]:
        """Wait for the running job, if any, and return the latest outcome."""
        task = self._task
        if task is not None:
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        return self.last_outcome

    async def shutdown(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("optimization.shutdown", base_version_id=self._base_version_id)

    def _on_version_change(
        self, previous: Optional[ModelVersion], current: ModelVersion, reason: str
    ) -> None:
        if not self.in_flight:
            return
        if current.id in (self._base_version_id, self._promoting_id):
            return
        logger.warning(
            "optimization.superseded",
            base_version_id=self._base_version_id,
            active_version_id=current.id,
            reason=reason,
        )
        self._task.cancel()

    async def _run(
        self, evaluation: EvaluationResult, base_version: ModelVersion
    ) -> OptimizationOutcome:
        outcome: Optional[OptimizationOutcome] = None
        try:
            outcome = await self._optimize_and_promote(evaluation, base_version)
        except asyncio.CancelledError:
            outcome = OptimizationOutcome(
                status=OptimizationStatus.CANCELLED,
                base_version_id=base_version.id,
                message="Cancelled before promotion",
            )
            raise
        except OptimizationExhaustedError as exc:
            outcome = OptimizationOutcome(
                status=OptimizationStatus.EXHAUSTED,
                base_version_id=base_version.id,
                trials=exc.details.get("trials", 0),
                baseline_score=exc.details.get("baseline_score"),
                best_score=exc.details.get("best_score"),
                message=exc.message,
            )
        except DomainError as exc:
            logger.error(
                "optimization.failed",
                base_version_id=base_version.id,
                error=exc.message,
                details=exc.details,
            )
            outcome = OptimizationOutcome(
                status=OptimizationStatus.FAILED,
                base_version_id=base_version.id,
                message=exc.message,
            )
        except Exception as exc:
            logger.exception("optimization.crashed", base_version_id=base_version.id)
            outcome = OptimizationOutcome(
                status=OptimizationStatus.FAILED,
                base_version_id=base_version.id,
                message=str(exc),
            )
        finally:
            self._promoting_id = None
            if outcome is not None:
                self._record(outcome)
        return outcome

    async def _optimize_and_promote(
        self, evaluation: EvaluationResult, base_version: ModelVersion
    ) -> OptimizationOutcome:
        if not self._still_active(base_version):
            logger.warning(
                "optimization.base_superseded",
                base_version_id=base_version.id,
            )
            return OptimizationOutcome(
                status=OptimizationStatus.CANCELLED,
                base_version_id=base_version.id,
                message="Base version is no longer active",
            )

        candidate = await self.optimizer.optimize(evaluation, base_version)

        if not self._still_active(base_version):
            return OptimizationOutcome(
                status=OptimizationStatus.CANCELLED,
                base_version_id=base_version.id,
                candidate_id=candidate.id,
                message="Active version changed during optimization",
            )

        shadow = await self.shadow_evaluator.evaluate_version(candidate)
        candidate = await self.registry.attach_evaluation(candidate.id, shadow.summary())
        best_score = shadow.metric(self.optimizer.metric)

        if not candidate.has_passing_evaluation:
            logger.warning(
                "optimization.candidate_rejected",
                candidate_id=candidate.id,
                verdict=shadow.verdict.value,
                breached=list(shadow.breached),
            )
            return OptimizationOutcome(
                status=OptimizationStatus.REJECTED,
                base_version_id=base_version.id,
                candidate_id=candidate.id,
                best_score=best_score,
                message=f"Shadow evaluation verdict {shadow.verdict.value}",
            )

        if not self._still_active(base_version):
            return OptimizationOutcome(
                status=OptimizationStatus.CANCELLED,
                base_version_id=base_version.id,
                candidate_id=candidate.id,
                best_score=best_score,
                message="Active version changed during shadow evaluation",
            )

        self._promoting_id = candidate.id
        await self.registry.promote(candidate.id)
        return OptimizationOutcome(
            status=OptimizationStatus.PROMOTED,
            base_version_id=base_version.id,
            candidate_id=candidate.id,
            best_score=best_score,
            message="Candidate promoted",
        )

    def _still_active(self, base_version: ModelVersion) -> bool:
        return (
            self.registry.has_active
            and self.registry.get_active().id == base_version.id
        )

    def _record(self, outcome: OptimizationOutcome) -> None:
        self.last_outcome = outcome
        logger.info(
            "optimization.finished",
            status=outcome.status.value,
            base_version_id=outcome.base_version_id,
            candidate_id=outcome.candidate_id,
        )
        if self.monitor is not None:
            self.monitor.on_optimization(outcome)
