"""
Application Use Case - Prediction Core

Drives the request lifecycle of the serving path:

    IDLE -> FEATURIZE -> CACHE_LOOKUP -> HIT | MISS -> INFER -> CACHE_STORE
         -> EVALUATE_BATCH -> OPTIMIZE_ASYNC -> RESPOND

Every request captures the active model version exactly once and serves all
of its records against it. Evaluation runs only when ground truth accompanies
the batch; optimization triggered by that evaluation is scheduled in the
background and never delays the response.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

import structlog

from predictcore.application.services.model_registry import ModelRegistry
from predictcore.application.services.optimization_coordinator import (
    OptimizationCoordinator,
)
from predictcore.application.services.prediction_cache import CacheKey, PredictionCache
from predictcore.domain.entities.errors import (
    InferenceTimeoutError,
    MalformedInputError,
)
from predictcore.domain.entities.evaluation import EvaluationResult
from predictcore.domain.entities.features import FeatureSchema, FeatureVector
from predictcore.domain.entities.model_version import ModelVersion
from predictcore.domain.entities.prediction import Outcome, Prediction
from predictcore.domain.ports.prediction_monitor import IPredictionMonitor
from predictcore.domain.services.evaluator import Evaluator
from predictcore.domain.services.feature_processor import (
    FeatureProcessor,
    sensitive_attributes,
)
from predictcore.domain.services.inference_engine import InferenceEngine, to_prediction
from predictcore.domain.services.trigger_policy import OptimizationTriggerPolicy

logger = structlog.get_logger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    FEATURIZE = "featurize"
    CACHE_LOOKUP = "cache_lookup"
    HIT = "hit"
    MISS = "miss"
    INFER = "infer"
    CACHE_STORE = "cache_store"
    EVALUATE_BATCH = "evaluate_batch"
    OPTIMIZE_ASYNC = "optimize_async"
    RESPOND = "respond"


TRANSITIONS: Dict[PipelineState, FrozenSet[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.FEATURIZE}),
    PipelineState.FEATURIZE: frozenset({PipelineState.CACHE_LOOKUP}),
    PipelineState.CACHE_LOOKUP: frozenset({PipelineState.HIT, PipelineState.MISS}),
    PipelineState.HIT: frozenset({PipelineState.RESPOND, PipelineState.EVALUATE_BATCH}),
    PipelineState.MISS: frozenset({PipelineState.INFER}),
    # INFER -> RESPOND/EVALUATE_BATCH is the stale fallback after a timeout
    PipelineState.INFER: frozenset(
        {PipelineState.CACHE_STORE, PipelineState.RESPOND, PipelineState.EVALUATE_BATCH}
    ),
    PipelineState.CACHE_STORE: frozenset(
        {PipelineState.EVALUATE_BATCH, PipelineState.RESPOND}
    ),
    PipelineState.EVALUATE_BATCH: frozenset(
        {PipelineState.RESPOND, PipelineState.OPTIMIZE_ASYNC}
    ),
    PipelineState.OPTIMIZE_ASYNC: frozenset({PipelineState.RESPOND}),
    PipelineState.RESPOND: frozenset(),
}


class PipelineStateError(RuntimeError):
    """Raised on a transition the request lifecycle does not allow."""


@dataclass
class RequestTrace:
    """States one record went through on its way to a response."""

    state: PipelineState = PipelineState.IDLE
    history: List[PipelineState] = field(
        default_factory=lambda: [PipelineState.IDLE]
    )

    def advance(self, state: PipelineState) -> None:
        if state not in TRANSITIONS[self.state]:
            raise PipelineStateError(
                f"Illegal transition {self.state.value} -> {state.value}"
            )
        self.state = state
        self.history.append(state)


class PredictionSource(str, Enum):
    HIT = "hit"
    MISS = "miss"
    STALE = "stale"


@dataclass(frozen=True)
class ServedPrediction:
    prediction: Prediction
    source: PredictionSource
    trace: RequestTrace


@dataclass(frozen=True)
class BatchOutcome:
    predictions: Tuple[ServedPrediction, ...]
    evaluation: Optional[EvaluationResult] = None
    optimization_triggered: bool = False


class PredictionCore:
    """Orchestrates featurization, caching, inference, evaluation and optimization."""

    def __init__(
        self,
        registry: ModelRegistry,
        cache: PredictionCache,
        engine: InferenceEngine,
        evaluator: Evaluator,
        trigger_policy: OptimizationTriggerPolicy,
        coordinator: OptimizationCoordinator,
        monitor: Optional[IPredictionMonitor] = None,
        inference_timeout: float = 1.0,
    ):
        if inference_timeout <= 0:
            raise ValueError("inference_timeout must be greater than 0")
        self.registry = registry
        self.cache = cache
        self.engine = engine
        self.evaluator = evaluator
        self.trigger_policy = trigger_policy
        self.coordinator = coordinator
        self.monitor = monitor
        self.inference_timeout = inference_timeout
        self._processors: Dict[str, FeatureProcessor] = {}
        registry.subscribe(self._on_version_change)

    async def predict(self, raw: Mapping[str, Any]) -> ServedPrediction:
        """
        Serve one record against the active version.

        Raises:
            NoActiveModelError: If no version is active.
            MalformedInputError: If the record does not satisfy the schema.
            InferenceError: If the model rejects the features.
            InferenceTimeoutError: On deadline miss with nothing cached to fall back to.
        """
        version = self.registry.get_active()
        trace = RequestTrace()
        trace.advance(PipelineState.FEATURIZE)
        features = self._processor(version.config.feature_schema).process(raw)
        served = await self._serve(features, version, trace)
        trace.advance(PipelineState.RESPOND)
        return served

    async def predict_batch(
        self,
        records: Sequence[Mapping[str, Any]],
        outcomes: Optional[Sequence[Outcome]] = None,
    ) -> BatchOutcome:
        """
        Serve a batch against one captured version, then evaluate it when
        ``outcomes`` are supplied.

        The whole batch is rejected if any record is malformed. Evaluation
        can schedule an optimization job; the batch response does not wait
        for it.
        """
        if not records:
            raise MalformedInputError("Batch must contain at least one record")
        if outcomes is not None and len(outcomes) != len(records):
            raise MalformedInputError(
                "Outcomes must align with records",
                details={"records": len(records), "outcomes": len(outcomes)},
            )

        version = self.registry.get_active()
        processor = self._processor(version.config.feature_schema)
        traces: List[RequestTrace] = []
        features: List[FeatureVector] = []
        for index, raw in enumerate(records):
            trace = RequestTrace()
            trace.advance(PipelineState.FEATURIZE)
            try:
                features.append(processor.process(raw))
            except MalformedInputError as exc:
                raise MalformedInputError(
                    f"Record {index} is malformed: {exc.message}",
                    details={"index": index, **exc.details},
                ) from exc
            traces.append(trace)

        served = await asyncio.gather(
            *(self._serve(f, version, t) for f, t in zip(features, traces))
        )

        evaluation: Optional[EvaluationResult] = None
        triggered = False
        if outcomes is not None:
            outcomes = [
                self._with_attributes(outcome, raw)
                for outcome, raw in zip(outcomes, records)
            ]
            for trace in traces:
                trace.advance(PipelineState.EVALUATE_BATCH)
            evaluation, triggered = await self._evaluate_cycle(
                [s.prediction for s in served], outcomes, version
            )
            if triggered:
                for trace in traces:
                    trace.advance(PipelineState.OPTIMIZE_ASYNC)

        for trace in traces:
            trace.advance(PipelineState.RESPOND)
        return BatchOutcome(
            predictions=tuple(served),
            evaluation=evaluation,
            optimization_triggered=triggered,
        )

    async def record_feedback(
        self, predictions: Sequence[Prediction], outcomes: Sequence[Outcome]
    ) -> BatchOutcome:
        """
        Evaluate previously served predictions once their outcomes are known.

        Only feedback about the currently active version feeds the trigger
        policy; feedback about older versions is evaluated and reported only.
        """
        if not predictions:
            raise MalformedInputError("Feedback must contain at least one prediction")
        version_ids = {p.model_version_id for p in predictions}
        active = self.registry.get_active()
        if version_ids == {active.id}:
            evaluation, triggered = await self._evaluate_cycle(
                predictions, outcomes, active
            )
        else:
            evaluation = await asyncio.to_thread(
                self.evaluator.evaluate, predictions, outcomes
            )
            triggered = False
            logger.info(
                "core.feedback_not_current",
                version_ids=sorted(version_ids),
                active_version_id=active.id,
            )
            self._emit_evaluation(evaluation)
        return BatchOutcome(
            predictions=(), evaluation=evaluation, optimization_triggered=triggered
        )

    def status(self) -> Dict[str, Any]:
        outcome = self.coordinator.last_outcome
        return {
            "active_version_id": self.registry.get_active().id
            if self.registry.has_active
            else None,
            "cache": self.cache.snapshot(),
            "degraded_streak": self.trigger_policy.degraded_streak,
            "optimization_in_flight": self.coordinator.in_flight,
            "last_optimization": outcome.status.value if outcome else None,
        }

    async def _serve(
        self, features: FeatureVector, version: ModelVersion, trace: RequestTrace
    ) -> ServedPrediction:
        key = CacheKey(features.fingerprint, version.id)
        trace.advance(PipelineState.CACHE_LOOKUP)
        computed = False

        async def compute() -> Prediction:
            nonlocal computed
            computed = True
            trace.advance(PipelineState.MISS)
            trace.advance(PipelineState.INFER)
            return await self._infer(features, version)

        try:
            prediction = await self.cache.get_or_compute(key, compute)
        except InferenceTimeoutError:
            stale = self.cache.get_stale(key)
            if stale is None:
                raise
            if not computed:
                trace.advance(PipelineState.HIT)
            logger.warning(
                "core.stale_served",
                model_version_id=version.id,
                fingerprint=key.fingerprint[:12],
            )
            return self._served(stale, PredictionSource.STALE, trace)

        if computed:
            trace.advance(PipelineState.CACHE_STORE)
            return self._served(prediction, PredictionSource.MISS, trace)
        trace.advance(PipelineState.HIT)
        return self._served(prediction, PredictionSource.HIT, trace)

    async def _infer(self, features: FeatureVector, version: ModelVersion) -> Prediction:
        started = time.perf_counter()
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(self.engine.infer, features, version),
                timeout=self.inference_timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "core.inference_timeout",
                model_version_id=version.id,
                timeout_seconds=self.inference_timeout,
            )
            raise InferenceTimeoutError(
                self.inference_timeout, details={"model_version_id": version.id}
            ) from exc
        return to_prediction(
            raw,
            decision_threshold=version.config.decision_threshold,
            fingerprint=features.fingerprint,
            latency_ms=(time.perf_counter() - started) * 1000.0,
        )

    async def _evaluate_cycle(
        self,
        predictions: Sequence[Prediction],
        outcomes: Sequence[Outcome],
        version: ModelVersion,
    ) -> Tuple[EvaluationResult, bool]:
        evaluation = await asyncio.to_thread(
            self.evaluator.evaluate, predictions, outcomes
        )
        self._emit_evaluation(evaluation)

        # the streak belongs to the version that is active now
        if not self._is_active(version):
            logger.info(
                "core.evaluation_not_current",
                model_version_id=version.id,
                verdict=evaluation.verdict.value,
            )
            return evaluation, False

        if not self.trigger_policy.observe(evaluation.verdict):
            return evaluation, False

        # optimization problems never fail the request
        try:
            started = self.coordinator.trigger(evaluation, version)
        except Exception as exc:
            logger.error(
                "core.optimization_trigger_failed",
                model_version_id=version.id,
                error=str(exc),
                exc_info=exc,
            )
            return evaluation, False
        return evaluation, started

    def _is_active(self, version: ModelVersion) -> bool:
        return (
            self.registry.has_active
            and self.registry.get_active().id == version.id
        )

    def _emit_evaluation(self, evaluation: EvaluationResult) -> None:
        logger.info(
            "core.evaluated",
            verdict=evaluation.verdict.value,
            breached=list(evaluation.breached),
            sample_size=evaluation.sample_size,
        )
        if self.monitor is not None:
            self.monitor.on_evaluation(evaluation)

    def _served(
        self, prediction: Prediction, source: PredictionSource, trace: RequestTrace
    ) -> ServedPrediction:
        if self.monitor is not None:
            self.monitor.on_prediction(prediction, source.value)
        return ServedPrediction(prediction=prediction, source=source, trace=trace)

    def _with_attributes(self, outcome: Outcome, raw: Mapping[str, Any]) -> Outcome:
        if outcome.attributes or not self.evaluator.sensitive_features:
            return outcome
        return Outcome(
            label=outcome.label,
            attributes=sensitive_attributes(raw, self.evaluator.sensitive_features),
        )

    def _processor(self, schema: FeatureSchema) -> FeatureProcessor:
        processor = self._processors.get(schema.fingerprint)
        if processor is None:
            processor = FeatureProcessor(schema)
            self._processors[schema.fingerprint] = processor
        return processor

    def _on_version_change(
        self, previous: Optional[ModelVersion], current: ModelVersion, reason: str
    ) -> None:
        if previous is not None:
            self.cache.invalidate(previous.id, retain_history=True)
        self.cache.revalidate(current.id)
        self.trigger_policy.reset()
        logger.info(
            "core.version_changed",
            previous_version_id=previous.id if previous else None,
            version_id=current.id,
            reason=reason,
        )
        if self.monitor is not None:
            self.monitor.on_version_change(previous, current, reason)
