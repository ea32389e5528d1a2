"""
Application Service - Model Registry

Owns the sequence of model versions and the single reference to the active
one. Readers take the active version with a plain attribute read; writers are
serialized, persist through the model store first, and then swap every
in-memory reference in one synchronous step, so a reader observes either the
version before a transition or the one after it, never a mix.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from typing import Callable, Dict, List, Optional

import structlog

from predictcore.domain.entities.errors import (
    ModelConfigurationError,
    NoActiveModelError,
    PromotionRejectedError,
    UnknownVersionError,
)
from predictcore.domain.entities.evaluation import EvaluationSummary
from predictcore.domain.entities.model_version import (
    ModelConfig,
    ModelStatus,
    ModelVersion,
    VersionSource,
)
from predictcore.domain.ports.model_store import IModelStore
from predictcore.domain.services.config_validator import validate_model_config

logger = structlog.get_logger(__name__)

VersionListener = Callable[[Optional[ModelVersion], ModelVersion, str], None]


class ModelRegistry:
    """Authoritative, versioned set of models with an atomically swapped active pointer."""

    def __init__(self, store: IModelStore):
        self._store = store
        self._versions: Dict[int, ModelVersion] = {}
        self._active: Optional[ModelVersion] = None
        self._next_id = 1
        self._write_lock = asyncio.Lock()
        self._references: Counter[int] = Counter()
        self._listeners: List[VersionListener] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_active(self) -> ModelVersion:
        """Return the active version (lock-free)."""
        active = self._active
        if active is None:
            raise NoActiveModelError()
        return active

    @property
    def has_active(self) -> bool:
        return self._active is not None

    def get(self, version_id: int) -> ModelVersion:
        version = self._versions.get(version_id)
        if version is None:
            raise UnknownVersionError(version_id)
        return version

    def list_versions(self, status: Optional[ModelStatus] = None) -> List[ModelVersion]:
        versions = sorted(self._versions.values(), key=lambda v: v.id)
        if status is None:
            return versions
        return [v for v in versions if v.status is status]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def load(self) -> Optional[ModelVersion]:
        """Restore versions from the store; returns the active version if any."""
        async with self._write_lock:
            stored = await self._store.list_all()
            versions = {version.id: version for version in stored}
            active_versions = [
                v for v in versions.values() if v.status is ModelStatus.ACTIVE
            ]
            active = max(active_versions, key=lambda v: v.id, default=None)
            for stale in active_versions:
                if active is not None and stale.id != active.id:
                    logger.warning(
                        "registry.load.duplicate_active",
                        version_id=stale.id,
                        kept_version_id=active.id,
                    )
                    versions[stale.id] = stale.with_status(ModelStatus.RETIRED)
                    await self._store.save(versions[stale.id])

            self._versions = versions
            self._next_id = max(versions, default=0) + 1
            self._active = active

        logger.info(
            "registry.loaded",
            versions=len(versions),
            active_version_id=active.id if active else None,
        )
        return active

    async def bootstrap(self, config: ModelConfig) -> ModelVersion:
        """Register the very first version and make it active."""
        validate_model_config(config)
        async with self._write_lock:
            if self._active is not None:
                raise ModelConfigurationError(
                    "Registry already has an active version",
                    details={"active_version_id": self._active.id},
                )
            version = ModelVersion(
                id=self._allocate_id(),
                config=config,
                status=ModelStatus.ACTIVE,
                source=VersionSource.BOOTSTRAP,
            )
            await self._store.save(version)
            self._versions[version.id] = version
            self._active = version

        logger.info("registry.bootstrapped", version_id=version.id)
        self._notify(None, version, "bootstrap")
        return version

    async def propose_candidate(
        self,
        config: ModelConfig,
        *,
        source: VersionSource = VersionSource.OPERATOR,
        parent_id: Optional[int] = None,
    ) -> ModelVersion:
        """Register a new CANDIDATE version; serving is unaffected."""
        validate_model_config(config)
        async with self._write_lock:
            version = ModelVersion(
                id=self._allocate_id(),
                config=config,
                status=ModelStatus.CANDIDATE,
                source=source,
                parent_id=parent_id,
            )
            await self._store.save(version)
            self._versions[version.id] = version

        logger.info(
            "registry.candidate_proposed",
            version_id=version.id,
            source=source.value,
            parent_id=parent_id,
        )
        return version

    async def attach_evaluation(
        self, candidate_id: int, evaluation: EvaluationSummary
    ) -> ModelVersion:
        """Record the shadow evaluation that decides whether a candidate may be promoted."""
        async with self._write_lock:
            candidate = self._require(candidate_id, ModelStatus.CANDIDATE)
            updated = candidate.with_evaluation(evaluation)
            await self._store.save(updated)
            self._versions[updated.id] = updated

        logger.info(
            "registry.evaluation_attached",
            version_id=candidate_id,
            verdict=evaluation.verdict.value,
        )
        return updated

    async def promote(self, candidate_id: int) -> ModelVersion:
        """
        Make a candidate the active version and retire the previous one.

        Raises:
            UnknownVersionError: If the id does not exist or is not a candidate.
            PromotionRejectedError: If no passing evaluation is attached.
        """
        async with self._write_lock:
            candidate = self._require(candidate_id, ModelStatus.CANDIDATE)
            if not candidate.has_passing_evaluation:
                logger.warning("registry.promotion_rejected", version_id=candidate_id)
                raise PromotionRejectedError(
                    candidate_id,
                    details={
                        "verdict": candidate.evaluation.verdict.value
                        if candidate.evaluation
                        else None
                    },
                )
            previous, promoted = await self._activate(candidate)

        logger.info(
            "registry.promoted",
            version_id=promoted.id,
            previous_version_id=previous.id if previous else None,
        )
        self._notify(previous, promoted, "promote")
        return promoted

    async def rollback(self, to_version_id: int) -> ModelVersion:
        """
        Re-activate a retired version.

        Raises:
            UnknownVersionError: If the id does not exist or is not retired.
        """
        async with self._write_lock:
            target = self._require(to_version_id, ModelStatus.RETIRED)
            previous, restored = await self._activate(target)

        logger.warning(
            "registry.rolled_back",
            version_id=restored.id,
            previous_version_id=previous.id if previous else None,
        )
        self._notify(previous, restored, "rollback")
        return restored

    async def prune_retired(self, keep: int = 5) -> List[int]:
        """
        Delete all but the ``keep`` most recent retired versions.

        Versions still referenced by cache entries are skipped, and so is the
        highest id ever allocated, which keeps ids unique across restarts.
        """
        pruned: List[int] = []
        async with self._write_lock:
            retired = sorted(
                self.list_versions(ModelStatus.RETIRED),
                key=lambda v: v.id,
                reverse=True,
            )
            highest = max(self._versions, default=0)
            for version in retired[max(keep, 0) :]:
                if self._references[version.id] > 0 or version.id == highest:
                    continue
                await self._store.delete(version.id)
                del self._versions[version.id]
                pruned.append(version.id)

        if pruned:
            logger.info("registry.pruned", version_ids=pruned)
        return pruned

    # ------------------------------------------------------------------
    # Reference tracking (fed by the prediction cache)
    # ------------------------------------------------------------------
    def retain(self, version_id: int) -> None:
        self._references[version_id] += 1

    def release(self, version_id: int) -> None:
        self._references[version_id] -= 1
        if self._references[version_id] <= 0:
            del self._references[version_id]

    def reference_count(self, version_id: int) -> int:
        return self._references[version_id]

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def subscribe(self, listener: VersionListener) -> None:
        """Register a callback invoked after every change of the active version."""
        self._listeners.append(listener)

    def _notify(
        self, previous: Optional[ModelVersion], current: ModelVersion, reason: str
    ) -> None:
        for listener in list(self._listeners):
            try:
                listener(previous, current, reason)
            except Exception as exc:
                logger.error(
                    "registry.listener_failed",
                    reason=reason,
                    version_id=current.id,
                    error=str(exc),
                    exc_info=exc,
                )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _allocate_id(self) -> int:
        version_id = self._next_id
        self._next_id += 1
        return version_id

    def _require(self, version_id: int, status: ModelStatus) -> ModelVersion:
        version = self._versions.get(version_id)
        if version is None:
            raise UnknownVersionError(version_id)
        if version.status is not status:
            raise UnknownVersionError(
                version_id, reason=f"is {version.status.value}, expected {status.value}"
            )
        return version

    async def _activate(
        self, target: ModelVersion
    ) -> tuple[Optional[ModelVersion], ModelVersion]:
        previous = self._active
        activated = target.with_status(ModelStatus.ACTIVE)
        retired = previous.with_status(ModelStatus.RETIRED) if previous else None

        if retired is not None:
            await self._store.save(retired)
        await self._store.save(activated)

        # single synchronous swap; no await between these assignments
        if retired is not None:
            self._versions[retired.id] = retired
        self._versions[activated.id] = activated
        self._active = activated
        return previous, activated
