"""
Application Use Case - Model Management

Operator-facing lifecycle operations on the registry: register candidates,
shadow-evaluate them, promote, roll back and prune.
"""

from __future__ import annotations

from typing import List, Optional

import structlog

from predictcore.application.dtos.model_dto import (
    ModelConfigDTO,
    ModelVersionResponseDTO,
)
from predictcore.application.dtos.prediction_dto import EvaluationDTO
from predictcore.application.services.model_registry import ModelRegistry
from predictcore.application.services.shadow_evaluator import ShadowEvaluator
from predictcore.domain.entities.errors import UnknownVersionError
from predictcore.domain.entities.model_version import ModelStatus, VersionSource

logger = structlog.get_logger(__name__)


class ModelManagementUseCase:
    """Coordinates operator requests against the model registry."""

    def __init__(self, registry: ModelRegistry, shadow_evaluator: ShadowEvaluator):
        self.registry = registry
        self.shadow_evaluator = shadow_evaluator

    async def list_versions(
        self, status: Optional[ModelStatus] = None
    ) -> List[ModelVersionResponseDTO]:
        return [
            ModelVersionResponseDTO.from_domain(version)
            for version in self.registry.list_versions(status)
        ]

    async def get_active(self) -> ModelVersionResponseDTO:
        return ModelVersionResponseDTO.from_domain(self.registry.get_active())

    async def get_version(self, version_id: int) -> ModelVersionResponseDTO:
        return ModelVersionResponseDTO.from_domain(self.registry.get(version_id))

    async def propose(self, config_dto: ModelConfigDTO) -> ModelVersionResponseDTO:
        parent_id = self.registry.get_active().id if self.registry.has_active else None
        version = await self.registry.propose_candidate(
            config_dto.to_domain(), source=VersionSource.OPERATOR, parent_id=parent_id
        )
        return ModelVersionResponseDTO.from_domain(version)

    async def shadow_evaluate(self, version_id: int) -> EvaluationDTO:
        """
        Evaluate a candidate on held-out data and attach the result.

        Raises:
            UnknownVersionError: If the version is missing or not a candidate.
            MalformedInputError: If no held-out record could be scored.
        """
        version = self.registry.get(version_id)
        if version.status is not ModelStatus.CANDIDATE:
            raise UnknownVersionError(
                version_id, reason=f"is {version.status.value}, expected candidate"
            )
        result = await self.shadow_evaluator.evaluate_version(version)
        await self.registry.attach_evaluation(version_id, result.summary())
        logger.info(
            "models.candidate_evaluated",
            version_id=version_id,
            verdict=result.verdict.value,
        )
        return EvaluationDTO.from_domain(result)

    async def promote(self, version_id: int) -> ModelVersionResponseDTO:
        return ModelVersionResponseDTO.from_domain(
            await self.registry.promote(version_id)
        )

    async def rollback(self, version_id: int) -> ModelVersionResponseDTO:
        return ModelVersionResponseDTO.from_domain(
            await self.registry.rollback(version_id)
        )

    async def prune(self, keep: int) -> List[int]:
        return await self.registry.prune_retired(keep=keep)
