"""
MongoDB Model Store - Infrastructure Layer

Persists model versions as one document per version id.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pymongo

from predictcore.domain.entities.evaluation import EvaluationSummary
from predictcore.domain.entities.model_version import (
    ModelConfig,
    ModelStatus,
    ModelVersion,
    VersionSource,
)
from predictcore.domain.ports.model_store import IModelStore
from predictcore.infrastructure.database import MongoDatabase
from predictcore.infrastructure.database.mongo_database import MODEL_VERSIONS_COLLECTION


def _as_utc(value: datetime) -> datetime:
    # pymongo returns naive datetimes unless the client is tz_aware
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MongoModelStore(IModelStore):
    """MongoDB implementation of the model store."""

    COLLECTION_NAME = MODEL_VERSIONS_COLLECTION

    def __init__(self, mongo_database: MongoDatabase):
        """
        Initialize the MongoDB model store.

        Args:
            mongo_database: MongoDB database client
        """
        self.db = mongo_database

    def _to_document(self, version: ModelVersion) -> Dict[str, Any]:
        """Convert a ModelVersion entity to a MongoDB document."""
        return {
            "id": version.id,
            "status": version.status.value,
            "source": version.source.value,
            "parent_id": version.parent_id,
            "config": version.config.to_dict(),
            "evaluation": version.evaluation.to_dict() if version.evaluation else None,
            "created_at": version.created_at,
            "status_changed_at": version.status_changed_at,
        }

    def _to_entity(self, document: Dict[str, Any]) -> ModelVersion:
        """Convert a MongoDB document to a ModelVersion entity."""
        evaluation = document.get("evaluation")
        return ModelVersion(
            id=int(document["id"]),
            config=ModelConfig.from_dict(document.get("config") or {}),
            status=ModelStatus(document.get("status", ModelStatus.CANDIDATE.value)),
            source=VersionSource(document.get("source", VersionSource.OPERATOR.value)),
            parent_id=document.get("parent_id"),
            evaluation=EvaluationSummary.from_dict(evaluation) if evaluation else None,
            created_at=_as_utc(document["created_at"]),
            status_changed_at=_as_utc(
                document.get("status_changed_at") or document["created_at"]
            ),
        )

    async def save(self, version: ModelVersion) -> ModelVersion:
        await self.db.upsert_one(
            self.COLLECTION_NAME, {"id": version.id}, self._to_document(version)
        )
        return version

    async def get(self, version_id: int) -> Optional[ModelVersion]:
        document = await self.db.find_one(self.COLLECTION_NAME, {"id": version_id})
        if document is None:
            return None
        return self._to_entity(document)

    async def list_all(self) -> List[ModelVersion]:
        documents = await self.db.find_many(
            self.COLLECTION_NAME,
            {},
            sort_by="id",
            sort_direction=pymongo.ASCENDING,
        )
        return [self._to_entity(document) for document in documents]

    async def delete(self, version_id: int) -> bool:
        return await self.db.delete_one(self.COLLECTION_NAME, {"id": version_id})
