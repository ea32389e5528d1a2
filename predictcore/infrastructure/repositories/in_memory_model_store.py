"""In-process model store, used for development and tests."""

from typing import Dict, List, Optional

from predictcore.domain.entities.model_version import ModelVersion
from predictcore.domain.ports.model_store import IModelStore


class InMemoryModelStore(IModelStore):
    """Keeps versions in a dict keyed by id; lost on restart."""

    def __init__(self) -> None:
        self._versions: Dict[int, ModelVersion] = {}

    async def save(self, version: ModelVersion) -> ModelVersion:
        self._versions[version.id] = version
        return version

    async def get(self, version_id: int) -> Optional[ModelVersion]:
        return self._versions.get(version_id)

    async def list_all(self) -> List[ModelVersion]:
        return [self._versions[key] for key in sorted(self._versions)]

    async def delete(self, version_id: int) -> bool:
        return self._versions.pop(version_id, None) is not None
