from __future__ import annotations

import pytest

from predictcore.domain.entities.model_version import ModelStatus
from predictcore.infrastructure.repositories import InMemoryModelStore
from tests.conftest import make_version


@pytest.mark.asyncio
async def test_save_replaces_by_id() -> None:
    store = InMemoryModelStore()

    await store.save(make_version(1, ModelStatus.CANDIDATE))
    await store.save(make_version(1, ModelStatus.ACTIVE))

    assert (await store.get(1)).status is ModelStatus.ACTIVE
    assert len(await store.list_all()) == 1


@pytest.mark.asyncio
async def test_list_all_sorted_and_delete() -> None:
    store = InMemoryModelStore()
    for version_id in (5, 2, 9):
        await store.save(make_version(version_id, ModelStatus.RETIRED))

    assert [v.id for v in await store.list_all()] == [2, 5, 9]
    assert await store.delete(5) is True
    assert await store.delete(5) is False
    assert await store.get(5) is None
