from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, Iterable, Iterator, List, Sequence

import pytest

from predictcore.domain.entities.dataset import LabeledRecord
from predictcore.domain.entities.evaluation import EvaluationSummary, Verdict
from predictcore.domain.entities.features import (
    FeatureKind,
    FeatureSchema,
    FeatureSpec,
    Normalization,
)
from predictcore.domain.entities.model_version import (
    ModelArchitecture,
    ModelConfig,
    ModelStatus,
    ModelVersion,
)
from predictcore.domain.entities.prediction import Prediction

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def make_schema(normalization: Normalization = Normalization.NONE) -> FeatureSchema:
    """Numeric ``a`` in [0, 100] plus one-hot categorical ``b`` in {x, y}."""
    return FeatureSchema(
        features=(
            FeatureSpec(
                name="a",
                kind=FeatureKind.NUMERIC,
                normalization=normalization,
                min_value=0.0,
                max_value=100.0,
            ),
            FeatureSpec(name="b", kind=FeatureKind.CATEGORICAL, categories=("x", "y")),
        )
    )


def make_config(
    weights: Sequence[float] = (1.0, 0.0, 0.0),
    bias: float = -50.0,
    schema: FeatureSchema | None = None,
) -> ModelConfig:
    """By default predicts 1 exactly when ``a >= 50``."""
    return ModelConfig(
        feature_schema=schema or make_schema(),
        architecture=ModelArchitecture(weights=tuple(weights), bias=bias),
    )


def make_version(
    version_id: int = 1,
    status: ModelStatus = ModelStatus.ACTIVE,
    config: ModelConfig | None = None,
    evaluation: EvaluationSummary | None = None,
) -> ModelVersion:
    return ModelVersion(
        id=version_id,
        config=config or make_config(),
        status=status,
        evaluation=evaluation,
    )


def summary(verdict: Verdict = Verdict.PASS) -> EvaluationSummary:
    return EvaluationSummary(verdict=verdict, metrics={"accuracy": 0.9}, sample_size=10)


def make_prediction(
    value: int = 1, model_version_id: int = 1, latency_ms: float = 1.0
) -> Prediction:
    return Prediction(
        value=value,
        confidence=0.9,
        score=0.9 if value else 0.1,
        model_version_id=model_version_id,
        fingerprint=f"fp-{value}",
        latency_ms=latency_ms,
    )


def threshold_records(values: Iterable[int]) -> List[LabeledRecord]:
    """Labeled records whose label is 1 exactly when ``a >= 50``."""
    return [
        LabeledRecord(
            features={"a": float(a), "b": "x" if a % 4 < 2 else "y"},
            label=1 if a >= 50 else 0,
        )
        for a in values
    ]


@pytest.fixture()
def sample_schema() -> FeatureSchema:
    return make_schema()


@pytest.fixture()
def sample_config() -> ModelConfig:
    return make_config()


@pytest.fixture()
def sample_version() -> ModelVersion:
    return make_version()


class FakeCursor:
    def __init__(self, documents: Sequence[Dict[str, Any]]):
        self._documents = list(documents)
        self._skip = 0
        self._limit = 0

    def sort(self, key: Any, direction: int = 1) -> "FakeCursor":
        if key:
            self._documents.sort(key=lambda doc: doc.get(key), reverse=direction < 0)
        return self

    def skip(self, amount: int) -> "FakeCursor":
        self._skip = amount
        return self

    def limit(self, amount: int) -> "FakeCursor":
        self._limit = amount
        return self

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        docs = self._documents[self._skip :]
        if self._limit:
            docs = docs[: self._limit]
        return iter(docs)


class FakeCollection:
    def __init__(self) -> None:
        self.documents: Dict[Any, Dict[str, Any]] = {}
        self.last_query: Dict[str, Any] | None = None
        self.created_indexes: List[tuple[Any, ...]] = []

    def find_one(self, query: Dict[str, Any]) -> Dict[str, Any] | None:
        self.last_query = query
        return self.documents.get(query.get("id"))

    def find(self, query: Dict[str, Any]) -> FakeCursor:
        self.last_query = query
        results = [doc for doc in self.documents.values() if self._matches(doc, query)]
        return FakeCursor(results)

    def replace_one(
        self, query: Dict[str, Any], document: Dict[str, Any], upsert: bool = False
    ) -> Any:
        key = query.get("id")
        if key not in self.documents and not upsert:
            return SimpleNamespace(matched_count=0, acknowledged=True)
        self.documents[key] = dict(document)
        return SimpleNamespace(matched_count=1, acknowledged=True)

    def delete_one(self, query: Dict[str, Any]) -> Any:
        key = query.get("id")
        if key in self.documents:
            del self.documents[key]
            return SimpleNamespace(deleted_count=1, acknowledged=True)
        return SimpleNamespace(deleted_count=0, acknowledged=True)

    def create_index(self, keys: Any, name: str | None = None, **kwargs: Any) -> Any:
        self.created_indexes.append((keys, name, kwargs))
        return name or keys

    @staticmethod
    def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
        for key, value in query.items():
            if document.get(key) != value:
                return False
        return True


class FakeMongoDatabase:
    def __init__(self) -> None:
        self.collections: Dict[str, FakeCollection] = {}
        self.indexes_created = False
        self.closed = False

    def get_collection(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())

    async def find_one(self, collection_name: str, query: Dict[str, Any]) -> Any:
        return self.get_collection(collection_name).find_one(query)

    async def find_many(
        self,
        collection_name: str,
        query: Dict[str, Any],
        sort_by: str | None = None,
        sort_direction: int = 1,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        cursor = self.get_collection(collection_name).find(query)
        cursor.sort(sort_by, sort_direction)
        cursor.skip(skip)
        cursor.limit(limit)
        return list(cursor)

    async def upsert_one(
        self, collection_name: str, query: Dict[str, Any], document: Dict[str, Any]
    ) -> Dict[str, Any]:
        self.get_collection(collection_name).replace_one(query, document, upsert=True)
        return document

    async def delete_one(self, collection_name: str, query: Dict[str, Any]) -> bool:
        result = self.get_collection(collection_name).delete_one(query)
        return result.deleted_count > 0

    async def create_indexes(self) -> None:
        self.indexes_created = True

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def fake_mongo_database() -> FakeMongoDatabase:
    return FakeMongoDatabase()


@pytest.fixture()
def dummy_now() -> datetime:
    return datetime.now(timezone.utc)
