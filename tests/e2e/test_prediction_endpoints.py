from __future__ import annotations

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from predictcore.application.dtos.model_dto import ModelConfigDTO
from predictcore.main.app import create_app
from predictcore.main.config import (
    AppSettings,
    EvaluationSettings,
    OptimizerSettings,
    StoreSettings,
)
from tests.conftest import make_config, threshold_records


def _records_payload(values):
    return [
        {"features": dict(record.features), "label": record.label}
        for record in threshold_records(values)
    ]


@pytest.fixture()
def client(tmp_path: Path):
    model_path = tmp_path / "model.json"
    model_path.write_text(json.dumps(make_config().to_dict()), encoding="utf-8")
    dataset_path = tmp_path / "dataset.json"
    dataset_path.write_text(
        json.dumps(
            {
                "training": _records_payload(range(0, 100, 2)),
                "holdout": _records_payload(range(1, 100, 2)),
            }
        ),
        encoding="utf-8",
    )
    settings = AppSettings(
        store=StoreSettings(bootstrap_model_path=str(model_path)),
        evaluation=EvaluationSettings(dataset_path=str(dataset_path)),
        optimizer=OptimizerSettings(max_trials=4),
    )
    app = create_app(settings)

    with TestClient(app) as test_client:
        yield test_client


def _candidate_payload(bias: float) -> dict:
    return ModelConfigDTO.from_domain(make_config(bias=bias)).model_dump(mode="json")


def test_health_endpoint(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "up"
    assert body["active_version_id"] == 1


def test_repeated_prediction_is_served_from_cache(client):
    first = client.post("/predictions", json={"features": {"a": 70, "b": "x"}})
    second = client.post("/predictions", json={"features": {"a": 70, "b": "x"}})

    assert first.status_code == 200
    assert first.json()["source"] == "miss"
    assert first.json()["value"] == 1
    assert second.json()["source"] == "hit"
    assert second.json()["fingerprint"] == first.json()["fingerprint"]


def test_malformed_prediction_request(client):
    wrong_type = client.post("/predictions", json={"features": {"a": "high", "b": "x"}})
    missing_body = client.post("/predictions", json={})

    assert wrong_type.status_code == 422
    assert missing_body.status_code == 422


def test_labeled_batch_is_evaluated(client):
    records = threshold_records(range(0, 100, 10))
    response = client.post(
        "/predictions/batch",
        json={
            "records": [dict(r.features) for r in records],
            "outcomes": [{"label": r.label} for r in records],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert len(body["predictions"]) == 10
    assert body["evaluation"]["verdict"] == "pass"
    assert body["evaluation"]["metrics"]["accuracy"]["value"] == 1.0
    assert body["optimization_triggered"] is False


def test_batch_with_malformed_record_is_rejected(client):
    response = client.post(
        "/predictions/batch",
        json={"records": [{"a": 1, "b": "x"}, {"a": 1, "b": "z"}]},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["index"] == 1


def test_candidate_lifecycle(client):
    created = client.post("/models/candidates", json=_candidate_payload(-49.5))
    assert created.status_code == 201
    candidate_id = created.json()["id"]
    assert created.json()["status"] == "candidate"

    rejected = client.post(f"/models/{candidate_id}/promote")
    assert rejected.status_code == 409

    evaluated = client.post(f"/models/{candidate_id}/shadow-evaluation")
    assert evaluated.status_code == 200
    assert evaluated.json()["verdict"] == "pass"

    promoted = client.post(f"/models/{candidate_id}/promote")
    assert promoted.status_code == 200
    assert client.get("/models/active").json()["id"] == candidate_id

    served = client.post("/predictions", json={"features": {"a": 70, "b": "x"}})
    assert served.json()["model_version_id"] == candidate_id
    assert served.json()["source"] == "miss"

    restored = client.post("/models/1/rollback")
    assert restored.status_code == 200
    assert client.get("/models/active").json()["id"] == 1
    retired = client.get("/models", params={"model_status": "retired"}).json()
    assert [version["id"] for version in retired] == [candidate_id]


def test_invalid_candidate_is_rejected(client):
    payload = _candidate_payload(-50.0)
    payload["architecture"]["weights"] = [1.0]

    response = client.post("/models/candidates", json=payload)

    assert response.status_code == 422


def test_unknown_versions(client):
    assert client.get("/models/99").status_code == 404
    assert client.post("/models/99/rollback").status_code == 404
    assert client.post("/models/1/shadow-evaluation").status_code == 404


def test_optimizer_status(client):
    response = client.get("/optimizer")

    assert response.status_code == 200
    body = response.json()
    assert body["in_flight"] is False
    assert body["max_trials"] == 4
    assert body["last_outcome"] is None
