from __future__ import annotations

import copy
import uuid
from datetime import datetime
from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from phaseplan.models.entities import Client, Estimate
from phaseplan.planning.phase_config import DEFAULT_PHASES_CONFIG, TIMELINE_PHASES
from phaseplan.repositories.estimate_repository import EstimateRepository


def _create_estimate(
    db: Session,
    *,
    name: str = "Estimate 1",
    phases_config: dict[str, Any] | None = None,
    client_config: dict[str, Any] | None = None,
) -> Estimate:
    now = datetime.utcnow()
    client = None
    if client_config is not None:
        client = Client(name=f"Client of {name}", phases_config=client_config, created_at=now, updated_at=now)
        EstimateRepository(db).add_client(client)
    row = Estimate(
        name=name,
        client_id=client.id if client else None,
        phases_config=phases_config,
        created_at=now,
        updated_at=now,
    )
    EstimateRepository(db).add_estimate(row)
    db.commit()
    db.refresh(row)
    return row


def _distribution(row: dict[str, float]) -> dict[str, dict[str, float]]:
    return {phase: dict(row) for phase in TIMELINE_PHASES}


def test_default_config_when_nothing_is_stored(client: TestClient, db_session: Session) -> None:
    estimate = _create_estimate(db_session)

    response = client.get(f"/api/v1/estimates/{estimate.id}/phase-config")

    assert response.status_code == 200
    body = response.json()
    assert body["total_days"] == 10
    assert body["intervals"]["analysis"] == [1, 2]
    assert "contingency" not in body["intervals"]
    assert [item["key"] for item in body["categories"]] == ["functional", "technical", "governance"]
    assert body["categories"][0]["color"] == "#93C5FD"


def test_client_config_is_used_as_fallback(client: TestClient, db_session: Session) -> None:
    client_config = copy.deepcopy(DEFAULT_PHASES_CONFIG)
    client_config["analysis"]["values"] = [4, 5, 6]
    client_config["elapsed_days"] = 120
    estimate = _create_estimate(db_session, client_config=client_config)

    body = client.get(f"/api/v1/estimates/{estimate.id}/phase-config").json()

    assert body["total_days"] == 120
    assert body["intervals"]["analysis"] == [4, 5, 6]


def test_unknown_estimate_returns_404(client: TestClient) -> None:
    response = client.get(f"/api/v1/estimates/{uuid.uuid4()}/phase-config")

    assert response.status_code == 404
    assert response.json() == {"detail": "Estimate not found."}
    assert client.get("/api/v1/estimates/not-a-uuid/phase-config").status_code == 422


def test_update_intervals_persists_slot_lists(client: TestClient, db_session: Session) -> None:
    estimate = _create_estimate(db_session)

    response = client.put(
        f"/api/v1/estimates/{estimate.id}/phase-config/intervals",
        json={"intervals": {"analysis": [3, 4, 5], "uat": [9, 6], "release": []}, "elapsed_days": 40},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total_days"] == 40
    assert body["intervals"]["analysis"] == [3, 4, 5]
    assert body["intervals"]["uat"] == [6, 7, 8, 9]
    assert body["intervals"]["release"] == []

    db_session.refresh(estimate)
    assert estimate.phases_config["analysis"]["values"] == [3, 4, 5]
    assert estimate.phases_config["elapsed_days"] == 40
    assert estimate.phases_config["development"]["values"] == [3, 4, 5, 6]


def test_update_intervals_rejects_unknown_phase(client: TestClient, db_session: Session) -> None:
    estimate = _create_estimate(db_session)

    response = client.put(
        f"/api/v1/estimates/{estimate.id}/phase-config/intervals",
        json={"intervals": {"contingency": [1]}},
    )

    assert response.status_code == 422
    assert response.json()["detail"] == "Unknown phase: contingency"


def test_update_distribution_with_custom_category(client: TestClient, db_session: Session) -> None:
    estimate = _create_estimate(db_session)
    distribution = _distribution({"functional": 50, "technical": 30, "governance": 0, "qa": 20})

    response = client.put(
        f"/api/v1/estimates/{estimate.id}/phase-config/distribution",
        json={"category_keys": ["functional", "technical", "governance", "qa"], "distribution": distribution},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["config"]["common"]["category_order"] == ["functional", "technical", "governance", "qa"]
    assert body["config"]["analysis"]["distribution"]["qa"] == 20
    assert [item["key"] for item in body["categories"]][-1] == "qa"
    assert body["categories"][-1]["color"] == "#FCA5A5"


def test_update_distribution_rejects_bad_row(client: TestClient, db_session: Session) -> None:
    estimate = _create_estimate(db_session)
    distribution = _distribution({"functional": 100})
    distribution["analysis"] = {"functional": 40, "technical": 35, "governance": 20}

    response = client.put(
        f"/api/v1/estimates/{estimate.id}/phase-config/distribution",
        json={"category_keys": ["functional", "technical", "governance"], "distribution": distribution},
    )

    assert response.status_code == 422
    assert response.json()["detail"] == "Distribution of phase 'analysis' must sum to 100 (current: 95)."
    db_session.refresh(estimate)
    assert estimate.phases_config is None


def test_update_distribution_requires_a_category(client: TestClient, db_session: Session) -> None:
    estimate = _create_estimate(db_session)

    response = client.put(
        f"/api/v1/estimates/{estimate.id}/phase-config/distribution",
        json={"category_keys": [], "distribution": {}},
    )

    assert response.status_code == 422


def test_replace_config_validates_e2e_and_distribution(client: TestClient, db_session: Session) -> None:
    estimate = _create_estimate(db_session)
    payload = copy.deepcopy(DEFAULT_PHASES_CONFIG)

    ok = client.put(f"/api/v1/estimates/{estimate.id}/phase-config", json=payload)
    assert ok.status_code == 200
    assert ok.json()["config"]["elapsed_days"] == 10

    payload["analysis"]["e2e_percentage"] = 5
    bad = client.put(f"/api/v1/estimates/{estimate.id}/phase-config", json=payload)
    assert bad.status_code == 422
    assert bad.json()["detail"] == "End-to-end percentages must sum to 100 (current: 95.0)."


def test_period_labels_endpoint(client: TestClient) -> None:
    body = client.get("/api/v1/timeline/period-labels", params={"total_days": 60}).json()

    assert body["unit"] == "month"
    assert [item["label"] for item in body["labels"]] == ["Month 1", "Month 2", "Month 3"]
    assert body["slot_days"][0] == [1, 6]

    fallback = client.get("/api/v1/timeline/period-labels", params={"total_days": 33}).json()
    assert fallback["total_days"] == 10
    assert fallback["unit"] == "week"
