from collections.abc import Generator
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from salespipe.api.deps import get_db
from salespipe.db.base import Base
from salespipe.main import app, limiter
from salespipe.models.enums import BlockType, PricingItemType, ProposalStatus
from salespipe.models.proposal import PricingItem, Proposal, ProposalBlock
from salespipe.models.user import User


@pytest.fixture
def client_session() -> Generator[tuple[TestClient, sessionmaker], None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    def _override_get_db() -> Generator[Session, None, None]:
        db = factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app), factory
    finally:
        app.dependency_overrides.clear()
        engine.dispose()


def _seed_user(factory: sessionmaker, email: str = "api@test.com") -> int:
    with factory() as db:
        user = User(email=email, full_name="Api Seller", is_active=True)
        db.add(user)
        db.flush()
        now = datetime.now(timezone.utc)
        proposal = Proposal(
            user_id=user.id,
            title="Website",
            status=ProposalStatus.sent,
            created_at=now,
            sent_at=now,
        )
        block = ProposalBlock(block_type=BlockType.pricing_table, position=0)
        block.pricing_items = [PricingItem(name="Build", item_type=PricingItemType.standard, price=Decimal("1000"))]
        proposal.blocks = [block]
        db.add(proposal)
        db.commit()
        return user.id


def test_requests_without_identity_are_rejected(client_session) -> None:
    client, _ = client_session
    assert client.get("/api/v1/forecasting/pipeline").status_code == 401
    assert client.get("/api/v1/forecasting/pipeline", headers={"X-User-Id": "999"}).status_code == 401


def test_pipeline_snapshot_uses_camel_case_and_default_stages(client_session) -> None:
    client, factory = client_session
    headers = {"X-User-Id": str(_seed_user(factory))}

    response = client.get("/api/v1/forecasting/pipeline", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert [stage["name"] for stage in body["stages"]] == [
        "Lead",
        "Qualified",
        "Proposal Sent",
        "Negotiation",
        "Closed Won",
        "Closed Lost",
    ]
    sent_stage = body["stages"][2]
    assert sent_stage["proposalCount"] == 1
    assert sent_stage["weightedValue"] == 500
    assert body["totalPipeline"] == 1000

    stages = client.get("/api/v1/forecasting/pipeline/stages", headers=headers).json()
    assert len(stages) == 6


def test_stage_crud_round_trip(client_session) -> None:
    client, factory = client_session
    headers = {"X-User-Id": str(_seed_user(factory))}
    other_headers = {"X-User-Id": str(_seed_user(factory, email="other@test.com"))}

    created = client.post(
        "/api/v1/forecasting/pipeline/stages",
        json={"name": "Proposal Sent", "order": 1, "probability": 40},
        headers=headers,
    )
    assert created.status_code == 201
    stage = created.json()
    assert stage["color"] == "#6366f1"

    duplicate = client.post(
        "/api/v1/forecasting/pipeline/stages",
        json={"name": "Proposal Sent", "order": 2, "probability": 40},
        headers=headers,
    )
    assert duplicate.status_code == 409

    invalid = client.post(
        "/api/v1/forecasting/pipeline/stages",
        json={"name": "Broken", "order": 2, "probability": 150},
        headers=headers,
    )
    assert invalid.status_code == 422

    foreign = client.put(
        f"/api/v1/forecasting/pipeline/stages/{stage['id']}",
        json={"probability": 90},
        headers=other_headers,
    )
    assert foreign.status_code == 404

    updated = client.put(
        f"/api/v1/forecasting/pipeline/stages/{stage['id']}",
        json={"probability": 90},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["probability"] == 90

    pipeline = client.get("/api/v1/forecasting/pipeline", headers=headers).json()
    assert pipeline["weightedPipeline"] == 900

    deleted = client.delete(f"/api/v1/forecasting/pipeline/stages/{stage['id']}", headers=headers)
    assert deleted.status_code == 200
    assert client.delete(f"/api/v1/forecasting/pipeline/stages/{stage['id']}", headers=headers).status_code == 404

    actions = [row["action"] for row in client.get("/api/v1/forecasting/audit", headers=headers).json()]
    assert actions == ["pipeline_stage.delete", "pipeline_stage.update", "pipeline_stage.create"]


def test_initialize_endpoint_is_idempotent(client_session) -> None:
    client, factory = client_session
    headers = {"X-User-Id": str(_seed_user(factory))}

    first = client.post("/api/v1/forecasting/pipeline/stages/initialize", headers=headers).json()
    second = client.post("/api/v1/forecasting/pipeline/stages/initialize", headers=headers).json()
    assert [row["id"] for row in first] == [row["id"] for row in second]
    assert len(second) == 6


def test_forecast_win_rate_and_team_endpoints(client_session) -> None:
    client, factory = client_session
    headers = {"X-User-Id": str(_seed_user(factory))}

    forecast = client.get("/api/v1/forecasting/forecast", headers=headers).json()
    assert set(forecast) == {"currentMonth", "nextMonth", "quarterly", "trends"}
    assert forecast["currentMonth"]["projected"] == 500
    assert forecast["nextMonth"]["projected"] == 300
    assert len(forecast["quarterly"]) == 4
    assert len(forecast["trends"]) == 12
    assert "avgDealSize" in forecast["trends"][0]

    win_rate = client.get("/api/v1/forecasting/win-rate", headers=headers).json()
    assert win_rate["byIndustry"] == []
    assert win_rate["overall"] == 0
    assert isinstance(win_rate["overall"], float)
    assert all(isinstance(row["rate"], float) for row in win_rate["byValue"])
    assert len(win_rate["byValue"]) == 5
    assert win_rate["avgTimeToClose"] == 0

    team = client.get("/api/v1/forecasting/team-performance?team_id=abc", headers=headers).json()
    assert team["members"][0]["name"] == "Api Seller"
    assert team["members"][0]["proposalsSent"] == 1
    assert team["totals"]["proposalsWon"] == 0
    assert isinstance(team["totals"]["totalRevenue"], float)
    assert isinstance(forecast["trends"][0]["revenue"], float)


def test_trend_exports(client_session) -> None:
    client, factory = client_session
    headers = {"X-User-Id": str(_seed_user(factory))}

    csv_response = client.get("/api/v1/forecasting/exports/trends.csv", headers=headers)
    assert csv_response.status_code == 200
    assert csv_response.headers["content-type"].startswith("text/csv")
    lines = csv_response.text.strip().splitlines()
    assert lines[0] == "period,revenue,deals,avg_deal_size"
    assert len(lines) == 13

    xlsx_response = client.get("/api/v1/forecasting/exports/trends.xlsx", headers=headers)
    assert xlsx_response.status_code == 200
    assert xlsx_response.content[:2] == b"PK"


def test_rate_limiter_tracks_callers_not_urls(client_session) -> None:
    client, factory = client_session
    headers = {"X-User-Id": str(_seed_user(factory))}
    tracked_before = len(limiter)

    for stage_id in range(1000, 1050):
        response = client.delete(f"/api/v1/forecasting/pipeline/stages/{stage_id}", headers=headers)
        assert response.status_code == 404
        assert response.headers["X-Request-ID"]

    assert len(limiter) <= tracked_before + 1
