"""
部署日志查询接口测试
"""

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

from tests.unit.fakes import make_event

DEPLOYMENT = "5f0c7e1a9b2d4c3e8a7f6b5d4c3b2a19"
BASE = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


def seed(sink):
    sink.events.extend(
        [
            make_event(DEPLOYMENT, "third", BASE + timedelta(seconds=2), "e3"),
            make_event(DEPLOYMENT, "first", BASE, "e1"),
            make_event("ffffffffffffffffffffffffffffffff", "other", BASE, "x1"),
            make_event(DEPLOYMENT, "second", BASE + timedelta(seconds=1), "e2"),
        ]
    )


def test_logs_sorted_by_timestamp(client, sink):
    seed(sink)

    response = client.get(f"/api/v1/logs/{DEPLOYMENT}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["deployment_id"] == DEPLOYMENT
    assert data["total"] == 3
    assert [item["log"] for item in data["items"]] == ["first", "second", "third"]
    assert [item["event_id"] for item in data["items"]] == ["e1", "e2", "e3"]


def test_dashed_uuid_is_accepted(client, sink):
    seed(sink)

    response = client.get(f"/api/v1/logs/{uuid.UUID(DEPLOYMENT)}")

    assert response.status_code == 200
    assert response.json()["data"]["total"] == 3


def test_limit(client, sink):
    seed(sink)

    data = client.get(f"/api/v1/logs/{DEPLOYMENT}", params={"limit": 2}).json()["data"]

    assert [item["log"] for item in data["items"]] == ["first", "second"]


def test_unknown_deployment_has_no_logs(client):
    response = client.get(f"/api/v1/logs/{uuid.uuid4().hex}")

    assert response.status_code == 200
    assert response.json()["data"]["items"] == []


def test_invalid_deployment_id(client, sink):
    sink.query_by_deployment = AsyncMock()

    response = client.get("/api/v1/logs/not-a-deployment")

    assert response.status_code == 422
    body = response.json()
    assert body["error_code"] == "INVALID_DEPLOYMENT_ID"
    assert body["errors"][0]["field"] == "deployment_id"
    sink.query_by_deployment.assert_not_called()


def test_invalid_limit(client):
    response = client.get(f"/api/v1/logs/{DEPLOYMENT}", params={"limit": 0})

    assert response.status_code == 400


def test_storage_unavailable(client, sink):
    sink.query_by_deployment = AsyncMock(side_effect=ConnectionError("clickhouse down"))

    response = client.get(f"/api/v1/logs/{DEPLOYMENT}")

    assert response.status_code == 503
    assert response.json()["error_code"] == "STORAGE_ERROR"
