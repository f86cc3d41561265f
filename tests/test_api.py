"""
测试看板 HTTP 接口
"""

import time

import httpx
import pytest
from fastapi.testclient import TestClient

from monitor_dashboard.api.app import create_app
from monitor_dashboard.models import AgentStatusReport, Alert, DashboardState
from monitor_dashboard.poller import DashboardPoller
from monitor_dashboard.sources import AlertSource, StatusSource


class StaticSource:
    async def fetch(self):
        raise AssertionError("poller should not run in this test")


@pytest.fixture
def poller():
    state = DashboardState()
    state.status_map.replace(
        {"svc-1": AgentStatusReport(cpu_usage=42.567, memory_usage=128.0, request_count=10,
                                    timestamp="2024-01-01T00:00:00Z")},
        1,
    )
    state.alerts.replace(
        [Alert(id=1, service_name="svc-1", metric="cpu", value=95.1, triggered_at="2024-01-01T00:00:05Z")],
        1,
    )
    return DashboardPoller(StaticSource(), StaticSource(), state, interval=1.0)


@pytest.fixture
def client(poller):
    """不启动刷新循环的测试客户端"""
    app = create_app(poller, start_poller=False)
    return TestClient(app)


def test_dashboard_json(client):
    response = client.get("/api/dashboard")
    assert response.status_code == 200

    data = response.json()
    assert data["status_cards"][0]["cpu"] == "42.57%"
    assert data["status_cards"][0]["memory"] == "128.00 MB"
    assert data["alert_rows"][0]["id"] == "#1"
    assert data["alert_rows"][0]["value"] == "95.10"
    assert data["status_placeholder"] is None


def test_state_json(client):
    response = client.get("/api/state")
    assert response.status_code == 200

    data = response.json()
    assert data["status"]["svc-1"]["request_count"] == 10
    assert data["status"]["svc-1"]["timestamp"] == "2024-01-01T00:00:00Z"
    assert data["alerts"][0]["service_name"] == "svc-1"
    assert data["alerts"][0]["triggered_at"].startswith("2024-01-01T00:00:05")


def test_html_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "svc-1" in response.text
    assert "42.57%" in response.text


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200

    data = response.json()
    assert data["running"] is False
    assert data["interval"] == 1.0
    assert data["status"]["generation"] == 1
    assert data["alerts"]["consecutive_failures"] == 0


def test_lifespan_runs_poller(status_payload, alerts_payload):
    calls = {"status": 0, "alerts": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/status":
            calls["status"] += 1
            return httpx.Response(200, json=status_payload)
        calls["alerts"] += 1
        return httpx.Response(503)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://backend")
    poller = DashboardPoller(
        StatusSource(http_client), AlertSource(http_client), DashboardState(), interval=0.05, client=http_client
    )
    app = create_app(poller)

    with TestClient(app) as client:
        deadline = time.monotonic() + 5
        data = {}
        while time.monotonic() < deadline:
            data = client.get("/api/dashboard").json()
            if data["status_cards"] and calls["alerts"] >= 2:
                break
            time.sleep(0.05)

        assert data["status_cards"][0]["service_id"] == "svc-1"
        assert data["alerts_placeholder"] == "No alerts triggered yet."

        health = client.get("/api/health").json()
        assert health["running"] is True
        assert health["alerts"]["consecutive_failures"] >= 1
        assert "HTTP 503" in health["alerts"]["last_error"]

    # 关闭应用时停止循环并关闭客户端
    assert not poller.running
    assert http_client.is_closed
