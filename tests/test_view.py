"""
测试看板渲染

包括端到端场景：MockTransport 后端 -> 刷新循环 -> 渲染。
"""

from datetime import datetime, timezone

import httpx
import pytest

from monitor_dashboard.models import AgentStatusReport, Alert, DashboardState
from monitor_dashboard.poller import DashboardPoller
from monitor_dashboard.sources import AlertSource, StatusSource
from monitor_dashboard.view import (
    NO_AGENTS,
    NO_ALERTS,
    render,
    render_html,
    render_text,
)


def _local_time(ts: datetime) -> str:
    return ts.astimezone().strftime("%H:%M:%S")


@pytest.mark.asyncio
async def test_end_to_end_scenario(status_payload, alerts_payload):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/status":
            return httpx.Response(200, json=status_payload)
        return httpx.Response(200, json=alerts_payload)

    state = DashboardState()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://backend") as client:
        poller = DashboardPoller(StatusSource(client), AlertSource(client), state)
        await poller.refresh_once()

    view = render(state.snapshot())

    assert len(view.status_cards) == 1
    card = view.status_cards[0]
    assert card.service_id == "svc-1"
    assert card.cpu == "42.57%"
    assert card.memory == "128.00 MB"
    assert card.requests == "10"
    assert card.updated == "2024-01-01T00:00:00Z"
    assert view.status_placeholder is None

    assert len(view.alert_rows) == 1
    row = view.alert_rows[0]
    assert row.id == "#1"
    assert row.service_name == "svc-1"
    assert row.metric == "cpu"
    assert row.value == "95.10"
    assert row.time == _local_time(datetime(2024, 1, 1, 0, 0, 5, tzinfo=timezone.utc))
    assert view.alerts_placeholder is None


def test_empty_state_placeholders():
    view = render(DashboardState().snapshot())

    assert view.status_cards == []
    assert view.status_placeholder == NO_AGENTS
    assert view.alert_rows == []
    assert view.alerts_placeholder == NO_ALERTS


def test_missing_numbers_display_as_zero():
    state = DashboardState()
    report = AgentStatusReport()
    state.status_map.replace({"svc-2": report}, 1)

    card = render(state.snapshot()).status_cards[0]

    assert card.cpu == "0.00%"
    assert card.memory == "0.00 MB"
    assert card.requests == "0"
    assert card.updated is None
    # 展示默认值不回写数据
    assert report.cpu_usage is None


def test_alerts_render_in_list_order():
    state = DashboardState()
    alerts = [
        Alert(id=i, service_name="svc", metric="cpu", value=90 + i, triggered_at=1704067200000 + i * 1000)
        for i in (9, 2, 5)
    ]
    state.alerts.replace(alerts, 1)

    rows = render(state.snapshot()).alert_rows

    assert [r.id for r in rows] == ["#9", "#2", "#5"]
    assert [r.key for r in rows] == [9, 2, 5]
    assert rows[1].value == "92.00"


def test_render_text():
    state = DashboardState()
    state.status_map.replace({"svc-1": AgentStatusReport(cpu_usage=1.234)}, 1)

    text = render_text(render(state.snapshot()))

    assert "svc-1: CPU 1.23%" in text
    assert NO_ALERTS in text


def test_render_html_escapes():
    state = DashboardState()
    state.status_map.replace({"<svc>": AgentStatusReport(cpu_usage=5)}, 1)
    state.alerts.replace(
        [Alert(id=1, service_name="<b>x</b>", metric="cpu", value=1, triggered_at="2024-01-01T00:00:05Z")], 1
    )

    page = render_html(render(state.snapshot()), refresh_seconds=1.0)

    assert "&lt;svc&gt;" in page
    assert "&lt;b&gt;x&lt;/b&gt;" in page
    assert "<svc>" not in page
    assert 'content="1"' in page
    assert "5.00%" in page


def test_render_html_placeholders():
    page = render_html(render(DashboardState().snapshot()), refresh_seconds=0.2)

    assert NO_AGENTS in page
    assert NO_ALERTS in page
    assert "<table>" not in page
    assert 'content="1"' in page
