"""
看板视图

纯投影：DashboardSnapshot -> DashboardView，不持有任何状态。
数值保留两位小数；缺失的数值仅在展示时按 0 处理。
"""

from datetime import datetime
from html import escape
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import Alert, AgentStatusReport, DashboardSnapshot

NO_AGENTS = "No agents connected..."
NO_ALERTS = "No alerts triggered yet."


class StatusCard(BaseModel):
    """单个 Agent 状态卡片"""
    service_id: str
    cpu: str
    memory: str
    requests: str
    updated: Optional[str] = None


class AlertRow(BaseModel):
    """告警表格行"""
    key: int
    id: str
    service_name: str
    metric: str
    value: str
    time: str


class DashboardView(BaseModel):
    """GET /api/dashboard 响应"""
    status_cards: List[StatusCard] = Field(default_factory=list)
    status_placeholder: Optional[str] = None
    alert_rows: List[AlertRow] = Field(default_factory=list)
    alerts_placeholder: Optional[str] = None


def _fixed2(value: Optional[float]) -> str:
    return f"{(value or 0):.2f}"


def format_time_of_day(ts: datetime) -> str:
    """转换为本地时区的时分秒"""
    return ts.astimezone().strftime("%H:%M:%S")


def render_status_card(service_id: str, report: AgentStatusReport) -> StatusCard:
    return StatusCard(
        service_id=service_id,
        cpu=f"{_fixed2(report.cpu_usage)}%",
        memory=f"{_fixed2(report.memory_usage)} MB",
        requests=str(report.request_count or 0),
        updated=report.timestamp,
    )


def render_alert_row(alert: Alert) -> AlertRow:
    return AlertRow(
        key=alert.id,
        id=f"#{alert.id}",
        service_name=alert.service_name,
        metric=alert.metric,
        value=_fixed2(alert.value),
        time=format_time_of_day(alert.triggered_at),
    )


def render(snapshot: DashboardSnapshot) -> DashboardView:
    """
    渲染看板

    Agent 按状态表的顺序展示，告警按列表顺序展示（不排序、不过滤）。
    """
    view = DashboardView(
        status_cards=[
            render_status_card(service_id, report)
            for service_id, report in snapshot.status_map.items()
        ],
        alert_rows=[render_alert_row(alert) for alert in snapshot.alerts],
    )
    if not view.status_cards:
        view.status_placeholder = NO_AGENTS
    if not view.alert_rows:
        view.alerts_placeholder = NO_ALERTS
    return view


def render_text(view: DashboardView) -> str:
    """终端输出（命令行 --once）"""
    lines = ["Live Agent Status", "-" * 60]
    if view.status_placeholder:
        lines.append(view.status_placeholder)
    for card in view.status_cards:
        lines.append(
            f"{card.service_id}: CPU {card.cpu}  Memory {card.memory}  "
            f"Requests {card.requests}  Updated {card.updated or '-'}"
        )

    lines += ["", "Critical Alerts", "-" * 60]
    if view.alerts_placeholder:
        lines.append(view.alerts_placeholder)
    for row in view.alert_rows:
        lines.append(f"{row.id:<6} {row.service_name:<24} {row.metric:<10} {row.value:>10}  {row.time}")

    return "\n".join(lines)


_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta http-equiv="refresh" content="{refresh}">
<title>Monitor Dashboard</title>
<style>
body {{ padding: 20px; font-family: system-ui; background: #1e1e2f; color: #fff; }}
.columns {{ display: flex; gap: 20px; }}
.panel {{ flex: 1; background: #2a2a40; padding: 20px; border-radius: 8px; }}
.card {{ background: #3b3b52; padding: 15px; border-radius: 6px; border-left: 4px solid #10b981; margin-bottom: 10px; }}
.card h3 {{ margin: 0 0 10px 0; color: #10b981; }}
.card p {{ margin: 0; }}
.muted {{ font-size: 0.85em; color: #9ca3af; }}
table {{ width: 100%; text-align: left; border-collapse: collapse; }}
td {{ padding: 10px 0; border-bottom: 1px solid #3b3b52; }}
td.service {{ color: #ef4444; font-weight: bold; }}
</style>
</head>
<body>
<h1>Monitor Dashboard</h1>
<div class="columns">
<div class="panel">
<h2>Live Agent Status</h2>
{status}
</div>
<div class="panel">
<h2>Critical Alerts</h2>
{alerts}
</div>
</div>
</body>
</html>
"""


def render_html(view: DashboardView, refresh_seconds: float = 1.0) -> str:
    """HTML 看板页面（按刷新周期自动刷新）"""
    if view.status_placeholder:
        status = f"<p>{escape(view.status_placeholder)}</p>"
    else:
        status = "\n".join(
            f'<div class="card"><h3>{escape(card.service_id)}</h3>'
            f"<p><strong>CPU:</strong> {escape(card.cpu)}</p>"
            f"<p><strong>Memory:</strong> {escape(card.memory)}</p>"
            f"<p><strong>Requests:</strong> {escape(card.requests)}</p>"
            f'<p class="muted">Updated: {escape(card.updated or "-")}</p></div>'
            for card in view.status_cards
        )

    if view.alerts_placeholder:
        alerts = f"<p>{escape(view.alerts_placeholder)}</p>"
    else:
        rows = "\n".join(
            f"<tr><td>{escape(row.id)}</td>"
            f'<td class="service">{escape(row.service_name)}</td>'
            f"<td>{escape(row.metric)}</td>"
            f"<td>{escape(row.value)}</td>"
            f'<td class="muted">{escape(row.time)}</td></tr>'
            for row in view.alert_rows
        )
        alerts = (
            "<table><thead><tr><th>ID</th><th>Service Name</th><th>Metric</th>"
            f"<th>Value</th><th>Time Triggered</th></tr></thead><tbody>\n{rows}\n</tbody></table>"
        )

    # meta refresh 只接受整数秒
    refresh = max(1, round(refresh_seconds))
    return _PAGE.format(refresh=refresh, status=status, alerts=alerts)
