"""
看板 API

- GET /               HTML 看板
- GET /api/dashboard  渲染后的看板数据
- GET /api/state      原始状态快照
- GET /api/health     刷新循环运行状况
"""

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from ...models import DashboardSnapshot, PollerHealth, StateResponse
from ...poller import DashboardPoller
from ...view import DashboardView, render, render_html
from ..dependencies import get_poller, get_snapshot

router = APIRouter(tags=["dashboard"])


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def dashboard_page(
    snapshot: DashboardSnapshot = Depends(get_snapshot),
    poller: DashboardPoller = Depends(get_poller),
):
    """HTML 看板"""
    return HTMLResponse(render_html(render(snapshot), refresh_seconds=poller.interval))


@router.get("/api/dashboard", response_model=DashboardView)
async def get_dashboard(snapshot: DashboardSnapshot = Depends(get_snapshot)):
    """
    获取渲染后的看板

    数值已格式化为展示字符串；空数据返回占位文案。
    """
    return render(snapshot)


@router.get("/api/state", response_model=StateResponse)
async def get_state(snapshot: DashboardSnapshot = Depends(get_snapshot)):
    """获取最近一次成功拉取的原始数据"""
    return StateResponse(status=dict(snapshot.status_map), alerts=list(snapshot.alerts))


@router.get("/api/health", response_model=PollerHealth)
async def get_health(poller: DashboardPoller = Depends(get_poller)):
    """刷新循环运行状况（连续失败次数、最近错误等）"""
    return poller.health()
