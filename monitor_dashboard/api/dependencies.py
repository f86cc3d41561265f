"""
依赖注入模块

提供 FastAPI 依赖项。
"""

from fastapi import Request

from ..models import DashboardSnapshot
from ..poller import DashboardPoller


async def get_poller(request: Request) -> DashboardPoller:
    """获取应用持有的刷新循环"""
    return request.app.state.poller


async def get_snapshot(request: Request) -> DashboardSnapshot:
    """获取当前状态的只读快照"""
    poller: DashboardPoller = request.app.state.poller
    return poller.state.snapshot()
