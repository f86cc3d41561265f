"""
FastAPI 应用配置

配置 CORS、路由注册，并把刷新循环挂到应用生命周期上。
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import get_config
from ..poller import DashboardPoller, create_poller
from .routers import dashboard

logger = logging.getLogger(__name__)


def create_app(poller: Optional[DashboardPoller] = None, start_poller: bool = True) -> FastAPI:
    """
    创建 FastAPI 应用实例

    Args:
        poller: 刷新循环，不指定则按配置创建
        start_poller: 是否在应用启动时启动刷新循环
    """
    config = get_config()
    if poller is None:
        poller = create_poller(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Monitor Dashboard starting up...")
        if start_poller:
            poller.start()
        try:
            yield
        finally:
            logger.info("Monitor Dashboard shutting down...")
            await poller.aclose()

    app = FastAPI(
        title="Monitor Dashboard",
        description="Agent 实时状态与告警历史看板",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.state.poller = poller

    # CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # 注册路由
    app.include_router(dashboard.router)

    return app
