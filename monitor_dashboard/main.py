"""
主程序入口

- 默认：启动 HTTP 服务，刷新循环随应用生命周期启停
- --once：拉取一次并在终端打印看板
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import uvicorn

from .config import AppConfig, get_config, load_config, set_config
from .poller import create_poller
from .view import render, render_text


def setup_logging(config: AppConfig):
    """配置日志"""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    level = getattr(logging, config.logging.level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # 如果配置了文件日志
    if config.logging.file:
        log_path = Path(config.logging.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format))
        logging.getLogger().addHandler(file_handler)

    # 降低第三方库日志级别（每秒两次请求）
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


async def run_api_server(config: AppConfig):
    """运行 HTTP 服务（刷新循环由应用 lifespan 启停）"""
    from .api.app import create_app

    app = create_app()

    server_config = uvicorn.Config(
        app=app,
        host=config.api.host,
        port=config.api.port,
        log_level="info",
        access_log=False
    )
    server = uvicorn.Server(server_config)
    await server.serve()


async def run_once(config: AppConfig) -> str:
    """拉取一次，返回终端文本"""
    poller = create_poller(config)
    try:
        await poller.refresh_once()
        return render_text(render(poller.state.snapshot()))
    finally:
        await poller.aclose()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="monitor-dashboard", description="Monitor Dashboard")
    parser.add_argument("--config", help="配置文件路径（默认 MONITOR_DASHBOARD_CONFIG 或 ./config.yaml）")
    parser.add_argument("--once", action="store_true", help="拉取一次并打印后退出")
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None):
    """主函数"""
    logger = logging.getLogger(__name__)
    args = parse_args(argv)

    if args.config:
        set_config(load_config(args.config))
    config = get_config()

    setup_logging(config)

    if args.once:
        print(await run_once(config))
        return

    logger.info("=" * 60)
    logger.info("Monitor Dashboard v1.0.0")
    logger.info("=" * 60)
    logger.info(f"Backend: {config.backend.base_url} (interval={config.poller.interval}s)")
    logger.info(f"Listening on {config.api.host}:{config.api.port}")

    await run_api_server(config)


def cli():
    """命令行入口"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested, exiting...")
        sys.exit(0)


if __name__ == "__main__":
    cli()
