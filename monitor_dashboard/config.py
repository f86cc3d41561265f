"""
配置加载模块

从 config.yaml 加载配置，支持 Pydantic 验证和环境变量覆盖。
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


class BackendConfig(BaseModel):
    """后端数据源配置"""
    base_url: str = "http://localhost:8080"
    status_path: str = "/api/status"
    alerts_path: str = "/api/alerts/history"
    timeout: float = 1.0

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be > 0")
        return v


class PollerConfig(BaseModel):
    """刷新周期配置（秒）"""
    interval: float = 1.0

    @field_validator("interval")
    @classmethod
    def _positive_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("interval must be > 0")
        return v


class APIConfig(BaseModel):
    """看板 HTTP 服务配置"""
    host: str = "0.0.0.0"
    port: int = 8090
    cors_origins: List[str] = ["http://localhost:8090", "http://127.0.0.1:8090"]


class LoggingConfig(BaseModel):
    """日志配置"""
    level: str = "INFO"
    file: Optional[str] = None


class AppConfig(BaseModel):
    """应用配置（完整配置）"""
    backend: BackendConfig = Field(default_factory=BackendConfig)
    poller: PollerConfig = Field(default_factory=PollerConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    加载配置文件

    优先级：
    1. 参数指定的路径
    2. 环境变量 MONITOR_DASHBOARD_CONFIG
    3. 默认路径 config.yaml（当前工作目录）

    环境变量 MONITOR_DASHBOARD_BACKEND_URL 覆盖 backend.base_url。
    """
    if config_path is None:
        config_path = os.environ.get("MONITOR_DASHBOARD_CONFIG", "config.yaml")

    raw_config = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}

    backend_url = os.environ.get("MONITOR_DASHBOARD_BACKEND_URL")
    if backend_url:
        raw_config.setdefault("backend", {})
        raw_config["backend"]["base_url"] = backend_url

    # 配置文件不存在时使用默认配置
    return AppConfig(**raw_config)


# 全局配置实例（延迟加载）
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """获取全局配置实例（单例模式）"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: AppConfig):
    """替换全局配置（命令行 --config 使用）"""
    global _config
    _config = config


def reset_config():
    """重置配置（主要用于测试）"""
    global _config
    _config = None
