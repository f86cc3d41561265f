"""
测试公共 fixture
"""

import pytest

from monitor_dashboard.config import reset_config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """每个测试使用默认配置，不读取工作目录下的 config.yaml"""
    monkeypatch.setenv("MONITOR_DASHBOARD_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("MONITOR_DASHBOARD_BACKEND_URL", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def status_payload():
    return {
        "svc-1": {
            "cpu_usage": 42.567,
            "memory_usage": 128.0,
            "request_count": 10,
            "timestamp": "2024-01-01T00:00:00Z",
        }
    }


@pytest.fixture
def alerts_payload():
    return [
        {
            "id": 1,
            "service_name": "svc-1",
            "metric": "cpu",
            "value": 95.1,
            "triggered_at": "2024-01-01T00:00:05Z",
        }
    ]
