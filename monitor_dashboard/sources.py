"""
后端数据源

- StatusSource: GET /api/status，Agent 实时状态表
- AlertSource: GET /api/alerts/history，告警历史列表

fetch() 成功时返回解码后的值，失败时只抛出 FetchError 的子类。
"""

import json
from typing import Any, Callable, Dict, List

import httpx
from pydantic import TypeAdapter, ValidationError

from .config import BackendConfig
from .errors import DecodeError, HTTPStatusError, TransportError
from .models import AgentStatusReport, Alert


def create_client(backend: BackendConfig) -> httpx.AsyncClient:
    """创建共享的 HTTP 客户端（两个数据源共用连接池）"""
    return httpx.AsyncClient(
        base_url=backend.base_url,
        timeout=backend.timeout,
        headers={"Accept": "application/json"},
    )


class JSONSource:
    """只读 JSON 端点"""

    name = "source"

    def __init__(
        self,
        client: httpx.AsyncClient,
        path: str,
        adapter: TypeAdapter,
        empty: Callable[[], Any],
    ):
        self._client = client
        self.path = path
        self._adapter = adapter
        self._empty = empty

    async def fetch(self) -> Any:
        """
        拉取并解码一次

        Raises:
            TransportError: 网络错误或超时
            HTTPStatusError: 状态码非 2xx
            DecodeError: body 不是合法 JSON 或结构不符
        """
        try:
            response = await self._client.get(self.path)
        except httpx.TimeoutException as e:
            raise TransportError(self.name, f"timeout: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(self.name, f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise HTTPStatusError(self.name, response.status_code)

        return self.decode(response.content)

    def decode(self, content: bytes) -> Any:
        """
        解码响应 body

        空 body 或 JSON null 返回空值（{} / []），不视为错误。
        """
        if not content or not content.strip():
            return self._empty()

        try:
            payload = json.loads(content)
        except ValueError as e:
            raise DecodeError(self.name, f"invalid JSON: {e}") from e

        if payload is None:
            return self._empty()

        try:
            return self._adapter.validate_python(payload)
        except ValidationError as e:
            raise DecodeError(self.name, f"unexpected shape ({e.error_count()} errors): {e.errors()[0]['msg']}") from e


class StatusSource(JSONSource):
    """Agent 实时状态（按 service_id 索引）"""

    name = "status"

    def __init__(self, client: httpx.AsyncClient, path: str = "/api/status"):
        super().__init__(client, path, TypeAdapter(Dict[str, AgentStatusReport]), dict)


class AlertSource(JSONSource):
    """告警历史（保持后端返回的顺序）"""

    name = "alerts"

    def __init__(self, client: httpx.AsyncClient, path: str = "/api/alerts/history"):
        super().__init__(client, path, TypeAdapter(List[Alert]), list)
