"""
拉取错误分类

- TransportError: 请求未发出或未收到响应（网络错误、超时）
- HTTPStatusError: 收到响应但状态码非 2xx
- DecodeError: 响应 body 不是期望的结构

空 body / null 不是错误，由解码函数直接返回空值。
"""

from typing import Optional


class FetchError(Exception):
    """单个数据源一次拉取失败（基类，不直接抛出）"""

    kind = "fetch"

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class TransportError(FetchError):
    """网络错误或超时"""

    kind = "transport"


class HTTPStatusError(FetchError):
    """非成功状态码"""

    kind = "http"

    def __init__(self, source: str, status_code: int, message: Optional[str] = None):
        super().__init__(source, message or f"HTTP {status_code}")
        self.status_code = status_code


class DecodeError(FetchError):
    """响应解析失败"""

    kind = "decode"


__all__ = [
    "FetchError",
    "TransportError",
    "HTTPStatusError",
    "DecodeError",
]
