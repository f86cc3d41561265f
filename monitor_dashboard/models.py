"""
数据模型定义

包括：
- Pydantic 数据模型（后端响应解码）
- 视图状态槽（StateCell）与只读快照
- 运行状况响应模型
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError, field_validator


# =============================================================================
# Pydantic 数据模型（后端 JSON）
# =============================================================================

_INSTANT = TypeAdapter(datetime)

# 日期 + 时间，可选秒、小数秒与时区；纯数字（epoch）不算
_ISO_8601 = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?([Zz]|[+-]\d{2}(:?\d{2})?)?$"
)


class AgentStatusReport(BaseModel):
    """单个 Agent 的最新状态（GET /api/status 的 value）"""
    cpu_usage: Optional[float] = None  # 百分比，不做裁剪
    memory_usage: Optional[float] = None  # MB
    request_count: Optional[int] = None  # 累计请求数
    timestamp: Optional[str] = None  # 原样展示

    @field_validator("timestamp")
    @classmethod
    def _timestamp_is_instant(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not _ISO_8601.match(v):
            raise ValueError(f"timestamp is not an ISO-8601 instant: {v!r}")
        try:
            _INSTANT.validate_python(v)
        except ValidationError:
            raise ValueError(f"timestamp is not an ISO-8601 instant: {v!r}")
        return v


class Alert(BaseModel):
    """历史告警（GET /api/alerts/history 的元素）"""
    id: int
    service_name: str
    metric: str
    value: float
    triggered_at: datetime

    @field_validator("triggered_at", mode="before")
    @classmethod
    def _epoch_millis(cls, v: Any) -> Any:
        # 数字按 epoch 毫秒解释
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            try:
                return datetime.fromtimestamp(v / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                raise ValueError(f"triggered_at out of range: {v!r}")
        return v

    @field_validator("triggered_at")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


StatusMap = Dict[str, AgentStatusReport]
AlertList = List[Alert]


# =============================================================================
# 视图状态
# =============================================================================

T = TypeVar("T")


class StateCell(Generic[T]):
    """
    单个视图状态槽

    值只能整体替换；每次替换带上拉取周期的代数（generation），
    代数不大于当前值的结果视为过期，直接丢弃。
    """

    def __init__(self, name: str, empty: Callable[[], T]):
        self.name = name
        self._value: T = empty()
        self.generation = 0
        self.updated_at: Optional[datetime] = None
        self.consecutive_failures = 0
        self.last_error: Optional[str] = None

    @property
    def value(self) -> T:
        return self._value

    def replace(self, value: T, generation: int) -> bool:
        """整体替换值；过期代数返回 False"""
        if generation <= self.generation:
            return False
        self._value = value
        self.generation = generation
        self.updated_at = datetime.now(timezone.utc)
        self.consecutive_failures = 0
        self.last_error = None
        return True

    def record_failure(self, error: str) -> int:
        """记录一次失败（值保持不变），返回连续失败次数"""
        self.consecutive_failures += 1
        self.last_error = error
        return self.consecutive_failures


@dataclass(frozen=True)
class DashboardSnapshot:
    """视图层拿到的只读快照"""
    status_map: Mapping[str, AgentStatusReport]
    alerts: Tuple[Alert, ...]


class DashboardState:
    """看板的两个状态槽：Agent 状态表与告警列表"""

    def __init__(self):
        self.status_map: StateCell[StatusMap] = StateCell("status", dict)
        self.alerts: StateCell[AlertList] = StateCell("alerts", list)

    def snapshot(self) -> DashboardSnapshot:
        return DashboardSnapshot(
            status_map=MappingProxyType(dict(self.status_map.value)),
            alerts=tuple(self.alerts.value),
        )


# =============================================================================
# 运行状况响应模型
# =============================================================================

class SlotHealth(BaseModel):
    """单个状态槽的刷新状况"""
    name: str
    generation: int
    updated_at: Optional[str] = None
    consecutive_failures: int = 0
    last_error: Optional[str] = None

    @classmethod
    def from_cell(cls, cell: StateCell) -> "SlotHealth":
        return cls(
            name=cell.name,
            generation=cell.generation,
            updated_at=cell.updated_at.isoformat() if cell.updated_at else None,
            consecutive_failures=cell.consecutive_failures,
            last_error=cell.last_error,
        )


class PollerHealth(BaseModel):
    """GET /api/health 响应"""
    running: bool
    interval: float
    cycles_started: int = 0
    ticks_skipped: int = 0
    status: SlotHealth
    alerts: SlotHealth


class StateResponse(BaseModel):
    """GET /api/state 响应（原始数据）"""
    status: Dict[str, AgentStatusReport]
    alerts: List[Alert]
