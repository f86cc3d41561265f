"""
刷新循环

每个周期并发拉取 Agent 状态与告警历史，各自独立写入对应的状态槽：
- 失败（网络 / HTTP / 解码）时保留上一次的值
- 成功但 body 为空时重置为空值
- 上一个周期未结束时跳过本次 tick
- 过期代数的结果丢弃；stop() 之后到达的结果丢弃
"""

import asyncio
import logging
from typing import Optional, Set

import httpx

from .config import AppConfig
from .errors import FetchError
from .models import DashboardState, PollerHealth, SlotHealth, StateCell
from .sources import AlertSource, JSONSource, StatusSource, create_client

logger = logging.getLogger(__name__)


class PollHandle:
    """start() 返回的取消句柄"""

    def __init__(self, handle_id: int):
        self.id = handle_id
        self.active = True
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"PollHandle(id={self.id}, active={self.active})"


class DashboardPoller:
    """
    刷新循环 + 状态协调

    状态槽由外部创建后传入，只有本类写入；读者通过 state.snapshot() 获取只读快照。
    """

    def __init__(
        self,
        status_source: StatusSource,
        alert_source: AlertSource,
        state: DashboardState,
        interval: float = 1.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            status_source: Agent 状态数据源
            alert_source: 告警历史数据源
            state: 两个状态槽
            interval: 刷新周期（秒）
            client: 由本类负责关闭的 HTTP 客户端（可选）
        """
        if interval <= 0:
            raise ValueError("interval must be > 0")

        self.status_source = status_source
        self.alert_source = alert_source
        self.state = state
        self.interval = interval
        self._client = client

        self._generation = 0
        self._handle_seq = 0
        self._handle: Optional[PollHandle] = None
        self._cycles: Set[asyncio.Task] = set()

        self.cycles_started = 0
        self.ticks_skipped = 0

    @property
    def running(self) -> bool:
        return self._handle is not None and self._handle.active

    def start(self) -> PollHandle:
        """
        启动刷新循环

        立即发起第一个周期，之后每 interval 秒一次。必须在事件循环中调用。

        Returns:
            取消句柄，传给 stop()
        """
        if self.running:
            raise RuntimeError("Poller is already running")

        loop = asyncio.get_running_loop()
        self._handle_seq += 1
        handle = PollHandle(self._handle_seq)
        self._handle = handle

        self._launch_cycle(handle)
        handle._timer = loop.create_task(self._run_timer(handle))

        logger.info(f"Starting dashboard poller (interval={self.interval}s)")
        return handle

    def stop(self, handle: PollHandle):
        """
        停止刷新循环

        取消定时器；进行中的请求允许完成，但结果不再写入状态。
        """
        if not handle.active:
            return
        handle.active = False
        if handle._timer is not None:
            handle._timer.cancel()
        if self._handle is handle:
            self._handle = None
        logger.info(f"Dashboard poller stopped ({self.cycles_started} cycles, {self.ticks_skipped} ticks skipped)")

    async def refresh_once(self):
        """执行一个完整周期并等待其结束"""
        await self._run_cycle(self._next_generation(), None)

    async def drain(self):
        """等待所有进行中的定时周期结束（包括已停止句柄的周期）"""
        pending = [task for task in self._cycles if not task.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self):
        """停止循环，等待进行中的周期，关闭 HTTP 客户端"""
        if self._handle is not None:
            self.stop(self._handle)
        await self.drain()
        if self._client is not None:
            await self._client.aclose()

    def health(self) -> PollerHealth:
        return PollerHealth(
            running=self.running,
            interval=self.interval,
            cycles_started=self.cycles_started,
            ticks_skipped=self.ticks_skipped,
            status=SlotHealth.from_cell(self.state.status_map),
            alerts=SlotHealth.from_cell(self.state.alerts),
        )

    # =========================================================================
    # 内部实现
    # =========================================================================

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    async def _run_timer(self, handle: PollHandle):
        while handle.active:
            await asyncio.sleep(self.interval)
            self._launch_cycle(handle)

    def _launch_cycle(self, handle: PollHandle):
        # 只看本句柄的周期，已停止句柄的周期不阻塞新句柄
        if handle._inflight is not None and not handle._inflight.done():
            self.ticks_skipped += 1
            logger.debug("Previous cycle still in flight, skipping tick")
            return
        generation = self._next_generation()
        task = asyncio.get_running_loop().create_task(self._run_cycle(generation, handle))
        handle._inflight = task
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)

    async def _run_cycle(self, generation: int, handle: Optional[PollHandle]):
        self.cycles_started += 1
        await asyncio.gather(
            self._refresh_slot(self.status_source, self.state.status_map, generation, handle),
            self._refresh_slot(self.alert_source, self.state.alerts, generation, handle),
        )

    async def _refresh_slot(
        self,
        source: JSONSource,
        cell: StateCell,
        generation: int,
        handle: Optional[PollHandle],
    ):
        """拉取一个数据源并写入对应状态槽，所有异常在此处消化"""
        error: Optional[Exception] = None
        try:
            value = await source.fetch()
        except FetchError as e:
            error = e
        except Exception as e:
            logger.error(f"Unexpected error refreshing {cell.name}: {e}", exc_info=True)
            error = e

        # stop() 之后成功与失败都不再改动状态槽
        if handle is not None and not handle.active:
            logger.debug(f"Discarding {cell.name} result from cycle {generation}: poller stopped")
            return

        if error is not None:
            self._record_failure(cell, error, generation)
            return

        failures = cell.consecutive_failures
        if not cell.replace(value, generation):
            logger.debug(f"Discarding stale {cell.name} result (cycle {generation} <= {cell.generation})")
            return

        if failures:
            logger.info(f"{cell.name} refresh recovered after {failures} failures")

    def _record_failure(self, cell: StateCell, error: Exception, generation: int):
        if generation <= cell.generation:
            # 更新的周期已经成功写入
            return
        count = cell.record_failure(str(error))
        if count == 1:
            logger.warning(f"Failed to refresh {cell.name}: {error}")
        else:
            logger.debug(f"Failed to refresh {cell.name} ({count} in a row): {error}")


def create_poller(config: AppConfig) -> DashboardPoller:
    """按配置创建刷新循环（两个数据源共用一个 HTTP 客户端）"""
    client = create_client(config.backend)
    return DashboardPoller(
        status_source=StatusSource(client, config.backend.status_path),
        alert_source=AlertSource(client, config.backend.alerts_path),
        state=DashboardState(),
        interval=config.poller.interval,
        client=client,
    )
