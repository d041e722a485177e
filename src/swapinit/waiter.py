"""AvailabilityWaiter - 等待组件可用后初始化

对单个组件名：
1. 周期性查找注册表，直到值出现且可调用
2. 在异常隔离边界内调用一次（构造失败不重试）
3. 超过最长等待时间仍不可用则放弃

每次调用都是独立的状态机（WaitState），不阻塞调用方。
"""

import asyncio
import inspect

from . import config
from .config import METRICS_ENABLED
from .registry import Lookup, is_invokable
from .telemetry import get_logger, metrics
from .types import WaitOutcome, WaitResult, WaitState

logger = get_logger(__name__)


class AvailabilityWaiter:
    """组件可用性等待器

    使用示例:
        waiter = AvailabilityWaiter(registry.lookup)

        # 非阻塞：立即返回 Task
        task = waiter.start("marquee")

        # 或在协程中等待结果
        result = await waiter.wait_and_init("marquee")
    """

    def __init__(
        self,
        lookup: Lookup,
        max_wait_ms: int | None = None,
        interval_ms: int | None = None,
        dedupe: bool | None = None,
    ):
        """初始化

        Args:
            lookup: 只读注册表查找函数
            max_wait_ms: 默认最长等待（毫秒），None 使用配置
            interval_ms: 默认轮询间隔（毫秒），None 使用配置
            dedupe: 同名等待进行中时是否合并，None 使用配置
        """
        self._lookup = lookup
        self._max_wait_ms = max_wait_ms if max_wait_ms is not None else config.MAX_WAIT_TIME_MS
        self._interval_ms = interval_ms if interval_ms is not None else config.CHECK_INTERVAL_MS
        self._dedupe = config.DEDUPE_PENDING_WAITS if dedupe is None else dedupe
        # 进行中的等待（dedupe 模式下按名字索引）
        self._pending: dict[str, asyncio.Task] = {}
        self._tasks: set[asyncio.Task] = set()

    def start(
        self,
        name: str,
        max_wait_ms: int | None = None,
        interval_ms: int | None = None,
    ) -> asyncio.Task:
        """启动等待（非阻塞）

        dedupe 模式下，若同名等待仍在进行，返回一个合并到该等待的 Task。

        Returns:
            结果为 WaitResult 的 Task
        """
        if self._dedupe and name in self._pending:
            return asyncio.create_task(self._join(name, self._pending[name]))

        task = asyncio.create_task(
            self.wait_and_init(name, max_wait_ms, interval_ms),
            name=f"swapinit.wait:{name}",
        )
        self._tasks.add(task)
        if self._dedupe:
            self._pending[name] = task
        task.add_done_callback(lambda t: self._forget(name, t))
        self._update_pending_gauge()
        return task

    async def wait_and_init(
        self,
        name: str,
        max_wait_ms: int | None = None,
        interval_ms: int | None = None,
    ) -> WaitResult:
        """等待组件可用并初始化一次

        Args:
            name: 组件名
            max_wait_ms: 最长等待（毫秒）
            interval_ms: 轮询间隔（毫秒）

        Returns:
            WaitResult，不会因组件问题抛出异常
        """
        if max_wait_ms is None:
            max_wait_ms = self._max_wait_ms
        if interval_ms is None:
            interval_ms = self._interval_ms

        loop = asyncio.get_running_loop()
        now = loop.time()
        state = WaitState(name=name, start_time=now, deadline=now + max_wait_ms / 1000)

        while True:
            state.attempts += 1
            try:
                target = self._lookup(name)
            except Exception as e:
                # 注册表读取出错等同于尚不可用
                logger.debug(f"[Waiter] {name} lookup failed: {e}")
                target = None

            if is_invokable(target):
                return await self._instantiate(state, target)

            now = loop.time()
            if state.expired(now):
                return self._skip(state, max_wait_ms, now)

            logger.debug(f"[Waiter] {name} not available yet (attempt {state.attempts})")
            await asyncio.sleep(interval_ms / 1000)

    async def _instantiate(self, state: WaitState, target) -> WaitResult:
        """在异常隔离边界内调用构造器

        构造失败是终态，不重试。
        """
        loop = asyncio.get_running_loop()
        try:
            result = target()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            elapsed = state.elapsed_ms(loop.time())
            logger.warning(f"[Waiter] {state.name} instantiation failed: {e}")
            if METRICS_ENABLED:
                metrics.inc("waiter.failed", {"component": state.name})
            return WaitResult(
                name=state.name,
                outcome=WaitOutcome.FAILED,
                elapsed_ms=elapsed,
                attempts=state.attempts,
                error=str(e),
            )

        elapsed = state.elapsed_ms(loop.time())
        logger.info(f"[Waiter] {state.name} initialized (after {elapsed}ms)")
        if METRICS_ENABLED:
            metrics.inc("waiter.initialized", {"component": state.name})
        return WaitResult(
            name=state.name,
            outcome=WaitOutcome.INITIALIZED,
            elapsed_ms=elapsed,
            attempts=state.attempts,
        )

    def _skip(self, state: WaitState, max_wait_ms: int, now: float) -> WaitResult:
        logger.info(f"[Waiter] {state.name} not found after {max_wait_ms}ms. Skipping.")
        if METRICS_ENABLED:
            metrics.inc("waiter.timeout", {"component": state.name})
        return WaitResult(
            name=state.name,
            outcome=WaitOutcome.TIMED_OUT,
            elapsed_ms=state.elapsed_ms(now),
            attempts=state.attempts,
        )

    async def _join(self, name: str, pending: asyncio.Task) -> WaitResult:
        """合并到进行中的同名等待，不再单独尝试构造"""
        logger.debug(f"[Waiter] {name} joined pending wait")
        if METRICS_ENABLED:
            metrics.inc("waiter.joined", {"component": name})
        joined = await asyncio.shield(pending)
        return WaitResult(
            name=name,
            outcome=WaitOutcome.JOINED,
            elapsed_ms=joined.elapsed_ms,
            attempts=0,
            error=joined.error,
        )

    def _forget(self, name: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if self._pending.get(name) is task:
            del self._pending[name]
        self._update_pending_gauge()

    def _update_pending_gauge(self) -> None:
        if METRICS_ENABLED:
            metrics.gauge("waiter.pending", len(self._tasks))

    def cancel_all(self) -> None:
        """取消所有进行中的等待（页面销毁/测试）"""
        for task in list(self._tasks):
            task.cancel()

    # === 状态查询 ===

    @property
    def pending_count(self) -> int:
        """进行中的等待数量"""
        return len(self._tasks)

    def pending_names(self) -> list[str]:
        """进行中的等待对应的组件名（可能重复）"""
        return [
            task.get_name().removeprefix("swapinit.wait:")
            for task in self._tasks
            if not task.done()
        ]
