"""LifecycleBinder - 等待过渡库出现后挂载生命周期钩子

轮询注册表中的过渡库实例（默认全局名 "swup"）：
- 首次发现即停止轮询，调用一次 on_ready(handle)
- 独立的安全超时保证过渡库永远不加载时轮询也会结束
"""

import asyncio
import inspect
from typing import Any, Callable

from . import config
from .config import METRICS_ENABLED
from .registry import Lookup
from .telemetry import get_logger, metrics
from .types import BindOutcome, BindResult

logger = get_logger(__name__)

ReadyCallback = Callable[[Any], Any]


class LifecycleBinder:
    """过渡库绑定器"""

    def __init__(self, lookup: Lookup):
        self._lookup = lookup
        self._task: asyncio.Task | None = None

    def start(
        self,
        global_name: str | None = None,
        interval_ms: int | None = None,
        safety_deadline_ms: int | None = None,
        on_ready: ReadyCallback | None = None,
    ) -> asyncio.Task:
        """启动绑定（非阻塞）

        Returns:
            结果为 BindResult 的 Task
        """
        self._task = asyncio.create_task(
            self.bind_when_ready(global_name, interval_ms, safety_deadline_ms, on_ready),
            name=f"swapinit.bind:{global_name or config.TRANSITION_GLOBAL_NAME}",
        )
        return self._task

    async def bind_when_ready(
        self,
        global_name: str | None = None,
        interval_ms: int | None = None,
        safety_deadline_ms: int | None = None,
        on_ready: ReadyCallback | None = None,
    ) -> BindResult:
        """轮询直到过渡库出现，然后调用一次 on_ready

        Args:
            global_name: 注册表中的过渡库名
            interval_ms: 轮询间隔（毫秒）
            safety_deadline_ms: 安全超时（毫秒），与每次检查无关，独立生效
            on_ready: 回调 (handle) -> None，可为协程函数

        Returns:
            BindResult（BOUND 或 TIMED_OUT，均为终态）
        """
        global_name = global_name or config.TRANSITION_GLOBAL_NAME
        if interval_ms is None:
            interval_ms = config.TRANSITION_CHECK_INTERVAL_MS
        if safety_deadline_ms is None:
            safety_deadline_ms = config.TRANSITION_SAFETY_TIMEOUT_MS

        loop = asyncio.get_running_loop()
        started_at = loop.time()
        attempts = [0]

        try:
            handle = await asyncio.wait_for(
                self._poll(global_name, interval_ms, attempts),
                timeout=safety_deadline_ms / 1000,
            )
        except asyncio.TimeoutError:
            elapsed = int(round((loop.time() - started_at) * 1000))
            logger.debug(
                f"[Binder] {global_name} not found after {safety_deadline_ms}ms, stop checking"
            )
            if METRICS_ENABLED:
                metrics.inc("binder.timeout", {"global": global_name})
            return BindResult(
                global_name=global_name,
                outcome=BindOutcome.TIMED_OUT,
                elapsed_ms=elapsed,
                attempts=attempts[0],
            )

        elapsed = int(round((loop.time() - started_at) * 1000))
        logger.info(f"[Binder] {global_name} instance found. Attaching lifecycle hooks.")
        if METRICS_ENABLED:
            metrics.inc("binder.bound", {"global": global_name})

        callback_error = None
        if on_ready is not None:
            callback_error = await self._invoke_ready(global_name, on_ready, handle)

        return BindResult(
            global_name=global_name,
            outcome=BindOutcome.BOUND,
            elapsed_ms=elapsed,
            attempts=attempts[0],
            callback_error=callback_error,
        )

    async def _poll(self, global_name: str, interval_ms: int, attempts: list[int]) -> Any:
        """轮询直到值出现（由外层 wait_for 负责超时）"""
        while True:
            attempts[0] += 1
            try:
                handle = self._lookup(global_name)
            except Exception as e:
                logger.debug(f"[Binder] {global_name} lookup failed: {e}")
                handle = None
            if handle is not None:
                return handle
            await asyncio.sleep(interval_ms / 1000)

    async def _invoke_ready(
        self, global_name: str, on_ready: ReadyCallback, handle: Any
    ) -> str | None:
        """调用 on_ready（带异常隔离）

        Returns:
            失败时的错误信息，成功返回 None
        """
        try:
            result = on_ready(handle)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"[Binder] on_ready for '{global_name}' failed: {e}")
            if METRICS_ENABLED:
                metrics.inc("binder.callback_errors", {"global": global_name})
            return str(e)
        return None

    def cancel(self) -> None:
        """取消进行中的绑定"""
        if self._task and not self._task.done():
            self._task.cancel()

    @property
    def task(self) -> asyncio.Task | None:
        """最近一次 start() 创建的 Task"""
        return self._task
