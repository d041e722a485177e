"""Timer - 延迟任务服务

基于事件循环的 timer handle（loop.call_later）调度命名延迟任务。
支持同步/异步回调，异常隔离，可随时取消。

使用示例:
    timer = Timer()

    # 100ms 后重新初始化组件
    timer.register_delay("rerun:page:view:1", 0.1, runner.run_all)

    # 取消延迟任务
    timer.cancel_delay("rerun:page:view:1")

    # 页面销毁时取消所有未触发任务
    timer.stop()
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Callable, Any, Coroutine

from .telemetry import get_logger, metrics
from .config import METRICS_ENABLED

logger = get_logger(__name__)

TimerCallback = Callable[[], Any | Coroutine[Any, Any, Any]]


@dataclass
class DelayTask:
    """延迟任务"""
    name: str
    delay: float  # 秒
    callback: TimerCallback
    scheduled_at: float = 0.0  # 调度时间（event loop time）
    trigger_at: float = 0.0  # 触发时间
    handle: asyncio.TimerHandle | None = None
    cancelled: bool = False


class Timer:
    """延迟任务服务

    设计原则:
    1. 每个延迟任务对应一个 loop timer handle，不需要 tick 循环
    2. 支持同步/异步回调（异步结果用 create_task 包裹）
    3. 异常隔离：单个回调失败不影响其他任务
    4. 同名任务覆盖旧任务
    """

    def __init__(self):
        self._delay_tasks: dict[str, DelayTask] = {}
        self._running_callbacks: set[asyncio.Task] = set()

    def register_delay(self, name: str, delay: float, callback: TimerCallback) -> None:
        """注册延迟任务

        如果已存在同名任务，会被覆盖（取消旧任务）。

        Args:
            name: 任务名（用于日志和取消）
            delay: 延迟时间（秒）
            callback: 回调函数（同步或异步）
        """
        loop = asyncio.get_running_loop()
        now = loop.time()

        if name in self._delay_tasks:
            logger.debug(f"[Timer] Overwriting delay task: {name}")
            self.cancel_delay(name)

        task = DelayTask(
            name=name,
            delay=delay,
            callback=callback,
            scheduled_at=now,
            trigger_at=now + delay,
        )
        task.handle = loop.call_later(delay, self._fire, task)
        self._delay_tasks[name] = task
        logger.debug(f"[Timer] Registered delay task: {name} ({delay}s)")

    def cancel_delay(self, name: str) -> bool:
        """取消延迟任务

        Returns:
            是否成功取消
        """
        task = self._delay_tasks.pop(name, None)
        if task is None:
            return False
        task.cancelled = True
        if task.handle is not None:
            task.handle.cancel()
        logger.debug(f"[Timer] Cancelled delay task: {name}")
        return True

    def has_delay(self, name: str) -> bool:
        """检查是否存在未触发的延迟任务"""
        return name in self._delay_tasks

    def stop(self) -> None:
        """取消所有未触发的延迟任务和仍在执行的异步回调"""
        for name in list(self._delay_tasks.keys()):
            self.cancel_delay(name)
        for running in list(self._running_callbacks):
            running.cancel()
        logger.debug("[Timer] Stopped")

    def _fire(self, task: DelayTask) -> None:
        """timer handle 到期回调"""
        if task.cancelled:
            return
        # 同名任务可能已被覆盖，只移除自身
        if self._delay_tasks.get(task.name) is task:
            del self._delay_tasks[task.name]
        self._execute_callback(task.name, task.callback)

    def _execute_callback(self, name: str, callback: TimerCallback) -> None:
        """执行回调（带异常隔离）"""
        try:
            result = callback()
        except Exception as e:
            self._report_error(name, e)
            return

        if inspect.isawaitable(result):
            running = asyncio.ensure_future(result)
            self._running_callbacks.add(running)
            running.add_done_callback(lambda t: self._on_callback_done(name, t))

    def _on_callback_done(self, name: str, task: asyncio.Future) -> None:
        self._running_callbacks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._report_error(name, error)

    def _report_error(self, name: str, error: BaseException) -> None:
        logger.error(f"[Timer] Task '{name}' failed: {error}")
        if METRICS_ENABLED:
            metrics.inc("timer.errors", {"task": name})

    # === 状态查询（用于测试）===

    @property
    def delay_task_count(self) -> int:
        """未触发的延迟任务数量"""
        return len(self._delay_tasks)

    def get_delay_tasks(self) -> list[str]:
        """获取所有未触发的延迟任务名"""
        return list(self._delay_tasks.keys())
