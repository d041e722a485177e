"""InitRunner - 页面生命周期内驱动组件初始化

触发点：
1. document ready（文档仍在加载时延后到 ready 信号，否则立即执行）
2. 过渡库绑定后，每次 page:view / content:replace 事件在固定延迟后重跑

每次 run_all 相互独立，注册表查找是幂等读。
"""

import asyncio
import itertools
from collections.abc import Sequence
from typing import Any

from . import config
from .binder import LifecycleBinder
from .config import METRICS_ENABLED
from .document import DocumentLike
from .hooks import TransitionHandle
from .settings import RunnerSettings
from .telemetry import get_logger, metrics
from .timer import Timer
from .types import (
    RUNNER_TRANSITIONS,
    BindOutcome,
    BindResult,
    InvalidTransitionError,
    RunnerState,
    WaitResult,
)
from .waiter import AvailabilityWaiter

logger = get_logger(__name__)


async def _result_of(wait: asyncio.Task) -> WaitResult:
    return await wait


class InitRunner:
    """组件初始化驱动器

    使用示例:
        runner = InitRunner(waiter, binder, timer, document, settings)
        runner.start()

        # 导航后由过渡库钩子自动重跑
    """

    def __init__(
        self,
        waiter: AvailabilityWaiter,
        binder: LifecycleBinder,
        timer: Timer,
        document: DocumentLike,
        settings: RunnerSettings | None = None,
    ):
        self._waiter = waiter
        self._binder = binder
        self._timer = timer
        self._document = document
        self._settings = settings or RunnerSettings.from_config()

        self._state = RunnerState.NOT_STARTED
        self._bound = False
        self._bind_result: BindResult | None = None
        self._binder_task: asyncio.Task | None = None
        self._run_count = 0
        self._rerun_seq = itertools.count(1)

    # === 执行 ===

    def run_all(
        self,
        components: Sequence[str] | None = None,
        trigger: str = "manual",
    ) -> list[asyncio.Task]:
        """为每个组件启动独立的等待（按列表顺序启动，并发执行）

        Args:
            components: 组件名列表，None 使用配置
            trigger: 触发来源（日志/指标）

        Returns:
            每个组件一个 Task，结果为 WaitResult
        """
        components = self._begin_run(components, trigger)

        return [
            self._waiter.start(
                name,
                self._settings.max_wait_ms,
                self._settings.check_interval_ms,
            )
            for name in components
        ]

    async def run_all_and_wait(
        self,
        components: Sequence[str] | None = None,
        trigger: str = "manual",
    ) -> list[WaitResult]:
        """执行 run_all 并等待所有组件结束（结构化并发）

        等待经由 AvailabilityWaiter.start 启动，dedupe 合并和 cancel_all 同样生效。

        Returns:
            与 components 顺序一致的 WaitResult 列表
        """
        waits = self.run_all(components, trigger)

        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(_result_of(wait)) for wait in waits]
        return [task.result() for task in tasks]

    def _begin_run(self, components: Sequence[str] | None, trigger: str) -> Sequence[str]:
        if components is None:
            components = self._settings.components
        self._run_count += 1
        logger.info(f"[Runner] Component initialization started ({trigger}).")
        if METRICS_ENABLED:
            metrics.inc("runner.runs", {"trigger": trigger})
        return components

    # === 触发接线 ===

    def start(self) -> None:
        """接线初始触发和过渡库触发

        必须在事件循环中调用。重复调用抛出 InvalidTransitionError。
        """
        if self._state is not RunnerState.NOT_STARTED:
            raise InvalidTransitionError(self._state, RunnerState.DOM_READY)

        if self._document.ready_state == config.DOCUMENT_LOADING_STATE:
            self._transition(RunnerState.DOM_PENDING)
            self._document.on_ready(self._on_dom_ready)
            logger.debug("[Runner] Document loading, deferring initial run")
        else:
            self._transition(RunnerState.DOM_READY)
            self.run_all(trigger="load")
            self._advance_transition_state()

        self._binder_task = self._binder.start(
            self._settings.transition_global_name,
            self._settings.transition_check_interval_ms,
            self._settings.transition_safety_timeout_ms,
            self._attach_hooks,
        )
        self._binder_task.add_done_callback(self._on_binder_done)

    def stop(self) -> None:
        """取消未触发的重跑和进行中的绑定

        已订阅的钩子不会取消订阅。
        """
        self._timer.stop()
        self._binder.cancel()
        logger.debug("[Runner] Stopped")

    def _on_dom_ready(self) -> None:
        self._transition(RunnerState.DOM_READY)
        self.run_all(trigger="load")
        self._advance_transition_state()

    def _attach_hooks(self, handle: TransitionHandle) -> None:
        """订阅过渡库生命周期事件"""
        for event, delay_ms in self._settings.rerun_delays_ms:
            handle.hooks.on(event, self._make_rerun_handler(event, delay_ms))
        self._bound = True
        self._advance_transition_state()

    def _make_rerun_handler(self, event: str, delay_ms: int):
        def handler(*args: Any, **kwargs: Any) -> None:
            self._schedule_rerun(event, delay_ms)
        return handler

    def _schedule_rerun(self, event: str, delay_ms: int) -> str:
        """等 DOM 变更结束后重跑（每次事件一个独立延迟任务）"""
        name = f"rerun:{event}:{next(self._rerun_seq)}"
        self._timer.register_delay(
            name,
            delay_ms / 1000,
            lambda: self.run_all(trigger=event),
        )
        return name

    def _on_binder_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        if task.exception() is not None:
            logger.error(f"[Runner] Binder failed: {task.exception()}")
            return
        self._bind_result = task.result()
        if self._bind_result.outcome is BindOutcome.TIMED_OUT:
            logger.debug("[Runner] Transition library never bound, navigations will not re-run")
        elif not self._bound:
            logger.warning(
                f"[Runner] {self._bind_result.global_name} found but hooks not attached: "
                f"{self._bind_result.callback_error}"
            )
        self._advance_transition_state()

    def _advance_transition_state(self) -> None:
        """DOM 就绪后根据绑定情况推进到 TRANSITION_*"""
        if self._state is RunnerState.DOM_READY:
            self._transition(
                RunnerState.TRANSITION_BOUND if self._bound else RunnerState.TRANSITION_UNBOUND
            )
        elif self._state is RunnerState.TRANSITION_UNBOUND and self._bound:
            self._transition(RunnerState.TRANSITION_BOUND)

    def _transition(self, to_state: RunnerState) -> None:
        if to_state not in RUNNER_TRANSITIONS[self._state]:
            raise InvalidTransitionError(self._state, to_state)
        logger.debug(f"[Runner] {self._state.value} -> {to_state.value}")
        self._state = to_state

    # === 状态查询 ===

    @property
    def state(self) -> RunnerState:
        return self._state

    @property
    def is_bound(self) -> bool:
        return self._bound

    @property
    def bind_result(self) -> BindResult | None:
        return self._bind_result

    @property
    def binder_task(self) -> asyncio.Task | None:
        return self._binder_task

    @property
    def run_count(self) -> int:
        """run_all / run_all_and_wait 被调用的次数"""
        return self._run_count

    @property
    def settings(self) -> RunnerSettings:
        return self._settings
