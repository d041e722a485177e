"""Bootstrap - 集中构造系统组件

职责：
- 创建 Timer, AvailabilityWaiter, LifecycleBinder, InitRunner
- 把只读 lookup 注入 waiter/binder
- 返回 RuntimeComponents 供调用方使用

不负责：
- 注册表内容（由外部定义脚本写入）
"""

from dataclasses import dataclass

from ..binder import LifecycleBinder
from ..document import DocumentLike
from ..registry import Lookup
from ..runner import InitRunner
from ..settings import RunnerSettings
from ..telemetry import get_logger
from ..timer import Timer
from ..waiter import AvailabilityWaiter

logger = get_logger(__name__)

# Global registry to track bootstrap state and prevent dual-construction
_current_components: "RuntimeComponents | None" = None


@dataclass
class RuntimeComponents:
    """Bootstrap 返回的运行时组件集合"""

    timer: Timer
    waiter: AvailabilityWaiter
    binder: LifecycleBinder
    runner: InitRunner
    settings: RunnerSettings

    def start(self) -> None:
        """接线触发点（需在事件循环中调用）"""
        self.runner.start()
        logger.info("[Bootstrap] Runner started")

    def stop(self) -> None:
        """取消未触发的重跑、绑定和进行中的等待"""
        self.runner.stop()
        self.waiter.cancel_all()
        logger.info("[Bootstrap] Runner stopped")


def bootstrap(
    lookup: Lookup,
    document: DocumentLike,
    settings: RunnerSettings | None = None,
) -> RuntimeComponents:
    """构造运行时组件

    Args:
        lookup: 只读注册表查找函数
        document: 宿主文档（提供 ready_state / on_ready）
        settings: 配置，None 使用 config 默认值

    Returns:
        RuntimeComponents 包含所有构造好的组件

    Raises:
        RuntimeError: 如果已经调用过 bootstrap（防止双重构造）
    """
    global _current_components

    if _current_components is not None:
        raise RuntimeError(
            "bootstrap() has already been called. "
            "Use get_current_components() to access existing components."
        )

    settings = settings or RunnerSettings.from_config()

    timer = Timer()
    waiter = AvailabilityWaiter(
        lookup,
        max_wait_ms=settings.max_wait_ms,
        interval_ms=settings.check_interval_ms,
        dedupe=settings.dedupe_pending_waits,
    )
    binder = LifecycleBinder(lookup)
    runner = InitRunner(waiter, binder, timer, document, settings)

    logger.info(f"[Bootstrap] Components created ({len(settings.components)} configured)")

    _current_components = RuntimeComponents(
        timer=timer,
        waiter=waiter,
        binder=binder,
        runner=runner,
        settings=settings,
    )
    return _current_components


def get_current_components() -> "RuntimeComponents | None":
    """获取当前 RuntimeComponents

    如果 bootstrap() 还没调用，返回 None。
    """
    return _current_components


def _reset_for_testing() -> None:
    """重置 bootstrap 状态（仅用于测试）"""
    global _current_components
    _current_components = None
