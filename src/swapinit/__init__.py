"""swapinit - 页面内容替换后重新初始化组件

模块结构：
- waiter: AvailabilityWaiter 等待组件可用后构造一次
- binder: LifecycleBinder 等待过渡库出现后挂载钩子
- runner: InitRunner document ready / 生命周期事件触发
- registry: 只读注册表查找
- timer: 延迟任务
- runtime: bootstrap 组装
"""

from .binder import LifecycleBinder
from .document import Document
from .hooks import TransitionLibrary
from .registry import ComponentRegistry, Lookup, namespace_lookup
from .runner import InitRunner
from .runtime import RuntimeComponents, bootstrap
from .settings import RunnerSettings
from .timer import Timer
from .types import (
    BindOutcome,
    BindResult,
    InvalidTransitionError,
    RunnerState,
    WaitOutcome,
    WaitResult,
)
from .waiter import AvailabilityWaiter

__all__ = [
    "AvailabilityWaiter",
    "LifecycleBinder",
    "InitRunner",
    "RunnerState",
    "InvalidTransitionError",
    "WaitOutcome",
    "WaitResult",
    "BindOutcome",
    "BindResult",
    "ComponentRegistry",
    "Lookup",
    "namespace_lookup",
    "Document",
    "TransitionLibrary",
    "RunnerSettings",
    "Timer",
    "bootstrap",
    "RuntimeComponents",
]
