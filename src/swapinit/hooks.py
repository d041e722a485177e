"""过渡库钩子接口

核心只依赖 `handle.hooks.on(event, callback)` 这一订阅能力。
TransitionLibrary 是进程内实现，用于 demo 和测试；
真实宿主中由外部加载的过渡库实例挂到注册表上。
"""

import inspect
from collections import defaultdict
from typing import Any, Callable, Protocol

from . import config
from .config import METRICS_ENABLED
from .telemetry import get_logger, metrics

logger = get_logger(__name__)

HookHandler = Callable[..., Any]


class HookSubscriber(Protocol):
    """钩子订阅能力"""

    def on(self, event: str, handler: HookHandler) -> Any: ...


class TransitionHandle(Protocol):
    """注册表中的过渡库实例"""

    hooks: HookSubscriber


class HookRegistry:
    """命名事件 -> 处理函数列表"""

    def __init__(self):
        self._handlers: dict[str, list[HookHandler]] = defaultdict(list)

    def on(self, event: str, handler: HookHandler) -> HookHandler:
        """订阅事件，返回 handler 便于取消"""
        self._handlers[event].append(handler)
        logger.debug(f"[Hooks] Subscribed to {event}")
        return handler

    def off(self, event: str, handler: HookHandler) -> bool:
        """取消订阅"""
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    async def emit(self, event: str, *args: Any, **kwargs: Any) -> int:
        """触发事件

        处理函数按订阅顺序执行，单个失败不影响其他。

        Returns:
            执行的处理函数数量
        """
        handlers = list(self._handlers.get(event, []))
        for handler in handlers:
            try:
                result = handler(*args, **kwargs)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"[Hooks] Handler for '{event}' failed: {e}")
                if METRICS_ENABLED:
                    metrics.inc("hooks.handler_errors", {"event": event})
        return len(handlers)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))


class TransitionLibrary:
    """进程内过渡库实例

    模拟导航周期：navigate() 依次触发 content:replace 和 page:view。
    """

    def __init__(self):
        self.hooks = HookRegistry()
        self.visits: list[str] = []

    async def navigate(self, url: str) -> None:
        """模拟一次导航"""
        self.visits.append(url)
        logger.debug(f"[Hooks] Navigate to {url}")
        await self.hooks.emit(config.CONTENT_REPLACE_EVENT, url)
        await self.hooks.emit(config.PAGE_VIEW_EVENT, url)
