"""文档就绪状态

InitRunner 只需要两件事：
- ready_state: 文档是否仍在加载
- on_ready(callback): 一次性的 "document ready" 信号
"""

from typing import Any, Callable, Protocol

from . import config
from .telemetry import get_logger

logger = get_logger(__name__)


class DocumentLike(Protocol):
    """宿主文档接口"""

    @property
    def ready_state(self) -> str: ...

    def on_ready(self, callback: Callable[[], Any]) -> None: ...


class Document:
    """进程内文档实现

    ready_state 取值: "loading" / "interactive" / "complete"
    """

    def __init__(self, ready_state: str = config.DOCUMENT_LOADING_STATE):
        self._ready_state = ready_state
        self._listeners: list[Callable[[], Any]] = []

    @property
    def ready_state(self) -> str:
        return self._ready_state

    @property
    def is_loading(self) -> bool:
        return self._ready_state == config.DOCUMENT_LOADING_STATE

    def on_ready(self, callback: Callable[[], Any]) -> None:
        """注册一次性 ready 回调

        文档已就绪时不会再触发，调用方需自己检查 ready_state。
        """
        self._listeners.append(callback)

    def mark_ready(self, ready_state: str = "interactive") -> int:
        """文档加载完成，触发并清空所有 ready 回调

        回调异常被记录，不影响其他回调。

        Returns:
            触发的回调数量
        """
        if not self.is_loading:
            return 0
        self._ready_state = ready_state
        listeners, self._listeners = self._listeners, []
        for callback in listeners:
            try:
                callback()
            except Exception as e:
                logger.error(f"[Document] ready listener failed: {e}")
        return len(listeners)
