"""组件注册表 - 只读查找接口

注册表是宿主环境的全局命名空间：组件定义脚本往里写构造器，
过渡库实例也挂在上面。核心代码只通过 Lookup 读取，从不写入。
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable

# name -> 值；不存在时返回 None
Lookup = Callable[[str], Any | None]


def is_invokable(value: Any) -> bool:
    """值是否可以被调用构造

    None 或非 callable 的值都视为"尚不可用"。
    """
    return value is not None and callable(value)


def namespace_lookup(namespace: Any) -> Lookup:
    """从命名空间构造只读 Lookup

    Args:
        namespace: Mapping（如 globals()）、模块或任意带属性的对象

    Returns:
        lookup(name) -> 值或 None
    """
    if isinstance(namespace, Mapping):
        view = namespace if isinstance(namespace, MappingProxyType) else MappingProxyType(namespace)

        def lookup_mapping(name: str) -> Any | None:
            return view.get(name)

        return lookup_mapping

    def lookup_attr(name: str) -> Any | None:
        return getattr(namespace, name, None)

    return lookup_attr


class ComponentRegistry:
    """可写的进程内注册表

    模拟宿主全局命名空间，给"外部定义脚本"使用（demo 和测试）。
    核心组件只拿到 lookup，不持有写入能力。
    """

    def __init__(self, initial: Mapping[str, Any] | None = None):
        self._entries: dict[str, Any] = dict(initial or {})

    def define(self, name: str, value: Any) -> None:
        """定义（或覆盖）一个条目"""
        if not name:
            raise ValueError("registry name must be non-empty")
        self._entries[name] = value

    def remove(self, name: str) -> bool:
        """删除条目，返回是否存在"""
        if name not in self._entries:
            return False
        del self._entries[name]
        return True

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def lookup(self) -> Lookup:
        """只读查找函数"""
        return namespace_lookup(self._entries)
