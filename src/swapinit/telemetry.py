"""日志和进程内指标

日志格式: [module] [Component] msg
计数器: waiter.initialized / failed / timeout / joined, binder.bound / timeout,
        runner.runs, timer.errors, hooks.handler_errors
Gauge: waiter.pending
"""

import logging
from collections import Counter
from collections.abc import Mapping

# 全局日志配置
_LOG_FORMAT = "[%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """获取带模块前缀的 logger

    Args:
        name: 模块名（通常使用 __name__）

    Returns:
        配置好的 Logger 实例
    """
    return logging.getLogger(name)


def setup_logging(level: str | int | None = None) -> None:
    """配置根 logger

    Args:
        level: 日志级别，None 使用 config.LOG_LEVEL
    """
    from . import config

    if level is None:
        level = config.LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=_LOG_FORMAT)


MetricKey = tuple[str, tuple[tuple[str, str], ...]]


def _metric_key(name: str, labels: Mapping[str, str] | None) -> MetricKey:
    return name, tuple(sorted((labels or {}).items()))


class Metrics:
    """进程内指标

    计数器记录 waiter / binder / timer / hooks 的结束原因，
    gauge 记录当前进行中的等待数。键为 (指标名, 排序后的标签)。
    """

    def __init__(self):
        self._counters: Counter[MetricKey] = Counter()
        self._gauges: dict[MetricKey, float] = {}

    def inc(self, name: str, labels: Mapping[str, str] | None = None, value: int = 1) -> None:
        """计数器 +value

        Args:
            name: 指标名（如 "waiter.timeout"）
            labels: 可选标签（如 {"component": name}）
            value: 递增值，默认 1
        """
        self._counters[_metric_key(name, labels)] += value

    def gauge(self, name: str, value: float, labels: Mapping[str, str] | None = None) -> None:
        self._gauges[_metric_key(name, labels)] = value

    def get_counter(self, name: str, labels: Mapping[str, str] | None = None) -> int:
        return self._counters[_metric_key(name, labels)]

    def get_gauge(self, name: str, labels: Mapping[str, str] | None = None) -> float:
        return self._gauges.get(_metric_key(name, labels), 0.0)

    def reset(self) -> None:
        self._counters.clear()
        self._gauges.clear()


# 全局指标实例
metrics = Metrics()
