"""Pytest 配置"""

import pytest

from swapinit.runtime.bootstrap import _reset_for_testing
from swapinit.telemetry import metrics


@pytest.fixture(autouse=True)
def reset_state():
    """每次测试前后重置指标和 bootstrap 状态"""
    metrics.reset()
    _reset_for_testing()
    yield
    metrics.reset()
    _reset_for_testing()


class Recorder:
    """可调用的组件构造器，记录被调用次数"""

    def __init__(self, error: Exception | None = None):
        self.calls = 0
        self.error = error

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return object()


@pytest.fixture
def recorder_factory():
    return Recorder
