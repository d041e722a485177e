"""LifecycleBinder 测试"""

import asyncio
from unittest.mock import Mock

import pytest

from swapinit.binder import LifecycleBinder
from swapinit.hooks import TransitionLibrary
from swapinit.registry import ComponentRegistry
from swapinit.telemetry import metrics
from swapinit.types import BindOutcome


@pytest.fixture
def registry():
    return ComponentRegistry()


class TestBindWhenReady:

    @pytest.mark.asyncio
    async def test_binds_within_one_interval(self, registry):
        """过渡库在 500ms 出现，一个间隔内完成绑定"""
        swup = TransitionLibrary()
        asyncio.get_running_loop().call_later(0.5, registry.define, "swup", swup)
        on_ready = Mock()
        binder = LifecycleBinder(registry.lookup)

        result = await binder.bind_when_ready("swup", 100, 10000, on_ready)

        assert result.outcome is BindOutcome.BOUND
        assert 500 <= result.elapsed_ms <= 650
        on_ready.assert_called_once_with(swup)
        assert metrics.get_counter("binder.bound", {"global": "swup"}) == 1
        assert result.callback_error is None

    @pytest.mark.asyncio
    async def test_already_present(self, registry):
        """已存在时第一次检查即绑定"""
        swup = TransitionLibrary()
        registry.define("swup", swup)
        on_ready = Mock()

        result = await LifecycleBinder(registry.lookup).bind_when_ready("swup", 50, 1000, on_ready)

        assert result.outcome is BindOutcome.BOUND
        assert result.attempts == 1
        on_ready.assert_called_once_with(swup)

    @pytest.mark.asyncio
    async def test_safety_deadline(self):
        """永远不出现时安全超时结束轮询"""
        lookup = Mock(return_value=None)
        on_ready = Mock()
        binder = LifecycleBinder(lookup)

        result = await binder.bind_when_ready("swup", 20, 100, on_ready)
        calls = lookup.call_count
        await asyncio.sleep(0.1)

        assert result.outcome is BindOutcome.TIMED_OUT
        assert 100 <= result.elapsed_ms <= 200
        assert lookup.call_count == calls
        on_ready.assert_not_called()
        assert metrics.get_counter("binder.timeout", {"global": "swup"}) == 1

    @pytest.mark.asyncio
    async def test_no_polling_after_bound(self, registry):
        """绑定后不再轮询，on_ready 只调用一次"""
        registry.define("swup", TransitionLibrary())
        lookup = Mock(side_effect=registry.lookup)
        on_ready = Mock()

        await LifecycleBinder(lookup).bind_when_ready("swup", 10, 1000, on_ready)
        await asyncio.sleep(0.05)

        assert lookup.call_count == 1
        assert on_ready.call_count == 1

    @pytest.mark.asyncio
    async def test_custom_global_name(self, registry):
        """支持自定义全局名"""
        registry.define("mySwup", TransitionLibrary())
        on_ready = Mock()

        result = await LifecycleBinder(registry.lookup).bind_when_ready("mySwup", 10, 100, on_ready)

        assert result.global_name == "mySwup"
        assert result.outcome is BindOutcome.BOUND

    @pytest.mark.asyncio
    async def test_on_ready_error_isolated(self, registry):
        """on_ready 异常被记录，不抛出"""
        registry.define("swup", TransitionLibrary())
        on_ready = Mock(side_effect=RuntimeError("hook failed"))

        result = await LifecycleBinder(registry.lookup).bind_when_ready("swup", 10, 100, on_ready)

        assert result.outcome is BindOutcome.BOUND
        assert result.callback_error == "hook failed"
        assert metrics.get_counter("binder.callback_errors", {"global": "swup"}) == 1

    @pytest.mark.asyncio
    async def test_async_on_ready(self, registry):
        """异步 on_ready 被 await"""
        registry.define("swup", TransitionLibrary())
        seen = []

        async def on_ready(handle):
            await asyncio.sleep(0)
            seen.append(handle)

        await LifecycleBinder(registry.lookup).bind_when_ready("swup", 10, 100, on_ready)

        assert len(seen) == 1


class TestBinderTask:

    @pytest.mark.asyncio
    async def test_start_returns_task(self, registry):
        binder = LifecycleBinder(registry.lookup)

        task = binder.start("swup", 10, 50)

        assert binder.task is task
        assert not task.done()
        result = await task
        assert result.outcome is BindOutcome.TIMED_OUT

    @pytest.mark.asyncio
    async def test_cancel(self, registry):
        binder = LifecycleBinder(registry.lookup)
        task = binder.start("swup", 10, 5000)
        await asyncio.sleep(0)

        binder.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
