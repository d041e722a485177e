"""Timer 模块测试"""

import asyncio
import pytest

from swapinit.timer import Timer
from swapinit.telemetry import metrics


@pytest.fixture
def timer():
    """创建测试用 Timer"""
    return Timer()


class TestTimerDelay:
    """延迟任务测试"""

    @pytest.mark.asyncio
    async def test_register_delay_triggers(self, timer):
        """测试延迟任务准时触发"""
        triggered = {"value": False}

        def callback():
            triggered["value"] = True

        timer.register_delay("test_delay", 0.2, callback)
        assert timer.delay_task_count == 1

        await asyncio.sleep(0.1)
        assert triggered["value"] is False  # 还没到时间

        await asyncio.sleep(0.2)
        assert triggered["value"] is True  # 已触发

        # 触发后任务被清理
        assert timer.delay_task_count == 0

    @pytest.mark.asyncio
    async def test_async_callback_awaited(self, timer):
        """测试异步回调被执行"""
        done = asyncio.Event()

        async def callback():
            await asyncio.sleep(0.01)
            done.set()

        timer.register_delay("async_delay", 0.05, callback)
        await asyncio.wait_for(done.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_cancel_delay(self, timer):
        """测试取消延迟任务"""
        triggered = {"value": False}

        def callback():
            triggered["value"] = True

        timer.register_delay("test_cancel", 0.1, callback)
        assert timer.has_delay("test_cancel") is True

        assert timer.cancel_delay("test_cancel") is True
        assert timer.has_delay("test_cancel") is False
        assert timer.cancel_delay("test_cancel") is False

        await asyncio.sleep(0.2)
        assert triggered["value"] is False

    @pytest.mark.asyncio
    async def test_delay_overwrite(self, timer):
        """测试同名延迟任务覆盖"""
        results = []

        timer.register_delay("test_overwrite", 0.1, lambda: results.append("first"))
        timer.register_delay("test_overwrite", 0.15, lambda: results.append("second"))

        await asyncio.sleep(0.25)

        # 只有第二个回调被执行
        assert results == ["second"]

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_delays(self, timer):
        """测试 stop 取消未触发的延迟任务"""
        triggered = {"value": False}

        def callback():
            triggered["value"] = True

        timer.register_delay("pending", 0.1, callback)
        timer.stop()
        await asyncio.sleep(0.2)

        assert triggered["value"] is False
        assert timer.delay_task_count == 0

    @pytest.mark.asyncio
    async def test_stop_idempotent(self, timer):
        """测试 stop 是幂等的"""
        timer.stop()
        timer.stop()

    @pytest.mark.asyncio
    async def test_get_delay_tasks(self, timer):
        """测试获取任务列表"""
        timer.register_delay("del1", 1.0, lambda: None)
        timer.register_delay("del2", 1.0, lambda: None)

        assert set(timer.get_delay_tasks()) == {"del1", "del2"}
        timer.stop()


class TestTimerErrorHandling:
    """异常处理测试"""

    @pytest.mark.asyncio
    async def test_sync_callback_exception_isolated(self, timer):
        """测试同步回调异常不影响其他任务"""
        counter = {"good": 0}

        def good_callback():
            counter["good"] += 1

        def bad_callback():
            raise ValueError("Test error")

        timer.register_delay("bad", 0.05, bad_callback)
        timer.register_delay("good", 0.06, good_callback)

        await asyncio.sleep(0.15)

        assert counter["good"] == 1
        assert metrics.get_counter("timer.errors", {"task": "bad"}) == 1

    @pytest.mark.asyncio
    async def test_async_callback_exception_isolated(self, timer):
        """测试异步回调异常被记录"""

        async def bad_callback():
            raise RuntimeError("Async error")

        timer.register_delay("bad_async", 0.05, bad_callback)
        await asyncio.sleep(0.15)

        assert metrics.get_counter("timer.errors", {"task": "bad_async"}) == 1
