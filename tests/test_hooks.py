"""hooks / document 模块测试"""

from unittest.mock import Mock

import pytest

from swapinit.document import Document
from swapinit.hooks import HookRegistry, TransitionLibrary
from swapinit.telemetry import metrics


class TestHookRegistry:

    @pytest.mark.asyncio
    async def test_emit_in_subscription_order(self):
        hooks = HookRegistry()
        calls = []
        hooks.on("page:view", lambda *args: calls.append(("first", args)))
        hooks.on("page:view", lambda *args: calls.append(("second", args)))

        count = await hooks.emit("page:view", "/next")

        assert count == 2
        assert calls == [("first", ("/next",)), ("second", ("/next",))]

    @pytest.mark.asyncio
    async def test_handler_error_isolated(self):
        hooks = HookRegistry()
        good = Mock()
        hooks.on("content:replace", Mock(side_effect=RuntimeError("boom")))
        hooks.on("content:replace", good)

        await hooks.emit("content:replace")

        good.assert_called_once()
        assert metrics.get_counter("hooks.handler_errors", {"event": "content:replace"}) == 1

    @pytest.mark.asyncio
    async def test_async_handler(self):
        hooks = HookRegistry()
        seen = []

        async def handler(url):
            seen.append(url)

        hooks.on("page:view", handler)
        await hooks.emit("page:view", "/a")

        assert seen == ["/a"]

    def test_off(self):
        hooks = HookRegistry()
        handler = hooks.on("page:view", Mock())

        assert hooks.off("page:view", handler) is True
        assert hooks.off("page:view", handler) is False
        assert hooks.handler_count("page:view") == 0

    @pytest.mark.asyncio
    async def test_navigate_emits_both_events(self):
        swup = TransitionLibrary()
        events = []
        swup.hooks.on("content:replace", lambda url: events.append(("content:replace", url)))
        swup.hooks.on("page:view", lambda url: events.append(("page:view", url)))

        await swup.navigate("/about")

        assert events == [("content:replace", "/about"), ("page:view", "/about")]
        assert swup.visits == ["/about"]


class TestDocument:

    def test_ready_fires_once(self):
        document = Document()
        callback = Mock()
        document.on_ready(callback)

        assert document.mark_ready() == 1
        assert document.mark_ready() == 0
        callback.assert_called_once()
        assert document.ready_state == "interactive"
        assert document.is_loading is False

    def test_listener_error_isolated(self):
        document = Document()
        good = Mock()
        document.on_ready(Mock(side_effect=RuntimeError("boom")))
        document.on_ready(good)

        document.mark_ready()

        good.assert_called_once()

    def test_already_complete(self):
        document = Document(ready_state="complete")

        assert document.is_loading is False
        assert document.mark_ready() == 0
