import asyncio

import pytest

from episode_heatmap.debounce import SearchDebouncer


class TestSearchDebouncer:
    def test_burst_collapses_to_last_query(self):
        calls = []

        async def callback(query):
            calls.append(query)

        async def scenario():
            debouncer = SearchDebouncer(20, callback)
            first = debouncer.trigger("b")
            second = debouncer.trigger("br")
            last = debouncer.trigger("bre")
            assert debouncer.pending is True
            await last
            assert first.cancelled()
            assert second.cancelled()
            assert debouncer.pending is False

        asyncio.run(scenario())
        assert calls == ["bre"]

    def test_cancel_prevents_callback(self):
        calls = []

        async def callback(query):
            calls.append(query)

        async def scenario():
            debouncer = SearchDebouncer(10, callback)
            waiter = debouncer.trigger("lost")
            debouncer.cancel()
            await asyncio.sleep(0.05)
            assert waiter.cancelled()

        asyncio.run(scenario())
        assert calls == []

    def test_separate_quiet_periods_each_fire(self):
        calls = []

        async def callback(query):
            calls.append(query)

        async def scenario():
            debouncer = SearchDebouncer(5, callback)
            await debouncer.trigger("lost")
            await debouncer.trigger("dexter")

        asyncio.run(scenario())
        assert calls == ["lost", "dexter"]

    def test_callback_error_reaches_waiter(self):
        async def callback(query):
            raise RuntimeError("boom")

        async def scenario():
            debouncer = SearchDebouncer(5, callback)
            await debouncer.trigger("x")

        with pytest.raises(RuntimeError, match="boom"):
            asyncio.run(scenario())

    def test_cancel_without_pending_is_noop(self):
        async def callback(query):
            pass

        SearchDebouncer(5, callback).cancel()
