"""Tests for event listeners and deferred notification."""

from __future__ import annotations

import asyncio

import pytest

from graph_tables import NetworkModel, Settings, TableType
from graph_tables.events import Triggerable


class TestTriggerable:
    def test_anonymous_listeners_accumulate(self):
        source = Triggerable()
        seen = []
        source.on("change", lambda value: seen.append(("a", value)))
        source.on("change", lambda value: seen.append(("b", value)))
        source.trigger("change", 1)
        assert seen == [("a", 1), ("b", 1)]

    def test_namespaced_listener_replaces_previous(self):
        source = Triggerable()
        seen = []
        source.on("change:panel", lambda: seen.append("old"))
        source.on("change:panel", lambda: seen.append("new"))
        source.trigger("change")
        assert seen == ["new"]

    def test_off(self):
        source = Triggerable()
        seen = []

        def listener():
            seen.append(True)

        source.on("change", listener)
        source.on("change:panel", listener)
        source.off("change:panel")
        source.off("change", listener)
        source.trigger("change")
        source.off("never-registered")
        assert seen == []

    @pytest.mark.asyncio
    async def test_listeners_are_deferred_inside_a_loop(self):
        source = Triggerable()
        seen = []
        source.on("change", lambda: seen.append(True))
        source.trigger("change")
        assert seen == []
        await asyncio.sleep(0)
        assert seen == [True]

    @pytest.mark.asyncio
    async def test_sticky_trigger_merges_arguments(self):
        source = Triggerable()
        seen = []
        source.on("progress", seen.append)
        source.sticky_trigger("progress", {"a": 1}, delay=0.01)
        source.sticky_trigger("progress", {"b": 2}, delay=0.01)
        await asyncio.sleep(0.05)
        assert seen == [{"a": 1, "b": 2}]

    def test_sticky_trigger_without_loop_fires_immediately(self):
        source = Triggerable()
        seen = []
        source.on("progress", seen.append)
        source.sticky_trigger("progress", {"a": 1})
        assert seen == [{"a": 1}]


class TestTableEvents:
    @pytest.mark.asyncio
    async def test_cache_built_and_reset(self):
        model = NetworkModel(settings=Settings())
        table = model.create_table(TableType.STATIC, name="rows", data=[{}])
        seen = []
        table.on("cache_built", lambda: seen.append("built"))
        table.on("reset", lambda: seen.append("reset"))
        await table.build_cache()
        table.reset()
        await asyncio.sleep(0)
        assert seen == ["built", "reset"]

    @pytest.mark.asyncio
    async def test_item_finish_and_filter(self):
        model = NetworkModel(settings=Settings())
        table = model.create_table(TableType.STATIC, name="rows", data=[{"n": 1}, {"n": 2}])
        table.add_filter("n", "equals(1)")
        items = []
        original_wrap = table._wrap

        def wrap(*args, **kwargs):
            item = original_wrap(*args, **kwargs)
            item.on("finish", lambda: items.append(("finish", item.index)))
            item.on("filter", lambda: items.append(("filter", item.index)))
            return item

        table._wrap = wrap
        await table.build_cache()
        await asyncio.sleep(0)
        assert items == [("finish", 0), ("filter", 1)]
