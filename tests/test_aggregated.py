"""Tests for aggregated tables and reduce functions."""

from __future__ import annotations

import pytest

from graph_tables import NetworkModel, Settings, TableType
from graph_tables.errors import ConfigurationError, InvariantError


@pytest.fixture
def model():
    return NetworkModel(settings=Settings())


@pytest.fixture
def groups(model):
    return model.create_table(TableType.STATIC, name="rows", data=[{"g": 1}, {"g": 1}, {"g": 2}])


class TestAggregation:
    @pytest.mark.asyncio
    async def test_groups_by_stringified_value(self, model, groups):
        aggregated = groups.aggregate("g")
        items = [item async for item in aggregated.iterate()]
        assert [item.index for item in items] == ["1", "2"]
        assert len(items[0].connected_items[groups.table_id]) == 2
        assert len(items[1].connected_items[groups.table_id]) == 1

    @pytest.mark.asyncio
    async def test_parent_items_link_back(self, model, groups):
        aggregated = groups.aggregate("g")
        first, _ = await aggregated.build_cache()
        for parent_item in first.connected_items[groups.table_id]:
            assert parent_item.connected_items[aggregated.table_id] == [first]

    @pytest.mark.asyncio
    async def test_count_reducer_includes_first_item(self, model, groups):
        aggregated = groups.aggregate("g")
        aggregated.derive_reduced_attribute("count", "count")
        assert [item.row async for item in aggregated.iterate()] == [{"count": 2}, {"count": 1}]
        assert aggregated.get_attribute_details()["count"]["reduced"] is True

    @pytest.mark.asyncio
    async def test_sum_reducer(self, model):
        table = model.create_table(
            TableType.STATIC, name="sales", data=[{"k": "a", "v": 2}, {"k": "a", "v": 3}, {"k": "b", "v": 1}]
        )
        aggregated = table.aggregate("k")
        aggregated.derive_reduced_attribute("total", 'sum("v")')
        assert [item.row async for item in aggregated.iterate()] == [{"total": 5}, {"total": 1}]

    @pytest.mark.asyncio
    async def test_missing_values_group_together(self, model):
        table = model.create_table(TableType.STATIC, name="rows", data=[{}, {"g": None}, {"g": "x"}])
        aggregated = table.aggregate("g")
        assert [item.index async for item in aggregated.iterate()] == ["None", "x"]

    @pytest.mark.asyncio
    async def test_filters_run_after_grouping(self, model, groups):
        aggregated = groups.aggregate("g")
        aggregated.derive_reduced_attribute("count", "count")
        aggregated.add_filter("count", "greater_than(1)")
        assert [item.index async for item in aggregated.iterate()] == ["1"]

    @pytest.mark.asyncio
    async def test_group_members(self, model, groups):
        aggregated = groups.aggregate("g")
        await aggregated.build_cache()
        assert [item.index for item in aggregated.group_members("1")] == [0, 1]
        assert aggregated.group_members("missing") == []

    def test_name(self, model, groups):
        assert groups.aggregate("g").name == "rows↦"

    def test_attribute_required(self, model, groups):
        with pytest.raises(ConfigurationError):
            model.create_table(TableType.AGGREGATED, attribute=None)

    @pytest.mark.asyncio
    async def test_requires_a_parent(self, model):
        orphan = model.create_table(TableType.AGGREGATED, attribute="g")
        with pytest.raises(InvariantError):
            await orphan.build_cache()
