"""Tests for connected (joined) tables."""

from __future__ import annotations

import pytest

from graph_tables import NetworkModel, Settings, TableType
from graph_tables.index import InMemoryIndex


@pytest.fixture
def model():
    return NetworkModel(settings=Settings())


@pytest.fixture
def left(model):
    return model.create_table(
        TableType.STATIC_DICT, name="left", data={"a": {"x": 1}, "b": {"x": 2}, "c": {"x": 3}}
    )


@pytest.fixture
def right(model):
    return model.create_table(TableType.STATIC_DICT, name="right", data={"c": {"y": 3}, "a": {"y": 1}})


class TestConnectedTable:
    @pytest.mark.asyncio
    async def test_inner_join_on_index(self, model, left, right):
        joined = left.connect([right])
        assert [item.index async for item in joined.iterate()] == ["a", "c"]

    @pytest.mark.asyncio
    async def test_order_follows_first_registered_parent(self, model, left, right):
        joined = right.connect([left])
        assert [item.index async for item in joined.iterate()] == ["a", "c"]

    @pytest.mark.asyncio
    async def test_items_connect_to_every_parent(self, model, left, right):
        joined = left.connect([right])
        items = await joined.build_cache()
        left_items = {item.index: item for item in await left.build_cache()}
        right_items = {item.index: item for item in await right.build_cache()}
        for item in items:
            assert item.connected_items[left.table_id] == [left_items[item.index]]
            assert item.connected_items[right.table_id] == [right_items[item.index]]
            assert left_items[item.index].connected_items[joined.table_id] == [item]
        assert joined.table_id not in left_items["b"].connected_items

    @pytest.mark.asyncio
    async def test_duplicated_attributes(self, model, left, right):
        joined = left.connect([right])
        joined.duplicate_attribute(left.table_id, "x")
        joined.duplicate_attribute(right.table_id, "y")
        assert [item.row async for item in joined.iterate()] == [
            {"left.x": 1, "right.y": 1},
            {"left.x": 3, "right.y": 3},
        ]

    def test_name_joins_parent_names(self, model, left, right):
        assert left.connect([right]).name == "left⨯right"

    @pytest.mark.asyncio
    async def test_joining_hash_tables(self, model):
        people = model.create_table(
            TableType.STATIC, name="people", data=[{"city": "X"}, {"city": "Y"}, {"city": "X"}]
        )
        cities = model.create_table(TableType.STATIC, name="cities", data=[{"name": "X"}, {"name": "Z"}])
        joined = people.aggregate("city").connect([cities.aggregate("name")])
        assert [item.index async for item in joined.iterate()] == ["X"]

    @pytest.mark.asyncio
    async def test_list_positions_join_stringified_groups(self, model):
        rows = model.create_table(TableType.STATIC, name="rows", data=[{"n": "a"}, {"n": "b"}])
        refs = model.create_table(TableType.STATIC, name="refs", data=[{"at": 1}, {"at": 5}])
        joined = refs.aggregate("at").connect([rows])
        (item,) = [item async for item in joined.iterate()]
        assert item.index == "1"
        assert item.connected_items[rows.table_id][0].row == {"n": "b"}


class TestInMemoryIndex:
    def test_values_are_grouped_and_deduplicated(self):
        index = InMemoryIndex()
        first, second = object(), object()
        index.add_value("k", first)
        index.add_value("k", first)
        index.add_value("k", second)
        index.add_value("j", second)
        assert index.get_values("k") == [first, second]
        assert list(index.iter_values("j")) == [second]
        assert list(index.iter_hashes()) == ["k", "j"]
        assert dict(index.iter_entries()) == index.to_raw_object()
        assert "k" in index and "missing" not in index
        assert len(index) == 2
        assert index.get_values("missing") == []
        assert not index.complete
