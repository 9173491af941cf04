"""Tests for wrapped items and walking connections between tables."""

from __future__ import annotations

import pytest

from graph_tables import EdgeWrapper, GenericWrapper, NetworkModel, NodeWrapper, Settings, TableType
from graph_tables.errors import ConfigurationError


@pytest.fixture
def model():
    return NetworkModel(settings=Settings())


@pytest.fixture
def table(model):
    return model.create_table(TableType.STATIC, name="rows", data=[{}])


@pytest.fixture
def graph(model):
    """people -[lives_in]-> cities, joined on people.city == cities.name."""
    people = model.add_static_table(
        "people",
        [{"name": "ann", "city": "X"}, {"name": "bob", "city": "Y"}, {"name": "cy", "city": "X"}],
    ).interpret_as_nodes()
    cities = model.add_static_table("cities", [{"name": "X"}, {"name": "Y"}]).interpret_as_nodes()
    lives_in = people.connect_to_node_class(cities, attribute="city", other_attribute="name")
    return people, cities, lives_in


class TestConnections:
    def test_connect_item_is_bidirectional(self, model, table):
        other = model.create_table(TableType.STATIC, name="other", data=[{}])
        a = GenericWrapper(0, table)
        b = GenericWrapper(0, other)
        a.connect_item(b)
        assert a.connected_items[other.table_id] == [b]
        assert b.connected_items[table.table_id] == [a]

        a.connect_item(b)
        assert a.connected_items[other.table_id] == [b]

    def test_disconnect_removes_from_partners(self, model, table):
        other = model.create_table(TableType.STATIC, name="other", data=[{}])
        a = GenericWrapper(0, table)
        b = GenericWrapper(0, other)
        c = GenericWrapper(1, other)
        a.connect_item(b)
        a.connect_item(c)

        b.disconnect()
        assert b.connected_items == {}
        assert a.connected_items[other.table_id] == [c]
        assert c.connected_items[table.table_id] == [a]

    def test_required_fields(self, table):
        with pytest.raises(ConfigurationError):
            GenericWrapper(None, table)
        with pytest.raises(ConfigurationError):
            GenericWrapper(0, None)
        with pytest.raises(ConfigurationError):
            NodeWrapper(0, table)
        with pytest.raises(ConfigurationError):
            EdgeWrapper(0, table)

    def test_instance_id(self, model, table):
        item = GenericWrapper(3, table)
        assert item.instance_id == f"{table.table_id}_3"
        assert item.equals(GenericWrapper(3, table))

        class_obj = model.create_class("GenericClass", table_id=table.table_id)
        assert GenericWrapper(3, table, class_obj=class_obj).instance_id == f"{class_obj.class_id}_3"

    @pytest.mark.asyncio
    async def test_handle_limit(self):
        async def numbers(values):
            for value in values:
                yield value

        chained = GenericWrapper.handle_limit([numbers([1, 2]), numbers([3, 4])], limit=3)
        assert [value async for value in chained] == [1, 2, 3]


class TestGraphWalks:
    @pytest.mark.asyncio
    async def test_node_edges(self, graph):
        people, cities, lives_in = graph
        ann, bob, cy = await people.table.build_cache()
        assert isinstance(ann, NodeWrapper)
        assert [edge.index async for edge in ann.edges()] == ["X"]
        assert [edge.index async for edge in bob.edges(classes=[lives_in])] == ["Y"]
        assert [edge.index async for edge in cy.edges(classes=[])] == []

    @pytest.mark.asyncio
    async def test_edge_nodes(self, graph):
        people, cities, lives_in = graph
        x_edge, y_edge = await lives_in.table.build_cache()
        assert isinstance(x_edge, EdgeWrapper)
        assert [n.row["name"] async for n in x_edge.source_nodes()] == ["ann", "cy"]
        assert [n.row["name"] async for n in x_edge.target_nodes()] == ["X"]
        assert [n.row["name"] async for n in x_edge.nodes()] == ["ann", "cy", "X"]
        assert [n.row["name"] async for n in x_edge.nodes(limit=1)] == ["ann"]
        assert [n async for n in x_edge.source_nodes(classes=[cities])] == []

    @pytest.mark.asyncio
    async def test_pairwise_edges(self, graph):
        people, cities, lives_in = graph
        x_edge, _ = await lives_in.table.build_cache()
        triples = [t async for t in x_edge.pairwise_edges()]
        assert [(t["source"].row["name"], t["target"].row["name"]) for t in triples] == [
            ("ann", "X"),
            ("cy", "X"),
        ]
        assert all(t["edge"] is x_edge for t in triples)

    @pytest.mark.asyncio
    async def test_pairwise_neighborhood(self, graph):
        people, cities, lives_in = graph
        x_city, _ = await cities.table.build_cache()
        triples = [t async for t in x_city.pairwise_neighborhood()]
        assert [t["source"].row["name"] for t in triples] == ["ann", "cy"]
        assert [t async for t in x_city.pairwise_neighborhood(limit=1)][0]["source"].row["name"] == "ann"

    @pytest.mark.asyncio
    async def test_walks_follow_rebuilt_caches(self, graph):
        people, cities, lives_in = graph
        await lives_in.table.build_cache()
        people.table.reset()
        ann, _, _ = await people.table.build_cache()
        assert [edge.index async for edge in ann.edges()] == ["X"]
