"""Wrapped items: one row plus its index and cross-table connections."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, AsyncIterator, Iterator

from graph_tables.errors import ConfigurationError
from graph_tables.events import Triggerable

if TYPE_CHECKING:
    from graph_tables.classes import GenericClass
    from graph_tables.tables import Table


class GenericWrapper(Triggerable):
    """The unit yielded by table iteration.

    ``connected_items`` maps a table id to the items of that table this item
    is linked to. Links are always made in both directions.
    """

    type = "Generic"

    def __init__(
        self,
        index: Any,
        table: Table,
        row: Any = None,
        class_obj: GenericClass | None = None,
        connected_items: dict[str, list[GenericWrapper]] | None = None,
    ) -> None:
        super().__init__()
        if index is None or table is None:
            raise ConfigurationError("index and table are required")
        self.index = index
        self.table = table
        self.class_obj = class_obj
        self.row = row if row is not None else {}
        self.connected_items: dict[str, list[GenericWrapper]] = connected_items or {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.table.table_id}:{self.index!r})"

    def _link(self, item: GenericWrapper) -> None:
        items = self.connected_items.setdefault(item.table.table_id, [])
        if not any(existing is item for existing in items):
            items.append(item)

    def connect_item(self, item: GenericWrapper) -> None:
        self._link(item)
        item._link(self)

    def disconnect(self) -> None:
        """Remove this item from every partner's connection map, then clear its own."""
        for items in self.connected_items.values():
            for item in items:
                partners = item.connected_items.get(self.table.table_id, [])
                item.connected_items[self.table.table_id] = [p for p in partners if p is not self]
        self.connected_items = {}

    @property
    def instance_id(self) -> str:
        owner = self.class_obj.class_id if self.class_obj is not None else self.table.table_id
        return f"{owner}_{self.index}"

    def equals(self, item: GenericWrapper) -> bool:
        return self.instance_id == item.instance_id

    @staticmethod
    async def handle_limit(
        iterators: list[AsyncIterator[Any]], limit: int | None = None
    ) -> AsyncIterator[Any]:
        """Chain ``iterators`` in order, stopping after ``limit`` items."""
        count = 0
        for iterator in iterators:
            async for item in iterator:
                yield item
                count += 1
                if limit is not None and count >= limit:
                    return

    async def iterate_across_connections(self, table_ids: list[str]) -> AsyncIterator[GenericWrapper]:
        """Yield the items reached by following ``table_ids`` hop by hop."""
        tables = self.table.model.tables
        await asyncio.gather(*(tables[table_id].build_cache() for table_id in table_ids))
        for item in self._iterate_across_connections(table_ids):
            yield item

    def _iterate_across_connections(self, table_ids: list[str]) -> Iterator[GenericWrapper]:
        items = list(self.connected_items.get(table_ids[0], []))
        if len(table_ids) == 1:
            yield from items
            return
        for item in items:
            yield from item._iterate_across_connections(table_ids[1:])


class NodeWrapper(GenericWrapper):
    type = "Node"

    def __init__(self, index: Any, table: Table, **kwargs: Any) -> None:
        super().__init__(index, table, **kwargs)
        if self.class_obj is None:
            raise ConfigurationError("class_obj is required")

    async def edges(
        self, classes: list[GenericClass] | None = None, limit: int | None = None
    ) -> AsyncIterator[GenericWrapper]:
        node_class = self.class_obj
        if classes is not None:
            edge_ids = [class_obj.class_id for class_obj in classes]
        else:
            edge_ids = list(node_class.edge_class_ids)
        iterators = []
        for edge_id in edge_ids:
            if edge_id not in node_class.edge_class_ids:
                continue
            edge_class = node_class.model.classes[edge_id]
            role = node_class.get_edge_role(edge_class)
            if role in ("both", "source"):
                table_ids = list(reversed(edge_class.source_table_ids)) + [edge_class.table_id]
                iterators.append(self.iterate_across_connections(table_ids))
            if role in ("both", "target"):
                table_ids = list(reversed(edge_class.target_table_ids)) + [edge_class.table_id]
                iterators.append(self.iterate_across_connections(table_ids))
        async for edge in self.handle_limit(iterators, limit):
            yield edge

    async def pairwise_neighborhood(self, limit: int | None = None) -> AsyncIterator[dict[str, Any]]:
        async for edge in self.edges(limit=limit):
            async for triple in edge.pairwise_edges(limit=limit):
                yield triple


class EdgeWrapper(GenericWrapper):
    type = "Edge"

    def __init__(self, index: Any, table: Table, **kwargs: Any) -> None:
        super().__init__(index, table, **kwargs)
        if self.class_obj is None:
            raise ConfigurationError("class_obj is required")

    def _side_table_ids(self, side: str, classes: list[GenericClass] | None) -> list[str] | None:
        edge_class = self.class_obj
        class_id = getattr(edge_class, f"{side}_class_id")
        if class_id is None:
            return None
        if classes is not None and class_id not in {c.class_id for c in classes}:
            return None
        node_table_id = edge_class.model.classes[class_id].table_id
        return list(getattr(edge_class, f"{side}_table_ids")) + [node_table_id]

    async def source_nodes(
        self, classes: list[GenericClass] | None = None, limit: int | None = None
    ) -> AsyncIterator[GenericWrapper]:
        table_ids = self._side_table_ids("source", classes)
        if table_ids is None:
            return
        async for node in self.handle_limit([self.iterate_across_connections(table_ids)], limit):
            yield node

    async def target_nodes(
        self, classes: list[GenericClass] | None = None, limit: int | None = None
    ) -> AsyncIterator[GenericWrapper]:
        table_ids = self._side_table_ids("target", classes)
        if table_ids is None:
            return
        async for node in self.handle_limit([self.iterate_across_connections(table_ids)], limit):
            yield node

    async def nodes(
        self, classes: list[GenericClass] | None = None, limit: int | None = None
    ) -> AsyncIterator[GenericWrapper]:
        iterators = [self.source_nodes(classes), self.target_nodes(classes)]
        async for node in self.handle_limit(iterators, limit):
            yield node

    async def pairwise_edges(self, limit: int | None = None) -> AsyncIterator[dict[str, Any]]:
        """Yield a ``{"source", "edge", "target"}`` triple per source/target pair."""
        count = 0
        targets = [target async for target in self.target_nodes()]
        async for source in self.source_nodes():
            for target in targets:
                yield {"source": source, "edge": self, "target": target}
                count += 1
                if limit is not None and count >= limit:
                    return
