"""Table joining several parent tables on their shared indexes."""

from __future__ import annotations

from typing import Any, AsyncIterator

from graph_tables.index import InMemoryIndex
from graph_tables.tables.base import CancelToken, Table, TableType
from graph_tables.tables.mixins import DuplicatableAttributesMixin
from graph_tables.wrappers import GenericWrapper


class ConnectedTable(DuplicatableAttributesMixin, Table):
    """Inner join of every parent table's complete cache, by index.

    Order follows the first parent's cache; an item exists only when every
    parent has an item with the same index, and it is connected to each of
    those items. Indexes are compared as strings, so position 0 in a list
    table joins the "0" group of an aggregated table.
    """

    table_type = TableType.CONNECTED

    @property
    def name(self) -> str:
        return "⨯".join(parent_table.name for parent_table in self.parent_tables)

    @property
    def sort_hash(self) -> str:
        return super().sort_hash + ",".join(table.sort_hash for table in self.parent_tables)

    async def _iterate(self, token: CancelToken) -> AsyncIterator[GenericWrapper]:
        parent_tables = self.parent_tables
        lookups: list[InMemoryIndex] = []
        # Joins need every parent cache complete; built one at a time
        for parent_table in parent_tables:
            cache = await parent_table.build_cache()
            self._check_token(token)
            lookup = InMemoryIndex()
            for item in cache:
                lookup.add_value(str(item.index), item)
            lookup.complete = True
            lookups.append(lookup)
        if not lookups:
            return

        base_lookup, other_lookups = lookups[0], lookups[1:]
        for index in base_lookup.iter_hashes():
            self._check_token(token)
            if not all(index in lookup for lookup in other_lookups):
                continue
            parent_items = [lookup.get_values(index)[0] for lookup in lookups]
            row: dict[str, Any] = {}
            self._duplicate_attributes(
                row, {table.table_id: item for table, item in zip(parent_tables, parent_items)}
            )
            yield self._wrap(index, row=row, items_to_connect=parent_items)
