"""Table grouping parent rows by the value of one attribute."""

from __future__ import annotations

import inspect
from typing import Any, AsyncIterator

from graph_tables.errors import ConfigurationError
from graph_tables.functions import BoundFunction
from graph_tables.index import InMemoryIndex
from graph_tables.tables.base import CancelToken, Table, TableType, _Build, row_value
from graph_tables.tables.mixins import SingleParentMixin
from graph_tables.wrappers import GenericWrapper


class AggregatedTable(SingleParentMixin, Table):
    """One item per distinct (stringified) value of ``attribute``.

    Items are indexed by that string and connected to every parent item that
    contributed to them. Reduce functions fold each contributing parent item
    into the group's row, including the first one.
    """

    table_type = TableType.AGGREGATED

    def __init__(
        self,
        *,
        attribute: str | None = None,
        reduce_attribute_functions: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        if not attribute:
            raise ConfigurationError("attribute is required")
        self._attribute = attribute
        self._reduce_attribute_functions: dict[str, BoundFunction] = {
            attr: self.model.hydrate_function(func)
            for attr, func in (reduce_attribute_functions or {}).items()
        }
        self._unfinished: dict[str, GenericWrapper] = {}
        self._groups = InMemoryIndex()

    @property
    def name(self) -> str:
        return self.parent_table.name + "↦"

    @property
    def sort_hash(self) -> str:
        return super().sort_hash + self.parent_table.sort_hash + self._attribute

    def to_raw_object(self) -> dict[str, Any]:
        obj = super().to_raw_object()
        obj["attribute"] = self._attribute
        obj["reduce_attribute_functions"] = {
            attr: self.model.dehydrate_function(func)
            for attr, func in self._reduce_attribute_functions.items()
        }
        return obj

    def get_attribute_details(self) -> dict[str, dict[str, Any]]:
        details = super().get_attribute_details()
        for attr in self._reduce_attribute_functions:
            details.setdefault(attr, {"name": attr})["reduced"] = True
        return details

    def derive_reduced_attribute(self, attribute: str, func: Any) -> None:
        self._reduce_attribute_functions[attribute] = self.model.hydrate_function(func)
        self.reset()
        self.model.trigger("update")

    def group_members(self, index: str) -> list[GenericWrapper]:
        """Parent items that contributed to group ``index`` in the last build."""
        return self._groups.get_values(index)

    async def _update_item(self, original: GenericWrapper, new: GenericWrapper) -> None:
        for attr, func in self._reduce_attribute_functions.items():
            value = func(original, new, attr)
            if inspect.isawaitable(value):
                value = await value
            original.row[attr] = value
        original.trigger("update")

    async def _build_cache(self, build: _Build) -> None:
        # Items can only be finished once every contributing row has been seen
        self._unfinished = {}
        self._groups = InMemoryIndex()
        async for _ in self._iterate(build.token):
            self._check_token(build.token)
        self._groups.complete = True
        for item in list(self._unfinished.values()):
            keep = await self._finish_item(item)
            self._check_token(build.token)
            if keep:
                build.add(item)
        self._unfinished = {}

    async def _iterate(self, token: CancelToken) -> AsyncIterator[GenericWrapper]:
        """Yield each group's representative the first time its value is seen."""
        parent_table = self.parent_table
        async for wrapped_parent in parent_table.iterate():
            self._check_token(token)
            index = str(row_value(wrapped_parent.row, self._attribute))
            self._groups.add_value(index, wrapped_parent)
            existing = self._unfinished.get(index)
            if existing is not None:
                existing.connect_item(wrapped_parent)
                await self._update_item(existing, wrapped_parent)
                continue
            new_item = self._wrap(index, row={}, items_to_connect=[wrapped_parent])
            self._unfinished[index] = new_item
            await self._update_item(new_item, wrapped_parent)
            yield new_item
