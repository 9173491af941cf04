"""Table pivoting a single parent row into one item per attribute."""

from __future__ import annotations

import copy
from typing import Any, AsyncIterator

from graph_tables.errors import ConfigurationError
from graph_tables.tables.base import CancelToken, Table, TableType
from graph_tables.tables.mixins import SingleParentMixin
from graph_tables.wrappers import GenericWrapper

_MISSING = object()


class TransposedTable(SingleParentMixin, Table):
    """Items are the entries of parent row ``index``.

    Mapping rows yield one item per key and list rows one per position.
    Mapping and list values become the item's row; anything else is wrapped
    as ``{"value": value}``.
    """

    table_type = TableType.TRANSPOSED

    def __init__(self, *, index: Any = _MISSING, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if index is _MISSING or index is None:
            raise ConfigurationError("index is required")
        self._index = index

    @property
    def name(self) -> str:
        return f"ᵀ{self._index}"

    @property
    def sort_hash(self) -> str:
        return super().sort_hash + self.parent_table.sort_hash + str(self._index)

    def to_raw_object(self) -> dict[str, Any]:
        obj = super().to_raw_object()
        obj["index"] = self._index
        return obj

    async def _iterate(self, token: CancelToken) -> AsyncIterator[GenericWrapper]:
        parent_cache = await self.parent_table.build_cache()
        self._check_token(token)
        wrapped_parent = next(
            (item for item in parent_cache if item.index == self._index or str(item.index) == str(self._index)),
            None,
        )
        if wrapped_parent is None:
            return
        row = wrapped_parent.row
        if isinstance(row, dict):
            entries = list(row.items())
        elif isinstance(row, list):
            entries = list(enumerate(row))
        else:
            entries = []
        for index, value in entries:
            self._check_token(token)
            new_row = copy.copy(value) if isinstance(value, (dict, list)) else {"value": value}
            yield self._wrap(index, row=new_row, items_to_connect=[wrapped_parent])
