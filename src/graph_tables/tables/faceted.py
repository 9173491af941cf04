"""Table keeping the parent rows whose attribute equals a fixed value."""

from __future__ import annotations

import copy
from typing import Any, AsyncIterator

from graph_tables.errors import ConfigurationError
from graph_tables.tables.base import CancelToken, Table, TableType, row_value
from graph_tables.tables.mixins import SingleParentMixin
from graph_tables.wrappers import GenericWrapper

_MISSING = object()


class FacetedTable(SingleParentMixin, Table):
    table_type = TableType.FACETED

    def __init__(self, *, attribute: str | None = None, value: Any = _MISSING, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not attribute or value is _MISSING:
            raise ConfigurationError("attribute and value are required")
        self._attribute = attribute
        self._value = value

    @property
    def name(self) -> str:
        return f"[{self._value}]"

    @property
    def sort_hash(self) -> str:
        return super().sort_hash + self._attribute + str(self._value)

    def to_raw_object(self) -> dict[str, Any]:
        obj = super().to_raw_object()
        obj["attribute"] = self._attribute
        obj["value"] = self._value
        return obj

    async def _iterate(self, token: CancelToken) -> AsyncIterator[GenericWrapper]:
        index = 0
        async for wrapped_parent in self.parent_table.iterate():
            self._check_token(token)
            if row_value(wrapped_parent.row, self._attribute) == self._value:
                yield self._wrap(index, row=copy.copy(wrapped_parent.row), items_to_connect=[wrapped_parent])
                index += 1
