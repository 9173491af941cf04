"""Table splitting one delimited attribute into one item per token."""

from __future__ import annotations

from typing import Any, AsyncIterator

from graph_tables.errors import ConfigurationError
from graph_tables.tables.base import CancelToken, Table, TableType, row_value
from graph_tables.tables.mixins import DuplicatableAttributesMixin, SingleParentMixin
from graph_tables.wrappers import GenericWrapper


class ExpandedTable(SingleParentMixin, DuplicatableAttributesMixin, Table):
    table_type = TableType.EXPANDED

    def __init__(self, *, attribute: str | None = None, delimiter: str = ",", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not attribute:
            raise ConfigurationError("attribute is required")
        if not delimiter:
            raise ConfigurationError("delimiter must be a non-empty string")
        self._attribute = attribute
        self._delimiter = delimiter

    @property
    def name(self) -> str:
        return self._attribute

    @property
    def sort_hash(self) -> str:
        return super().sort_hash + self.parent_table.sort_hash + self._attribute + self._delimiter

    def to_raw_object(self) -> dict[str, Any]:
        obj = super().to_raw_object()
        obj["attribute"] = self._attribute
        obj["delimiter"] = self._delimiter
        return obj

    async def _iterate(self, token: CancelToken) -> AsyncIterator[GenericWrapper]:
        parent_table = self.parent_table
        index = 0
        async for wrapped_parent in parent_table.iterate():
            self._check_token(token)
            value = row_value(wrapped_parent.row, self._attribute)
            if value is None:
                continue
            for part in str(value).split(self._delimiter):
                row = {self._attribute: part}
                self._duplicate_attributes(row, {parent_table.table_id: wrapped_parent})
                yield self._wrap(index, row=row, items_to_connect=[wrapped_parent])
                index += 1
