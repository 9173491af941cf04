"""Tables over in-memory rows."""

from __future__ import annotations

import copy
from typing import Any, AsyncIterator

from graph_tables.errors import ConfigurationError
from graph_tables.tables.base import CancelToken, Table, TableType
from graph_tables.wrappers import GenericWrapper


class _InMemoryTable(Table):
    def __init__(self, *, name: str | None = None, data: Any = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not name or data is None:
            raise ConfigurationError("name and data are required")
        self._name = name
        self._data = data

    @property
    def name(self) -> str:
        return self._name

    @property
    def sort_hash(self) -> str:
        return super().sort_hash + self._name

    def to_raw_object(self) -> dict[str, Any]:
        obj = super().to_raw_object()
        obj["name"] = self._name
        obj["data"] = self._data
        return obj


class StaticTable(_InMemoryTable):
    """Rows from a list, indexed by position."""

    table_type = TableType.STATIC

    async def _iterate(self, token: CancelToken) -> AsyncIterator[GenericWrapper]:
        for index, row in enumerate(self._data):
            self._check_token(token)
            # The finish phase writes into rows; keep the source data pristine
            yield self._wrap(index, row=copy.copy(row))


class StaticDictTable(_InMemoryTable):
    """Rows from a mapping, indexed by key."""

    table_type = TableType.STATIC_DICT

    async def _iterate(self, token: CancelToken) -> AsyncIterator[GenericWrapper]:
        for index, row in self._data.items():
            self._check_token(token)
            yield self._wrap(index, row=copy.copy(row))
