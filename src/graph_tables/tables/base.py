"""Table base class: lazy iteration, cache building and the derivation graph."""

from __future__ import annotations

import asyncio
import inspect
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, AsyncIterator

from graph_tables.errors import ConfigurationError, IterationReset, TableInUseError
from graph_tables.events import Triggerable
from graph_tables.functions import BoundFunction
from graph_tables.logging import get_logger
from graph_tables.wrappers import GenericWrapper

if TYPE_CHECKING:
    from graph_tables.classes import GenericClass
    from graph_tables.model import NetworkModel

logger = get_logger(__name__)


class TableType(Enum):
    """Table variants, keyed by their persisted type name."""

    STATIC = "StaticTable"
    STATIC_DICT = "StaticDictTable"
    AGGREGATED = "AggregatedTable"
    EXPANDED = "ExpandedTable"
    FACETED = "FacetedTable"
    TRANSPOSED = "TransposedTable"
    CONNECTED = "ConnectedTable"

    @property
    def is_static(self) -> bool:
        return self.value.startswith("Static")


@dataclass
class CancelToken:
    """Flag polled by a cache build; set when the table is reset."""

    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class _Build:
    """State of one in-flight cache build."""

    token: CancelToken = field(default_factory=CancelToken)
    items: list[GenericWrapper] = field(default_factory=list)
    lookup: dict[Any, int] = field(default_factory=dict)
    changed: asyncio.Event = field(default_factory=asyncio.Event)
    task: asyncio.Task | None = None

    def add(self, item: GenericWrapper) -> None:
        self.lookup[item.index] = len(self.items)
        self.items.append(item)
        self.notify()

    def notify(self) -> None:
        # Wakes every current waiter; later waiters block until the next notify.
        self.changed.set()
        self.changed.clear()


def row_value(row: Any, attribute: str) -> Any:
    """Return ``row[attribute]`` for mapping rows, None otherwise."""
    if isinstance(row, dict):
        return row.get(attribute)
    return None


def _same_value(a: Any, b: Any) -> bool:
    return type(a) is type(b) and a == b


class Table(Triggerable):
    """A lazily built, cacheable sequence of wrapped items.

    Subclasses provide ``_iterate`` (the raw producer) and ``name``. Every
    produced item goes through ``_finish_item`` before it can enter the
    cache; the cache stays authoritative until ``reset()``.
    """

    table_type: TableType

    def __init__(
        self,
        *,
        model: NetworkModel,
        table_id: str,
        attributes: list[str] | None = None,
        derived_tables: list[str] | None = None,
        derived_attribute_functions: dict[str, Any] | None = None,
        suppressed_attributes: list[str] | None = None,
        suppress_index: bool = False,
        attribute_filters: dict[str, Any] | None = None,
        index_filter: Any = None,
    ) -> None:
        super().__init__()
        if model is None or not table_id:
            raise ConfigurationError("model and table_id are required")
        self.model = model
        self.table_id = table_id

        self._expected_attributes = dict.fromkeys(attributes or [], True)
        self._observed_attributes: dict[str, bool] = {}
        self._derived_tables = dict.fromkeys(derived_tables or [], True)
        self._derived_attribute_functions: dict[str, BoundFunction] = {
            attr: model.hydrate_function(func)
            for attr, func in (derived_attribute_functions or {}).items()
        }
        self._suppressed_attributes = dict.fromkeys(suppressed_attributes or [], True)
        self._suppress_index = bool(suppress_index)
        self._attribute_filters: dict[str, BoundFunction] = {
            attr: model.hydrate_function(func) for attr, func in (attribute_filters or {}).items()
        }
        self._index_filter = model.hydrate_function(index_filter) if index_filter is not None else None

        self._cache: list[GenericWrapper] | None = None
        self._cache_lookup: dict[Any, int] | None = None
        self._build: _Build | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.table_id!r})"

    # ---- Persistence ----

    def to_raw_object(self) -> dict[str, Any]:
        dehydrate = self.model.dehydrate_function
        return {
            "table_id": self.table_id,
            "type": self.table_type.value,
            "attributes": list(self._expected_attributes),
            "derived_tables": list(self._derived_tables),
            "derived_attribute_functions": {
                attr: dehydrate(func) for attr, func in self._derived_attribute_functions.items()
            },
            "suppressed_attributes": list(self._suppressed_attributes),
            "suppress_index": self._suppress_index,
            "attribute_filters": {
                attr: dehydrate(func) for attr, func in self._attribute_filters.items()
            },
            "index_filter": dehydrate(self._index_filter) if self._index_filter is not None else None,
        }

    @property
    def sort_hash(self) -> str:
        return self.table_type.value

    @property
    def name(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} must define name")

    # ---- Iteration and caching ----

    async def iterate(self, limit: int | None = None, reset: bool = False) -> AsyncIterator[GenericWrapper]:
        """Yield finished items, replaying the cache when it is complete.

        Without a complete cache this starts (or joins) the table's single
        cache build and streams items as they are finished. The build keeps
        running after ``limit`` items have been yielded.
        """
        if reset:
            self.reset()
        if self._cache is not None:
            for item in self._cache[:limit]:
                yield item
            return
        build = self._ensure_build()
        position = 0
        while limit is None or position < limit:
            if position < len(build.items):
                yield build.items[position]
                position += 1
            elif build.task.done():
                # Re-raises IterationReset or any error from the build
                build.task.result()
                return
            else:
                await build.changed.wait()

    async def build_cache(self) -> list[GenericWrapper]:
        """Return the complete cache, sharing any build already in flight."""
        if self._cache is not None:
            return self._cache
        build = self._ensure_build()
        return await asyncio.shield(build.task)

    async def count_rows(self) -> int:
        return len(await self.build_cache())

    def _ensure_build(self) -> _Build:
        if self._build is None:
            build = _Build()
            build.task = asyncio.get_running_loop().create_task(self._run_build(build))
            build.task.add_done_callback(lambda task: self._build_done(build, task))
            self._build = build
        return self._build

    @staticmethod
    def _build_done(build: _Build, task: asyncio.Task) -> None:
        if not task.cancelled():
            # Marks the exception as retrieved; waiters re-raise it themselves
            task.exception()
        build.notify()

    async def _run_build(self, build: _Build) -> list[GenericWrapper]:
        logger.debug("cache_build_started", table_id=self.table_id)
        try:
            await self._build_cache(build)
            self._check_token(build.token)
        except IterationReset:
            logger.debug("cache_build_aborted", table_id=self.table_id)
            raise
        except Exception:
            if self._build is build:
                self._build = None
            raise
        self._cache = build.items
        self._cache_lookup = build.lookup
        self._build = None
        logger.debug("cache_built", table_id=self.table_id, rows=len(build.items))
        self.trigger("cache_built")
        return build.items

    async def _build_cache(self, build: _Build) -> None:
        async for item in self._iterate(build.token):
            self._check_token(build.token)
            keep = await self._finish_item(item)
            self._check_token(build.token)
            if keep:
                build.add(item)

    def _iterate(self, token: CancelToken) -> AsyncIterator[GenericWrapper]:
        """Produce unfinished wrapped items; implementations poll ``token``."""
        raise NotImplementedError(f"{type(self).__name__} must define _iterate")

    def _check_token(self, token: CancelToken) -> None:
        if token.cancelled:
            raise IterationReset(self.table_id)

    async def _finish_item(self, item: GenericWrapper) -> bool:
        """Run the finish phase on ``item`` and report whether it is kept.

        Derived attributes run first so that filters see their values.
        Attribute bookkeeping only applies to mapping rows.
        """
        row = item.row
        if isinstance(row, dict):
            for attr, func in self._derived_attribute_functions.items():
                value = func(item)
                if inspect.isawaitable(value):
                    value = await value
                row[attr] = value
            for attr in row:
                self._observed_attributes[attr] = True
            for attr in self._suppressed_attributes:
                row.pop(attr, None)

        keep = True
        if self._index_filter is not None:
            result = self._index_filter(item.index)
            if inspect.isawaitable(result):
                result = await result
            keep = bool(result)
        for attr, func in self._attribute_filters.items():
            if not keep:
                break
            result = func(row_value(row, attr))
            if inspect.isawaitable(result):
                result = await result
            keep = bool(result)

        if keep:
            item.trigger("finish")
        else:
            item.disconnect()
            item.trigger("filter")
        return keep

    def _wrap(
        self, index: Any, row: Any = None, items_to_connect: list[GenericWrapper] | tuple = ()
    ) -> GenericWrapper:
        class_obj = self.class_obj
        if class_obj is not None:
            item = class_obj._wrap(index=index, table=self, row=row)
        else:
            item = GenericWrapper(index, self, row=row)
        for other in items_to_connect:
            item.connect_item(other)
        return item

    def reset(self) -> None:
        """Drop the cache (and abort any build), then reset every derived table.

        Dropped items are disconnected so parent items don't keep links to them.
        """
        if self._cache is not None:
            stale = self._cache
        elif self._build is not None:
            stale = self._build.items
        else:
            stale = []
        for item in stale:
            item.disconnect()
        if self._build is not None:
            self._build.token.cancel()
        self._build = None
        self._cache = None
        self._cache_lookup = None
        for derived_table in self.derived_tables:
            derived_table.reset()
        logger.debug("table_reset", table_id=self.table_id)
        self.trigger("reset")

    @property
    def current_data(self) -> dict[str, Any]:
        """Whatever items are available right now, without waiting."""
        if self._cache is not None:
            return {"data": self._cache, "lookup": self._cache_lookup, "complete": True}
        if self._build is not None:
            return {"data": self._build.items, "lookup": self._build.lookup, "complete": False}
        return {"data": [], "lookup": {}, "complete": False}

    # ---- Attributes ----

    def get_index_details(self) -> dict[str, Any]:
        details: dict[str, Any] = {"name": None}
        if self._suppress_index:
            details["suppressed"] = True
        if self._index_filter is not None:
            details["filtered"] = True
        return details

    def get_attribute_details(self) -> dict[str, dict[str, Any]]:
        details: dict[str, dict[str, Any]] = {}

        def mark(attrs: Any, flag: str) -> None:
            for attr in attrs:
                details.setdefault(attr, {"name": attr})[flag] = True

        mark(self._expected_attributes, "expected")
        mark(self._observed_attributes, "observed")
        mark(self._derived_attribute_functions, "derived")
        mark(self._suppressed_attributes, "suppressed")
        mark(self._attribute_filters, "filtered")
        return details

    @property
    def attributes(self) -> list[str]:
        return list(self.get_attribute_details())

    def derive_attribute(self, attribute: str, func: Any) -> None:
        self._derived_attribute_functions[attribute] = self.model.hydrate_function(func)
        self.reset()
        self.model.trigger("update")

    def suppress_attribute(self, attribute: str | None) -> None:
        """Hide ``attribute`` from finished rows; ``None`` suppresses the index."""
        if attribute is None:
            self._suppress_index = True
        else:
            self._suppressed_attributes[attribute] = True
        self.reset()
        self.model.trigger("update")

    def add_filter(self, attribute: str | None, func: Any) -> None:
        """Keep only items passing ``func``; ``None`` filters on the index."""
        if attribute is None:
            self._index_filter = self.model.hydrate_function(func)
        else:
            self._attribute_filters[attribute] = self.model.hydrate_function(func)
        self.reset()
        self.model.trigger("update")

    # ---- Derivation ----

    def _derive_table(self, table_type: TableType, **options: Any) -> Table:
        new_table = self.model.create_table(table_type, **options)
        self._derived_tables[new_table.table_id] = True
        self.model.trigger("update")
        return new_table

    def _get_existing_table(self, table_type: TableType, **options: Any) -> Table | None:
        for table in self.derived_tables:
            if table.table_type is not table_type:
                continue
            if all(_same_value(getattr(table, f"_{k}", None), v) for k, v in options.items()):
                return table
        return None

    def _get_or_derive(self, table_type: TableType, **options: Any) -> Table:
        return self._get_existing_table(table_type, **options) or self._derive_table(table_type, **options)

    def aggregate(self, attribute: str) -> Table:
        return self._get_or_derive(TableType.AGGREGATED, attribute=attribute)

    def expand(self, attribute: str, delimiter: str | None = None) -> Table:
        if delimiter is None:
            delimiter = self.model.settings.default_delimiter
        return self._get_or_derive(TableType.EXPANDED, attribute=attribute, delimiter=delimiter)

    def closed_facet(self, attribute: str, values: list[Any]) -> list[Table]:
        return [self._get_or_derive(TableType.FACETED, attribute=attribute, value=v) for v in values]

    async def open_facet(self, attribute: str, limit: int | None = None) -> AsyncIterator[Table]:
        """Yield one faceted table per distinct value seen in the first ``limit`` rows."""
        seen: list[Any] = []
        async for item in self.iterate(limit=limit):
            value = row_value(item.row, attribute)
            if any(_same_value(value, v) for v in seen):
                continue
            seen.append(value)
            yield self._get_or_derive(TableType.FACETED, attribute=attribute, value=value)

    def closed_transpose(self, indexes: list[Any]) -> list[Table]:
        return [self._get_or_derive(TableType.TRANSPOSED, index=index) for index in indexes]

    async def open_transpose(self, limit: int | None = None) -> AsyncIterator[Table]:
        async for item in self.iterate(limit=limit):
            yield self._get_or_derive(TableType.TRANSPOSED, index=item.index)

    def connect(self, other_tables: list[Table]) -> Table:
        """Return the table joining this table with ``other_tables`` on index."""
        parent_ids = {self.table_id} | {table.table_id for table in other_tables}
        for table in self.derived_tables:
            if table.table_type is TableType.CONNECTED and {
                parent.table_id for parent in table.parent_tables
            } == parent_ids:
                return table
        new_table = self.model.create_table(TableType.CONNECTED)
        self._derived_tables[new_table.table_id] = True
        for other_table in other_tables:
            other_table._derived_tables[new_table.table_id] = True
        self.model.trigger("update")
        return new_table

    # ---- Graph of tables ----

    @property
    def class_obj(self) -> GenericClass | None:
        for class_obj in self.model.classes.values():
            if class_obj.table_id == self.table_id:
                return class_obj
        return None

    @property
    def parent_tables(self) -> list[Table]:
        return [
            table for table in self.model.tables.values() if self.table_id in table._derived_tables
        ]

    @property
    def derived_tables(self) -> list[Table]:
        tables = self.model.tables
        return [tables[table_id] for table_id in self._derived_tables if table_id in tables]

    def shortest_path_to_table(self, other: Table) -> list[Table] | None:
        """Chain of tables from here (exclusive) to ``other`` (inclusive).

        The derivation graph is treated as undirected. Neighbours are visited
        derived tables first, then parents, in discovery order.
        """
        if other is self:
            return []
        previous: dict[str, Table | None] = {self.table_id: None}
        queue = deque([self])
        while queue:
            table = queue.popleft()
            for neighbour in table.derived_tables + table.parent_tables:
                if neighbour.table_id in previous:
                    continue
                previous[neighbour.table_id] = table
                if neighbour is other:
                    chain = [neighbour]
                    step = table
                    while step is not self:
                        chain.append(step)
                        step = previous[step.table_id]
                    chain.reverse()
                    return chain
                queue.append(neighbour)
        return None

    @property
    def in_use(self) -> bool:
        if self._derived_tables:
            return True
        for class_obj in self.model.classes.values():
            if class_obj.table_id == self.table_id:
                return True
            if self.table_id in getattr(class_obj, "source_table_ids", ()):
                return True
            if self.table_id in getattr(class_obj, "target_table_ids", ()):
                return True
        return False

    def delete(self) -> None:
        if self.in_use:
            raise TableInUseError(self.table_id)
        for parent_table in self.parent_tables:
            parent_table._derived_tables.pop(self.table_id, None)
        del self.model.tables[self.table_id]
        logger.info("table_deleted", table_id=self.table_id)
        self.model.trigger("update")
