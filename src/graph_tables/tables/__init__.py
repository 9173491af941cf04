"""Table variants."""

from graph_tables.tables.aggregated import AggregatedTable
from graph_tables.tables.base import CancelToken, Table, TableType
from graph_tables.tables.connected import ConnectedTable
from graph_tables.tables.expanded import ExpandedTable
from graph_tables.tables.faceted import FacetedTable
from graph_tables.tables.mixins import DuplicatableAttributesMixin, SingleParentMixin
from graph_tables.tables.static import StaticDictTable, StaticTable
from graph_tables.tables.transposed import TransposedTable

__all__ = [
    "AggregatedTable",
    "CancelToken",
    "ConnectedTable",
    "DuplicatableAttributesMixin",
    "ExpandedTable",
    "FacetedTable",
    "SingleParentMixin",
    "StaticDictTable",
    "StaticTable",
    "Table",
    "TableType",
    "TransposedTable",
]
