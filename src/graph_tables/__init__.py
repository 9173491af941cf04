"""Graph Tables - lazily derived tables reshaped into node and edge classes."""

from graph_tables.classes import ClassType, EdgeClass, GenericClass, NodeClass
from graph_tables.config import Settings, get_settings
from graph_tables.errors import ConfigurationError, InvariantError, IterationReset, TableInUseError
from graph_tables.functions import NAMED_FUNCTIONS, BoundFunction, FunctionRef, FunctionRegistry
from graph_tables.logging import configure_logging, get_logger
from graph_tables.model import NetworkModel
from graph_tables.tables import (
    AggregatedTable,
    ConnectedTable,
    ExpandedTable,
    FacetedTable,
    StaticDictTable,
    StaticTable,
    Table,
    TableType,
    TransposedTable,
)
from graph_tables.wrappers import EdgeWrapper, GenericWrapper, NodeWrapper

__version__ = "0.1.0"

__all__ = [
    # Main API
    "NetworkModel",
    # Tables
    "Table",
    "TableType",
    "StaticTable",
    "StaticDictTable",
    "AggregatedTable",
    "ExpandedTable",
    "FacetedTable",
    "TransposedTable",
    "ConnectedTable",
    # Classes
    "ClassType",
    "GenericClass",
    "NodeClass",
    "EdgeClass",
    # Items
    "GenericWrapper",
    "NodeWrapper",
    "EdgeWrapper",
    # Functions
    "NAMED_FUNCTIONS",
    "BoundFunction",
    "FunctionRef",
    "FunctionRegistry",
    # Errors
    "ConfigurationError",
    "InvariantError",
    "IterationReset",
    "TableInUseError",
    # Ambient
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
]
