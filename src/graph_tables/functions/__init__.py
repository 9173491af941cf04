"""Named functions and their persisted text form."""

from graph_tables.functions.parser import FunctionParser
from graph_tables.functions.reference import FunctionRef
from graph_tables.functions.registry import NAMED_FUNCTIONS, BoundFunction, FunctionRegistry

__all__ = [
    "BoundFunction",
    "FunctionParser",
    "FunctionRef",
    "FunctionRegistry",
    "NAMED_FUNCTIONS",
]
