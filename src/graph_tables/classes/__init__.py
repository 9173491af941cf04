"""Generic, node and edge classes."""

from graph_tables.classes.edge import EdgeClass
from graph_tables.classes.generic import ClassType, GenericClass
from graph_tables.classes.node import NodeClass

__all__ = [
    "ClassType",
    "EdgeClass",
    "GenericClass",
    "NodeClass",
]
