"""Exceptions raised by the table and class layers."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """A table or class was constructed without a required parameter."""


class InvariantError(RuntimeError):
    """An operation would break the consistency of the derivation graph."""


class TableInUseError(InvariantError):
    """Raised when deleting a table that is still derived from or referenced."""

    in_use = True

    def __init__(self, table_id: str) -> None:
        super().__init__(f"Can't delete in-use table {table_id}")
        self.table_id = table_id


class IterationReset(Exception):
    """A table was reset while its cache was being built."""

    def __init__(self, table_id: str) -> None:
        super().__init__(f"Iteration of table {table_id} was reset")
        self.table_id = table_id
