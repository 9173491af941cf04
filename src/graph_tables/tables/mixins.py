"""Capabilities shared by several table variants."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from graph_tables.errors import InvariantError

if TYPE_CHECKING:
    from graph_tables.tables.base import Table
    from graph_tables.wrappers import GenericWrapper


class SingleParentMixin:
    """For tables derived from exactly one parent."""

    @property
    def parent_table(self) -> Table:
        parent_tables = self.parent_tables
        if not parent_tables:
            raise InvariantError(f"Parent table is required for table of type {self.table_type.value}")
        if len(parent_tables) > 1:
            raise InvariantError(f"Only one parent table allowed for table of type {self.table_type.value}")
        return parent_tables[0]


class DuplicatableAttributesMixin:
    """Copies selected parent attributes onto derived rows.

    Copies are named ``<parent table name>.<attribute>``.
    """

    def __init__(self, *, duplicated_attributes: dict[str, list[str]] | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._duplicated_attributes: dict[str, list[str]] = {
            parent_id: list(attrs) for parent_id, attrs in (duplicated_attributes or {}).items()
        }

    def to_raw_object(self) -> dict[str, Any]:
        obj = super().to_raw_object()
        obj["duplicated_attributes"] = {k: list(v) for k, v in self._duplicated_attributes.items()}
        return obj

    def duplicate_attribute(self, parent_id: str, attribute: str) -> None:
        attrs = self._duplicated_attributes.setdefault(parent_id, [])
        if attribute not in attrs:
            attrs.append(attribute)
        self.reset()
        self.model.trigger("update")

    def _duplicated_name(self, parent_id: str, attribute: str) -> str:
        return f"{self.model.tables[parent_id].name}.{attribute}"

    def _duplicate_attributes(self, row: dict[str, Any], parent_items: dict[str, GenericWrapper]) -> None:
        for parent_id, attrs in self._duplicated_attributes.items():
            parent_item = parent_items.get(parent_id)
            if parent_item is None or not isinstance(parent_item.row, dict):
                continue
            for attr in attrs:
                row[self._duplicated_name(parent_id, attr)] = parent_item.row.get(attr)

    def get_attribute_details(self) -> dict[str, dict[str, Any]]:
        details = super().get_attribute_details()
        for parent_id, attrs in self._duplicated_attributes.items():
            for attr in attrs:
                name = self._duplicated_name(parent_id, attr)
                details.setdefault(name, {"name": name})["copied"] = True
        return details
