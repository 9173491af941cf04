"""Classes: named graph interpretations of a single table."""

from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING, Any, AsyncIterator

from graph_tables.errors import ConfigurationError
from graph_tables.logging import get_logger
from graph_tables.wrappers import GenericWrapper

if TYPE_CHECKING:
    from graph_tables.model import NetworkModel
    from graph_tables.tables import Table

logger = get_logger(__name__)


class ClassType(Enum):
    """Class variants, keyed by their persisted type name."""

    GENERIC = "GenericClass"
    NODE = "NodeClass"
    EDGE = "EdgeClass"


class GenericClass:
    """A table with a name and annotations but no graph role yet.

    Derivations mirror the table operations and return classes over the
    derived tables; a table that already carries a class keeps it.
    """

    class_type = ClassType.GENERIC
    type = "Generic"

    def __init__(
        self,
        *,
        model: NetworkModel,
        class_id: str,
        table_id: str,
        class_name: str | None = None,
        annotations: dict[str, Any] | None = None,
    ) -> None:
        if model is None or not class_id or not table_id:
            raise ConfigurationError("model, class_id and table_id are required")
        self.model = model
        self.class_id = class_id
        self.table_id = table_id
        self._class_name = class_name
        self.annotations: dict[str, Any] = dict(annotations or {})

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.class_id!r}, table={self.table_id!r})"

    def _base_options(self) -> dict[str, Any]:
        return {
            "class_id": self.class_id,
            "table_id": self.table_id,
            "class_name": self._class_name,
            "annotations": dict(self.annotations),
        }

    def to_raw_object(self) -> dict[str, Any]:
        obj = self._base_options()
        obj["type"] = self.class_type.value
        return obj

    @property
    def sort_hash(self) -> str:
        return self.class_type.value + self.class_name

    @property
    def table(self) -> Table:
        return self.model.tables[self.table_id]

    @property
    def deleted(self) -> bool:
        return self.model.classes.get(self.class_id) is not self

    # ---- Naming and annotations ----

    @property
    def class_name(self) -> str:
        return self._class_name or self.table.name

    def set_class_name(self, value: str | None) -> None:
        self._class_name = value
        self.model.trigger("update")

    @property
    def has_custom_name(self) -> bool:
        return self._class_name is not None

    @property
    def variable_name(self) -> str:
        """Identifier-friendly name, e.g. ``node_PeopleCsv``."""
        words = [w for w in re.split(r"\W+", self.class_name) if w]
        return self.type.lower() + "_" + "".join(w[0].upper() + w[1:] for w in words)

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value
        self.model.trigger("update")

    def delete_annotation(self, key: str) -> None:
        self.annotations.pop(key, None)
        self.model.trigger("update")

    # ---- Items ----

    def _wrap(self, **options: Any) -> GenericWrapper:
        return GenericWrapper(class_obj=self, **options)

    def get_hash_table(self, attribute: str | None = None) -> Table:
        """This class's table, or that table aggregated by ``attribute``."""
        if attribute is None:
            return self.table
        return self.table.aggregate(attribute)

    # ---- Reinterpretation ----

    def interpret_as_nodes(self) -> GenericClass:
        self.table.reset()
        return self.model.create_class(ClassType.NODE, overwrite=True, **self._base_options())

    def interpret_as_edges(self, autoconnect: bool = True) -> GenericClass:
        self.table.reset()
        return self.model.create_class(ClassType.EDGE, overwrite=True, **self._base_options())

    # ---- Derivation ----

    def _derive_new_class(self, new_table: Table, class_type: ClassType | None = None) -> GenericClass:
        existing = new_table.class_obj
        if existing is not None:
            return existing
        return self.model.create_class(class_type or self.class_type, table_id=new_table.table_id)

    def aggregate(self, attribute: str) -> GenericClass:
        return self._derive_new_class(self.table.aggregate(attribute), ClassType.GENERIC)

    def expand(self, attribute: str, delimiter: str | None = None) -> GenericClass:
        return self._derive_new_class(self.table.expand(attribute, delimiter))

    def closed_facet(self, attribute: str, values: list[Any]) -> list[GenericClass]:
        return [self._derive_new_class(t) for t in self.table.closed_facet(attribute, values)]

    async def open_facet(self, attribute: str, limit: int | None = None) -> AsyncIterator[GenericClass]:
        async for new_table in self.table.open_facet(attribute, limit=limit):
            yield self._derive_new_class(new_table)

    def closed_transpose(self, indexes: list[Any]) -> list[GenericClass]:
        return [self._derive_new_class(t) for t in self.table.closed_transpose(indexes)]

    async def open_transpose(self, limit: int | None = None) -> AsyncIterator[GenericClass]:
        async for new_table in self.table.open_transpose(limit=limit):
            yield self._derive_new_class(new_table)

    def connect(self, other_classes: list[GenericClass]) -> GenericClass:
        new_table = self.table.connect([other.table for other in other_classes])
        return self._derive_new_class(new_table, ClassType.GENERIC)

    # ---- Lifecycle ----

    def delete(self) -> None:
        del self.model.classes[self.class_id]
        logger.info("class_deleted", class_id=self.class_id)
        self.model.trigger("update")

    async def get_sample_graph(self, **options: Any) -> dict[str, Any]:
        return await self.model.get_sample_graph(root_class=self, **options)
