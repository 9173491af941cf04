"""Edge classes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator

from graph_tables.classes.generic import ClassType, GenericClass
from graph_tables.errors import InvariantError
from graph_tables.wrappers import EdgeWrapper

if TYPE_CHECKING:
    from graph_tables.classes.node import NodeClass


class EdgeClass(GenericClass):
    """A class whose items are graph edges.

    ``source_table_ids`` / ``target_table_ids`` list the intermediate tables,
    starting next to this class's table, that lead to the source / target
    node class's table (neither end included).
    """

    class_type = ClassType.EDGE
    type = "Edge"

    def __init__(
        self,
        *,
        source_class_id: str | None = None,
        source_table_ids: list[str] | None = None,
        target_class_id: str | None = None,
        target_table_ids: list[str] | None = None,
        directed: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.source_class_id = source_class_id
        self.source_table_ids: list[str] = list(source_table_ids or [])
        self.target_class_id = target_class_id
        self.target_table_ids: list[str] = list(target_table_ids or [])
        self.directed = bool(directed)
        self.swapped_direction: bool | None = None

    def to_raw_object(self) -> dict[str, Any]:
        obj = super().to_raw_object()
        obj["source_class_id"] = self.source_class_id
        obj["source_table_ids"] = list(self.source_table_ids)
        obj["target_class_id"] = self.target_class_id
        obj["target_table_ids"] = list(self.target_table_ids)
        obj["directed"] = self.directed
        return obj

    @property
    def class_name(self) -> str:
        if self._class_name:
            return self._class_name
        source_class, target_class = self.source_class, self.target_class
        source_name = source_class.class_name if source_class is not None else "?"
        target_name = target_class.class_name if target_class is not None else "?"
        return f"{source_name}-{target_name}"

    @property
    def source_class(self) -> NodeClass | None:
        if self.source_class_id is None:
            return None
        return self.model.classes.get(self.source_class_id)

    @property
    def target_class(self) -> NodeClass | None:
        if self.target_class_id is None:
            return None
        return self.model.classes.get(self.target_class_id)

    def connected_classes(self) -> Iterator[NodeClass]:
        if self.source_class is not None:
            yield self.source_class
        if self.target_class is not None:
            yield self.target_class

    def _wrap(self, **options: Any) -> EdgeWrapper:
        return EdgeWrapper(class_obj=self, **options)

    def interpret_as_edges(self, autoconnect: bool = True) -> EdgeClass:
        return self

    def _split_table_id_list(
        self, table_ids: list[str], other_class: GenericClass
    ) -> tuple[list[str], str, list[str]]:
        """Pick a table in ``table_ids`` to carry a new edge.

        Returns ``(node_table_ids, edge_table_id, edge_table_ids)``: the chain
        from the picked table onward to ``other_class``, the picked table, and
        the chain from the picked table back to this class's table. Static
        tables are preferred; otherwise the table closest to the centre of the
        chain wins, the lower position breaking ties.
        """
        if not table_ids:
            # Adjacent tables: nothing in between can carry the edge
            edge_table = self.table.connect([other_class.table])
            return [], edge_table.table_id, []
        centre = (len(table_ids) - 1) / 2
        candidates = list(enumerate(table_ids))
        static = [c for c in candidates if self.model.tables[c[1]].table_type.is_static]
        if static:
            candidates = static
        position, edge_table_id = min(candidates, key=lambda c: abs(centre - c[0]))
        return (
            table_ids[position + 1:],
            edge_table_id,
            list(reversed(table_ids[:position])),
        )

    def interpret_as_nodes(self) -> GenericClass:
        """Turn this edge class into a node class over the same table.

        Each attached neighbour gets a new edge class reaching the new node
        class through part of the old table chain.
        """
        source_class_id, source_table_ids = self.source_class_id, list(self.source_table_ids)
        target_class_id, target_table_ids = self.target_class_id, list(self.target_table_ids)
        directed = self.directed
        self.disconnect_source()
        self.disconnect_target()
        self.table.reset()
        new_node_class = self.model.create_class(ClassType.NODE, overwrite=True, **self._base_options())

        if source_class_id is not None:
            source_class = self.model.classes[source_class_id]
            node_table_ids, edge_table_id, edge_table_ids = self._split_table_id_list(
                source_table_ids, source_class
            )
            source_edge_class = self.model.create_class(
                ClassType.EDGE,
                table_id=edge_table_id,
                directed=directed,
                source_class_id=source_class_id,
                source_table_ids=node_table_ids,
                target_class_id=new_node_class.class_id,
                target_table_ids=edge_table_ids,
            )
            source_class.edge_class_ids[source_edge_class.class_id] = True
            new_node_class.edge_class_ids[source_edge_class.class_id] = True

        if target_class_id is not None and target_class_id != source_class_id:
            target_class = self.model.classes[target_class_id]
            node_table_ids, edge_table_id, edge_table_ids = self._split_table_id_list(
                target_table_ids, target_class
            )
            target_edge_class = self.model.create_class(
                ClassType.EDGE,
                table_id=edge_table_id,
                directed=directed,
                source_class_id=new_node_class.class_id,
                source_table_ids=edge_table_ids,
                target_class_id=target_class_id,
                target_table_ids=node_table_ids,
            )
            target_class.edge_class_ids[target_edge_class.class_id] = True
            new_node_class.edge_class_ids[target_edge_class.class_id] = True

        self.model.trigger("update")
        return new_node_class

    def connect_to_node_class(
        self,
        node_class: NodeClass,
        side: str,
        node_attribute: str | None = None,
        edge_attribute: str | None = None,
    ) -> None:
        if side == "source":
            self.connect_source(node_class, node_attribute=node_attribute, edge_attribute=edge_attribute)
        elif side == "target":
            self.connect_target(node_class, node_attribute=node_attribute, edge_attribute=edge_attribute)
        else:
            raise InvariantError(f'"{side}" is an invalid side')

    def toggle_direction(self, directed: bool | None = None) -> None:
        """Make the edge undirected, directed, or swap its ends.

        Swapping exchanges class ids and table chains without deriving any
        new tables; ``swapped_direction`` records that it happened.
        """
        if directed is False:
            self.directed = False
            self.swapped_direction = None
        elif not self.directed:
            self.directed = True
            self.swapped_direction = False
        else:
            self.source_class_id, self.target_class_id = self.target_class_id, self.source_class_id
            self.source_table_ids, self.target_table_ids = self.target_table_ids, self.source_table_ids
            self.swapped_direction = not self.swapped_direction
        self.model.trigger("update")

    def _connect_side(
        self,
        side: str,
        node_class: NodeClass,
        node_attribute: str | None,
        edge_attribute: str | None,
    ) -> None:
        if getattr(self, f"{side}_class_id") is not None:
            self._disconnect_side(side)
        setattr(self, f"{side}_class_id", node_class.class_id)
        node_class.edge_class_ids[self.class_id] = True
        edge_hash = self.get_hash_table(edge_attribute)
        node_hash = node_class.get_hash_table(node_attribute)
        table_ids = [edge_hash.connect([node_hash]).table_id]
        if edge_attribute is not None:
            table_ids.insert(0, edge_hash.table_id)
        if node_attribute is not None:
            table_ids.append(node_hash.table_id)
        setattr(self, f"{side}_table_ids", table_ids)
        self.model.trigger("update")

    def _disconnect_side(self, side: str) -> None:
        existing = self.model.classes.get(getattr(self, f"{side}_class_id"))
        if existing is not None:
            existing.edge_class_ids.pop(self.class_id, None)
        setattr(self, f"{side}_table_ids", [])
        setattr(self, f"{side}_class_id", None)
        self.model.trigger("update")

    def connect_source(
        self,
        node_class: NodeClass,
        node_attribute: str | None = None,
        edge_attribute: str | None = None,
    ) -> None:
        self._connect_side("source", node_class, node_attribute, edge_attribute)

    def connect_target(
        self,
        node_class: NodeClass,
        node_attribute: str | None = None,
        edge_attribute: str | None = None,
    ) -> None:
        self._connect_side("target", node_class, node_attribute, edge_attribute)

    def disconnect_source(self) -> None:
        self._disconnect_side("source")

    def disconnect_target(self) -> None:
        self._disconnect_side("target")

    def aggregate(self, attribute: str) -> GenericClass:
        """Attach a node class over the aggregated table to an open end.

        With both ends taken this behaves like a plain class aggregation.
        """
        if self.source_class_id is not None and self.target_class_id is not None:
            return super().aggregate(attribute)
        new_node_class = self._derive_new_class(self.table.aggregate(attribute), ClassType.NODE)
        if new_node_class.class_type is ClassType.GENERIC:
            new_node_class = new_node_class.interpret_as_nodes()
        side = "source" if self.source_class_id is None else "target"
        self.connect_to_node_class(new_node_class, side=side, node_attribute=None, edge_attribute=attribute)
        return new_node_class

    def delete(self) -> None:
        self.disconnect_source()
        self.disconnect_target()
        super().delete()
