"""Node classes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator

from graph_tables.classes.generic import ClassType, GenericClass
from graph_tables.errors import InvariantError
from graph_tables.wrappers import NodeWrapper

if TYPE_CHECKING:
    from graph_tables.classes.edge import EdgeClass


class NodeClass(GenericClass):
    """A class whose items are graph nodes.

    ``edge_class_ids`` is an ordered set (dict keys) of incident edge classes.
    """

    class_type = ClassType.NODE
    type = "Node"

    def __init__(self, *, edge_class_ids: list[str] | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.edge_class_ids: dict[str, bool] = dict.fromkeys(edge_class_ids or [], True)

    def to_raw_object(self) -> dict[str, Any]:
        obj = super().to_raw_object()
        obj["edge_class_ids"] = list(self.edge_class_ids)
        return obj

    def _wrap(self, **options: Any) -> NodeWrapper:
        return NodeWrapper(class_obj=self, **options)

    def edge_classes(self) -> Iterator[EdgeClass]:
        for edge_class_id in list(self.edge_class_ids):
            yield self.model.classes[edge_class_id]

    connected_classes = edge_classes

    def get_edge_role(self, edge_class: EdgeClass) -> str | None:
        """Which end(s) of ``edge_class`` this node class occupies."""
        if edge_class.class_id not in self.edge_class_ids:
            return None
        if edge_class.source_class_id == self.class_id:
            return "both" if edge_class.target_class_id == self.class_id else "source"
        if edge_class.target_class_id == self.class_id:
            return "target"
        raise InvariantError(
            f"Internal mismatch between node class {self.class_id} and edge class {edge_class.class_id}"
        )

    def interpret_as_nodes(self) -> NodeClass:
        return self

    def _far_end(self, edge_class: EdgeClass) -> tuple[str | None, list[str]]:
        """The node class across ``edge_class`` and the table chain from this table to it."""
        if edge_class.source_class_id == self.class_id:
            far_class_id = edge_class.target_class_id
            chain = list(reversed(edge_class.source_table_ids)) + [edge_class.table_id]
            chain += edge_class.target_table_ids
        else:
            far_class_id = edge_class.source_class_id
            chain = list(reversed(edge_class.target_table_ids)) + [edge_class.table_id]
            chain += edge_class.source_table_ids
        if far_class_id is None or far_class_id == self.class_id:
            return None, []
        return far_class_id, chain

    def interpret_as_edges(self, autoconnect: bool = True) -> GenericClass:
        """Turn this node class into an edge class over the same table.

        With ``autoconnect``, a node with one edge becomes a self-edge on the
        neighbour across that edge, and a node with two edges becomes an edge
        between its two neighbours; the replaced edge classes are deleted.
        Any other node is disconnected and becomes a floating edge.
        """
        edge_class_ids = list(self.edge_class_ids)
        options = self._base_options()
        neighbours: list[str] = []

        if not autoconnect or len(edge_class_ids) not in (1, 2):
            self.disconnect_all_edges()
        elif len(edge_class_ids) == 1:
            edge_class = self.model.classes[edge_class_ids[0]]
            far_class_id, chain = self._far_end(edge_class)
            if far_class_id is not None:
                options.update(
                    source_class_id=far_class_id,
                    target_class_id=far_class_id,
                    source_table_ids=chain,
                    target_table_ids=list(chain),
                    directed=edge_class.directed,
                )
                neighbours.append(far_class_id)
            edge_class.delete()
        else:
            source_edge = self.model.classes[edge_class_ids[0]]
            target_edge = self.model.classes[edge_class_ids[1]]
            directed = False
            if source_edge.directed and target_edge.directed:
                if source_edge.target_class_id == self.class_id and target_edge.source_class_id == self.class_id:
                    directed = True
                elif source_edge.source_class_id == self.class_id and target_edge.target_class_id == self.class_id:
                    source_edge, target_edge = target_edge, source_edge
                    directed = True
            source_class_id, source_table_ids = self._far_end(source_edge)
            target_class_id, target_table_ids = self._far_end(target_edge)
            options.update(
                source_class_id=source_class_id,
                source_table_ids=source_table_ids,
                target_class_id=target_class_id,
                target_table_ids=target_table_ids,
                directed=directed,
            )
            neighbours.extend(c for c in (source_class_id, target_class_id) if c is not None)
            source_edge.delete()
            target_edge.delete()

        for class_id in neighbours:
            self.model.classes[class_id].edge_class_ids[self.class_id] = True
        self.table.reset()
        return self.model.create_class(ClassType.EDGE, overwrite=True, **options)

    def connect_to_node_class(
        self,
        other_node_class: NodeClass,
        attribute: str | None = None,
        other_attribute: str | None = None,
    ) -> EdgeClass:
        """Create an edge class joining rows whose attribute values match."""
        this_hash = self.get_hash_table(attribute)
        other_hash = other_node_class.get_hash_table(other_attribute)
        connected_table = this_hash.connect([other_hash])
        existing = connected_table.class_obj
        if (
            existing is not None
            and existing.class_type is ClassType.EDGE
            and existing.source_class_id == self.class_id
            and existing.target_class_id == other_node_class.class_id
        ):
            return existing
        new_edge_class = self.model.create_class(
            ClassType.EDGE,
            table_id=connected_table.table_id,
            source_class_id=self.class_id,
            source_table_ids=[] if attribute is None else [this_hash.table_id],
            target_class_id=other_node_class.class_id,
            target_table_ids=[] if other_attribute is None else [other_hash.table_id],
        )
        self.edge_class_ids[new_edge_class.class_id] = True
        other_node_class.edge_class_ids[new_edge_class.class_id] = True
        self.model.trigger("update")
        return new_edge_class

    def connect_to_edge_class(
        self,
        edge_class: EdgeClass,
        side: str,
        node_attribute: str | None = None,
        edge_attribute: str | None = None,
    ) -> None:
        edge_class.connect_to_node_class(
            self, side=side, node_attribute=node_attribute, edge_attribute=edge_attribute
        )

    def aggregate(self, attribute: str) -> NodeClass:
        """New node class over the aggregated table, connected to this one."""
        new_node_class = self._derive_new_class(self.table.aggregate(attribute), ClassType.NODE)
        if new_node_class.class_type is ClassType.GENERIC:
            new_node_class = new_node_class.interpret_as_nodes()
        self.connect_to_node_class(new_node_class, attribute=attribute, other_attribute=None)
        return new_node_class

    def disconnect_all_edges(self) -> None:
        for edge_class in self.edge_classes():
            if edge_class.source_class_id == self.class_id:
                edge_class.disconnect_source()
            if edge_class.target_class_id == self.class_id:
                edge_class.disconnect_target()

    def delete(self) -> None:
        self.disconnect_all_edges()
        super().delete()
