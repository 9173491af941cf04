"""The network model: registries of tables and classes plus whole-model views."""

from __future__ import annotations

import re
from typing import Any, Iterable

from graph_tables.classes import ClassType, EdgeClass, GenericClass, NodeClass
from graph_tables.config import Settings, get_settings
from graph_tables.errors import TableInUseError
from graph_tables.events import Triggerable
from graph_tables.functions import NAMED_FUNCTIONS, BoundFunction, FunctionParser, FunctionRef, FunctionRegistry
from graph_tables.logging import get_logger
from graph_tables.sources import guess_extension, parse_rows
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
from graph_tables.wrappers import GenericWrapper

logger = get_logger(__name__)

_TRAILING_DIGITS = re.compile(r"(\d+)$")


def _within(count: int, limit: int | None) -> bool:
    return limit is None or count <= limit


class IdAllocator:
    """Hands out ``<prefix><n>`` ids, skipping ids already taken."""

    def __init__(self, prefix: str, next_id: int = 1) -> None:
        self.prefix = prefix
        self.next_id = next_id

    @classmethod
    def seeded(cls, prefix: str, existing_ids: Iterable[str]) -> IdAllocator:
        """Start counting after the largest trailing number in ``existing_ids``."""
        highest = 0
        for existing_id in existing_ids:
            match = _TRAILING_DIGITS.search(existing_id)
            if match:
                highest = max(highest, int(match.group(1)))
        return cls(prefix, highest + 1)

    def allocate(self, taken: Iterable[str]) -> str:
        taken = set(taken)
        while True:
            candidate = f"{self.prefix}{self.next_id}"
            self.next_id += 1
            if candidate not in taken:
                return candidate


class NetworkModel(Triggerable):
    """Owns every table and class of one model.

    Fires ``update`` whenever its structure changes.
    """

    def __init__(
        self,
        model_id: str = "model",
        name: str | None = None,
        annotations: dict[str, Any] | None = None,
        settings: Settings | None = None,
        named_functions: FunctionRegistry | None = None,
    ) -> None:
        super().__init__()
        self.model_id = model_id
        self.name = name or model_id
        self.annotations: dict[str, Any] = dict(annotations or {})
        self.settings = settings or get_settings()
        self.named_functions = (named_functions or NAMED_FUNCTIONS).copy()
        self.tables: dict[str, Table] = {}
        self.classes: dict[str, GenericClass] = {}
        self._table_ids = IdAllocator("table")
        self._class_ids = IdAllocator("class")
        self._function_parser = FunctionParser()

    # ---- Functions ----

    def hydrate_function(self, func: str | FunctionRef | BoundFunction) -> BoundFunction:
        """Resolve a persisted function (``"name(args)"`` or a bare name) to a callable."""
        if isinstance(func, BoundFunction):
            return func
        if isinstance(func, str):
            func = self._function_parser.parse(func) if "(" in func else FunctionRef(func.strip())
        if not isinstance(func, FunctionRef):
            raise TypeError(f"Cannot hydrate function from {type(func).__name__}")
        return self.named_functions.bind(func)

    def dehydrate_function(self, func: BoundFunction) -> str:
        return str(func.ref)

    # ---- Construction ----

    def _instantiate_table(self, table_type: TableType, table_id: str, options: dict[str, Any]) -> Table:
        if table_type is TableType.STATIC:
            table_cls: type[Table] = StaticTable
        elif table_type is TableType.STATIC_DICT:
            table_cls = StaticDictTable
        elif table_type is TableType.AGGREGATED:
            table_cls = AggregatedTable
        elif table_type is TableType.EXPANDED:
            table_cls = ExpandedTable
        elif table_type is TableType.FACETED:
            table_cls = FacetedTable
        elif table_type is TableType.TRANSPOSED:
            table_cls = TransposedTable
        elif table_type is TableType.CONNECTED:
            table_cls = ConnectedTable
        else:
            raise ValueError(f"Unknown table type: {table_type}")
        return table_cls(model=self, table_id=table_id, **options)

    def _instantiate_class(self, class_type: ClassType, class_id: str, options: dict[str, Any]) -> GenericClass:
        if class_type is ClassType.GENERIC:
            class_cls: type[GenericClass] = GenericClass
        elif class_type is ClassType.NODE:
            class_cls = NodeClass
        elif class_type is ClassType.EDGE:
            class_cls = EdgeClass
        else:
            raise ValueError(f"Unknown class type: {class_type}")
        return class_cls(model=self, class_id=class_id, **options)

    def create_table(
        self,
        table_type: TableType | str,
        table_id: str | None = None,
        overwrite: bool = False,
        **options: Any,
    ) -> Table:
        table_type = TableType(table_type)
        if not table_id or (not overwrite and table_id in self.tables):
            table_id = self._table_ids.allocate(self.tables)
        table = self._instantiate_table(table_type, table_id, options)
        self.tables[table_id] = table
        logger.info("table_created", table_id=table_id, type=table_type.value)
        self.trigger("update")
        return table

    def create_class(
        self,
        class_type: ClassType | str,
        class_id: str | None = None,
        overwrite: bool = False,
        **options: Any,
    ) -> GenericClass:
        class_type = ClassType(class_type)
        if not class_id or (not overwrite and class_id in self.classes):
            class_id = self._class_ids.allocate(self.classes)
        class_obj = self._instantiate_class(class_type, class_id, options)
        self.classes[class_id] = class_obj
        logger.info("class_created", class_id=class_id, type=class_type.value, table_id=class_obj.table_id)
        self.trigger("update")
        return class_obj

    def add_static_table(
        self, name: str, data: list[Any] | dict[str, Any], attributes: list[str] | None = None
    ) -> GenericClass:
        """Wrap in-memory rows in a static table and a generic class over it."""
        table_type = TableType.STATIC if isinstance(data, list) else TableType.STATIC_DICT
        new_table = self.create_table(table_type, name=name, data=data, attributes=attributes)
        return self.create_class(ClassType.GENERIC, table_id=new_table.table_id, class_name=name)

    def add_string_as_static_table(
        self,
        name: str,
        text: str,
        extension: str | None = None,
        skip_size_check: bool = False,
    ) -> GenericClass:
        """Parse ``text`` (csv, tsv or json) and load it as a static table.

        The format comes from ``extension`` or else from ``name``'s suffix.

        Raises:
            ValueError: If the payload is too large, or its format unknown.
        """
        size_mb = len(text.encode("utf-8")) / 1048576
        if size_mb >= self.settings.max_static_table_mb:
            if not skip_size_check:
                raise ValueError(f"{size_mb:.1f}MB payload is too large to load statically")
            logger.warning("large_payload_warning", name=name, size_mb=round(size_mb, 1))
        extension = extension or guess_extension(name)
        if extension is None:
            raise ValueError(f"Cannot determine the format of {name!r}")
        data, columns = parse_rows(text, extension)
        logger.info("static_table_loaded", name=name, rows=len(data), extension=extension)
        return self.add_static_table(name=name, data=data, attributes=columns)

    # ---- Housekeeping ----

    def find_class(self, class_name: str) -> GenericClass | None:
        for class_obj in self.classes.values():
            if class_obj.class_name == class_name:
                return class_obj
        return None

    def rename(self, new_name: str) -> None:
        self.name = new_name
        self.trigger("update")

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value
        self.trigger("update")

    def delete_annotation(self, key: str) -> None:
        self.annotations.pop(key, None)
        self.trigger("update")

    def delete_all_unused_tables(self) -> None:
        """Delete every table no class or derived table depends on.

        Repeats until a pass deletes nothing, so chains of unused tables go
        too. Tables still in use are skipped.
        """
        deleted = True
        while deleted:
            deleted = False
            for table_id in list(self.tables):
                try:
                    self.tables[table_id].delete()
                except TableInUseError:
                    logger.debug("table_delete_skipped", table_id=table_id)
                else:
                    deleted = True
        self.trigger("update")

    def delete_all_classes(self) -> None:
        for class_id in list(self.classes):
            class_obj = self.classes.get(class_id)
            if class_obj is not None:
                class_obj.delete()
        self.trigger("update")

    # ---- Persistence ----

    def to_raw_object(self) -> dict[str, Any]:
        return {
            "model_id": self.model_id,
            "name": self.name,
            "annotations": dict(self.annotations),
            "classes": {class_id: c.to_raw_object() for class_id, c in self.classes.items()},
            "tables": {table_id: t.to_raw_object() for table_id, t in self.tables.items()},
        }

    @classmethod
    def from_raw_object(
        cls,
        raw: dict[str, Any],
        settings: Settings | None = None,
        named_functions: FunctionRegistry | None = None,
    ) -> NetworkModel:
        """Rebuild a model from ``to_raw_object`` output."""
        model = cls(
            model_id=raw.get("model_id", "model"),
            name=raw.get("name"),
            annotations=raw.get("annotations"),
            settings=settings,
            named_functions=named_functions,
        )
        for table_raw in raw.get("tables", {}).values():
            options = dict(table_raw)
            table_type = TableType(options.pop("type"))
            table_id = options.pop("table_id")
            model.tables[table_id] = model._instantiate_table(table_type, table_id, options)
        for class_raw in raw.get("classes", {}).values():
            options = dict(class_raw)
            class_type = ClassType(options.pop("type"))
            class_id = options.pop("class_id")
            model.classes[class_id] = model._instantiate_class(class_type, class_id, options)
        model._table_ids = IdAllocator.seeded("table", model.tables)
        model._class_ids = IdAllocator.seeded("class", model.classes)
        logger.info("model_loaded", model_id=model.model_id, tables=len(model.tables), classes=len(model.classes))
        return model

    def get_model_dump(self) -> dict[str, list[dict[str, Any]]]:
        """Id-independent structure of the model, for comparisons.

        Entries are ordered by ``sort_hash``, ids are replaced by positions in
        that order, and table data is left out.
        """
        classes = sorted(self.classes.values(), key=lambda c: c.sort_hash)
        tables = sorted(self.tables.values(), key=lambda t: t.sort_hash)
        class_lookup = {c.class_id: i for i, c in enumerate(classes)}
        table_lookup = {t.table_id: i for i, t in enumerate(tables)}

        dumped_tables = []
        for table in tables:
            obj = table.to_raw_object()
            obj.pop("data", None)
            obj["table_id"] = table_lookup[obj["table_id"]]
            obj["derived_tables"] = [table_lookup[t] for t in obj["derived_tables"]]
            if "duplicated_attributes" in obj:
                obj["duplicated_attributes"] = {
                    table_lookup[t]: attrs for t, attrs in obj["duplicated_attributes"].items()
                }
            dumped_tables.append(obj)

        dumped_classes = []
        for class_obj in classes:
            obj = class_obj.to_raw_object()
            obj["class_id"] = class_lookup[obj["class_id"]]
            obj["table_id"] = table_lookup[obj["table_id"]]
            for key in ("source_class_id", "target_class_id"):
                if obj.get(key) is not None:
                    obj[key] = class_lookup[obj[key]]
            for key in ("source_table_ids", "target_table_ids"):
                if key in obj:
                    obj[key] = [table_lookup[t] for t in obj[key]]
            if "edge_class_ids" in obj:
                obj["edge_class_ids"] = [class_lookup[c] for c in obj["edge_class_ids"]]
            dumped_classes.append(obj)

        return {"classes": dumped_classes, "tables": dumped_tables}

    # ---- Graph views ----

    async def get_sample_graph(
        self,
        root_class: GenericClass | None = None,
        branch_limit: int | None = None,
        node_limit: int | None = None,
        edge_limit: int | None = None,
        triple_limit: int | None = None,
    ) -> dict[str, Any]:
        """Walk node and edge classes collecting a bounded sample of the graph.

        ``links`` refer to positions in ``nodes`` and ``edges``. Sampling
        stops as soon as any limit is exceeded.
        """
        graph: dict[str, Any] = {"nodes": [], "node_lookup": {}, "edges": [], "edge_lookup": {}, "links": []}
        num_triples = 0

        def add_node(node: GenericWrapper) -> bool:
            if node.instance_id not in graph["node_lookup"]:
                graph["node_lookup"][node.instance_id] = len(graph["nodes"])
                graph["nodes"].append(node)
            return _within(len(graph["nodes"]), node_limit)

        def add_edge(edge: GenericWrapper) -> bool:
            if edge.instance_id not in graph["edge_lookup"]:
                graph["edge_lookup"][edge.instance_id] = len(graph["edges"])
                graph["edges"].append(edge)
            return _within(len(graph["edges"]), edge_limit)

        def add_triple(source: GenericWrapper, edge: GenericWrapper, target: GenericWrapper) -> bool:
            nonlocal num_triples
            if not (add_node(source) and add_node(target) and add_edge(edge)):
                return False
            graph["links"].append({
                "source": graph["node_lookup"][source.instance_id],
                "target": graph["node_lookup"][target.instance_id],
                "edge": graph["edge_lookup"][edge.instance_id],
            })
            num_triples += 1
            return _within(num_triples, triple_limit)

        class_list = [root_class] if root_class is not None else list(self.classes.values())
        for class_obj in class_list:
            if class_obj.type == "Node":
                async for node in class_obj.table.iterate():
                    if not add_node(node):
                        return graph
                    async for triple in node.pairwise_neighborhood(limit=branch_limit):
                        if not add_triple(triple["source"], triple["edge"], triple["target"]):
                            return graph
            elif class_obj.type == "Edge":
                async for edge in class_obj.table.iterate():
                    if not add_edge(edge):
                        return graph
                    async for triple in edge.pairwise_edges(limit=branch_limit):
                        if not add_triple(triple["source"], edge, triple["target"]):
                            return graph
        return graph

    async def get_instance_graph(self, instances: list[GenericWrapper] | None = None) -> dict[str, Any]:
        """Graph of the given node/edge items; hanging edge ends get dummy nodes.

        Without ``instances``, the first ``instance_sample_size`` items of
        every node and edge class are used.
        """
        if instances is None:
            instances = []
            for class_obj in self.classes.values():
                if class_obj.type in ("Node", "Edge"):
                    async for item in class_obj.table.iterate(limit=self.settings.instance_sample_size):
                        instances.append(item)

        graph: dict[str, Any] = {"nodes": [], "node_lookup": {}, "edges": []}
        edge_instances = []
        for instance in instances:
            if instance.type == "Node":
                graph["node_lookup"][instance.instance_id] = len(graph["nodes"])
                graph["nodes"].append({"node_instance": instance, "dummy": False})
            elif instance.type == "Edge":
                edge_instances.append(instance)

        def add_dummy() -> int:
            graph["nodes"].append({"dummy": True})
            return len(graph["nodes"]) - 1

        for edge_instance in edge_instances:
            sources = [
                graph["node_lookup"][source.instance_id]
                async for source in edge_instance.source_nodes()
                if source.instance_id in graph["node_lookup"]
            ]
            targets = [
                graph["node_lookup"][target.instance_id]
                async for target in edge_instance.target_nodes()
                if target.instance_id in graph["node_lookup"]
            ]
            if not sources and not targets:
                source = add_dummy()
                graph["edges"].append({"edge_instance": edge_instance, "source": source, "target": add_dummy()})
            elif not sources:
                for target in targets:
                    graph["edges"].append({"edge_instance": edge_instance, "source": add_dummy(), "target": target})
            elif not targets:
                for source in sources:
                    graph["edges"].append({"edge_instance": edge_instance, "source": source, "target": add_dummy()})
            else:
                for source in sources:
                    for target in targets:
                        graph["edges"].append({"edge_instance": edge_instance, "source": source, "target": target})
        return graph

    def get_network_model_graph(
        self,
        raw: bool = True,
        include_dummies: bool = False,
        class_list: list[GenericClass] | None = None,
    ) -> dict[str, Any]:
        """Classes as vertices, node/edge class attachments as connections."""
        if class_list is None:
            class_list = list(self.classes.values())
        graph: dict[str, Any] = {"classes": [], "class_lookup": {}, "class_connections": []}

        def add_dummy() -> int:
            graph["classes"].append({"dummy": True})
            return len(graph["classes"]) - 1

        edge_classes = []
        for class_obj in class_list:
            class_spec = class_obj.to_raw_object() if raw else {"class_obj": class_obj}
            graph["class_lookup"][class_obj.class_id] = len(graph["classes"])
            graph["classes"].append(class_spec)
            if class_obj.type == "Edge":
                edge_classes.append(class_obj)
            elif class_obj.type == "Node" and include_dummies:
                node_index = len(graph["classes"]) - 1
                graph["class_connections"].append({
                    "id": f"{class_obj.class_id}>dummy",
                    "source": node_index,
                    "target": add_dummy(),
                    "directed": False,
                    "location": "node",
                    "dummy": True,
                })

        lookup = graph["class_lookup"]
        for edge_class in edge_classes:
            edge_index = lookup[edge_class.class_id]
            if edge_class.source_class_id is not None and edge_class.source_class_id in lookup:
                graph["class_connections"].append({
                    "id": f"{edge_class.source_class_id}>{edge_class.class_id}",
                    "source": lookup[edge_class.source_class_id],
                    "target": edge_index,
                    "directed": edge_class.directed,
                    "location": "source",
                })
            elif include_dummies:
                graph["class_connections"].append({
                    "id": f"dummy>{edge_class.class_id}",
                    "source": add_dummy(),
                    "target": edge_index,
                    "directed": edge_class.directed,
                    "location": "source",
                    "dummy": True,
                })
            if edge_class.target_class_id is not None and edge_class.target_class_id in lookup:
                graph["class_connections"].append({
                    "id": f"{edge_class.class_id}>{edge_class.target_class_id}",
                    "source": edge_index,
                    "target": lookup[edge_class.target_class_id],
                    "directed": edge_class.directed,
                    "location": "target",
                })
            elif include_dummies:
                graph["class_connections"].append({
                    "id": f"{edge_class.class_id}>dummy",
                    "source": edge_index,
                    "target": add_dummy(),
                    "directed": edge_class.directed,
                    "location": "target",
                    "dummy": True,
                })
        return graph

    def get_table_dependency_graph(self) -> dict[str, Any]:
        """Tables as vertices, parent -> derived links by position."""
        graph: dict[str, Any] = {"tables": [], "table_lookup": {}, "table_links": []}
        table_list = list(self.tables.values())
        for table in table_list:
            graph["table_lookup"][table.table_id] = len(graph["tables"])
            graph["tables"].append(table.to_raw_object())
        for table in table_list:
            for parent_table in table.parent_tables:
                graph["table_links"].append({
                    "source": graph["table_lookup"][parent_table.table_id],
                    "target": graph["table_lookup"][table.table_id],
                })
        return graph
