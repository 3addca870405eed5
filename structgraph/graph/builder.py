"""
Builds the structure graph from a record set.

One build pass: member index, scene/prefab containment layer, code layer,
call edges, structure edges, then layout. A builder owns a fresh registry and
aggregator; a rebuild uses a new builder.
"""
from typing import Any, Dict, List, Optional

from ..config import settings
from ..records import (
    ComponentRecord,
    ExternalClassRecord,
    GameObjectRecord,
    ProjectRecords,
)
from ..types import GraphResult, NodeKind, NodeRecord
from ..utils.logger import app_logger
from .edges import EdgeAggregator
from .identity import IdentityResolver
from .layout import ComponentCluster, ContainmentRoot, LayoutEngine, ObjectCluster
from .names import normalize_full_name
from .registry import NodeRegistry


CONSTANT_VALUE_LIMIT = 30


def constant_display_name(name: str, value: str) -> str:
    """Property label, truncating long values."""
    if len(value) > CONSTANT_VALUE_LIMIT:
        value = value[:CONSTANT_VALUE_LIMIT - 3] + "..."
    return f"{name}: {value}"


def clean_class_name(class_name: str) -> str:
    """Strip the stray ``Class:`` prefix some scans emit."""
    prefix = settings.class_name_prefix
    if prefix and class_name.startswith(prefix):
        return class_name[len(prefix):].strip()
    return class_name


def qualified_class_name(cls: ExternalClassRecord) -> str:
    name = clean_class_name(cls.class_name)
    return f"{cls.namespace_name}.{name}" if cls.namespace_name else name


def class_key(cls: ExternalClassRecord) -> str:
    return normalize_full_name(qualified_class_name(cls))


def include_in_code_band(cls: ExternalClassRecord) -> bool:
    """Code types without methods are kept only when lifecycle-significant or non-class."""
    if cls.methods or cls.is_lifecycle_type:
        return True
    return NodeKind.from_type_name(cls.type) is not NodeKind.CLASS


class GraphBuilder:
    """Populates a registry and an edge aggregator from one record set."""

    def __init__(self, resolver: Optional[IdentityResolver] = None):
        self.logger = app_logger.bind(component="graph_builder")
        self.registry = NodeRegistry()
        self.resolver = resolver or IdentityResolver()
        self.aggregator = EdgeAggregator(self.registry, self.resolver)
        self.layout_engine = LayoutEngine()
        self.roots: List[ContainmentRoot] = []
        self.code_nodes: List[NodeRecord] = []
        # Component node key -> its secondary (constant) nodes.
        self.secondary_nodes: Dict[str, List[NodeRecord]] = {}

    def build(self, records: ProjectRecords) -> GraphResult:
        """Run a full build pass over ``records``."""
        self.logger.info(f"Building graph from {records.counts()}")

        self._build_member_index(records)
        self._build_scene_layer(records)
        self._build_code_layer(records)

        for call in records.calls:
            self.aggregator.add_call(call)
        for relation in records.structure_relations:
            self.aggregator.add_structure_relation(relation)

        self.layout_engine.layout(self.roots, self.code_nodes, self.registry.libraries())

        stats = self.get_stats()
        self.logger.info(
            f"Graph built: {stats['node_count']} nodes, {stats['edge_count']} edges, "
            f"{stats['edges']['failed']} dropped relations, "
            f"{stats['edges']['libraries_created']} library nodes"
        )
        return GraphResult(
            nodes=self.registry.nodes(),
            edges=self.aggregator.edges(),
            metadata=stats,
        )

    def _build_member_index(self, records: ProjectRecords):
        for cls in records.external_classes:
            owner = class_key(cls)
            for method in list(cls.methods) + list(cls.static_initializers):
                self.resolver.register_member(method.member_id, owner)
            for event in cls.events:
                self.resolver.register_member(event.member_id, owner)

        for component in self._iter_components(records):
            owner = normalize_full_name(component.class_name)
            for method in component.methods:
                self.resolver.register_member(method.member_id, owner)

        self.logger.debug(f"Member index holds {len(self.resolver.member_index)} ids")

    def _iter_components(self, records: ProjectRecords):
        stack: List[GameObjectRecord] = []
        for scene in records.scenes:
            stack.extend(scene.game_objects)
        for prefab in records.prefabs:
            if prefab.root_object is not None:
                stack.append(prefab.root_object)
        while stack:
            go = stack.pop()
            yield from go.components
            stack.extend(go.children)

    def _build_scene_layer(self, records: ProjectRecords):
        for index, scene in enumerate(records.scenes):
            key = scene.scene_name or scene.scene_path or f"scene-{index}"
            if key in self.registry:
                # Same-named scenes in different folders keep separate nodes.
                if scene.scene_path and scene.scene_path not in self.registry:
                    taken, key = key, scene.scene_path
                else:
                    taken, key = key, self._unique_key(key)
                self.logger.warning(f"Scene key {taken} already taken, using {key}")
            scene_node = self.registry.register_node(key, NodeRecord(
                key=key, kind=NodeKind.SCENE, display_name=f"Scene: {scene.scene_name}", height=100.0))
            root = ContainmentRoot(node=scene_node)
            for go in scene.game_objects:
                cluster = self._build_game_object(go, scene_node, "contains")
                if cluster is not None:
                    root.objects.append(cluster)
            self.roots.append(root)

        for prefab in records.prefabs:
            if prefab.root_object is None:
                continue
            cluster = self._build_game_object(prefab.root_object, None, None)
            if cluster is not None:
                self.roots.append(ContainmentRoot(node=None, objects=[cluster]))

    def _unique_key(self, base: str) -> str:
        """``base``, or ``base#n`` with the smallest free n >= 2."""
        if base not in self.registry:
            return base
        n = 2
        while f"{base}#{n}" in self.registry:
            n += 1
        return f"{base}#{n}"

    def _build_game_object(self, go: GameObjectRecord, parent: Optional[NodeRecord],
                           relation: Optional[str]) -> Optional[ObjectCluster]:
        key = go.instance_id or self._unique_key(f"{parent.key if parent else ''}/{go.name}")
        candidate = NodeRecord(key=key, kind=NodeKind.GAME_OBJECT,
                               display_name=f"GameObject: {go.name}")
        go_node = self.registry.register_node(key, candidate)
        if go_node is not candidate:
            self.logger.debug(f"Skipping duplicate game object {key}")
            return None

        if parent is not None:
            self.aggregator.link(parent, go_node, relation)

        cluster = ObjectCluster(node=go_node)
        for component in go.components:
            component_cluster = self._build_component(component, go_node)
            if component_cluster is not None:
                cluster.components.append(component_cluster)

        for child in go.children:
            child_cluster = self._build_game_object(child, go_node, "child_of")
            if child_cluster is not None:
                cluster.children.append(child_cluster)
        return cluster

    def _build_component(self, component: ComponentRecord,
                         owner: NodeRecord) -> Optional[ComponentCluster]:
        type_key = normalize_full_name(component.class_name)
        # Id-less components of one type on one owner are numbered.
        key = component.instance_id or self._unique_key(f"{owner.key}/{type_key}")
        candidate = NodeRecord(key=key, kind=NodeKind.COMPONENT,
                               display_name=f"Component: {component.class_name}")
        comp_node = self.registry.register_node(key, candidate)
        if comp_node is not candidate:
            self.logger.debug(f"Skipping duplicate component {key}")
            return None
        # The first component of a type also answers to the type name.
        self.registry.register_node(type_key, comp_node)
        self.aggregator.link(owner, comp_node, "has_component")

        cluster = ComponentCluster(node=comp_node)
        for name, value in component.scalar_properties():
            const_key = f"{comp_node.key}.{name}"
            candidate = NodeRecord(
                key=const_key,
                kind=NodeKind.CONSTANT,
                display_name=constant_display_name(name, value),
                width=200.0,
                height=50.0,
            )
            const_node = self.registry.register_node(const_key, candidate)
            if const_node is candidate:
                cluster.constants.append(const_node)

        if cluster.constants:
            self.secondary_nodes[comp_node.key] = list(cluster.constants)
        return cluster

    def _build_code_layer(self, records: ProjectRecords):
        excluded = tuple(settings.excluded_namespaces_list)
        for cls in records.external_classes:
            if not include_in_code_band(cls):
                continue
            if excluded and cls.namespace_name.startswith(excluded):
                continue

            key = class_key(cls)
            if not key:
                continue
            kind = NodeKind.from_type_name(cls.type)
            qualified = qualified_class_name(cls)
            candidate = NodeRecord(key=key, kind=kind, display_name=f"{kind.value}: {qualified}")
            node = self.registry.register_node(key, candidate)
            if node is candidate:
                self.code_nodes.append(node)

    def get_stats(self) -> Dict[str, Any]:
        """Get build statistics."""
        return {
            "node_count": len(self.registry),
            "edge_count": len(self.aggregator),
            "nodes": self.registry.get_stats(),
            "edges": self.aggregator.get_stats(),
            "secondary_nodes": sum(len(nodes) for nodes in self.secondary_nodes.values()),
            "structural_calls": [call.to_dict() for call in self.aggregator.structural_calls],
        }
