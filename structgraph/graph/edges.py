from typing import List, Dict, Any, Optional, Tuple
from collections import Counter

from ..types import EdgeRecord, NodeRecord, StructuralCall
from ..records import CallRecord, StructureRelationRecord
from ..utils.logger import app_logger
from .identity import IdentityResolver
from .names import normalize_full_name
from .registry import NodeRegistry


CALL_BUCKET = "call"
HAS_PROPERTY = "has_property"
UNLABELED_RELATIONS = ("contains", "child_of", "has_component", HAS_PROPERTY)


def relation_bucket(relation_kind: Optional[str]) -> str:
    """Coarse dedup bucket of a structure relation."""
    return (relation_kind or "").strip().lower()


def should_label_relation(relation_kind: Optional[str]) -> bool:
    """Containment/composition relations render without a label."""
    if not relation_kind:
        return False
    lowered = relation_kind.lower()
    return not any(kind in lowered for kind in UNLABELED_RELATIONS)


class EdgeAggregator:
    """Resolves relation records into deduplicated, label-aggregating edges."""

    def __init__(self, registry: NodeRegistry, resolver: IdentityResolver):
        self.logger = app_logger.bind(component="edge_aggregator")
        self.registry = registry
        self.resolver = resolver
        self._edges: Dict[Tuple[str, str, str], EdgeRecord] = {}
        # Every accepted record, before aggregation.
        self.relations: List[Tuple[str, str, str, str]] = []
        self.structural_calls: List[StructuralCall] = []
        self.stats: Dict[str, Any] = self._initialize_stats()

    def _initialize_stats(self) -> Dict[str, Any]:
        return {
            "created": 0,
            "merged": 0,
            "failed": 0,
            "self_edges": 0,
            "libraries_created": 0,
            "call_kinds": Counter(),
        }

    def clear(self):
        self._edges.clear()
        self.relations.clear()
        self.structural_calls.clear()
        self.stats = self._initialize_stats()

    def edges(self) -> List[EdgeRecord]:
        """Edges in creation order."""
        return list(self._edges.values())

    def get_edge(self, from_key: str, to_key: str, kind: str) -> Optional[EdgeRecord]:
        return self._edges.get((from_key, to_key, kind))

    def __len__(self) -> int:
        return len(self._edges)

    def link(self, from_node: Optional[NodeRecord], to_node: Optional[NodeRecord],
             kind: str, label: Optional[str] = None) -> Optional[EdgeRecord]:
        """Add or merge an edge between two resolved nodes.

        Returns ``None`` when an endpoint is missing or both endpoints are the
        same node; the failure counter is bumped in both cases.
        """
        if from_node is None or to_node is None:
            self.stats["failed"] += 1
            return None
        if from_node is to_node:
            self.stats["failed"] += 1
            self.stats["self_edges"] += 1
            return None

        dedup_key = (from_node.key, to_node.key, kind)
        edge = self._edges.get(dedup_key)
        if edge is None:
            edge = EdgeRecord(from_key=from_node.key, to_key=to_node.key, kind=kind)
            self._edges[dedup_key] = edge
            self.stats["created"] += 1
        else:
            self.stats["merged"] += 1
        edge.add_label(label)
        self.relations.append((from_node.key, to_node.key, kind, label or ""))
        return edge

    def _library_for(self, raw_id: str) -> Optional[NodeRecord]:
        name = normalize_full_name(raw_id)
        if not self.resolver.is_external_library(name):
            return None
        node, created = self.registry.get_or_create_library(name)
        if created:
            self.stats["libraries_created"] += 1
            self.logger.debug(f"Created library node {node.key} for {name}")
        return node

    def add_call(self, call: CallRecord) -> Optional[EdgeRecord]:
        """Aggregate one call record into the edge set."""
        from_node = self.resolver.find_node(call.from_id, self.registry)
        to_node = self.resolver.find_node(call.to_id, self.registry)

        if self.resolver.is_structural_entry_point(call.to_id):
            self.structural_calls.append(StructuralCall(
                from_key=from_node.key if from_node is not None else self.resolver.resolve(call.from_id),
                target=normalize_full_name(call.to_id),
                call_kind=call.call_kind,
                method_name=call.method_name,
            ))

        if from_node is None:
            from_node = self._library_for(call.from_id)
        if to_node is None:
            to_node = self._library_for(call.to_id)

        edge = self.link(from_node, to_node, CALL_BUCKET, call.label())
        if edge is None:
            self.logger.debug(f"Dropped call {call.from_id} -> {call.to_id} ({call.call_kind})")
        else:
            self.stats["call_kinds"][call.call_kind or "unknown"] += 1
        return edge

    def add_structure_relation(self, relation: StructureRelationRecord) -> Optional[EdgeRecord]:
        """Aggregate one structure relation record into the edge set."""
        from_node = self.resolver.find_node(relation.from_id, self.registry)
        to_node = self.resolver.find_node(relation.to_id, self.registry)

        if to_node is None:
            to_node = self._library_for(relation.to_id)

        label = relation.relation_kind if should_label_relation(relation.relation_kind) else None
        edge = self.link(from_node, to_node, relation_bucket(relation.relation_kind), label)
        if edge is None:
            self.logger.debug(
                f"Dropped {relation.relation_kind} relation {relation.from_id} -> {relation.to_id}"
            )
        return edge

    def get_stats(self) -> Dict[str, Any]:
        """Get aggregation statistics."""
        stats = dict(self.stats)
        stats["call_kinds"] = dict(self.stats["call_kinds"])
        stats["edges"] = len(self._edges)
        stats["structural_calls"] = len(self.structural_calls)
        return stats
