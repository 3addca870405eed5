from typing import Any, Dict, List, Optional, Union
from pathlib import Path

from .graph.builder import GraphBuilder
from .graph.identity import IdentityResolver
from .loader import RecordLoadError, load_records, parse_records
from .records import ProjectRecords
from .types import GraphResult, NodeRecord
from .utils.logger import app_logger
from .view.controller import InteractionController, VisibilityState
from .view.interaction import Clock


class GraphSession:
    """One interactive session over the most recently built graph.

    Every load builds into a fresh builder and swaps it in only when the
    build succeeds, so a failed load leaves the previous graph untouched.
    """

    def __init__(self, clock: Optional[Clock] = None, suffix_policy: Optional[str] = None):
        self.logger = app_logger.bind(component="graph_session")
        self.suffix_policy = suffix_policy
        self.builder: Optional[GraphBuilder] = None
        self.result = GraphResult(nodes=[], edges=[], metadata={})
        self.controller = InteractionController(clock=clock)

    def build_graph(self, records: Union[ProjectRecords, Dict[str, Any], None]) -> GraphResult:
        """Fully rebuild the graph from ``records``.

        Raises ``RecordLoadError`` for malformed record sets.
        """
        try:
            parsed = parse_records(records)
        except RecordLoadError as e:
            self.logger.error(f"Rejected record set, keeping previous graph: {e}")
            raise
        builder = GraphBuilder(IdentityResolver(suffix_policy=self.suffix_policy))
        result = builder.build(parsed)

        self.builder = builder
        self.result = result
        self.controller.load(result.nodes, result.edges, builder.secondary_nodes)
        return result

    def load_file(self, path: Union[str, Path]) -> GraphResult:
        try:
            records = load_records(path)
        except RecordLoadError as e:
            self.logger.error(f"Failed to load {path}, keeping previous graph: {e}")
            raise
        return self.build_graph(records)

    def clear(self):
        self.builder = None
        self.result = GraphResult(nodes=[], edges=[], metadata={})
        self.controller.clear()
        self.logger.info("Cleared graph")

    def get_node(self, key: str) -> Optional[NodeRecord]:
        if self.builder is None:
            return None
        return self.builder.registry.get(key)

    def filter(self, query: str) -> List[str]:
        return self.controller.filter(query)

    def toggle(self, node_key: str) -> Optional[VisibilityState]:
        node = self.get_node(node_key)
        if node is None:
            raise KeyError(node_key)
        return self.controller.toggle(node.key)

    def click(self, node_key: str, now: Optional[float] = None) -> Optional[VisibilityState]:
        node = self.get_node(node_key)
        if node is None:
            raise KeyError(node_key)
        return self.controller.click(node.key, now)

    def pan(self, dx: float, dy: float):
        self.controller.pan(dx, dy)

    def zoom(self, factor: float):
        self.controller.zoom(factor)

    def scroll(self, delta: float):
        self.controller.scroll(delta)

    def render(self) -> Dict[str, Any]:
        return self.controller.render()

    def get_node_details(self, key: str) -> Optional[Dict[str, Any]]:
        """Node plus its aggregated edges and neighbours."""
        node = self.get_node(key)
        if node is None:
            return None
        related_edges = [edge for edge in self.result.edges
                         if node.key in (edge.from_key, edge.to_key)]
        related_keys = []
        for edge in related_edges:
            for other in (edge.from_key, edge.to_key):
                if other != node.key and other not in related_keys:
                    related_keys.append(other)
        return {
            "node": node.to_dict(),
            "aliases": self.builder.registry.aliases_of(node),
            "related_edges": [edge.to_dict() for edge in related_edges],
            "related_nodes": [self.builder.registry.get(other).to_dict() for other in related_keys],
            "secondary_nodes": [n.to_dict() for n in self.controller.secondary_nodes(node.key)],
            "visibility": _state_value(self.controller.visibility(node.key)),
        }

    def stats(self) -> Dict[str, Any]:
        stats = dict(self.result.metadata)
        stats["rendered_nodes"] = len(self.controller.rendered_node_keys())
        stats["rendered_edges"] = len(self.controller.rendered_edge_keys())
        return stats


def _state_value(state: Optional[VisibilityState]) -> Optional[str]:
    return state.value if state is not None else None
