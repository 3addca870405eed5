from typing import List, Dict, Any, Optional, Tuple
from dataclasses import dataclass
from enum import Enum

from ..config import settings
from ..graph.edges import HAS_PROPERTY
from ..types import EdgeRecord, NodeRecord
from ..utils.logger import app_logger
from .interaction import (
    Clock,
    DoubleClickDetector,
    MouseButton,
    PAN_BUTTONS,
    Viewport,
    scroll_factor,
)


class VisibilityState(Enum):
    COLLAPSED = "collapsed"
    EXPANDED = "expanded"


@dataclass
class NodeStyle:
    opacity: float = 1.0
    outlined: bool = False


@dataclass
class EdgeStyle:
    opacity: float = 1.0


def format_labels(edge: EdgeRecord) -> List[str]:
    """Display labels of an edge; repeated labels render as ``label×N``."""
    return [label if count == 1 else f"{label}×{count}" for label, count in edge.labels.items()]


class InteractionController:
    """Owns the render set and user-driven view state of one built graph."""

    def __init__(self, nodes: Optional[List[NodeRecord]] = None,
                 edges: Optional[List[EdgeRecord]] = None,
                 secondary_nodes: Optional[Dict[str, List[NodeRecord]]] = None,
                 clock: Optional[Clock] = None):
        self.logger = app_logger.bind(component="interaction_controller")
        self.clicks = DoubleClickDetector(clock=clock)
        self.viewport = Viewport()
        self.dim_opacity = settings.dim_opacity
        self.query = ""
        self._panning = False
        self._pan_origin: Optional[Tuple[float, float]] = None
        self.load(nodes or [], edges or [], secondary_nodes or {})

    def load(self, nodes: List[NodeRecord], edges: List[EdgeRecord],
             secondary_nodes: Dict[str, List[NodeRecord]]):
        """Replace all view state with a freshly built graph."""
        self._nodes: Dict[str, NodeRecord] = {node.key: node for node in nodes}
        self._secondary = {key: list(value) for key, value in secondary_nodes.items()}
        self._visibility: Dict[str, VisibilityState] = {
            key: VisibilityState.COLLAPSED for key in self._secondary
        }
        self._build_order = {node.key: index for index, node in enumerate(nodes)}
        # Draw order: later entries render on top.
        self._render_nodes: Dict[str, NodeRecord] = {
            node.key: node for node in nodes if not node.is_secondary
        }
        self._render_edges: Dict[Tuple[str, str, str], EdgeRecord] = {
            edge.dedup_key: edge for edge in edges
        }
        self._node_styles: Dict[str, NodeStyle] = {key: NodeStyle() for key in self._render_nodes}
        self._edge_styles: Dict[Tuple[str, str, str], EdgeStyle] = {
            key: EdgeStyle() for key in self._render_edges
        }
        self.query = ""
        self.clicks.reset()
        self._panning = False
        self._pan_origin = None

    def clear(self):
        self.load([], [], {})
        self.viewport.reset()

    # Render set

    def rendered_node_keys(self) -> List[str]:
        """Rendered node keys in draw order."""
        return list(self._render_nodes)

    def rendered_edge_keys(self) -> List[Tuple[str, str, str]]:
        return list(self._render_edges)

    def is_rendered(self, key: str) -> bool:
        return key in self._render_nodes

    def node_style(self, key: str) -> NodeStyle:
        return self._node_styles[key]

    def edge_style(self, edge_key: Tuple[str, str, str]) -> EdgeStyle:
        return self._edge_styles[edge_key]

    def secondary_nodes(self, key: str) -> List[NodeRecord]:
        return list(self._secondary.get(key, []))

    def visibility(self, key: str) -> Optional[VisibilityState]:
        return self._visibility.get(key)

    # Visibility toggling

    def toggle(self, key: str) -> Optional[VisibilityState]:
        """Expand or collapse the secondary nodes of a component.

        Returns the new state, or ``None`` when the node owns no secondary
        nodes. Raises ``KeyError`` for unknown nodes.
        """
        if key not in self._nodes:
            raise KeyError(key)
        constants = self._secondary.get(key)
        if not constants:
            return None

        owner = self._nodes[key]
        if self._visibility[key] is VisibilityState.COLLAPSED:
            for constant in constants:
                self._render_nodes[constant.key] = constant
                self._node_styles[constant.key] = NodeStyle()
                edge = EdgeRecord(from_key=owner.key, to_key=constant.key, kind=HAS_PROPERTY)
                self._render_edges[edge.dedup_key] = edge
                self._edge_styles[edge.dedup_key] = EdgeStyle()
            state = VisibilityState.EXPANDED
        else:
            for constant in constants:
                self._render_nodes.pop(constant.key, None)
                self._node_styles.pop(constant.key, None)
                edge_key = (owner.key, constant.key, HAS_PROPERTY)
                self._render_edges.pop(edge_key, None)
                self._edge_styles.pop(edge_key, None)
            state = VisibilityState.COLLAPSED

        self._visibility[key] = state
        if self.query:
            self.filter(self.query)
        self.logger.debug(f"{key} -> {state.value} ({len(constants)} property nodes)")
        return state

    def click(self, key: str, now: Optional[float] = None) -> Optional[VisibilityState]:
        """Primary click on a node; a double click toggles its secondary nodes."""
        if key not in self._secondary:
            return None
        if self.clicks.click(key, now):
            return self.toggle(key)
        return None

    # Search

    def filter(self, query: str) -> List[str]:
        """Highlight nodes whose display name contains ``query``; returns matched keys."""
        self.query = query or ""
        if not self.query:
            self.clear_search_filter()
            return []

        needle = self.query.lower()
        matched = [key for key, node in self._render_nodes.items()
                   if needle in node.display_name.lower()]
        matched_set = set(matched)

        for key, style in self._node_styles.items():
            if key in matched_set:
                style.opacity = 1.0
                style.outlined = True
            else:
                style.opacity = self.dim_opacity
                style.outlined = False

        # Raise matches to the front, keeping their relative order.
        for key in matched:
            self._render_nodes[key] = self._render_nodes.pop(key)

        for edge_key, style in self._edge_styles.items():
            from_key, to_key, _ = edge_key
            visible = from_key in matched_set or to_key in matched_set
            style.opacity = 1.0 if visible else self.dim_opacity
        return matched

    def clear_search_filter(self):
        self.query = ""
        # Matches raised by the search go back to build order.
        order = self._build_order
        self._render_nodes = dict(sorted(self._render_nodes.items(), key=lambda item: order[item[0]]))
        for style in self._node_styles.values():
            style.opacity = 1.0
            style.outlined = False
        for style in self._edge_styles.values():
            style.opacity = 1.0

    # Viewport

    def pan(self, dx: float, dy: float):
        self.viewport.pan(dx, dy)

    def zoom(self, factor: float):
        self.viewport.zoom(factor)

    def scroll(self, delta: float):
        self.viewport.zoom(scroll_factor(delta))

    def pointer_down(self, button: MouseButton, position: Tuple[float, float],
                     modifier: bool = False, node_key: Optional[str] = None,
                     now: Optional[float] = None) -> Optional[VisibilityState]:
        """Start a pan gesture or deliver a primary click to ``node_key``."""
        if button in PAN_BUTTONS or (button is MouseButton.PRIMARY and modifier):
            self._panning = True
            self._pan_origin = position
            self.clicks.reset()
            return None
        if button is MouseButton.PRIMARY and node_key is not None:
            return self.click(node_key, now)
        return None

    def pointer_move(self, position: Tuple[float, float]):
        if not self._panning:
            return
        dx = position[0] - self._pan_origin[0]
        dy = position[1] - self._pan_origin[1]
        self._pan_origin = position
        self.viewport.pan(dx, dy)

    def pointer_up(self, button: MouseButton):
        if self._panning:
            self._panning = False
            self._pan_origin = None

    @property
    def is_panning(self) -> bool:
        return self._panning

    # Snapshot

    def render(self) -> Dict[str, Any]:
        """Snapshot of everything currently drawn, in draw order."""
        nodes = []
        for key, node in self._render_nodes.items():
            style = self._node_styles[key]
            data = node.to_dict()
            data["opacity"] = style.opacity
            data["outlined"] = style.outlined
            screen_x, screen_y = self.viewport.to_screen(node.position)
            data["screen"] = {"x": screen_x, "y": screen_y}
            nodes.append(data)

        edges = []
        for edge_key, edge in self._render_edges.items():
            data = edge.to_dict()
            data["labels"] = format_labels(edge)
            data["opacity"] = self._edge_styles[edge_key].opacity
            edges.append(data)

        return {
            "nodes": nodes,
            "edges": edges,
            "viewport": self.viewport.to_dict(),
            "query": self.query,
            "expanded": [key for key, state in self._visibility.items()
                         if state is VisibilityState.EXPANDED],
        }
