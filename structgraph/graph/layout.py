"""
Deterministic two-band layout.

The containment band holds scenes, their object trees, attached components
and the components' property clusters. The code band is a flat column of code
types followed by library nodes. Positions are top-left corners.
"""
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..config import settings
from ..types import NodeRecord, Position


NODE_MARGIN = 10.0


@dataclass
class ComponentCluster:
    node: NodeRecord
    constants: List[NodeRecord] = field(default_factory=list)


@dataclass
class ObjectCluster:
    node: NodeRecord
    components: List[ComponentCluster] = field(default_factory=list)
    children: List["ObjectCluster"] = field(default_factory=list)


@dataclass
class ContainmentRoot:
    """A scene (with its node) or a prefab (without one) and its root objects."""
    node: Optional[NodeRecord]
    objects: List[ObjectCluster] = field(default_factory=list)


def cluster_radius(count: int, width: float, height: float,
                   base_radius: Optional[float] = None,
                   radius_step: Optional[float] = None) -> float:
    """Radius of a circular cluster of ``count`` equally sized nodes.

    Grows with the count past three nodes, and never drops below the radius
    at which neighbouring nodes on the circle are a full diagonal apart.
    """
    if count <= 1:
        return 0.0
    base_radius = settings.circle_radius if base_radius is None else base_radius
    radius_step = settings.radius_step if radius_step is None else radius_step
    radius = base_radius + max(0, count - 3) * radius_step
    separation = math.hypot(width, height) + NODE_MARGIN
    chord_radius = separation / (2 * math.sin(math.pi / count))
    return max(radius, chord_radius)


def cluster_positions(count: int, center_x: float, center_y: float,
                      radius: float) -> List[Tuple[float, float]]:
    """Evenly spaced points on a circle, starting at the top (-pi/2)."""
    if count <= 0:
        return []
    if count == 1:
        return [(center_x, center_y)]
    positions = []
    for i in range(count):
        angle = i / count * 2 * math.pi - math.pi / 2
        positions.append((center_x + math.cos(angle) * radius,
                          center_y + math.sin(angle) * radius))
    return positions


class LayoutEngine:
    """Assigns non-overlapping coordinates to every node of a build."""

    def __init__(self):
        self.x_external = settings.x_external
        self.x_scene = settings.x_scene
        self.y_start = settings.y_start
        self.external_y_gap = settings.external_y_gap
        self.grid_spacing = settings.grid_spacing
        self.scene_offset_y = settings.scene_offset_y
        self.component_offset_y = settings.component_offset_y
        self.constant_offset_y = settings.constant_offset_y
        self.cluster_gap = settings.cluster_gap
        self.child_offset_y = settings.child_offset_y
        self.scene_gap = settings.scene_gap

    def layout(self, roots: List[ContainmentRoot], code_nodes: List[NodeRecord],
               libraries: List[NodeRecord]) -> float:
        """Lay out both bands; returns the bottom of the containment band."""
        bottom = self.layout_containment(roots)
        self.layout_code_band(code_nodes, libraries)
        return bottom

    def layout_containment(self, roots: List[ContainmentRoot]) -> float:
        y = self.y_start
        bottom = y
        for root in roots:
            row_y = y
            bottom = y
            if root.node is not None:
                _place(root.node, self.x_scene, y)
                bottom = y + root.node.height
                row_y = y + self.scene_offset_y

            x = self.x_scene
            for obj in root.objects:
                right, obj_bottom = self.layout_object(obj, x, row_y)
                bottom = max(bottom, obj_bottom)
                x = max(x + 2 * self.grid_spacing, right + self.cluster_gap)

            y = bottom + self.scene_gap
        return bottom

    def layout_object(self, obj: ObjectCluster, x: float, y: float) -> Tuple[float, float]:
        """Place an object subtree with its left edge at ``x``; returns (right, bottom)."""
        _place(obj.node, x, y)
        right = x + obj.node.width
        bottom = y + obj.node.height

        if obj.components:
            right, bottom = self._layout_components(obj.components, x, bottom, right)

        child_y = bottom + self.child_offset_y
        for child in obj.children:
            child_right, child_bottom = self.layout_object(child, x, child_y)
            right = max(right, child_right)
            bottom = max(bottom, child_bottom)
            child_y = child_bottom + self.child_offset_y
        return right, bottom

    def _layout_components(self, components: List[ComponentCluster], x: float,
                           top: float, right: float) -> Tuple[float, float]:
        sample = components[0].node
        radius = cluster_radius(len(components), sample.width, sample.height)
        center_x = x + radius
        center_y = top + self.component_offset_y + radius
        for component, (cx, cy) in zip(components, cluster_positions(len(components), center_x, center_y, radius)):
            _place(component.node, cx, cy)

        right = max(right, center_x + radius + sample.width)
        bottom = center_y + radius + sample.height

        # Property clusters, packed left to right in component order.
        band_top = bottom + self.constant_offset_y
        cursor = x
        band_bottom = bottom
        for component in components:
            count = len(component.constants)
            if count == 0:
                continue
            first = component.constants[0]
            const_radius = cluster_radius(count, first.width, first.height)
            positions = cluster_positions(count, cursor + const_radius, band_top + const_radius, const_radius)
            for constant, (cx, cy) in zip(component.constants, positions):
                _place(constant, cx, cy)
            cursor += 2 * const_radius + first.width
            right = max(right, cursor)
            band_bottom = max(band_bottom, band_top + 2 * const_radius + first.height)
            cursor += self.cluster_gap
        return right, band_bottom

    def layout_code_band(self, code_nodes: List[NodeRecord], libraries: List[NodeRecord]):
        """Stack code types, then libraries in creation order."""
        y = self.y_start
        for node in list(code_nodes) + list(libraries):
            _place(node, self.x_external, y)
            y += self.external_y_gap


def _place(node: NodeRecord, x: float, y: float):
    node.position = Position(x=x, y=y)
