from typing import List, Dict, Any, Optional, Tuple
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum


class NodeKind(Enum):
    """Node kind enumeration."""
    SCENE = "Scene"
    GAME_OBJECT = "GameObject"
    COMPONENT = "Component"
    CLASS = "Class"
    INTERFACE = "Interface"
    STRUCT = "Struct"
    ENUM = "Enum"
    LIBRARY = "Library"
    CONSTANT = "Constant"

    @classmethod
    def from_type_name(cls, type_name: Optional[str]) -> "NodeKind":
        """Map an external class type ("class", "interface", ...) to a node kind."""
        return {
            "interface": cls.INTERFACE,
            "enum": cls.ENUM,
            "struct": cls.STRUCT,
        }.get((type_name or "").lower(), cls.CLASS)

    @property
    def is_code_type(self) -> bool:
        return self in (NodeKind.CLASS, NodeKind.INTERFACE, NodeKind.STRUCT, NodeKind.ENUM)


@dataclass
class Position:
    """Top-left corner of a node in layout space."""
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(eq=False)
class NodeRecord:
    """Represents a node in the structure graph.

    Node kinds share this single record; ``kind`` is the tag. Instances compare
    by identity so the same object reached through several aliases is one node.
    """
    key: str
    kind: NodeKind
    display_name: str
    position: Position = field(default_factory=Position)
    width: float = 250.0
    height: float = 80.0

    @property
    def is_secondary(self) -> bool:
        return self.kind is NodeKind.CONSTANT

    def bounds(self) -> Tuple[float, float, float, float]:
        """Return (left, top, right, bottom)."""
        return (
            self.position.x,
            self.position.y,
            self.position.x + self.width,
            self.position.y + self.height,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "kind": self.kind.value,
            "display_name": self.display_name,
            "position": self.position.to_dict(),
            "width": self.width,
            "height": self.height,
        }


@dataclass(eq=False)
class EdgeRecord:
    """Represents an aggregated edge between two resolved nodes."""
    from_key: str
    to_key: str
    kind: str
    labels: Counter = field(default_factory=Counter)

    @property
    def dedup_key(self) -> Tuple[str, str, str]:
        return (self.from_key, self.to_key, self.kind)

    def add_label(self, label: Optional[str]):
        """Count one more occurrence of ``label``; empty labels are ignored."""
        if label:
            self.labels[label] += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "from_key": self.from_key,
            "to_key": self.to_key,
            "kind": self.kind,
            "labels": dict(self.labels),
        }


@dataclass
class StructuralCall:
    """A call into a structurally significant framework entry point."""
    from_key: str
    target: str
    call_kind: str
    method_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_key": self.from_key,
            "target": self.target,
            "call_kind": self.call_kind,
            "method_name": self.method_name,
        }


@dataclass
class GraphResult:
    """Represents a built graph."""
    nodes: List[NodeRecord]
    edges: List[EdgeRecord]
    metadata: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "metadata": self.metadata,
        }
