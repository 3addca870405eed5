from typing import Dict, Iterator, List, Optional, Tuple

from ..types import NodeKind, NodeRecord
from .names import extract_library_name


class NodeRegistry:
    """Create-if-absent node store.

    ``_nodes`` is the arena of distinct nodes in creation order; ``_index`` maps
    every alias (type name, instance id, qualified name) to a node in the arena.
    """

    def __init__(self):
        self._nodes: List[NodeRecord] = []
        self._members: set = set()
        self._index: Dict[str, NodeRecord] = {}
        self._libraries: Dict[str, NodeRecord] = {}

    def register_node(self, key: str, node: NodeRecord) -> NodeRecord:
        """Register ``node`` under ``key`` unless the key is taken.

        Returns the node held under ``key`` afterwards, which is the earlier
        node when the key was already registered.
        """
        if not key:
            return node
        existing = self._index.get(key)
        if existing is not None:
            return existing
        self._index[key] = node
        if id(node) not in self._members:
            self._members.add(id(node))
            self._nodes.append(node)
        return node

    def get(self, key: str) -> Optional[NodeRecord]:
        return self._index.get(key)

    def contains(self, key: str) -> bool:
        return key in self._index

    def __contains__(self, key: str) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self._nodes)

    def keys(self) -> List[str]:
        return list(self._index)

    def items(self) -> Iterator[Tuple[str, NodeRecord]]:
        return iter(list(self._index.items()))

    def nodes(self, kind: Optional[NodeKind] = None) -> List[NodeRecord]:
        """All distinct nodes in creation order, optionally of one kind."""
        if kind is None:
            return list(self._nodes)
        return [node for node in self._nodes if node.kind is kind]

    def aliases_of(self, node: NodeRecord) -> List[str]:
        return [key for key, value in self._index.items() if value is node]

    def get_or_create_library(self, qualified_name: str) -> Tuple[NodeRecord, bool]:
        """Library node for the first namespace segment of ``qualified_name``.

        Returns ``(node, created)``. Both the short and the full name become
        aliases of the library node.
        """
        short_name = extract_library_name(qualified_name)
        node = self._libraries.get(short_name)
        created = node is None
        if created:
            key = short_name
            if key in self._index:
                # A non-library node already owns the bare name.
                key = f"{short_name}#library"
            node = NodeRecord(
                key=key,
                kind=NodeKind.LIBRARY,
                display_name=f"Library: {short_name}",
            )
            self._libraries[short_name] = node
            self.register_node(key, node)
        self.register_node(short_name, node)
        self.register_node(qualified_name, node)
        return node, created

    def libraries(self) -> List[NodeRecord]:
        """Library nodes in creation order."""
        return list(self._libraries.values())

    def clear(self):
        self._nodes.clear()
        self._members.clear()
        self._index.clear()
        self._libraries.clear()

    def get_stats(self) -> Dict[str, int]:
        """Count distinct nodes by kind."""
        counts: Dict[str, int] = {}
        for node in self._nodes:
            counts[node.kind.value] = counts.get(node.kind.value, 0) + 1
        return counts
