"""
Identity resolution.

Records reference the same entity through several namespaces: qualified type
names (``Game.Player``), synthetic member ids handed out per scan
(``node_17``), runtime instance ids (``-4211``) and member-qualified names
(``Game.Player.Jump``). This module folds them into the canonical keys under
which nodes are registered.
"""
from typing import Dict, Iterable, List, Optional

from ..config import settings
from ..types import NodeRecord
from .names import is_built_in_type, is_instance_id, normalize_full_name, simplify_member_name
from .registry import NodeRegistry


SUFFIX_POLICIES = ("first", "longest")


class IdentityResolver:
    """Resolves raw record ids to canonical node keys."""

    def __init__(self, member_index: Optional[Dict[str, str]] = None,
                 system_namespaces: Optional[Iterable[str]] = None,
                 structural_entry_points: Optional[Iterable[str]] = None,
                 suffix_policy: Optional[str] = None):
        self.member_index: Dict[str, str] = dict(member_index or {})
        if system_namespaces is None:
            system_namespaces = settings.system_namespaces_list
        if structural_entry_points is None:
            structural_entry_points = settings.structural_entry_points_list
        self.system_namespaces = frozenset(system_namespaces)
        self.system_prefixes = tuple(f"{ns}." for ns in self.system_namespaces)
        self.structural_entry_points = frozenset(structural_entry_points)
        self.suffix_policy = suffix_policy or settings.suffix_match_policy
        if self.suffix_policy not in SUFFIX_POLICIES:
            raise ValueError(
                f"Unknown suffix match policy {self.suffix_policy!r}; expected one of {SUFFIX_POLICIES}"
            )
        self.member_prefix = settings.member_id_prefix

    def register_member(self, member_id: Optional[str], owner_key: str):
        """Map a synthetic member id to the key of its owning type (first write wins)."""
        if member_id and member_id not in self.member_index:
            self.member_index[member_id] = owner_key

    def resolve(self, raw_id: str) -> str:
        """Resolve a raw id into a canonical key."""
        if not raw_id:
            return raw_id

        if raw_id.startswith(self.member_prefix) and raw_id in self.member_index:
            return self.member_index[raw_id]

        if is_instance_id(raw_id):
            return raw_id

        return normalize_full_name(simplify_member_name(normalize_full_name(raw_id)))

    def is_system_type(self, name: str) -> bool:
        """True for builtin scalars and anything under a framework/system namespace."""
        if not name:
            return False
        if is_built_in_type(name):
            return True
        return name in self.system_namespaces or name.startswith(self.system_prefixes)

    def is_structural_entry_point(self, raw_id: str) -> bool:
        return normalize_full_name(raw_id) in self.structural_entry_points

    def is_external_library(self, name: str) -> bool:
        """A namespaced name that is neither a builtin nor a system type."""
        if not name or is_built_in_type(name):
            return False
        if name.startswith(self.system_prefixes):
            return False
        return "." in name

    def candidates(self, raw_id: str) -> List[str]:
        """Lookup keys for ``raw_id``: the resolved key, then the normalized raw id."""
        keys = []
        for key in (self.resolve(raw_id), normalize_full_name(raw_id)):
            if key and key not in keys:
                keys.append(key)
        return keys

    def find_node(self, raw_id: str, registry: NodeRegistry) -> Optional[NodeRecord]:
        """Find the node an edge endpoint refers to.

        Exact matches on each candidate key are tried first, then suffix
        matching in either direction. System types never resolve unless the id
        is a structural entry point.
        """
        if not raw_id:
            return None

        structural = self.is_structural_entry_point(raw_id)
        keys = [key for key in self.candidates(raw_id)
                if structural or not self.is_system_type(key)]

        for key in keys:
            node = registry.get(key)
            if node is not None and not node.is_secondary:
                return node

        for key in keys:
            node = self._match_suffix(key, registry)
            if node is not None:
                return node
        return None

    def _match_suffix(self, key: str, registry: NodeRegistry) -> Optional[NodeRecord]:
        # "first" keeps registry insertion order as the tie-breaker.
        best_key = None
        best_node = None
        for registered, node in registry.items():
            if node.is_secondary or not registered:
                continue
            if not (key.endswith(registered) or registered.endswith(key)):
                continue
            if self.suffix_policy == "first":
                return node
            if best_key is None or len(registered) > len(best_key):
                best_key, best_node = registered, node
        return best_node
