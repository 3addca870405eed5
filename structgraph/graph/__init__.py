"""
Graph module for resolving, aggregating and laying out project structure graphs.
"""

from .builder import GraphBuilder
from .edges import EdgeAggregator
from .identity import IdentityResolver
from .layout import LayoutEngine
from .registry import NodeRegistry

__all__ = [
    'GraphBuilder',
    'EdgeAggregator',
    'IdentityResolver',
    'LayoutEngine',
    'NodeRegistry',
]
