"""
View state for a built graph: visibility toggles, search highlighting and the viewport.
"""

from .controller import InteractionController, VisibilityState
from .interaction import DoubleClickDetector, MouseButton, Viewport

__all__ = [
    'InteractionController',
    'VisibilityState',
    'DoubleClickDetector',
    'MouseButton',
    'Viewport',
]
