"""
Pointer input primitives: buttons, double-click coalescing and the viewport.
"""
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from ..config import settings
from ..types import Position


Clock = Callable[[], float]


class MouseButton(Enum):
    PRIMARY = 0
    SECONDARY = 1
    MIDDLE = 2


PAN_BUTTONS = (MouseButton.SECONDARY, MouseButton.MIDDLE)


class ClickState(Enum):
    IDLE = "idle"
    PENDING = "pending"


class DoubleClickDetector:
    """Coalesces two primary clicks on the same node into a double click.

    ``Idle -> PendingClick(node, t)``; a second click on that node before
    ``t + interval`` completes the double click and returns to ``Idle``. Once
    the interval has elapsed the pending click is dropped without effect.
    """

    def __init__(self, interval: Optional[float] = None, clock: Optional[Clock] = None):
        self.interval = settings.double_click_interval if interval is None else interval
        self.clock = clock or time.monotonic
        self.state = ClickState.IDLE
        self.pending_key: Optional[str] = None
        self.pending_time: Optional[float] = None

    def reset(self):
        self.state = ClickState.IDLE
        self.pending_key = None
        self.pending_time = None

    def expire(self, now: Optional[float] = None) -> bool:
        """Drop a pending click whose window has elapsed; True if one was dropped."""
        if self.state is not ClickState.PENDING:
            return False
        now = self.clock() if now is None else now
        if now - self.pending_time >= self.interval:
            self.reset()
            return True
        return False

    def click(self, key: str, now: Optional[float] = None) -> bool:
        """Register a click on ``key``; True when it completes a double click."""
        now = self.clock() if now is None else now
        self.expire(now)
        if self.state is ClickState.PENDING and self.pending_key == key:
            self.reset()
            return True
        self.state = ClickState.PENDING
        self.pending_key = key
        self.pending_time = now
        return False


@dataclass
class Viewport:
    """Pan/zoom transform from layout space to screen space."""
    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0

    def pan(self, dx: float, dy: float):
        self.x += dx
        self.y += dy

    def zoom(self, factor: float, min_scale: Optional[float] = None,
             max_scale: Optional[float] = None):
        if factor <= 0:
            raise ValueError(f"Zoom factor must be positive, got {factor}")
        min_scale = settings.min_zoom if min_scale is None else min_scale
        max_scale = settings.max_zoom if max_scale is None else max_scale
        self.scale = min(max(self.scale * factor, min_scale), max_scale)

    def to_screen(self, position: Position) -> Tuple[float, float]:
        return (position.x * self.scale + self.x, position.y * self.scale + self.y)

    def to_layout(self, point: Tuple[float, float]) -> Position:
        return Position(x=(point[0] - self.x) / self.scale, y=(point[1] - self.y) / self.scale)

    def reset(self):
        self.x = 0.0
        self.y = 0.0
        self.scale = 1.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "scale": self.scale}


def scroll_factor(delta: float, step: Optional[float] = None) -> float:
    """Exponential zoom step for one wheel tick; scrolling down zooms out."""
    step = settings.zoom_step if step is None else step
    if delta == 0:
        return 1.0
    return step ** (-1 if delta > 0 else 1)
