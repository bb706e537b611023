"""
Velocity estimation from the selected candidate's recent positions.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional

from models.track import TrackedPosition


class VelocityTracker:
    """
    Bounded position history plus instantaneous speed (pixels/second).

    Speed is the displacement from the immediately preceding position
    divided by the elapsed time. A non-positive elapsed time leaves the
    previous speed unchanged.
    """

    def __init__(self, history_size: int = 20):
        if history_size < 2:
            raise ValueError("history_size must be at least 2")
        self.history_size = history_size
        self._history: Deque[TrackedPosition] = deque(maxlen=history_size)
        self._velocity = 0.0

    @property
    def velocity(self) -> float:
        return self._velocity

    @property
    def last_position(self) -> Optional[TrackedPosition]:
        return self._history[-1] if self._history else None

    @property
    def history(self) -> List[TrackedPosition]:
        return list(self._history)

    def update(self, x: float, y: float, timestamp: float) -> float:
        """Record a position and return the current speed."""
        current = TrackedPosition(x=float(x), y=float(y), timestamp=float(timestamp))
        previous = self.last_position
        if previous is None:
            self._velocity = 0.0
        else:
            dt = current.timestamp - previous.timestamp
            if dt > 0:
                self._velocity = current.distance_to(previous) / dt
        self._history.append(current)
        return self._velocity

    def clear_velocity(self) -> None:
        """No candidate this frame: speed decays to zero, history is kept."""
        self._velocity = 0.0

    def reset(self) -> None:
        self._history.clear()
        self._velocity = 0.0
