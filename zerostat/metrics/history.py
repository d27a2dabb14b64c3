"""
Fixed-size ring of recent metric snapshots used for trend charts.
"""

import threading
from typing import Callable, List, Optional

from zerostat.metrics.snapshot import MetricSnapshot

DEFAULT_HISTORY_SIZE = 60


class HistoryBuffer:
    """Circular buffer of snapshots, oldest overwritten first"""

    def __init__(self, capacity: int = DEFAULT_HISTORY_SIZE):
        if capacity < 1:
            raise ValueError(f"History capacity must be >= 1, got {capacity}")

        self.capacity = capacity
        self._slots: List[Optional[MetricSnapshot]] = [None] * capacity
        self._index = 0
        self._lock = threading.Lock()

    def append(self, snapshot: MetricSnapshot) -> None:
        with self._lock:
            self._slots[self._index] = snapshot
            self._index = (self._index + 1) % self.capacity

    def snapshots(self) -> List[MetricSnapshot]:
        """
        Return retained snapshots in chronological order.

        The slot at the write index is the oldest once the ring has
        wrapped; empty slots only exist before the first wrap.
        """
        with self._lock:
            ordered = []
            for i in range(self.capacity):
                snapshot = self._slots[(self._index + i) % self.capacity]
                if snapshot is not None:
                    ordered.append(snapshot)
            return ordered

    def latest(self) -> Optional[MetricSnapshot]:
        with self._lock:
            return self._slots[(self._index - 1) % self.capacity]

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for s in self._slots if s is not None)


def generate_points(snapshots: List[MetricSnapshot], width: float, height: float,
                    max_value: float, picker: Callable[[MetricSnapshot], float],
                    capacity: int = DEFAULT_HISTORY_SIZE) -> str:
    """
    Build an SVG polyline "x,y x,y ..." string for a metric trend.

    Args:
        snapshots: Chronologically ordered snapshots
        width: Chart width
        height: Chart height
        max_value: Value drawn at the top edge (100 for percentages)
        picker: Extracts the plotted value from a snapshot
        capacity: Number of slots the x axis is divided into

    Returns:
        Space separated points, or "" when there is no history
    """
    values = [picker(s) for s in snapshots]
    if not values or max_value <= 0:
        return ""

    def to_y(value: float) -> float:
        value = min(max(value, 0.0), max_value)
        return height - (value / max_value) * height

    if len(values) == 1:
        y = to_y(values[0])
        return f"0,{y:.2f} {width:.2f},{y:.2f}"

    step = width / max(capacity - 1, 1)
    return " ".join(f"{i * step:.2f},{to_y(v):.2f}" for i, v in enumerate(values))
