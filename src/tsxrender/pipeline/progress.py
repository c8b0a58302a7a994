"""Per-phase progress from collaborator callbacks.

Collaborators report fractions through callbacks that may arrive out of
order, repeat, overshoot, or arrive after the phase has completed. Each
phase keeps one monotonic "latest progress" value:

- values are clamped to [0, 1]
- when a sequence number is supplied, updates older than the newest one
  seen are discarded
- otherwise last-write-wins, but the displayed value never decreases
- updates after ``close()`` are ignored
"""

import math
import logging
import threading
from typing import Callable, Optional

__all__ = ['PhaseProgress']

logger = logging.getLogger(__name__)


class PhaseProgress:
    """Monotonic progress value for one phase.

    Parameters
    ----------
    label : str
        Human-readable label ("Bundling", "Rendering").
    sink : callable, optional
        Called as ``sink(label, value)`` whenever the value changes.
    """

    def __init__(self, label: str, sink: Optional[Callable[[str, float], None]] = None):
        self.label = label
        self.sink = sink
        self.value = 0.0
        self.history = []
        self._last_sequence = None
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def report(self, fraction: float, sequence: Optional[int] = None) -> bool:
        """Record an update. Returns True if the displayed value changed."""
        with self._lock:
            if self._closed:
                logger.debug("%s: late progress %.3f ignored", self.label, fraction)
                return False
            if sequence is not None:
                if self._last_sequence is not None and sequence <= self._last_sequence:
                    return False
                self._last_sequence = sequence

            try:
                fraction = float(fraction)
            except (TypeError, ValueError):
                return False
            if math.isnan(fraction):
                return False
            clamped = min(max(fraction, 0.0), 1.0)
            if clamped <= self.value and self.history:
                return False

            self.value = clamped
            self.history.append(clamped)

        if self.sink is not None:
            self.sink(self.label, clamped)
        return True

    def __call__(self, fraction: float, sequence: Optional[int] = None) -> None:
        self.report(fraction, sequence=sequence)

    def close(self) -> None:
        with self._lock:
            self._closed = True

    @property
    def percent(self) -> int:
        return int(round(self.value * 100))
