"""
OnceDrop Gate Cache
In-process mirror of the persisted "dropped" flag. Never the source of truth.
"""
import threading


class GateCache:
    """Thread-safe boolean snapshot of the gate record."""

    def __init__(self):
        self._lock = threading.Lock()
        self._granted = False
        self._loaded = False

    @property
    def loaded(self) -> bool:
        with self._lock:
            return self._loaded

    def is_granted(self) -> bool:
        with self._lock:
            return self._granted

    def set(self, granted: bool):
        with self._lock:
            self._granted = bool(granted)
            self._loaded = True

    def mark_granted(self):
        self.set(True)

    def clear(self):
        """Forget everything, back to the not-loaded state."""
        with self._lock:
            self._granted = False
            self._loaded = False
