import copy
import threading
from typing import Any, Dict, Hashable, Optional


class MemoryCacheStore:
    """
    In-process key/value cache with no expiry.

    Values are deep-copied on the way in and out so a caller mutating a
    resolved result can never alter what another request reads.
    """

    extension_name = "global_sections_cache"

    def __init__(self, app=None):
        self._data: Dict[Hashable, Any] = {}
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        self.clear()
        app.extensions[self.extension_name] = self

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            if key not in self._data:
                return None
            return copy.deepcopy(self._data[key])

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def clear(self, key: Optional[Hashable] = None) -> None:
        """Drop one key, or everything when no key is given."""
        with self._lock:
            if key is None:
                self._data.clear()
            else:
                self._data.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
