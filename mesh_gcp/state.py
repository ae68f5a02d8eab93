import copy
import json
import os
import threading
from typing import Any, Dict, Optional

from .common import PrintLogger

WATERMARK_KEY = "lastUpdatedAt"


class StateStore:
    """Single opaque state mapping per connector instance."""

    def __init__(self, connector_id: str) -> None:
        self.connector_id = connector_id

    def get_state(self) -> Dict[str, Any]:
        raise NotImplementedError

    def save_state(self, state: Dict[str, Any]) -> None:
        raise NotImplementedError


class InMemoryStateStore(StateStore):
    def __init__(self, connector_id: str) -> None:
        super().__init__(connector_id)
        self._state: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def get_state(self) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._state)

    def save_state(self, state: Dict[str, Any]) -> None:
        with self._lock:
            self._state = copy.deepcopy(dict(state))


class JsonFileStateStore(StateStore):
    """State persisted as ``<root>/<connector_id>.json``, replaced atomically."""

    def __init__(self, connector_id: str, root: str, logger: Optional[PrintLogger] = None) -> None:
        super().__init__(connector_id)
        self.root = os.path.abspath(root)
        self.path = os.path.join(self.root, f"{connector_id.replace('/', '_')}.json")
        self.logger = logger
        self._lock = threading.Lock()
        os.makedirs(self.root, exist_ok=True)

    def get_state(self) -> Dict[str, Any]:
        with self._lock:
            if not os.path.exists(self.path):
                return {}
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"State file {self.path} does not hold a JSON object")
        return data

    def save_state(self, state: Dict[str, Any]) -> None:
        tmp_path = f"{self.path}.tmp"
        with self._lock:
            with open(tmp_path, "w", encoding="utf-8") as handle:
                json.dump(dict(state), handle, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        if self.logger:
            self.logger.debug("state_saved", connector_id=self.connector_id, path=self.path)


class WatermarkStore:
    """Reads and advances the ``lastUpdatedAt`` watermark of a state store.

    The watermark never moves backwards: ``set_watermark`` ignores values
    older than the stored one.
    """

    def __init__(self, state: StateStore, key: str = WATERMARK_KEY) -> None:
        self.state = state
        self.key = key

    def get_last_watermark(self, default_value: int = 0) -> int:
        value = self.state.get_state().get(self.key)
        if value is None:
            return default_value
        return int(value)

    def set_watermark(self, watermark: int) -> int:
        current = self.state.get_state()
        previous = current.get(self.key)
        if previous is not None and int(previous) >= watermark:
            return int(previous)
        current[self.key] = int(watermark)
        self.state.save_state(current)
        return int(watermark)


def build_state_store(connector_id: str, state_dir: Optional[str], logger: Optional[PrintLogger] = None) -> StateStore:
    if state_dir:
        return JsonFileStateStore(connector_id, state_dir, logger=logger)
    return InMemoryStateStore(connector_id)
