import json
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# -------------------------
# Global run identifiers
# -------------------------
RUN_ID = datetime.now().astimezone().strftime("%Y%m%d-%H%M%S")
_RUN_COUNTER = 0
_RUN_LOCK = threading.Lock()

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}


def next_event_seq() -> int:
    """Return a monotonically increasing event sequence number for the run."""
    global _RUN_COUNTER
    with _RUN_LOCK:
        _RUN_COUNTER += 1
        return _RUN_COUNTER


class PrintLogger:
    """Simple JSON-line logger that writes to stdout and optional file."""

    _lock = threading.Lock()

    def __init__(self, job_name: str, file_path: Optional[str] = None, level: str = "INFO") -> None:
        self.job = job_name
        self.file_path = file_path
        self.level = level.upper()

    def _enabled(self, level: str) -> bool:
        return _LEVELS.get(level, 20) >= _LEVELS.get(self.level, 20)

    def _write_line(self, line: str) -> None:
        with self._lock:
            print(line)
            if self.file_path:
                with open(self.file_path, "a", encoding="utf-8") as handle:
                    handle.write(line + "\n")

    def log(self, level: str, msg: str, **kv: Any) -> None:
        if not self._enabled(level):
            return
        rec: Dict[str, Any] = {
            "ts": datetime.now().astimezone().isoformat(timespec="milliseconds"),
            "level": level,
            "job": self.job,
            **kv,
            "msg": msg,
            "run_id": RUN_ID,
        }
        self._write_line(json.dumps(rec, separators=(",", ":"), ensure_ascii=False, default=str))

    def debug(self, msg: str, **kv: Any) -> None:
        self.log("DEBUG", msg, **kv)

    def info(self, msg: str, **kv: Any) -> None:
        self.log("INFO", msg, **kv)

    def warn(self, msg: str, **kv: Any) -> None:
        self.log("WARN", msg, **kv)

    def error(self, msg: str, **kv: Any) -> None:
        self.log("ERROR", msg, **kv)

    def event(self, event: str, level: str = "INFO", **kv: Any) -> None:
        kv = dict(kv)
        kv.setdefault("event", event)
        self.log(level, event, **kv)


def to_epoch_millis(value: Any) -> Optional[int]:
    """Normalise warehouse timestamps (datetime or millis) to epoch millis."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    return int(value)
