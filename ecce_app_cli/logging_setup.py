"""
App-layer JSONL logging bootstrap.
Installs one JSONL sink early in CLI startup; watch sessions record every
pattern state transition there.
"""

import json
import logging
import os
from datetime import UTC
from datetime import datetime
from pathlib import Path

DEFAULT_PATH = os.environ.get("ECCE_LOG_PATH", str(Path.home() / ".ecce" / "logs" / "ecce.log.jsonl"))
DEFAULT_LEVEL = os.environ.get("ECCE_LOG_LEVEL", "INFO").upper()

# Standard LogRecord attributes; anything else on a record came from extra=
_RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime", "taskName"}


class JsonlHandler(logging.Handler):
    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def format_record(self, record: logging.LogRecord) -> dict:
        base = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "lvl": record.levelname,
            "schema": {"name": "ecce.log", "ver": "1.0.0"},
            "logger": record.name,
            "event": getattr(record, "event", None),
            "message": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k in _RESERVED:
                continue
            base.setdefault(k, v)
        if record.exc_info and record.exc_info[1] is not None:
            base["exception"] = repr(record.exc_info[1])
        return base

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.format_record(record), ensure_ascii=False, default=str)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


def init_json_logging(path: str | None = None, level: str | None = None) -> JsonlHandler:
    path = path or os.environ.get("ECCE_LOG_PATH") or DEFAULT_PATH
    level = (level or os.environ.get("ECCE_LOG_LEVEL") or DEFAULT_LEVEL).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    # Remove existing handlers of the same kind to avoid duplicates
    for h in list(root.handlers):
        if isinstance(h, JsonlHandler):
            root.removeHandler(h)
    handler = JsonlHandler(path)
    root.addHandler(handler)
    return handler
