import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            log["exc_info"] = self.formatException(record.exc_info)
        # Structured context is passed as logger.warning(..., extra={"context": {...}})
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            log.update(context)
        return json.dumps(log, ensure_ascii=False, default=str)


def init_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """Initialize root logger with JSON output (stdout unless a stream is given)."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())
