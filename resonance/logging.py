"""
JSON logging for the API and the CLI.

One object per line. Request fields passed through ``extra`` (see
``REQUEST_FIELDS``) become top-level keys, so access logs can be filtered by
path or status without parsing the message.
"""

import json
import logging
from typing import Any, Dict, Union

REQUEST_FIELDS = ("method", "path", "status", "duration_ms", "client")


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for field in REQUEST_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """Install the JSON handler on the root logger once; later calls only change the level."""
    root = logging.getLogger()
    root.setLevel(level)
    if any(isinstance(h.formatter, _JsonFormatter) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
