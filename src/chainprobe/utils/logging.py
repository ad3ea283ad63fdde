"""Logging configuration.

chainprobe uses standard library `logging` with a small convenience wrapper:
- `configure_logging()` sets up root logging once.
- `get_logger()` returns a module logger.

With JSON output each record becomes one line:

    {"ts": "...", "level": "INFO", "logger": "chainprobe.execution.executor",
     "message": "Workflow finished", "context": {"workflow_id": "...", ...}}

`context` holds whatever the caller passed through ``extra=``. Run records
(dataclasses), workflow models (pydantic) and enums are reduced to JSON
values first.

Named loggers: ``chainprobe.tool_calls`` (one record per tool invocation),
``chainprobe.llm`` (completions) and ``chainprobe.mcp_client`` (transport).
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel

from chainprobe.config.settings import Settings

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Attributes every LogRecord carries; anything else came in through extra=.
_BUILTIN_FIELDS = frozenset(vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def _to_json_value(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, Enum):
        return value.value
    return value


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the ``extra=`` fields attached to a record."""
    return {
        key: _to_json_value(value)
        for key, value in vars(record).items()
        if key not in _BUILTIN_FIELDS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per record, extras nested under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = record_context(record)
        if context:
            entry["context"] = context
        if record.exc_info and record.exc_info[0] is not None:
            entry["error"] = {
                "type": record.exc_info[0].__name__,
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(
    *,
    level: str = "INFO",
    json_logs: bool = False,
    settings: Optional[Settings] = None,
) -> None:
    """Install a single root handler unless one is already present.

    `settings`, when given, overrides `level` and `json_logs`.
    """
    if settings is not None:
        level, json_logs = settings.log_level, settings.json_logs

    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if json_logs else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
