"""stickychain.core.logging

Log lines are events too, just without a hash.

Messages are snake_case event names. Context goes in `extra`, never in the
message string.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from stickychain.core.config import LoggingConfig

# Attributes every LogRecord carries; anything else came from `extra`.
_RESERVED = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, event, plus extras."""

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k not in _RESERVED and not k.startswith("_"):
                out[k] = v
        if record.exc_info:
            out["exc"] = self.formatException(record.exc_info)
        return json.dumps(out, sort_keys=True, default=str)


def configure_logging(cfg: LoggingConfig) -> None:
    root = logging.getLogger("stickychain")
    root.setLevel(cfg.level.upper())

    handler = logging.StreamHandler()
    if cfg.json_output:
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))

    # Reconfiguring replaces, never stacks.
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
