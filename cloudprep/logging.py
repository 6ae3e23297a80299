"""Logging setup shared by the CLI and the control plane."""

import json
import logging
import sys
from datetime import datetime, timezone

LOGGER_NAMES = ("cloudprep", "controlplane")

# Logs every request and response header at INFO
AZURE_HTTP_LOGGER = "azure.core.pipeline.policies.http_logging_policy"


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(level: int | str = logging.INFO, json_format: bool = False) -> None:
    """Configure the project loggers.

    Args:
        level: Logging level (name or number)
        json_format: Emit one JSON object per line instead of plain text
    """
    if isinstance(level, str):
        name = level
        level = logging.getLevelName(name.upper())
        if not isinstance(level, int):
            raise ValueError(f"unknown log level {name!r}")

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )

    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.handlers.clear()
        logger.addHandler(handler)

    logging.getLogger(AZURE_HTTP_LOGGER).setLevel(logging.WARNING)
