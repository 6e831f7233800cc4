"""Logging configuration for Rule Hub.

Production runs emit one JSON object per line; development runs get a
compact coloured console line with request and package details appended.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Callable

# Extra attributes copied from log records into structured output
EXTRA_FIELDS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_ip",
    "configuration_id",
    "package_id",
    "package_type",
    "rule_count",
)

# Third-party loggers kept at WARNING
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine")


def _short_id(value: Any) -> str:
    return f"{str(value)[:8]}..."


# (attribute, console rendering) in display order
CONSOLE_EXTRAS: tuple[tuple[str, Callable[[Any], str]], ...] = (
    ("status_code", lambda v: f"status={v}"),
    ("duration_ms", lambda v: f"{v:.1f}ms"),
    ("configuration_id", lambda v: f"config={_short_id(v)}"),
    ("package_id", lambda v: f"package={_short_id(v)}"),
    ("package_type", lambda v: f"type={v}"),
    ("rule_count", lambda v: f"rules={v}"),
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({name: getattr(record, name) for name in EXTRA_FIELDS if hasattr(record, name)})

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Coloured single-line formatter for development."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        details = []
        if hasattr(record, "method") and hasattr(record, "path"):
            details.append(f"{record.method} {record.path}")
        details.extend(render(getattr(record, name)) for name, render in CONSOLE_EXTRAS if hasattr(record, name))

        color = self.LEVEL_COLORS.get(record.levelname, "")
        line = (
            f"{datetime.now():%H:%M:%S} {color}{record.levelname:8}{self.RESET} "
            f"{record.name}: {record.getMessage()}"
        )
        if details:
            line += f" [{', '.join(details)}]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(debug: bool = False, json_logs: bool = False) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        debug: Log at DEBUG level and always use the console format
        json_logs: Use JSON lines (ignored when debug is on)
    """
    level = logging.DEBUG if debug else logging.INFO
    use_json = json_logs and not debug

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if use_json else ConsoleFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={logging.getLevelName(level)}, json={use_json}"
    )
