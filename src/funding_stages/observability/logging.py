"""
Structured logging setup.

Provides console, text-file and JSON-lines logging.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, date, datetime
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from funding_stages.config.settings import Settings

# =============================================================================
# Constants
# =============================================================================

# Log tags for special message handling
LOG_TAG_STAGE = "[STAGE]"
LOG_TAG_STORE = "[STORE]"

# Extra record attributes copied into JSON lines
JSON_EXTRA_KEYS = ("owner_id", "stage_id", "event_type", "version", "error_code")

__all__ = [
    "setup_logging",
    "get_logger",
    "JSONFormatter",
    "TrackerLogFormatter",
    "LOG_TAG_STAGE",
    "LOG_TAG_STORE",
]


class _JSONEncoder(json.JSONEncoder):
    """JSON encoder for dates, enums and other types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if hasattr(obj, "__dict__"):
            return str(obj)
        return super().default(obj)


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in JSON_EXTRA_KEYS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, cls=_JSONEncoder)


class TrackerLogFormatter(logging.Formatter):
    """
    Console formatter with colours per level.

    Messages tagged [STAGE] (lifecycle transitions) are highlighted cyan,
    [STORE] messages are dimmed.
    """

    RESET = "\033[0m"
    GREY = "\033[90m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BOLD_RED = "\033[1;91m"
    CYAN = "\033[96m"

    def __init__(self, use_colors: bool = True):
        super().__init__(datefmt="%H:%M:%S")
        reset = self.RESET if use_colors else ""

        def fmt(color: str, label: str, whole_line: bool = False) -> logging.Formatter:
            color = color if use_colors else ""
            if whole_line:
                pattern = f"{color}%(asctime)s [{label}] %(message)s{reset}"
            else:
                pattern = f"{color}%(asctime)s [{label}]{reset} %(message)s"
            return logging.Formatter(pattern, datefmt="%H:%M:%S")

        self._formatters: dict[str, logging.Formatter] = {
            "DEBUG": fmt(self.GREY, "DEBUG", whole_line=True),
            "INFO": fmt(self.GREEN, "INFO"),
            "WARNING": fmt(self.YELLOW, "WARN", whole_line=True),
            "ERROR": fmt(self.RED, "ERROR", whole_line=True),
            "CRITICAL": fmt(self.BOLD_RED, "CRITICAL", whole_line=True),
            "STAGE": fmt(self.CYAN, "STAGE"),
            "STORE": fmt(self.GREY, "STORE", whole_line=True),
        }

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()

        if LOG_TAG_STAGE in msg and record.levelno < logging.WARNING:
            record.msg = msg.replace(LOG_TAG_STAGE, "").strip()
            record.args = ()
            return self._formatters["STAGE"].format(record)
        if LOG_TAG_STORE in msg and record.levelno < logging.WARNING:
            record.msg = msg.replace(LOG_TAG_STORE, "").strip()
            record.args = ()
            return self._formatters["STORE"].format(record)

        formatter_key = record.levelname if record.levelname in self._formatters else "INFO"
        return self._formatters[formatter_key].format(record)


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """
    Set up logging with console and optional file/JSON handlers.

    Returns the root logger.
    """
    if settings is None:
        from funding_stages.config.settings import get_settings

        settings = get_settings()

    level = getattr(logging, settings.logging.level.upper(), logging.INFO)
    if settings.testing_mode and level > logging.DEBUG:
        level = logging.DEBUG

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Console handler (stderr keeps CLI output on stdout clean)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(TrackerLogFormatter(use_colors=sys.stderr.isatty()))
    root_logger.addHandler(console_handler)

    if settings.logging.file_enabled:
        logs_dir = Path(settings.logging.log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        file_handler = logging.FileHandler(logs_dir / f"funding_stages_{timestamp}.log", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        root_logger.addHandler(file_handler)

    if settings.logging.json_enabled:
        json_path = Path(settings.logging.json_file)
        json_path.parent.mkdir(parents=True, exist_ok=True)

        max_bytes = int(settings.logging.json_max_bytes or 0)
        backup_count = int(settings.logging.json_backup_count or 0)
        if max_bytes > 0 and backup_count > 0:
            json_handler: logging.Handler = RotatingFileHandler(
                json_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        else:
            json_handler = logging.FileHandler(json_path, encoding="utf-8")
        json_handler.setLevel(level)
        json_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(json_handler)

    # Reduce noise from verbose libraries
    for lib in ["asyncio", "aiosqlite"]:
        logging.getLogger(lib).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)
