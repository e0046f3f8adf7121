"""
Logging setup for MCP Assistant.

Console output goes to stderr through Rich so it never interleaves with
the chat transcript on stdout. An optional rotating file handler keeps a
full log, in text or JSON lines.
"""

import json
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

# Third-party loggers that are chatty at INFO.
NOISY_LOGGERS = [
    "httpx", "httpcore", "h11", "urllib3",
    "openai", "openai.agents", "agents", "mcp",
]

_RESERVED_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "taskName",
    "processName", "process", "exc_info", "exc_text", "stack_info",
}


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # Fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                entry[key] = value

        return json.dumps(entry, default=str)


def _to_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper())
    return level


class AssistantLogger:
    """Process-wide logging configuration."""

    def __init__(self):
        self._loggers: Dict[str, logging.Logger] = {}
        self._setup_done = False

    def setup_logging(
        self,
        enabled: bool = True,
        level: Union[str, int] = logging.INFO,
        console_level: Union[str, int] = logging.WARNING,
        log_file: Optional[Path] = None,
        format_type: str = "text",
        enable_rich: bool = True,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
        suppress_http: bool = True,
        force: bool = False,
    ) -> None:
        """
        Configure the root logger.

        Args:
            enabled: When False only CRITICAL records are emitted
            level: File logging level
            console_level: Console logging level
            log_file: Path to a rotating log file (optional)
            format_type: 'text' or 'json'
            enable_rich: Use Rich for console output
            max_bytes: Maximum log file size before rotation
            backup_count: Number of rotated files to keep
            suppress_http: Raise HTTP and SDK loggers to WARNING
            force: Reconfigure even if logging was already set up
        """
        if self._setup_done and not force:
            return

        root_logger = logging.getLogger()
        root_logger.handlers.clear()

        if not enabled:
            root_logger.setLevel(logging.CRITICAL)
            self._quiet(logging.CRITICAL)
            self._setup_done = True
            return

        level = _to_level(level)
        console_level = _to_level(console_level)
        root_logger.setLevel(min(level, console_level) if log_file else console_level)

        if enable_rich:
            console_handler: logging.Handler = RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=True,
                markup=False,
                show_path=False,
            )
        else:
            console_handler = logging.StreamHandler(sys.stderr)
            if format_type == "json":
                console_handler.setFormatter(JSONFormatter())
            else:
                console_handler.setFormatter(
                    logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
                )
        console_handler.setLevel(console_level)
        root_logger.addHandler(console_handler)

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            if format_type == "json":
                file_handler.setFormatter(JSONFormatter())
            else:
                file_handler.setFormatter(
                    logging.Formatter(
                        "%(asctime)s | %(levelname)s | %(name)s | "
                        "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
                    )
                )
            file_handler.setLevel(level)
            root_logger.addHandler(file_handler)

        if suppress_http:
            self._quiet(logging.WARNING)

        self._setup_done = True

    @staticmethod
    def _quiet(level: int) -> None:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(level)

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a named logger."""
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]


# Global logger instance
_logger_manager = AssistantLogger()

# Convenience functions
setup_logging = _logger_manager.setup_logging
get_logger = _logger_manager.get_logger
