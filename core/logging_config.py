"""Structured logging configuration with correlation fields."""
import logging
import json
import sys
import uuid
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from contextvars import ContextVar

# Context variables for log correlation
current_run_id: ContextVar[str] = ContextVar("run_id", default="")
current_request_id: ContextVar[str] = ContextVar("request_id", default="")
current_sheet_name: ContextVar[str] = ContextVar("sheet_name", default="")
current_cell: ContextVar[str] = ContextVar("cell", default="")
current_player_name: ContextVar[str] = ContextVar("player_name", default="")

_CONTEXT_VARS = {
    "run_id": current_run_id,
    "request_id": current_request_id,
    "sheet_name": current_sheet_name,
    "cell": current_cell,
    "player_name": current_player_name,
}


def generate_run_id() -> str:
    """Generate a unique run ID for log correlation."""
    return f"run_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"


class JSONFormatter(logging.Formatter):
    """JSON log formatter with correlation fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add correlation fields if present
        for name, var in _CONTEXT_VARS.items():
            if value := var.get():
                log_data[name] = value

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields from record
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter with correlation fields."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        # Build context string
        ctx_parts = []
        if run_id := current_run_id.get():
            ctx_parts.append(f"run={run_id[:16]}")
        if request_id := current_request_id.get():
            ctx_parts.append(f"req={request_id}")
        if cell := current_cell.get():
            sheet = current_sheet_name.get()
            ctx_parts.append(f"cell={sheet}!{cell}" if sheet else f"cell={cell}")
        if player_name := current_player_name.get():
            ctx_parts.append(f"player={player_name}")

        ctx_str = f" [{', '.join(ctx_parts)}]" if ctx_parts else ""

        msg = f"{timestamp} {record.levelname:8s} {record.name}{ctx_str}: {record.getMessage()}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    logger_name: Optional[str] = None,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" for structured logs, "text" for human-readable
        logger_name: Specific logger name, or None for root logger

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers
    logger.handlers.clear()

    # Create handler
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Set formatter
    if format_type.lower() == "json":
        formatter = JSONFormatter()
    else:
        formatter = TextFormatter()

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


class LogContext:
    """Context manager for setting and clearing log context."""

    def __init__(
        self,
        run_id: Optional[str] = None,
        request_id: Optional[str] = None,
        sheet_name: Optional[str] = None,
        cell: Optional[str] = None,
        player_name: Optional[str] = None,
    ):
        self._values = {
            "run_id": run_id,
            "request_id": request_id,
            "sheet_name": sheet_name,
            "cell": cell,
            "player_name": player_name,
        }
        self._tokens = {}

    def __enter__(self):
        for name, value in self._values.items():
            if value:
                self._tokens[name] = _CONTEXT_VARS[name].set(value)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for name, token in self._tokens.items():
            _CONTEXT_VARS[name].reset(token)
        self._tokens.clear()
        return False
