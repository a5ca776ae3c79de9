"""Structured logging infrastructure for the API layer.

Provides JSON-formatted logging for production and human-readable
logging for development, plus a TaleLogger helper for tale lifecycle,
engagement and generation events.
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Extra fields copied from log records into the JSON payload
STRUCTURED_FIELDS = ("tale_id", "user_id", "action", "likes", "duration", "error_type")


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        for field_name in STRUCTURED_FIELDS:
            if hasattr(record, field_name):
                log_data[field_name] = getattr(record, field_name)

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(json_format: bool = True, level: int | str = logging.INFO) -> None:
    """Configure structured logging for the application."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Create console handler
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)


class TaleLogger:
    """Logger for tale events with structured fields."""

    def __init__(self):
        self.logger = logging.getLogger("tales")

    def tale_created(self, tale_id: str, user_id: str) -> None:
        self.logger.info(
            "Tale created",
            extra={"tale_id": tale_id, "user_id": user_id, "action": "create"},
        )

    def tale_updated(self, tale_id: str, user_id: str) -> None:
        self.logger.info(
            "Tale updated",
            extra={"tale_id": tale_id, "user_id": user_id, "action": "update"},
        )

    def tale_deleted(self, tale_id: str, user_id: str) -> None:
        self.logger.info(
            "Tale deleted",
            extra={"tale_id": tale_id, "user_id": user_id, "action": "delete"},
        )

    def engagement_changed(self, tale_id: str, user_id: str, action: str, likes: int) -> None:
        self.logger.info(
            f"Tale {action}d",
            extra={"tale_id": tale_id, "user_id": user_id, "action": action, "likes": likes},
        )

    def access_denied(self, tale_id: str, user_id: str | None, action: str, error: Exception) -> None:
        self.logger.warning(
            f"Denied {action}: {error}",
            extra={
                "tale_id": tale_id,
                "user_id": user_id,
                "action": action,
                "error_type": type(error).__name__,
            },
        )

    def generation_started(self, user_id: str, target_word_count: int) -> None:
        self.logger.info(
            f"Tale generation started ({target_word_count} words)",
            extra={"user_id": user_id, "action": "generate"},
        )

    def generation_completed(self, user_id: str, duration: float) -> None:
        self.logger.info(
            "Tale generation completed",
            extra={"user_id": user_id, "action": "generate", "duration": round(duration, 2)},
        )

    def generation_failed(self, user_id: str, error: Exception) -> None:
        self.logger.error(
            f"Tale generation failed: {error}",
            extra={"user_id": user_id, "action": "generate", "error_type": type(error).__name__},
            exc_info=True,
        )


# Global tale logger instance
tale_logger = TaleLogger()
