"""Structured JSON logging with workflow/node context."""
import logging
import sys
from typing import Any, Optional

from pythonjsonlogger import jsonlogger

from node_sdk.config import get_settings


class NodeContextFilter(logging.Filter):
    """Add node context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add default context fields if not present."""
        if not hasattr(record, "workflow_id"):
            record.workflow_id = None
        if not hasattr(record, "node_name"):
            record.node_name = None
        if not hasattr(record, "node_type"):
            record.node_type = None
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with standardized field names."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if "timestamp" not in log_record:
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        for field in ("workflow_id", "node_name", "node_type"):
            value = getattr(record, field, None)
            if value:
                log_record[field] = value
            else:
                log_record.pop(field, None)


def setup_logging() -> None:
    """Configure logging for a process hosting the node pack."""
    settings = get_settings()

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_json:
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(node_name)s] %(message)s"
        )
    handler.setFormatter(formatter)
    handler.addFilter(NodeContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("google.auth").setLevel(logging.WARNING)


def node_log_extra(
    context: Optional[Any] = None,
    node_type: Optional[str] = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Build the ``extra`` dict for a log call made on behalf of a node.

    Args:
        context: NodeExecutionContext (or None outside an execution)
        node_type: Node type identifier
        **kwargs: Additional context fields

    Returns:
        Dict to pass as extra parameter to logger methods
    """
    extra = kwargs.copy()
    if context is not None:
        if getattr(context, "workflow_id", None):
            extra["workflow_id"] = context.workflow_id
        if getattr(context, "node_name", None):
            extra["node_name"] = context.node_name
    if node_type:
        extra["node_type"] = node_type
    return extra
