"""Logging setup and task output logger for SiteLedger.

``configure_logging`` sets up structlog for scripts. The ``log_task_*``
helpers print visible banners around task results so they stand out in a
console session.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger()

# Visual markers for different log types
BANNER_WIDTH = 80
TASK_BANNER_CHAR = "═"
ERROR_BANNER_CHAR = "!"


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog with ISO timestamps and console rendering."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _format_json(data: Any, indent: int = 2) -> str:
    """Format data as pretty JSON string."""
    try:
        return json.dumps(data, indent=indent, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(data)


def log_task_start(task: str, **context: Any) -> None:
    """Log the start of a task with a banner."""
    timestamp = datetime.now(timezone.utc).isoformat()

    print("\n")
    print(_create_banner(TASK_BANNER_CHAR, f"{task.upper()} STARTED"))
    print(f"║ Timestamp : {timestamp}")
    for key, value in context.items():
        print(f"║ {key:<9} : {value}")
    print(TASK_BANNER_CHAR * BANNER_WIDTH)

    logger.info("task_start_logged", task=task, **context)


def log_task_result(task: str, result: Optional[Dict[str, Any]]) -> None:
    """Log a task result as formatted JSON."""
    print(_create_banner(TASK_BANNER_CHAR, f"✓ {task.upper()} RESULT"))
    print(_format_json(result))
    print(TASK_BANNER_CHAR * BANNER_WIDTH)

    logger.info("task_result_logged", task=task)


def log_task_error(task: str, error: Exception) -> None:
    """Log a task failure with the structured error if available."""
    to_dict = getattr(error, "to_dict", None)
    payload = to_dict() if callable(to_dict) else {"message": str(error)}

    print(_create_banner(ERROR_BANNER_CHAR, f"✗ {task.upper()} FAILED"))
    print(_format_json(payload))
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)

    logger.error("task_failed", task=task, error=str(error))
