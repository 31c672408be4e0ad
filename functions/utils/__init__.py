"""Utility modules for SiteLedger functions."""

from utils.agent_logger import (
    configure_logging,
    log_task_start,
    log_task_result,
    log_task_error,
)

__all__ = [
    "configure_logging",
    "log_task_start",
    "log_task_result",
    "log_task_error",
]
