"""Utility modules for the estimate review functions."""

from utils.review_logger import (
    configure_logging,
    log_review_start,
    log_review_complete,
    log_review_rejected,
    log_stage_result,
)

__all__ = [
    "configure_logging",
    "log_review_start",
    "log_review_complete",
    "log_review_rejected",
    "log_stage_result",
]
