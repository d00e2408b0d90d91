"""Review Logger for the estimate review pipeline.

Provides highly visible, formatted console banners for review start,
stage results, completion and rejection, plus structlog setup for scripts.
Banners are printed only when settings.console_banners is on; the
structured log events are always emitted.
"""

import logging
import sys
from datetime import datetime
from typing import List, Optional

import structlog

from config.settings import settings

logger = structlog.get_logger()

# Visual markers for different log types
BANNER_WIDTH = 80
REVIEW_BANNER_CHAR = "█"
STAGE_BANNER_CHAR = "─"
REJECTION_BANNER_CHAR = "!"


def configure_logging(level: Optional[str] = None) -> None:
    """Install the structlog processor chain used by scripts.

    Args:
        level: Log level name; defaults to settings.log_level.
    """
    level_name = (level or settings.log_level).upper()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _print_block(char: str, title: str, rows: List[str]) -> None:
    print("\n")
    print(char * BANNER_WIDTH)
    print(_create_banner(char, title))
    print(char * BANNER_WIDTH)
    for row in rows:
        print(f"║ {row}")
    print(char * BANNER_WIDTH)
    print("\n")


def log_review_start(text_length: int, loss_type: str, has_cost_items: bool) -> None:
    """Log review start with prominent banner."""
    if settings.console_banners:
        _print_block(REVIEW_BANNER_CHAR, "ESTIMATE REVIEW STARTED", [
            f"Timestamp   : {datetime.utcnow().isoformat()}",
            f"Text Length : {text_length:,} chars",
            f"Loss Type   : {loss_type}",
            f"Cost Items  : {'yes' if has_cost_items else 'no'}",
        ])

    logger.info(
        "review_started",
        text_length=text_length,
        loss_type=loss_type,
        has_cost_items=has_cost_items
    )


def log_stage_result(stage: str, **summary) -> None:
    """Log a completed pipeline stage with its summary counts."""
    if settings.console_banners:
        print(STAGE_BANNER_CHAR * BANNER_WIDTH)
        print(f"  {stage:<20} " + ", ".join(f"{k}={v}" for k, v in summary.items()))

    logger.info("review_stage_completed", stage=stage, **summary)


def log_review_complete(
    confidence: float,
    trades: int,
    integrity_findings: int,
    op_score: Optional[int],
    stages: List[str]
) -> None:
    """Log successful review completion with prominent banner."""
    if settings.console_banners:
        _print_block(REVIEW_BANNER_CHAR, "✓ REVIEW COMPLETED", [
            f"Timestamp          : {datetime.utcnow().isoformat()}",
            f"Confidence         : {confidence:.2f}",
            f"Trades Detected    : {trades}",
            f"Integrity Findings : {integrity_findings}",
            f"O&P Score          : {op_score if op_score is not None else 'n/a'}",
            f"Stages             : {', '.join(stages)}",
        ])

    logger.info(
        "review_completed",
        confidence=confidence,
        trades=trades,
        integrity_findings=integrity_findings,
        op_score=op_score,
        stages=stages
    )


def log_review_rejected(
    stage: str,
    code: str,
    reason: str,
    violations: Optional[List[str]] = None
) -> None:
    """Log a review rejection with prominent banner."""
    if settings.console_banners:
        _print_block(REJECTION_BANNER_CHAR, "✗ REVIEW REJECTED", [
            f"Timestamp  : {datetime.utcnow().isoformat()}",
            f"Stage      : {stage}",
            f"Code       : {code}",
            f"Reason     : {reason}",
            f"Violations : {', '.join(violations) if violations else 'None'}",
        ])

    logger.warning(
        "review_rejected",
        stage=stage,
        code=code,
        reason=reason,
        violations=violations or []
    )
