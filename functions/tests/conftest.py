"""Pytest configuration and shared fixtures for estimate review tests."""

import os
import sys

import pytest


# ============================================================================
# Ensure local imports work (models/, services/, pipeline/, config/)
# ============================================================================
#
# On some Windows/Python/pytest combinations (especially with importlib import mode),
# the repository root may not reliably be on sys.path during collection.
# Our codebase uses absolute imports like `from models...` / `from services...`.
#
# This guarantees that `functions/` is importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# Pipeline Fixtures
# ============================================================================

@pytest.fixture
def pipeline():
    """Sequential pipeline with exclusive O&P gap accounting."""
    from pipeline.orchestrator import EstimateReviewPipeline
    from services.op_gap_detector import OPGapDetector

    return EstimateReviewPipeline(
        op_detector=OPGapDetector(allow_overlapping_gaps=False),
        parallel_stages=False,
    )


@pytest.fixture
def parallel_pipeline():
    """Pipeline evaluating expectations and integrity on a thread pool."""
    from pipeline.orchestrator import EstimateReviewPipeline
    from services.op_gap_detector import OPGapDetector

    return EstimateReviewPipeline(
        op_detector=OPGapDetector(allow_overlapping_gaps=False),
        parallel_stages=True,
        stage_workers=2,
    )


@pytest.fixture
def make_request():
    """Build a ReviewRequest from keyword fields."""
    from models.review import ReviewRequest

    def _make(estimate_text, loss_type=None, user_input="", cost_line_items=None):
        return ReviewRequest(
            estimate_text=estimate_text,
            loss_type=loss_type,
            user_input=user_input,
            cost_line_items=cost_line_items,
        )

    return _make


# ============================================================================
# Environment
# ============================================================================

@pytest.fixture(autouse=True)
def quiet_banners(monkeypatch):
    """Keep console banners out of test output."""
    from config.settings import settings

    monkeypatch.setattr(settings, "console_banners", False)
