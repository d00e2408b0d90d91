"""Estimate review pipeline.

Stage registry and the orchestrator that sequences one review request.
"""

from pipeline.orchestrator import EstimateReviewPipeline
from pipeline.stages import STAGE_SEQUENCE, StageTracker

__all__ = ["EstimateReviewPipeline", "STAGE_SEQUENCE", "StageTracker"]
