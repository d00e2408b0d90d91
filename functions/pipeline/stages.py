"""Review pipeline stage registry.

Contains metadata for every stage of one review request and the tracker
that enforces forward-only progress through them.
"""

from typing import Any, Dict, List, Optional

from config.errors import ErrorCode, PipelineError
from models.review import PipelineStage

# Stages in execution order. EXPECTATIONS and INTEGRITY are independent of
# each other and may be evaluated concurrently.
STAGE_SEQUENCE: List[PipelineStage] = [
    PipelineStage.RECEIVED,
    PipelineStage.GUARDRAIL_RAW,
    PipelineStage.PARSED,
    PipelineStage.GUARDRAIL_EXTRACTED,
    PipelineStage.EXPECTATIONS,
    PipelineStage.INTEGRITY,
    PipelineStage.OP_ANALYSIS,
    PipelineStage.ASSEMBLED,
]

STAGE_CARDS: Dict[PipelineStage, Dict[str, Any]] = {
    PipelineStage.RECEIVED: {
        "description": "Request accepted for review",
        "gate": False,
        "optional": False,
    },
    PipelineStage.GUARDRAIL_RAW: {
        "description": "Prohibited-content scan of the submitted text and user input",
        "gate": True,
        "optional": False,
    },
    PipelineStage.PARSED: {
        "description": "Format confidence gate and line-item extraction",
        "gate": True,
        "optional": False,
    },
    PipelineStage.GUARDRAIL_EXTRACTED: {
        "description": "Prohibited-content scan of extracted line-item text",
        "gate": True,
        "optional": False,
    },
    PipelineStage.EXPECTATIONS: {
        "description": "Detected trades compared with the loss-type expectation matrix",
        "gate": False,
        "optional": False,
    },
    PipelineStage.INTEGRITY: {
        "description": "Integrity rule battery over the line items",
        "gate": False,
        "optional": False,
    },
    PipelineStage.OP_ANALYSIS: {
        "description": "Overhead & profit gap detection on priced line items",
        "gate": False,
        "optional": True,
    },
    PipelineStage.ASSEMBLED: {
        "description": "Neutral result assembled for the report formatter",
        "gate": False,
        "optional": False,
    },
}


def get_stage_card(stage: PipelineStage) -> Dict[str, Any]:
    """Get metadata for a stage."""
    return STAGE_CARDS[stage]


def is_gate(stage: PipelineStage) -> bool:
    """Check whether a failure at this stage rejects the request."""
    return STAGE_CARDS[stage]["gate"]


class StageTracker:
    """Records completed stages for one request, forward only."""

    def __init__(self):
        self.completed: List[PipelineStage] = [PipelineStage.RECEIVED]

    @property
    def current(self) -> PipelineStage:
        """Last completed stage."""
        return self.completed[-1]

    @property
    def next_stage(self) -> Optional[PipelineStage]:
        """Stage after the last completed one, if any."""
        index = STAGE_SEQUENCE.index(self.current)
        return STAGE_SEQUENCE[index + 1] if index + 1 < len(STAGE_SEQUENCE) else None

    def advance(self, stage: PipelineStage) -> None:
        """Mark a stage complete.

        Optional stages may be skipped; required stages may not.

        Raises:
            PipelineError: If the stage is out of order or a required stage was skipped.
        """
        current_index = STAGE_SEQUENCE.index(self.current)
        target_index = STAGE_SEQUENCE.index(stage)
        if target_index <= current_index:
            raise PipelineError(
                code=ErrorCode.PIPELINE_INVALID_STATE,
                message=f"Stage {stage.value} cannot follow {self.current.value}",
                stage=stage.value,
            )

        skipped = [
            s for s in STAGE_SEQUENCE[current_index + 1:target_index]
            if not STAGE_CARDS[s]["optional"]
        ]
        if skipped:
            raise PipelineError(
                code=ErrorCode.PIPELINE_INVALID_STATE,
                message=f"Stage {stage.value} reached before {skipped[0].value}",
                stage=stage.value,
                details={"skipped": [s.value for s in skipped]},
            )

        self.completed.append(stage)
