"""Review request and result models.

The accepted result and the rejection are the only two shapes the pipeline
returns; there is no partial result.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.expectations import ExpectationFinding, ExpectationObservation, LossType
from models.findings import IntegrityFinding
from models.guardrail import GuardrailViolation
from models.line_item import CostLineItem, LineItem, TradeRef
from models.op_analysis import OPAnalysis
from models.parse_result import ParseMetadata


DISCLAIMER = (
    "This is an automated, observational estimate analysis. It identifies "
    "patterns in the submitted line items only. No coverage, pricing, or "
    "entitlement determinations are made."
)


class PipelineStage(str, Enum):
    """Stages of one review request."""

    RECEIVED = "RECEIVED"
    GUARDRAIL_RAW = "GUARDRAIL_RAW"
    PARSED = "PARSED"
    GUARDRAIL_EXTRACTED = "GUARDRAIL_EXTRACTED"
    EXPECTATIONS = "EXPECTATIONS"
    INTEGRITY = "INTEGRITY"
    OP_ANALYSIS = "OP_ANALYSIS"
    ASSEMBLED = "ASSEMBLED"
    REJECTED = "REJECTED"


class EstimateCategory(str, Enum):
    PROPERTY = "PROPERTY"
    AUTO = "AUTO"
    COMMERCIAL = "COMMERCIAL"
    UNKNOWN = "UNKNOWN"
    AMBIGUOUS = "AMBIGUOUS"


class EstimateClassification(BaseModel):
    """Informational estimate-type classification."""

    category: EstimateCategory
    confidence: Optional[str] = Field(default=None, description="HIGH or MEDIUM when classified")
    scores: Dict[str, int] = Field(default_factory=dict)

    class Config:
        frozen = True


class ReviewRequest(BaseModel):
    """One estimate submitted for review."""

    estimate_text: str = Field(..., alias="estimateText", description="Free-text estimate document")
    user_input: str = Field(default="", alias="userInput", description="Accompanying free-form text")
    loss_type: Optional[str] = Field(default=None, alias="lossType")
    damage_type: Optional[str] = Field(default=None, alias="damageType")
    cost_line_items: Optional[List[CostLineItem]] = Field(
        default=None,
        alias="costLineItems",
        description="Priced lines for O&P analysis; the stage is skipped when absent"
    )

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def resolved_loss_type(self) -> LossType:
        return LossType.resolve(self.loss_type or self.damage_type)


class ReviewResult(BaseModel):
    """Accepted review output handed to the report formatter."""

    confidence: float = Field(..., ge=0.0, le=1.0)
    trades_detected: List[TradeRef] = Field(default_factory=list, alias="tradesDetected")
    line_items: List[LineItem] = Field(default_factory=list, alias="lineItems")
    parse_metadata: ParseMetadata = Field(..., alias="parseMetadata")
    classification: EstimateClassification
    expectation_findings: ExpectationFinding = Field(..., alias="expectationFindings")
    expectation_observations: List[ExpectationObservation] = Field(
        default_factory=list, alias="expectationObservations"
    )
    integrity_findings: List[IntegrityFinding] = Field(default_factory=list, alias="integrityFindings")
    integrity_summary: Dict[str, int] = Field(default_factory=dict, alias="integritySummary")
    op_analysis: Optional[OPAnalysis] = Field(default=None, alias="opAnalysis")
    stages_completed: List[PipelineStage] = Field(default_factory=list, alias="stagesCompleted")
    ruleset_versions: Dict[str, str] = Field(default_factory=dict, alias="rulesetVersions")
    disclaimer: str = DISCLAIMER

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def rejected(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class ReviewRejection(BaseModel):
    """Terminal rejection at the earliest failing gate."""

    stage: PipelineStage
    code: str
    reason: str
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    bucket: Optional[str] = None
    violations: List[GuardrailViolation] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def rejected(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return {"rejected": True, **data}
