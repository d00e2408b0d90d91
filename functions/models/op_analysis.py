"""Overhead & profit (O&P) analysis models."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class OPGapType(str, Enum):
    MISSING_ON_RECOVERABLE = "MISSING_ON_RECOVERABLE"
    MISSING_ON_ESTIMATE = "MISSING_ON_ESTIMATE"
    IMPROPER_RATE = "IMPROPER_RATE"
    APPLIED_TO_NON_RECOVERABLE = "APPLIED_TO_NON_RECOVERABLE"


class OPGapSeverity(str, Enum):
    """Severities used by the O&P detector only."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MODERATE = "MODERATE"


class OPGap(BaseModel):
    """A single O&P gap with its estimated dollar impact."""

    gap_type: OPGapType = Field(..., alias="gapType")
    severity: OPGapSeverity
    description: str = Field(..., description="Neutral description of the gap")
    estimated_impact: float = Field(..., ge=0, alias="estimatedImpact", description="Estimated impact ($)")
    recoverable_depreciation: float = Field(..., alias="recoverableDepreciation")
    expected_op: float = Field(..., alias="expectedOP")
    actual_op: float = Field(..., alias="actualOP")
    line_items_affected: List[int] = Field(default_factory=list, alias="lineItemsAffected")

    class Config:
        populate_by_name = True
        frozen = True


class OPAnalysis(BaseModel):
    """Overhead & profit presence, rate and gaps for one estimate."""

    has_op: bool = Field(..., alias="hasOP")
    op_amount: float = Field(..., alias="opAmount")
    op_percentage: float = Field(..., alias="opPercentage", description="O&P as a percent of non-O&P RCV")
    recoverable_depreciation: float = Field(..., alias="recoverableDepreciation")
    expected_op_on_recoverable: float = Field(..., alias="expectedOPOnRecoverable")
    estimate_total: float = Field(..., alias="estimateTotal", description="RCV total of non-O&P items")
    gaps: List[OPGap] = Field(default_factory=list)
    total_impact: float = Field(..., ge=0, alias="totalImpact")
    op_score: int = Field(..., ge=0, le=100, alias="opScore")
    ruleset_version: str = Field(..., alias="rulesetVersion")

    class Config:
        populate_by_name = True
        frozen = True

    def gap_types(self) -> List[OPGapType]:
        return [g.gap_type for g in self.gaps]
