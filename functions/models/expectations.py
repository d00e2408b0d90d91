"""Loss-type expectation models.

These describe commonly observed trade patterns per loss type. They are
observations, not statements about what is covered or owed.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from models.findings import Severity


class LossType(str, Enum):
    """Recognized loss types. Anything else resolves to OTHER."""

    WATER = "WATER"
    FIRE = "FIRE"
    WIND = "WIND"
    HAIL = "HAIL"
    COLLISION = "COLLISION"
    OTHER = "OTHER"

    @classmethod
    def resolve(cls, value: Optional[str]) -> "LossType":
        """Map a free-form label onto a loss type, falling back to OTHER."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.OTHER
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.OTHER


class TierPartition(BaseModel):
    """Trade codes split by expectation tier."""

    required: List[str] = Field(default_factory=list)
    common: List[str] = Field(default_factory=list)
    conditional: List[str] = Field(default_factory=list)

    class Config:
        frozen = True

    def all_codes(self) -> List[str]:
        return [*self.required, *self.common, *self.conditional]


class ExpectationSummary(BaseModel):
    total_detected: int = Field(..., ge=0, alias="totalDetected")
    expected_required: int = Field(..., ge=0, alias="expectedRequired")
    expected_common: int = Field(..., ge=0, alias="expectedCommon")
    expected_conditional: int = Field(..., ge=0, alias="expectedConditional")

    class Config:
        populate_by_name = True
        frozen = True


class ExpectationFinding(BaseModel):
    """Comparison of detected trades against one loss type's matrix."""

    loss_type: LossType = Field(..., alias="lossType")
    description: str = Field(..., description="Loss type description")
    matrix_version: str = Field(..., alias="matrixVersion")
    detected_expected: TierPartition = Field(
        default_factory=TierPartition,
        alias="detectedExpected",
        description="Expected trades that were detected"
    )
    not_detected_expected: TierPartition = Field(
        default_factory=TierPartition,
        alias="notDetectedExpected",
        description="Expected trades that were not detected"
    )
    detected_unexpected: List[str] = Field(
        default_factory=list,
        alias="detectedUnexpected",
        description="Detected trades outside the matrix"
    )
    summary: ExpectationSummary

    class Config:
        populate_by_name = True
        frozen = True


class ObservationCategory(str, Enum):
    REQUIRED_TRADES_NOT_DETECTED = "REQUIRED_TRADES_NOT_DETECTED"
    REQUIRED_TRADES_DETECTED = "REQUIRED_TRADES_DETECTED"
    COMMON_TRADES_NOT_DETECTED = "COMMON_TRADES_NOT_DETECTED"
    UNEXPECTED_TRADES_DETECTED = "UNEXPECTED_TRADES_DETECTED"
    SUMMARY = "SUMMARY"


class ExpectationObservation(BaseModel):
    """One neutral sentence derived from an expectation comparison."""

    category: ObservationCategory
    severity: Severity
    observation: str
    trades: List[str] = Field(default_factory=list)

    class Config:
        frozen = True
