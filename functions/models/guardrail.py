"""Guardrail verdict models."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class ViolationCategory(str, Enum):
    """Prohibited content categories."""

    PAYMENT_ENTITLEMENT = "PAYMENT_ENTITLEMENT"
    LEGAL_ADVERSARIAL = "LEGAL_ADVERSARIAL"
    NEGOTIATION_DISPUTE = "NEGOTIATION_DISPUTE"
    COVERAGE_INTERPRETATION = "COVERAGE_INTERPRETATION"
    INTENT_PATTERN = "INTENT_PATTERN"

    # Output re-scan only
    ADVOCACY = "ADVOCACY"
    RECOMMENDATION = "RECOMMENDATION"
    RIGHTS = "RIGHTS"


class GuardrailViolation(BaseModel):
    """A matched prohibited phrase or pattern."""

    category: ViolationCategory
    match: str = Field(..., description="Phrase or pattern identifier that matched")

    class Config:
        frozen = True


class GuardrailVerdict(BaseModel):
    """Accept/reject decision with every violation found."""

    approved: bool
    violations: List[GuardrailViolation] = Field(default_factory=list)

    class Config:
        frozen = True

    @property
    def categories(self) -> List[ViolationCategory]:
        """Distinct violated categories in first-seen order."""
        seen: List[ViolationCategory] = []
        for violation in self.violations:
            if violation.category not in seen:
                seen.append(violation.category)
        return seen

    @property
    def matches(self) -> List[str]:
        return [v.match for v in self.violations]
