"""Integrity finding models.

Severity-tagged, neutral observations produced by the parser's first pass
and by the integrity rule engine.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """Finding severity. Ordinal is used for sorting and counts only."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        """Ordinal where a higher value is more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}


class IntegrityFindingType(str, Enum):
    """Fixed set of integrity rule identifiers."""

    ZERO_QUANTITY = "ZERO_QUANTITY"
    ZERO_QUANTITY_WITH_LABOR = "ZERO_QUANTITY_WITH_LABOR"
    REMOVAL_WITHOUT_REPLACEMENT = "REMOVAL_WITHOUT_REPLACEMENT"
    REPLACEMENT_WITHOUT_REMOVAL = "REPLACEMENT_WITHOUT_REMOVAL"
    DRYWALL_WITHOUT_PAINT = "DRYWALL_WITHOUT_PAINT"
    FLOORING_REMOVAL_WITHOUT_REINSTALL = "FLOORING_REMOVAL_WITHOUT_REINSTALL"
    LABOR_WITHOUT_MATERIAL = "LABOR_WITHOUT_MATERIAL"
    MATERIAL_WITHOUT_LABOR = "MATERIAL_WITHOUT_LABOR"
    INCONSISTENT_QUANTITIES = "INCONSISTENT_QUANTITIES"


class IntegrityFinding(BaseModel):
    """A single structural observation about the line-item set."""

    type: IntegrityFindingType = Field(..., description="Rule identifier")
    severity: Severity = Field(..., description="Finding severity")
    observation: str = Field(..., description="One neutral, factual sentence")
    trade: Optional[str] = Field(default=None, description="Trade code the finding concerns")
    trade_name: Optional[str] = Field(default=None, alias="tradeName", description="Trade name")
    room: Optional[str] = Field(default=None, description="Room the finding concerns")
    line_items_affected: List[int] = Field(
        default_factory=list,
        alias="lineItemsAffected",
        description="Line numbers of the items involved"
    )
    quantities: List[float] = Field(
        default_factory=list,
        description="Distinct quantities observed (quantity findings only)"
    )

    class Config:
        populate_by_name = True
        frozen = True


class IntegrityReport(BaseModel):
    """Ordered integrity findings with per-severity counts."""

    ruleset_version: str = Field(..., alias="rulesetVersion")
    findings: List[IntegrityFinding] = Field(default_factory=list)
    summary: Dict[str, int] = Field(
        default_factory=dict,
        description="Finding count per severity"
    )

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def total_findings(self) -> int:
        return len(self.findings)

    def by_severity(self) -> Dict[Severity, List[IntegrityFinding]]:
        """Group findings by severity, most severe first."""
        grouped: Dict[Severity, List[IntegrityFinding]] = {s: [] for s in Severity}
        for finding in self.findings:
            grouped[finding.severity].append(finding)
        return grouped

    def of_type(self, finding_type: IntegrityFindingType) -> List[IntegrityFinding]:
        return [f for f in self.findings if f.type == finding_type]
