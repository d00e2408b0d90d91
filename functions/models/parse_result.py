"""Format parser result models."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from models.findings import IntegrityFinding
from models.line_item import LineItem, TradeRef


class RejectionBucket(str, Enum):
    """Coarse reason a document failed the admission gate."""

    INSUFFICIENT_CONTENT = "insufficient_content"
    NO_INDICATORS = "no_indicators"
    WEAK_INDICATORS = "weak_indicators"
    AMBIGUOUS = "ambiguous"


class ParseMetadata(BaseModel):
    """Line counts for a parsed document."""

    total_lines: int = Field(..., ge=0, alias="totalLines")
    parsed_lines: int = Field(..., ge=0, alias="parsedLines")
    unique_trades: int = Field(..., ge=0, alias="uniqueTrades")

    class Config:
        populate_by_name = True
        frozen = True


class ParseResult(BaseModel):
    """A document that cleared the admission gate, with its line items."""

    confidence: float = Field(..., ge=0.0, le=1.0, description="Format confidence (0-1)")
    trades_detected: List[TradeRef] = Field(
        default_factory=list,
        alias="tradesDetected",
        description="Recognized trades, deduplicated and sorted by code"
    )
    line_items: List[LineItem] = Field(
        default_factory=list,
        alias="lineItems",
        description="Line items in source order"
    )
    integrity_issues: List[IntegrityFinding] = Field(
        default_factory=list,
        alias="integrityIssues",
        description="First-pass observations emitted while parsing"
    )
    metadata: ParseMetadata

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def trade_codes(self) -> List[str]:
        return [t.code for t in self.trades_detected]


class FormatRejection(BaseModel):
    """A document that did not clear the admission gate."""

    code: str = Field(..., description="Error code (INPUT_TOO_SHORT or LOW_CONFIDENCE_FORMAT)")
    bucket: RejectionBucket
    reason: str = Field(..., description="Human-readable reason")
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    class Config:
        frozen = True
