"""Estimate format parser.

Scores how closely free text matches a structured estimate export
(trade-code lines, quantity/unit tokens, header keywords, sub-codes and room
headers). Documents that clear the admission threshold are split into line
items; the rest are rejected with their confidence and a coarse reason.

Deterministic, rule-based; no network or model calls.
"""

import re
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import structlog

from config.errors import ErrorCode
from models.findings import IntegrityFinding, IntegrityFindingType, Severity
from models.line_item import LineItem, TradeRef
from models.parse_result import FormatRejection, ParseMetadata, ParseResult, RejectionBucket
from services import integrity_rules
from services.trade_taxonomy import is_known_trade, trade_name

logger = structlog.get_logger()


# =============================================================================
# ADMISSION CONSTANTS
# =============================================================================

# Admission gate; documents below this are rejected, never parsed.
CONFIDENCE_THRESHOLD = 0.75

MIN_CONTENT_LINES = 3

# Rejection buckets below the threshold
NO_INDICATORS_BELOW = 0.3
WEAK_INDICATORS_BELOW = 0.5

# Signal caps; they sum to 1.0
SIGNAL_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "trade_code_lines": 0.40,
    "quantity_units": 0.20,
    "header_keywords": 0.15,
    "sub_code_lines": 0.15,
    "room_headers": 0.10,
})

# Fraction-of-lines multipliers for the line-count signals
SIGNAL_SCALES: Mapping[str, float] = MappingProxyType({
    "trade_code_lines": 2.0,
    "quantity_units": 1.5,
    "sub_code_lines": 1.0,
    "room_headers": 0.5,
})

CONFIDENCE_PRECISION = 4


# =============================================================================
# LINE PATTERNS
# =============================================================================

# "DRY - Remove drywall" or "DRY RMV - Remove drywall"
TRADE_CODE_LINE = re.compile(r"^([A-Z]{3})(?:\s+([A-Z]{3,4}))?\s*[-:]\s*(.+)")

# "120.00 SF", "12 EA" or "1,200.00 SF"
QUANTITY_UNIT = re.compile(r"(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+\.?\d*)\s*(SF|LF|SY|EA|HR|CY|TON|GAL|LB)", re.IGNORECASE)

# "DRY REM 1/2" or "PNT SEAL"
SUB_CODE = re.compile(r"^[A-Z]{3}\s+[A-Z]{3,4}")

# "Living Room" or "Master Bathroom - 12x14"; never a line with a quantity+unit
ROOM_HEADER = re.compile(r"^[A-Z][a-z]+\s+(Room|Kitchen|Bathroom|Bedroom|Hallway|Garage)", re.IGNORECASE)

ESTIMATE_HEADER = re.compile(
    r"(xactimate|estimate\s+summary|line\s+item\s+detail|scope\s+of\s+work)",
    re.IGNORECASE,
)

REJECTION_REASONS: Mapping[RejectionBucket, str] = MappingProxyType({
    RejectionBucket.INSUFFICIENT_CONTENT: "Insufficient content for analysis",
    RejectionBucket.NO_INDICATORS: "No estimate format indicators detected",
    RejectionBucket.WEAK_INDICATORS: "Weak estimate format indicators",
    RejectionBucket.AMBIGUOUS: "Ambiguous format - insufficient estimate markers",
})


def content_lines(text: str) -> List[Tuple[int, str]]:
    """Trimmed non-blank lines with their 1-based source line numbers."""
    lines = []
    for number, raw in enumerate((text or "").split("\n"), start=1):
        line = raw.strip()
        if line:
            lines.append((number, line))
    return lines


def _is_trade_code_line(line: str) -> bool:
    match = TRADE_CODE_LINE.match(line)
    return bool(match) and is_known_trade(match.group(1))


def _is_room_header(line: str) -> bool:
    return bool(ROOM_HEADER.match(line)) and not QUANTITY_UNIT.search(line)


def _quantity(match: re.Match) -> float:
    return float(match.group(1).replace(",", ""))


def score_signals(lines: Sequence[str], full_text: str) -> Dict[str, float]:
    """Score each format signal, already capped at its weight.

    Args:
        lines: Trimmed non-blank lines.
        full_text: Original document text.

    Returns:
        Signal name to capped score.
    """
    total = len(lines)
    if total == 0:
        return {name: 0.0 for name in SIGNAL_WEIGHTS}

    counts = {
        "trade_code_lines": sum(1 for line in lines if _is_trade_code_line(line)),
        "quantity_units": sum(1 for line in lines if QUANTITY_UNIT.search(line)),
        "sub_code_lines": sum(1 for line in lines if SUB_CODE.match(line)),
        "room_headers": sum(1 for line in lines if _is_room_header(line)),
    }

    scores: Dict[str, float] = {}
    for name, weight in SIGNAL_WEIGHTS.items():
        if name == "header_keywords":
            scores[name] = weight if ESTIMATE_HEADER.search(full_text or "") else 0.0
        else:
            scores[name] = min(weight, (counts[name] / total) * SIGNAL_SCALES[name])
    return scores


def calculate_confidence(lines: Sequence[str], full_text: str) -> float:
    """Weighted format confidence in [0, 1]."""
    total = sum(score_signals(lines, full_text).values())
    return round(min(1.0, max(0.0, total)), CONFIDENCE_PRECISION)


def rejection_bucket(confidence: float) -> RejectionBucket:
    if confidence < NO_INDICATORS_BELOW:
        return RejectionBucket.NO_INDICATORS
    if confidence < WEAK_INDICATORS_BELOW:
        return RejectionBucket.WEAK_INDICATORS
    return RejectionBucket.AMBIGUOUS


def parse_line_items(lines: Sequence[Tuple[int, str]]) -> List[LineItem]:
    """Extract line items, carrying the most recent room header forward.

    Room header lines set the room and produce no item. Lines with neither a
    trade code nor a quantity+unit token are dropped.
    """
    items: List[LineItem] = []
    current_room: Optional[str] = None

    for number, line in lines:
        if _is_room_header(line):
            current_room = line
            continue

        quantity_match = QUANTITY_UNIT.search(line)
        quantity = _quantity(quantity_match) if quantity_match else None
        unit = quantity_match.group(2).upper() if quantity_match else None

        trade_match = TRADE_CODE_LINE.match(line)
        if trade_match:
            items.append(LineItem(
                line_number=number,
                trade=trade_match.group(1),
                sub_code=trade_match.group(2),
                description=trade_match.group(3).strip(),
                quantity=quantity,
                unit=unit,
                room=current_room,
                raw_line=line,
            ))
        elif quantity_match:
            items.append(LineItem(
                line_number=number,
                description=QUANTITY_UNIT.sub("", line, count=1).strip(),
                quantity=quantity,
                unit=unit,
                room=current_room,
                raw_line=line,
            ))

    return items


def extract_trades(line_items: Sequence[LineItem]) -> List[TradeRef]:
    """Recognized trades, deduplicated and sorted by code."""
    codes = sorted({item.trade for item in line_items if is_known_trade(item.trade)})
    return [TradeRef(code=code, name=trade_name(code)) for code in codes]


def detect_first_pass_issues(line_items: Sequence[LineItem]) -> List[IntegrityFinding]:
    """Zero-quantity items, then trade-scoped removal without replacement."""
    issues = [
        IntegrityFinding(
            type=IntegrityFindingType.ZERO_QUANTITY,
            severity=Severity.INFO,
            observation="Line item has zero quantity",
            trade=item.trade,
            trade_name=item.trade_name,
            room=item.room,
            line_items_affected=[item.line_number],
        )
        for item in line_items
        if item.is_zero_quantity
    ]
    issues.extend(integrity_rules.removal_without_replacement(line_items))
    return issues


class EstimateFormatParser:
    """Admission gate and line-item extractor for estimate documents."""

    def __init__(self, threshold: float = CONFIDENCE_THRESHOLD):
        self.threshold = threshold

    def parse(self, text: str) -> Union[ParseResult, FormatRejection]:
        """Parse an estimate document.

        Args:
            text: Free-text estimate.

        Returns:
            ParseResult when confidence clears the threshold, otherwise a
            FormatRejection carrying the confidence and reason bucket.
        """
        numbered = content_lines(text)
        lines = [line for _, line in numbered]

        if len(lines) < MIN_CONTENT_LINES:
            return self._reject(
                ErrorCode.INPUT_TOO_SHORT,
                RejectionBucket.INSUFFICIENT_CONTENT,
                confidence=0.0,
                total_lines=len(lines),
            )

        confidence = calculate_confidence(lines, text)
        if confidence < self.threshold:
            return self._reject(
                ErrorCode.LOW_CONFIDENCE_FORMAT,
                rejection_bucket(confidence),
                confidence=confidence,
                total_lines=len(lines),
            )

        line_items = parse_line_items(numbered)
        trades = extract_trades(line_items)
        issues = detect_first_pass_issues(line_items)

        logger.info(
            "format_parsed",
            confidence=confidence,
            total_lines=len(lines),
            parsed_lines=len(line_items),
            unique_trades=len(trades),
            first_pass_issues=len(issues),
        )

        return ParseResult(
            confidence=confidence,
            trades_detected=trades,
            line_items=line_items,
            integrity_issues=issues,
            metadata=ParseMetadata(
                total_lines=len(lines),
                parsed_lines=len(line_items),
                unique_trades=len(trades),
            ),
        )

    @staticmethod
    def _reject(code: str, bucket: RejectionBucket, confidence: float, total_lines: int) -> FormatRejection:
        logger.info(
            "format_rejected",
            code=code,
            bucket=bucket.value,
            confidence=confidence,
            total_lines=total_lines,
        )
        return FormatRejection(
            code=code,
            bucket=bucket,
            reason=REJECTION_REASONS[bucket],
            confidence=confidence,
        )
