"""Overhead & profit (O&P) gap detector.

Computes recoverable depreciation, detects whether an O&P line is present
and at what rate, and reports gaps with an estimated dollar impact and a
0-100 score.
"""

import re
from typing import List, Optional, Sequence

import structlog

from config.settings import settings
from models.line_item import CostLineItem
from models.op_analysis import OPAnalysis, OPGap, OPGapSeverity, OPGapType

logger = structlog.get_logger()

OP_RULESET_VERSION = "1.0.0"


# =============================================================================
# O&P CONSTANTS
# =============================================================================

OVERHEAD_RATE = 0.10
PROFIT_RATE = 0.10
TOTAL_OP_RATE = 0.20

# Rate checks, in percent of the non-O&P total
IMPROPER_RATE_THRESHOLD_PCT = 15.0
LOW_RATE_WARNING_PCT = 18.0

# Dollar floors
IMPROPER_RATE_NOISE_FLOOR = 100.0
MISSING_ON_ESTIMATE_FLOOR = 5000.0

# Score deductions
BASE_SCORE = 100
NO_OP_PENALTY = 30
GAP_PENALTIES = {
    OPGapSeverity.CRITICAL: 20,
    OPGapSeverity.HIGH: 15,
    OPGapSeverity.MODERATE: 10,
}
IMPROPER_RATE_PENALTY = 10
LOW_RATE_PENALTY = 5

OP_LINE_PATTERN = re.compile(r"overhead|profit|o&p|o & p", re.IGNORECASE)


def is_op_line(item: CostLineItem) -> bool:
    """Check whether an item is itself an overhead/profit line."""
    return bool(OP_LINE_PATTERN.search(item.description))


def _money(value: float) -> float:
    return round(value, 2)


def calculate_op_score(gaps: Sequence[OPGap], op_percentage: float, has_op: bool) -> int:
    """Score O&P handling from 0 to 100.

    Deducts a flat penalty when no O&P is present, a per-gap penalty by
    severity, and a rate penalty when O&P is present but low. Never negative.
    """
    score = BASE_SCORE
    if not has_op:
        score -= NO_OP_PENALTY

    for gap in gaps:
        score -= GAP_PENALTIES[gap.severity]

    if has_op and op_percentage < IMPROPER_RATE_THRESHOLD_PCT:
        score -= IMPROPER_RATE_PENALTY
    elif has_op and op_percentage < LOW_RATE_WARNING_PCT:
        score -= LOW_RATE_PENALTY

    return max(0, score)


class OPGapDetector:
    """Detects missing or low overhead & profit on priced line items."""

    def __init__(self, allow_overlapping_gaps: Optional[bool] = None):
        """Initialize OPGapDetector.

        Args:
            allow_overlapping_gaps: Let MISSING_ON_RECOVERABLE and
                MISSING_ON_ESTIMATE fire together and sum their impacts.
                Defaults to settings.allow_overlapping_op_gaps. When off,
                MISSING_ON_ESTIMATE takes precedence.
        """
        if allow_overlapping_gaps is None:
            allow_overlapping_gaps = settings.allow_overlapping_op_gaps
        self.allow_overlapping_gaps = allow_overlapping_gaps

    def analyze(self, line_items: Sequence[CostLineItem]) -> OPAnalysis:
        """Analyze O&P on priced line items.

        Args:
            line_items: Priced lines with RCV/ACV/depreciation.

        Returns:
            OPAnalysis with gaps in rule order and the O&P score.
        """
        recoverable_depreciation = sum(item.depreciation for item in line_items)

        op_items = [item for item in line_items if is_op_line(item)]
        non_op_items = [item for item in line_items if not is_op_line(item)]
        has_op = bool(op_items)
        op_amount = sum(item.rcv for item in op_items)

        expected_op_on_recoverable = recoverable_depreciation * TOTAL_OP_RATE
        estimate_total = sum(item.rcv for item in non_op_items)
        op_percentage = (op_amount / estimate_total) * 100 if estimate_total > 0 else 0.0

        missing_on_estimate = not has_op and estimate_total > MISSING_ON_ESTIMATE_FLOOR
        missing_on_recoverable = not has_op and recoverable_depreciation > 0
        if missing_on_estimate and not self.allow_overlapping_gaps:
            missing_on_recoverable = False

        gaps: List[OPGap] = []

        if missing_on_recoverable:
            gaps.append(OPGap(
                gap_type=OPGapType.MISSING_ON_RECOVERABLE,
                severity=OPGapSeverity.HIGH,
                description="No overhead & profit line item found while recoverable depreciation is present",
                estimated_impact=_money(expected_op_on_recoverable),
                recoverable_depreciation=_money(recoverable_depreciation),
                expected_op=_money(expected_op_on_recoverable),
                actual_op=0.0,
                line_items_affected=[i.line_number for i in line_items if i.depreciation > 0],
            ))

        if has_op and op_percentage < IMPROPER_RATE_THRESHOLD_PCT and estimate_total > 0:
            expected_op = estimate_total * TOTAL_OP_RATE
            impact = expected_op - op_amount
            if impact > IMPROPER_RATE_NOISE_FLOOR:
                gaps.append(OPGap(
                    gap_type=OPGapType.IMPROPER_RATE,
                    severity=OPGapSeverity.MODERATE,
                    description=(
                        f"O&P rate of {op_percentage:.1f}% is below the "
                        f"{TOTAL_OP_RATE * 100:.0f}% reference rate"
                    ),
                    estimated_impact=_money(impact),
                    recoverable_depreciation=_money(recoverable_depreciation),
                    expected_op=_money(expected_op),
                    actual_op=_money(op_amount),
                    line_items_affected=[i.line_number for i in op_items],
                ))

        if missing_on_estimate:
            expected_op = estimate_total * TOTAL_OP_RATE
            gaps.append(OPGap(
                gap_type=OPGapType.MISSING_ON_ESTIMATE,
                severity=OPGapSeverity.HIGH,
                description="No overhead & profit line item found in estimate",
                estimated_impact=_money(expected_op),
                recoverable_depreciation=_money(recoverable_depreciation),
                expected_op=_money(expected_op),
                actual_op=0.0,
                line_items_affected=[],
            ))

        non_recoverable_with_op = [
            item for item in non_op_items
            if item.depreciation == 0 and (item.overhead or item.profit)
        ]
        recoverable_with_op = [
            item for item in line_items
            if item.depreciation > 0 and (item.overhead or item.profit)
        ]
        if non_recoverable_with_op and not recoverable_with_op:
            gaps.append(OPGap(
                gap_type=OPGapType.APPLIED_TO_NON_RECOVERABLE,
                severity=OPGapSeverity.MODERATE,
                description="O&P flags appear only on items without depreciation",
                estimated_impact=0.0,
                recoverable_depreciation=_money(recoverable_depreciation),
                expected_op=_money(expected_op_on_recoverable),
                actual_op=_money(op_amount),
                line_items_affected=[i.line_number for i in non_recoverable_with_op],
            ))

        total_impact = _money(sum(gap.estimated_impact for gap in gaps))
        op_score = calculate_op_score(gaps, op_percentage, has_op)

        logger.info(
            "op_analysis_complete",
            has_op=has_op,
            op_amount=_money(op_amount),
            op_percentage=round(op_percentage, 1),
            gaps=len(gaps),
            total_impact=total_impact,
            op_score=op_score,
        )

        return OPAnalysis(
            has_op=has_op,
            op_amount=_money(op_amount),
            op_percentage=round(op_percentage, 2),
            recoverable_depreciation=_money(recoverable_depreciation),
            expected_op_on_recoverable=_money(expected_op_on_recoverable),
            estimate_total=_money(estimate_total),
            gaps=gaps,
            total_impact=total_impact,
            op_score=op_score,
            ruleset_version=OP_RULESET_VERSION,
        )
