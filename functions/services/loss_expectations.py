"""Loss-type expectation matrix.

Commonly observed trade categories per loss type, split into required,
common and conditional tiers. These are detection patterns only; they say
nothing about what is covered or owed.
"""

from types import MappingProxyType
from typing import Iterable, List, Mapping, NamedTuple, Union

import structlog

from models.expectations import (
    ExpectationFinding,
    ExpectationObservation,
    ExpectationSummary,
    LossType,
    ObservationCategory,
    TierPartition,
)
from models.findings import Severity
from models.line_item import TradeRef

logger = structlog.get_logger()

EXPECTATION_MATRIX_VERSION = "1.0.0"


class LossExpectation(NamedTuple):
    """Expected trade codes for one loss type."""

    description: str
    required: tuple
    common: tuple
    conditional: tuple

    def all_codes(self) -> tuple:
        return self.required + self.common + self.conditional


# =============================================================================
# EXPECTATION MATRICES
# =============================================================================

LOSS_EXPECTATIONS: Mapping[LossType, LossExpectation] = MappingProxyType({
    LossType.WATER: LossExpectation(
        description="Water damage loss",
        required=("DRY", "PNT"),
        common=("FLR", "TRM", "CLN", "DEM", "INS"),
        conditional=("CAB", "CTR", "ELE", "PLM", "TIL", "WIN", "DOR"),
    ),
    LossType.FIRE: LossExpectation(
        description="Fire and smoke damage loss",
        required=("DRY", "PNT", "CLN"),
        common=("FLR", "TRM", "DEM", "ELE", "CAB", "RFG", "FRM", "INS"),
        conditional=("PLM", "HVA", "WIN", "DOR", "SID", "CTR", "TIL", "APP", "FND"),
    ),
    LossType.WIND: LossExpectation(
        description="Wind and storm damage loss",
        required=("RFG",),
        common=("SID", "WIN", "GUT", "SHT", "DRY", "PNT", "FRM"),
        conditional=("DOR", "FLR", "TRM", "CLN", "DEM", "INS", "DEC", "FEN", "ELE", "TIL"),
    ),
    LossType.HAIL: LossExpectation(
        description="Hail damage loss",
        required=("RFG",),
        common=("GUT", "SHT", "SID", "WIN"),
        conditional=("DRY", "PNT", "FLR", "CLN", "DEM", "TRM", "DOR", "DEC", "FEN", "INS"),
    ),
    LossType.COLLISION: LossExpectation(
        description="Collision/impact damage loss",
        required=("FRM", "DRY"),
        common=("SID", "WIN", "DOR", "PNT", "FND", "DEM", "ELE"),
        conditional=("RFG", "FLR", "TRM", "PLM", "CAB", "CTR", "TIL", "MAS", "STU", "DEC"),
    ),
    LossType.OTHER: LossExpectation(
        description="Other or unspecified loss type",
        required=(),
        common=(),
        conditional=(),
    ),
})


def get_expectations(loss_type: Union[LossType, str, None]) -> LossExpectation:
    """Look up the matrix for a loss type; unrecognized labels get the empty OTHER matrix."""
    resolved = LossType.resolve(loss_type)
    if resolved is LossType.OTHER and loss_type and str(loss_type).strip().upper() != "OTHER":
        logger.debug("loss_type_unrecognized", loss_type=str(loss_type))
    return LOSS_EXPECTATIONS[resolved]


def _codes(detected: Iterable[Union[TradeRef, str]]) -> List[str]:
    codes: List[str] = []
    for trade in detected:
        code = trade.code if isinstance(trade, TradeRef) else str(trade)
        if code not in codes:
            codes.append(code)
    return codes


def compare_to_expectations(
    detected_trades: Iterable[Union[TradeRef, str]],
    loss_type: Union[LossType, str, None],
) -> ExpectationFinding:
    """Compare detected trades against a loss type's matrix.

    Args:
        detected_trades: Detected trades as TradeRef or bare codes.
        loss_type: Loss type or free-form label.

    Returns:
        ExpectationFinding partitioning the expected trades by tier and
        listing detected trades outside the matrix.
    """
    resolved = LossType.resolve(loss_type)
    expectations = get_expectations(loss_type)
    detected = _codes(detected_trades)
    detected_set = set(detected)

    def split(tier: tuple):
        found = [code for code in tier if code in detected_set]
        absent = [code for code in tier if code not in detected_set]
        return found, absent

    required_found, required_absent = split(expectations.required)
    common_found, common_absent = split(expectations.common)
    conditional_found, conditional_absent = split(expectations.conditional)

    expected = set(expectations.all_codes())
    unexpected = [code for code in detected if code not in expected]

    return ExpectationFinding(
        loss_type=resolved,
        description=expectations.description,
        matrix_version=EXPECTATION_MATRIX_VERSION,
        detected_expected=TierPartition(
            required=required_found,
            common=common_found,
            conditional=conditional_found,
        ),
        not_detected_expected=TierPartition(
            required=required_absent,
            common=common_absent,
            conditional=conditional_absent,
        ),
        detected_unexpected=unexpected,
        summary=ExpectationSummary(
            total_detected=len(detected),
            expected_required=len(expectations.required),
            expected_common=len(expectations.common),
            expected_conditional=len(expectations.conditional),
        ),
    )


def generate_observations(finding: ExpectationFinding) -> List[ExpectationObservation]:
    """Turn a comparison into neutral, count-based observations.

    The SUMMARY observation is always last.
    """
    observations: List[ExpectationObservation] = []
    loss_type = finding.loss_type.value

    missing_required = finding.not_detected_expected.required
    if missing_required:
        observations.append(ExpectationObservation(
            category=ObservationCategory.REQUIRED_TRADES_NOT_DETECTED,
            severity=Severity.HIGH,
            observation=(
                f"{len(missing_required)} commonly required trade(s) for "
                f"{loss_type} loss not detected in estimate"
            ),
            trades=missing_required,
        ))

    found_required = finding.detected_expected.required
    if found_required:
        observations.append(ExpectationObservation(
            category=ObservationCategory.REQUIRED_TRADES_DETECTED,
            severity=Severity.INFO,
            observation=f"{len(found_required)} commonly required trade(s) detected in estimate",
            trades=found_required,
        ))

    missing_common = finding.not_detected_expected.common
    if missing_common:
        observations.append(ExpectationObservation(
            category=ObservationCategory.COMMON_TRADES_NOT_DETECTED,
            severity=Severity.MEDIUM,
            observation=(
                f"{len(missing_common)} commonly observed trade(s) for "
                f"{loss_type} loss not detected in estimate"
            ),
            trades=missing_common,
        ))

    # An empty matrix has no notion of "typical" trades.
    matrix_is_empty = not (
        finding.summary.expected_required
        or finding.summary.expected_common
        or finding.summary.expected_conditional
    )
    if finding.detected_unexpected and not matrix_is_empty:
        observations.append(ExpectationObservation(
            category=ObservationCategory.UNEXPECTED_TRADES_DETECTED,
            severity=Severity.INFO,
            observation=(
                f"{len(finding.detected_unexpected)} trade(s) detected that are not "
                f"typically associated with {loss_type} loss"
            ),
            trades=finding.detected_unexpected,
        ))

    observations.append(ExpectationObservation(
        category=ObservationCategory.SUMMARY,
        severity=Severity.INFO,
        observation=(
            f"Estimate contains {finding.summary.total_detected} trade categories. "
            f"Loss type: {loss_type}."
        ),
    ))
    return observations
