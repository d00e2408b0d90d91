"""Integrity rule engine.

A fixed battery of independent rules over the extracted line items. Each
rule is a plain function ``rule(items) -> List[IntegrityFinding]`` and can
be run on its own; the engine is their ordered union. Observations are
single factual sentences.
"""

from collections import OrderedDict
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import structlog

from models.findings import IntegrityFinding, IntegrityFindingType, IntegrityReport, Severity
from models.line_item import LineItem
from services.trade_taxonomy import DRYWALL, FLOORING, PAINTING, display_name

logger = structlog.get_logger()

INTEGRITY_RULESET_VERSION = "1.0.0"


# =============================================================================
# KEYWORD SETS
# =============================================================================

REMOVAL_KEYWORDS: FrozenSet[str] = frozenset({"remove", "demo", "demolish", "tear out", "cut out"})
INSTALL_KEYWORDS: FrozenSet[str] = frozenset({"install", "replace", "new", "reinstall"})

LABOR_VERBS: FrozenSet[str] = frozenset({
    "install", "remove", "replace", "repair", "paint",
    "seal", "apply", "cut", "demo", "demolish",
})

LABOR_INDICATORS: FrozenSet[str] = frozenset({"labor", "install", "apply"})
MATERIAL_INDICATORS: FrozenSet[str] = frozenset({"material", "supplies"})


def has_keyword(item: LineItem, keywords: Iterable[str]) -> bool:
    """Check whether an item's description contains any keyword (substring, case-insensitive)."""
    text = item.text
    return any(keyword in text for keyword in keywords)


def is_removal(item: LineItem) -> bool:
    return has_keyword(item, REMOVAL_KEYWORDS)


def is_install(item: LineItem) -> bool:
    return has_keyword(item, INSTALL_KEYWORDS)


def is_labor(item: LineItem) -> bool:
    return has_keyword(item, LABOR_INDICATORS) or (item.unit is not None and item.unit.is_hourly)


def is_material(item: LineItem) -> bool:
    return has_keyword(item, MATERIAL_INDICATORS) or (item.unit is not None and item.unit.is_measured)


def _group_by_trade(items: Sequence[LineItem]) -> "OrderedDict[str, List[LineItem]]":
    """Group items carrying a trade code, in first-seen trade order."""
    groups: "OrderedDict[str, List[LineItem]]" = OrderedDict()
    for item in items:
        if item.trade:
            groups.setdefault(item.trade, []).append(item)
    return groups


def _line_numbers(items: Iterable[LineItem]) -> List[int]:
    return [item.line_number for item in items]


# =============================================================================
# RULES
# =============================================================================


def zero_quantity_with_labor(items: Sequence[LineItem]) -> List[IntegrityFinding]:
    """Zero-quantity items whose description names a labor activity."""
    findings = []
    for item in items:
        if item.is_zero_quantity and has_keyword(item, LABOR_VERBS):
            findings.append(IntegrityFinding(
                type=IntegrityFindingType.ZERO_QUANTITY_WITH_LABOR,
                severity=Severity.MEDIUM,
                observation="Line item describes labor activity but has zero quantity",
                trade=item.trade,
                trade_name=item.trade_name,
                room=item.room,
                line_items_affected=[item.line_number],
            ))
    return findings


def removal_without_replacement(items: Sequence[LineItem]) -> List[IntegrityFinding]:
    """Trades with removal lines and no install lines (trade-scoped, not room-scoped)."""
    findings = []
    for trade, group in _group_by_trade(items).items():
        removals = [i for i in group if is_removal(i)]
        if removals and not any(is_install(i) for i in group):
            findings.append(IntegrityFinding(
                type=IntegrityFindingType.REMOVAL_WITHOUT_REPLACEMENT,
                severity=Severity.MEDIUM,
                observation=(
                    f"{display_name(trade)} removal detected without "
                    "corresponding replacement line items"
                ),
                trade=trade,
                trade_name=removals[0].trade_name,
                line_items_affected=_line_numbers(removals),
            ))
    return findings


def replacement_without_removal(items: Sequence[LineItem]) -> List[IntegrityFinding]:
    """Trades with install lines and no removal lines."""
    findings = []
    for trade, group in _group_by_trade(items).items():
        installs = [i for i in group if is_install(i)]
        if installs and not any(is_removal(i) for i in group):
            findings.append(IntegrityFinding(
                type=IntegrityFindingType.REPLACEMENT_WITHOUT_REMOVAL,
                severity=Severity.LOW,
                observation=(
                    f"{display_name(trade)} replacement detected without "
                    "corresponding removal line items"
                ),
                trade=trade,
                trade_name=installs[0].trade_name,
                line_items_affected=_line_numbers(installs),
            ))
    return findings


def drywall_without_paint(items: Sequence[LineItem]) -> List[IntegrityFinding]:
    """Drywall present with no painting anywhere in the estimate."""
    drywall = [i for i in items if i.trade == DRYWALL]
    if not drywall or any(i.trade == PAINTING for i in items):
        return []
    return [IntegrityFinding(
        type=IntegrityFindingType.DRYWALL_WITHOUT_PAINT,
        severity=Severity.MEDIUM,
        observation="Drywall trade detected without corresponding paint trade",
        trade=DRYWALL,
        trade_name=drywall[0].trade_name,
        line_items_affected=_line_numbers(drywall),
    )]


def flooring_removal_without_reinstall(items: Sequence[LineItem]) -> List[IntegrityFinding]:
    flooring = [i for i in items if i.trade == FLOORING]
    removals = [i for i in flooring if is_removal(i)]
    if not removals or any(is_install(i) for i in flooring):
        return []
    return [IntegrityFinding(
        type=IntegrityFindingType.FLOORING_REMOVAL_WITHOUT_REINSTALL,
        severity=Severity.MEDIUM,
        observation="Flooring removal detected without corresponding reinstall line items",
        trade=FLOORING,
        trade_name=removals[0].trade_name,
        line_items_affected=_line_numbers(removals),
    )]


def labor_without_material(items: Sequence[LineItem]) -> List[IntegrityFinding]:
    findings = []
    for trade, group in _group_by_trade(items).items():
        labor = [i for i in group if is_labor(i)]
        if labor and not any(is_material(i) for i in group):
            findings.append(IntegrityFinding(
                type=IntegrityFindingType.LABOR_WITHOUT_MATERIAL,
                severity=Severity.LOW,
                observation=(
                    f"{display_name(trade)} labor detected without "
                    "corresponding material line items"
                ),
                trade=trade,
                trade_name=labor[0].trade_name,
                line_items_affected=_line_numbers(labor),
            ))
    return findings


def material_without_labor(items: Sequence[LineItem]) -> List[IntegrityFinding]:
    findings = []
    for trade, group in _group_by_trade(items).items():
        material = [i for i in group if is_material(i)]
        if material and not any(is_labor(i) for i in group):
            findings.append(IntegrityFinding(
                type=IntegrityFindingType.MATERIAL_WITHOUT_LABOR,
                severity=Severity.LOW,
                observation=(
                    f"{display_name(trade)} material detected without "
                    "corresponding labor line items"
                ),
                trade=trade,
                trade_name=material[0].trade_name,
                line_items_affected=_line_numbers(material),
            ))
    return findings


def inconsistent_quantities(items: Sequence[LineItem]) -> List[IntegrityFinding]:
    """Removal and install lines in one trade+room that carry different quantities.

    Only items with a trade, a room and a quantity take part.
    """
    groups: "OrderedDict[Tuple[str, str], List[LineItem]]" = OrderedDict()
    for item in items:
        if item.trade and item.room and item.quantity is not None:
            groups.setdefault((item.trade, item.room), []).append(item)

    findings = []
    for (trade, room), group in groups.items():
        if len(group) < 2:
            continue
        quantities: List[float] = []
        for item in group:
            if item.quantity not in quantities:
                quantities.append(item.quantity)
        if any(is_removal(i) for i in group) and any(is_install(i) for i in group) and len(quantities) > 1:
            findings.append(IntegrityFinding(
                type=IntegrityFindingType.INCONSISTENT_QUANTITIES,
                severity=Severity.LOW,
                observation=(
                    f"{display_name(trade)} in {room} has different quantities "
                    "between removal and install line items"
                ),
                trade=trade,
                trade_name=group[0].trade_name,
                room=room,
                line_items_affected=_line_numbers(group),
                quantities=quantities,
            ))
    return findings


# =============================================================================
# ENGINE
# =============================================================================

Rule = Callable[[Sequence[LineItem]], List[IntegrityFinding]]

# Reporting order within a severity
RULES: Tuple[Tuple[IntegrityFindingType, Rule], ...] = (
    (IntegrityFindingType.ZERO_QUANTITY_WITH_LABOR, zero_quantity_with_labor),
    (IntegrityFindingType.REMOVAL_WITHOUT_REPLACEMENT, removal_without_replacement),
    (IntegrityFindingType.REPLACEMENT_WITHOUT_REMOVAL, replacement_without_removal),
    (IntegrityFindingType.DRYWALL_WITHOUT_PAINT, drywall_without_paint),
    (IntegrityFindingType.FLOORING_REMOVAL_WITHOUT_REINSTALL, flooring_removal_without_reinstall),
    (IntegrityFindingType.LABOR_WITHOUT_MATERIAL, labor_without_material),
    (IntegrityFindingType.MATERIAL_WITHOUT_LABOR, material_without_labor),
    (IntegrityFindingType.INCONSISTENT_QUANTITIES, inconsistent_quantities),
)


def sort_findings(findings: Iterable[IntegrityFinding]) -> List[IntegrityFinding]:
    """Most severe first; order within a severity is preserved."""
    return sorted(findings, key=lambda f: -f.severity.rank)


def summarize(findings: Iterable[IntegrityFinding]) -> Dict[str, int]:
    """Count findings per severity, keyed by lowercase severity name."""
    counts = {severity.value.lower(): 0 for severity in Severity}
    for finding in findings:
        counts[finding.severity.value.lower()] += 1
    return counts


def evaluate(
    line_items: Sequence[LineItem],
    rules: Optional[Sequence[Tuple[IntegrityFindingType, Rule]]] = None,
) -> IntegrityReport:
    """Run every integrity rule over the line items.

    Args:
        line_items: Extracted line items in source order.
        rules: Rule battery to run (defaults to RULES).

    Returns:
        IntegrityReport with findings sorted by severity and per-severity counts.
    """
    findings: List[IntegrityFinding] = []
    for _, rule in rules or RULES:
        findings.extend(rule(line_items))

    ordered = sort_findings(findings)
    summary = summarize(ordered)

    logger.info(
        "integrity_rules_evaluated",
        line_items=len(line_items),
        total_findings=len(ordered),
        **summary,
    )

    return IntegrityReport(
        ruleset_version=INTEGRITY_RULESET_VERSION,
        findings=ordered,
        summary=summary,
    )
