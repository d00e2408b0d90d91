"""Sample estimate documents for testing.

Provides estimate text and priced line items for the end-to-end review
scenarios and the individual analysis components.
"""

from typing import Any, Dict, List


# =============================================================================
# ESTIMATE DOCUMENTS
# =============================================================================

# Water loss with drywall, paint, flooring, trim and cleaning.
WATER_LOSS_ESTIMATE = """Xactimate Estimate Summary
Line Item Detail - Water Loss

Living Room
DRY - Remove wet drywall flood cut 64 LF
DRY - Replace drywall 128 SF
PNT - Seal and paint walls 400 SF
FLR - Remove carpet and pad 180 SF
FLR - Install new carpet and pad 180 SF
TRM - Remove baseboard 64 LF
TRM - Install baseboard 64 LF
CLN - Apply antimicrobial 180 SF
"""

# Scenario A: drywall removal/replace, insulation and baseboard, no paint.
DRYWALL_NO_PAINT_ESTIMATE = """Xactimate Estimate Summary
Living Room
DRY - Remove drywall 120 SF
DRY - Replace drywall 120 SF
INS - Install batt insulation 120 SF
TRM - Remove baseboard 40 LF
TRM - Install baseboard 40 LF
"""

# Scenario B: zero-quantity removal on line 1, replacement on line 2.
ZERO_QUANTITY_LABOR_ESTIMATE = """DRY - Remove drywall 0 SF
DRY - Replace drywall 200 SF
Xactimate Estimate Summary
"""

# Scenario C: carpet, pad and baseboard removal only.
FLOORING_NO_REINSTALL_ESTIMATE = """Scope of Work
Master Bedroom
FLR - Remove carpet 200 SF
FLR - Remove carpet pad 200 SF
TRM - Remove baseboard 60 LF
"""

# Two rooms; drywall removed in one room and installed in the other.
TWO_ROOM_ESTIMATE = """Xactimate Estimate Summary
Living Room
DRY - Remove drywall 100 SF
PNT - Paint walls 300 SF
Guest Bedroom
DRY - Install drywall 100 SF
PNT - Paint walls 250 SF
"""

# Clears the gate at exactly the threshold: 0.40 + 0.20 + 0.15.
THRESHOLD_ESTIMATE = """Scope of Work
DRY - Remove drywall 100 SF
PNT - Paint walls 100 SF
"""

# Trade lines and a header keyword but no quantities: 0.40 + 0.15.
AMBIGUOUS_ESTIMATE = """Scope of Work
DRY - Remove drywall
PNT - Paint walls
Notes follow below
"""

# Trade lines only: 0.40.
WEAK_ESTIMATE = """DRY - Remove drywall
PNT - Paint walls
Notes follow below
General remarks
"""

PROSE_DOCUMENT = """The storm came through last Tuesday evening.
Water came in under the back door and soaked the carpet.
We moved the furniture out the next morning.
"""

TOO_SHORT_DOCUMENT = """DRY - Remove drywall 10 SF

PNT - Paint walls 10 SF
"""

# Prohibited phrase appears only once the quantity token is removed
# from a generic line's description.
HIDDEN_PHRASE_ESTIMATE = """Xactimate Estimate Summary
Living Room
DRY - Remove drywall 100 SF
PNT - Paint walls 100 SF
Allowance bad 10 SF faith
"""

# Sub-coded trade lines.
SUB_CODE_ESTIMATE = """Xactimate Estimate Summary
Kitchen Room
DRY RMV - Remove drywall 32 SF
DRY INST - Hang drywall 32 SF
PNT - Paint walls 32 SF
"""


# =============================================================================
# PRICED LINE ITEMS
# =============================================================================

def get_scenario_d_cost_items() -> List[Dict[str, Any]]:
    """Priced lines totaling $20,725 RCV with no O&P line.

    Depreciation totals $2,000 (line 1).
    """
    return [
        {"lineNumber": 1, "description": "Remove and replace drywall", "rcv": 12000.00, "acv": 10000.00},
        {"lineNumber": 2, "description": "Paint walls and ceiling", "rcv": 5500.00, "acv": 5500.00},
        {"lineNumber": 3, "description": "Replace carpet and pad", "rcv": 3225.00, "acv": 3225.00},
    ]


def get_low_rate_op_cost_items() -> List[Dict[str, Any]]:
    """Priced lines with a 5% O&P line on a $10,000 estimate."""
    return [
        {"lineNumber": 1, "description": "Drywall repair", "rcv": 6000.00, "depreciation": 500.00},
        {"lineNumber": 2, "description": "Interior paint", "rcv": 4000.00, "depreciation": 0.00},
        {"lineNumber": 3, "description": "Overhead & Profit", "rcv": 500.00, "depreciation": 0.00},
    ]


def get_full_op_cost_items() -> List[Dict[str, Any]]:
    """Priced lines with 20% O&P and O&P flags on depreciated work."""
    return [
        {
            "lineNumber": 1, "description": "Drywall repair", "rcv": 6000.00,
            "depreciation": 500.00, "overhead": True, "profit": True,
        },
        {
            "lineNumber": 2, "description": "Interior paint", "rcv": 4000.00,
            "depreciation": 0.00, "overhead": True, "profit": True,
        },
        {"lineNumber": 3, "description": "O&P", "rcv": 2000.00, "depreciation": 0.00},
    ]
