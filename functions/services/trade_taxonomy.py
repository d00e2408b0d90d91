"""Trade code dictionary.

Static mapping of three-letter estimating trade codes to trade names.
Loaded once at import; the table is read-only.
"""

from types import MappingProxyType
from typing import Mapping, Optional

TAXONOMY_VERSION = "1.0.0"

TRADE_CODES: Mapping[str, str] = MappingProxyType({
    # Structural
    "DRY": "Drywall",
    "FRM": "Framing",
    "FND": "Foundation",
    "MAS": "Masonry",
    "STL": "Structural Steel",

    # Finishes
    "PNT": "Painting",
    "FLR": "Flooring",
    "TRM": "Trim/Millwork",
    "TIL": "Tile",
    "CAB": "Cabinets",
    "CTR": "Countertops",

    # Roofing
    "RFG": "Roofing",
    "GUT": "Gutters",
    "SHT": "Sheet Metal",

    # Mechanical / Electrical / Plumbing
    "HVA": "HVAC",
    "ELE": "Electrical",
    "PLM": "Plumbing",

    # Exterior
    "SID": "Siding",
    "STU": "Stucco",
    "WIN": "Windows",
    "DOR": "Doors",
    "DEC": "Decks",
    "FEN": "Fencing",

    # Specialty
    "CLN": "Cleaning",
    "DEM": "Demolition",
    "INS": "Insulation",
    "MIR": "Mirrors",
    "GLS": "Glass",

    # Contents
    "CON": "Contents",
    "APP": "Appliances",
    "FUR": "Furniture",
})

# Trades referenced directly by integrity rules
DRYWALL = "DRY"
PAINTING = "PNT"
FLOORING = "FLR"


def is_known_trade(code: Optional[str]) -> bool:
    """Check whether a code is in the trade dictionary."""
    return code is not None and code in TRADE_CODES


def trade_name(code: Optional[str]) -> Optional[str]:
    """Get the trade name for a code, or None if the code is unrecognized."""
    if code is None:
        return None
    return TRADE_CODES.get(code)


def display_name(code: Optional[str]) -> str:
    """Trade name for use in observation sentences, falling back to the raw code."""
    return trade_name(code) or code or "Unclassified"
