"""Line item models for estimate review.

Pydantic models for extracted estimate line items and the priced line items
consumed by the overhead & profit detector.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from services.trade_taxonomy import trade_name


# =============================================================================
# ENUMS
# =============================================================================


class Unit(str, Enum):
    """Estimating units of measure."""

    SF = "SF"     # square feet
    LF = "LF"     # linear feet
    SY = "SY"     # square yards
    EA = "EA"     # each
    HR = "HR"     # hour
    CY = "CY"     # cubic yards
    TON = "TON"
    GAL = "GAL"
    LB = "LB"

    @property
    def is_hourly(self) -> bool:
        return self is Unit.HR

    @property
    def is_measured(self) -> bool:
        """Area, length or count unit."""
        return self in (Unit.SF, Unit.LF, Unit.SY, Unit.EA)


# =============================================================================
# LINE ITEM MODELS
# =============================================================================


class TradeRef(BaseModel):
    """A detected trade code with its name."""

    code: str = Field(..., description="Trade code (e.g., 'DRY')")
    name: str = Field(..., description="Trade name (e.g., 'Drywall')")

    class Config:
        frozen = True


class LineItem(BaseModel):
    """One extracted estimate line.

    ``is_zero_quantity`` and ``trade_name`` are derived on construction:
    the first is true iff quantity == 0, the second is set iff the trade
    code is in the trade dictionary.
    """

    line_number: int = Field(
        ...,
        ge=1,
        alias="lineNumber",
        description="1-based line number in the source text"
    )
    trade: Optional[str] = Field(
        default=None,
        description="Trade code, if the line carried one"
    )
    trade_name: Optional[str] = Field(
        default=None,
        alias="tradeName",
        description="Trade name for recognized trade codes"
    )
    sub_code: Optional[str] = Field(
        default=None,
        alias="subCode",
        description="Activity sub-code following the trade code (e.g., 'RMV')"
    )
    description: str = Field(
        default="",
        description="Line description"
    )
    quantity: Optional[float] = Field(
        default=None,
        description="Quantity, if a quantity and unit were found"
    )
    unit: Optional[Unit] = Field(
        default=None,
        description="Unit of measure"
    )
    is_zero_quantity: bool = Field(
        default=False,
        alias="isZeroQuantity",
        description="True when quantity is exactly zero"
    )
    room: Optional[str] = Field(
        default=None,
        description="Most recent room/area header above this line"
    )
    raw_line: str = Field(
        default="",
        alias="rawLine",
        description="Original line text"
    )

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def derive_fields(cls, data: Any) -> Any:
        """Derive trade name and zero-quantity flag from the raw fields."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        trade = data.get("trade")
        data["trade_name"] = trade_name(trade)
        data.pop("tradeName", None)
        quantity = data.get("quantity")
        data["is_zero_quantity"] = quantity is not None and float(quantity) == 0
        data.pop("isZeroQuantity", None)
        return data

    @property
    def text(self) -> str:
        """Lowercased description used for keyword matching."""
        return self.description.lower()


class CostLineItem(BaseModel):
    """A priced estimate line used for overhead & profit analysis.

    Depreciation defaults to RCV - ACV when not supplied.
    """

    line_number: int = Field(..., ge=1, alias="lineNumber", description="Source line number")
    description: str = Field(..., description="Line description")
    rcv: float = Field(default=0.0, description="Replacement cost value ($)")
    acv: Optional[float] = Field(default=None, description="Actual cash value ($)")
    depreciation: float = Field(default=0.0, ge=0, description="Recoverable depreciation ($)")
    overhead: bool = Field(default=False, description="Line carries overhead")
    profit: bool = Field(default=False, description="Line carries profit")

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def derive_depreciation(cls, data: Any) -> Any:
        """Fill depreciation from RCV and ACV when it was not given."""
        if not isinstance(data, dict):
            return data
        if data.get("depreciation") is None:
            data = dict(data)
            rcv = float(data.get("rcv") or 0.0)
            acv = data.get("acv")
            data["depreciation"] = max(rcv - float(acv), 0.0) if acv is not None else 0.0
        return data
