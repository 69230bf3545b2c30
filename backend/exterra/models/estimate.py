"""Material, cost and timeline estimate models."""

from __future__ import annotations

from pydantic import Field, model_validator

from exterra.models.base import WireModel
from exterra.models.enums import LineItemKind
from exterra.models.property import OpeningSize


class MaterialLine(WireModel):
    """One structured material line item.

    Windows and doors carry their ``size`` and 1-based ``index``; roofing
    carries its ``material``.
    """

    kind: LineItemKind
    quantity: float = Field(ge=0)
    unit: str
    size: OpeningSize | None = None
    material: str | None = None
    index: int | None = None


class CostLine(WireModel):
    """Low/high cost for a single material line item."""

    kind: LineItemKind
    label: str
    low: float = Field(ge=0)
    high: float = Field(ge=0)

    @model_validator(mode="after")
    def low_le_high(self) -> CostLine:
        if self.low > self.high:
            msg = f"Must satisfy low <= high, got {self.low} > {self.high}"
            raise ValueError(msg)
        return self


class CostEstimate(WireModel):
    """Total project cost range with a human-readable breakdown.

    Low and high bounds are summed independently and never mixed.
    """

    total_low: float = Field(ge=0)
    total_high: float = Field(ge=0)
    breakdown: list[str] = Field(default_factory=list)
    lines: list[CostLine] = Field(default_factory=list)
    location_multiplier_low: float = 1.0
    location_multiplier_high: float = 1.0
    cost_per_sqft_low: float = 0.0
    cost_per_sqft_high: float = 0.0
    is_reliable: bool = False

    @model_validator(mode="after")
    def totals_ordered(self) -> CostEstimate:
        if self.total_low > self.total_high:
            msg = (
                f"Must satisfy total_low <= total_high, "
                f"got {self.total_low} > {self.total_high}"
            )
            raise ValueError(msg)
        return self
