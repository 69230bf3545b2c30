"""Pure material, cost and timeline estimation.

No I/O and no hidden state: identical inputs always give identical
outputs. Every function is total; missing or zero inputs contribute zero
cost or zero weeks instead of raising.

1. **Materials**: siding (area x 1.1), exterior paint (area x 2 / 400 gal),
   one line per window, one per door, roofing at the roof surface area.
2. **Costs**: each line priced from the unit rate table, low and high
   bounds kept apart, both scaled by the location multiplier band.
3. **Timeline**: weeks of siding work, plus roofing, plus openings.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from exterra.data.location_index import location_multiplier
from exterra.data.rates import (
    DOOR_RATES,
    PAINT_COVERAGE_SQFT_PER_GALLON,
    PAINT_LABOR_PER_SQFT,
    PAINT_RATE,
    SIDING_RATE,
    WINDOW_RATES,
    opening_bucket,
    roofing_rate,
)
from exterra.formatting import (
    describe_cost,
    describe_location,
    describe_material,
    format_sf_cost,
    material_label,
)
from exterra.models.enums import ALL_COMPONENTS, Component, LineItemKind
from exterra.models.estimate import CostEstimate, CostLine, MaterialLine
from exterra.models.property import (
    DEFAULT_DOOR_SIZE,
    DEFAULT_WINDOW_SIZE,
    BuildingMeasurement,
    OpeningSize,
    RoofInfo,
    WindowDoorCount,
    parse_opening_size,
)

SIDING_WASTE_FACTOR = 1.1
# Two coats over the wall area.
PAINT_COATS = 2
SQFT_PER_WEEK = 500.0
OPENINGS_PER_WEEK = 5


def _size_or_default(text: str, default: str) -> OpeningSize:
    try:
        return parse_opening_size(text)
    except ValueError:
        return parse_opening_size(default)


# ---------------------------------------------------------------------------
# Materials
# ---------------------------------------------------------------------------


def material_estimates(
    measurement: BuildingMeasurement,
    openings: WindowDoorCount,
    roof: RoofInfo,
    components: Iterable[Component] = ALL_COMPONENTS,
) -> list[MaterialLine]:
    """Structured material lines in order: siding, paint, windows, doors, roofing."""
    scope = frozenset(components)
    area = max(measurement.area, 0.0)
    lines: list[MaterialLine] = []

    if Component.SIDING in scope:
        lines.append(
            MaterialLine(
                kind=LineItemKind.SIDING,
                quantity=round(area * SIDING_WASTE_FACTOR),
                unit="sq ft",
            )
        )
        lines.append(
            MaterialLine(
                kind=LineItemKind.PAINT,
                quantity=math.ceil(area * PAINT_COATS / PAINT_COVERAGE_SQFT_PER_GALLON),
                unit="gallons",
            )
        )
    if Component.WINDOWS in scope:
        for i, text in enumerate(openings.padded_window_sizes(), start=1):
            lines.append(
                MaterialLine(
                    kind=LineItemKind.WINDOW,
                    quantity=1,
                    unit="each",
                    size=_size_or_default(text, DEFAULT_WINDOW_SIZE),
                    index=i,
                )
            )
    if Component.DOORS in scope:
        for i, text in enumerate(openings.padded_door_sizes(), start=1):
            lines.append(
                MaterialLine(
                    kind=LineItemKind.DOOR,
                    quantity=1,
                    unit="each",
                    size=_size_or_default(text, DEFAULT_DOOR_SIZE),
                    index=i,
                )
            )
    if Component.ROOF in scope:
        lines.append(
            MaterialLine(
                kind=LineItemKind.ROOFING,
                quantity=round(max(roof.roof_area, 0.0)),
                unit="sq ft",
                material=roof.roof_material,
            )
        )
    return lines


def render_materials(lines: Iterable[MaterialLine]) -> list[str]:
    return [describe_material(line) for line in lines]


# ---------------------------------------------------------------------------
# Costs
# ---------------------------------------------------------------------------


def _line_cost(line: MaterialLine) -> tuple[float, float]:
    """Unadjusted (low, high) cost of one material line."""
    if line.kind == LineItemKind.SIDING:
        return line.quantity * SIDING_RATE.low, line.quantity * SIDING_RATE.high
    if line.kind == LineItemKind.PAINT:
        surface = line.quantity * PAINT_COVERAGE_SQFT_PER_GALLON
        return (
            line.quantity * PAINT_RATE.low + surface * PAINT_LABOR_PER_SQFT[0],
            line.quantity * PAINT_RATE.high + surface * PAINT_LABOR_PER_SQFT[1],
        )
    if line.kind in (LineItemKind.WINDOW, LineItemKind.DOOR):
        table = WINDOW_RATES if line.kind == LineItemKind.WINDOW else DOOR_RATES
        area = line.size.area_sqft if line.size is not None else 0.0
        rate = table[opening_bucket(line.kind, area)]
        return line.quantity * rate.low, line.quantity * rate.high
    rate = roofing_rate(line.material)
    return line.quantity * rate.low, line.quantity * rate.high


def cost_estimate(
    materials: Iterable[MaterialLine],
    area: float,
    address: str,
    *,
    is_reliable: bool = False,
) -> CostEstimate:
    """Price material lines and apply the location multiplier band.

    Low totals use the low multiplier and high totals the high one; the
    two bounds are summed independently.
    """
    mult_low, mult_high = location_multiplier(address)
    cost_lines: list[CostLine] = []
    for line in materials:
        low, high = _line_cost(line)
        cost_lines.append(
            CostLine(
                kind=line.kind,
                label=material_label(line),
                low=round(low * mult_low, 2),
                high=round(high * mult_high, 2),
            )
        )

    total_low = round(sum(c.low for c in cost_lines), 2)
    total_high = round(sum(c.high for c in cost_lines), 2)
    per_sqft_low = round(total_low / area, 2) if area > 0 else 0.0
    per_sqft_high = round(total_high / area, 2) if area > 0 else 0.0

    breakdown = [describe_cost(c) for c in cost_lines]
    breakdown.append(describe_location(mult_low, mult_high))
    if area > 0:
        breakdown.append(f"Cost per sq ft of house: {format_sf_cost(per_sqft_low, per_sqft_high)}")

    return CostEstimate(
        total_low=total_low,
        total_high=total_high,
        breakdown=breakdown,
        lines=cost_lines,
        location_multiplier_low=mult_low,
        location_multiplier_high=mult_high,
        cost_per_sqft_low=per_sqft_low,
        cost_per_sqft_high=per_sqft_high,
        is_reliable=is_reliable,
    )


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------


def timeline_estimate(
    area: float,
    openings: WindowDoorCount,
    components: Iterable[Component] = ALL_COMPONENTS,
) -> int:
    """Project duration in whole weeks, never less than one."""
    scope = frozenset(components)
    area_weeks = math.ceil(max(area, 0.0) / SQFT_PER_WEEK)
    weeks = area_weeks
    if Component.ROOF in scope:
        weeks += area_weeks

    opening_count = 0
    if Component.WINDOWS in scope:
        opening_count += openings.windows
    if Component.DOORS in scope:
        opening_count += openings.doors
    weeks += math.ceil(opening_count / OPENINGS_PER_WEEK)
    return max(weeks, 1)
