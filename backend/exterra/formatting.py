"""Formatting helpers for estimate output.

Renders structured material and cost lines into the human-readable strings
shown to homeowners (e.g. ``'Window 2: 3ft x 4ft'`` or
``'Siding: $9,900 - $18,810'``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from exterra.models.enums import LineItemKind

if TYPE_CHECKING:
    from exterra.models.estimate import CostEstimate, CostLine, MaterialLine
    from exterra.models.property import Address, BuildingMeasurement, WindowDoorCount


def format_currency(amount: float) -> str:
    """Format a currency amount as a human-readable string.

    - Amounts >= $10,000: no cents, with comma separators (e.g., '$12,345')
    - Amounts < $10,000: with cents (e.g., '$9,876.54')
    """
    if amount >= 10_000:
        return f"${amount:,.0f}"
    return f"${amount:,.2f}"


def format_cost_range(low: float, high: float) -> str:
    """Format a low/high pair as '$X,XXX - $X,XXX'."""
    return f"${low:,.0f} - ${high:,.0f}"


def format_sf_cost(low: float, high: float) -> str:
    """Format a per-SF range as '$X.XX - $X.XX / SF'."""
    return f"${low:,.2f} - ${high:,.2f} / SF"


def material_label(line: MaterialLine) -> str:
    """Short name of a material line, used as the cost line label."""
    if line.kind == LineItemKind.SIDING:
        return "Siding"
    if line.kind == LineItemKind.PAINT:
        return "Exterior Paint"
    if line.kind == LineItemKind.WINDOW:
        return f"Window {line.index}"
    if line.kind == LineItemKind.DOOR:
        return f"Door {line.index}"
    return f"Roofing ({line.material})"


def describe_material(line: MaterialLine) -> str:
    """Render a material line the way it appears in ``materialEstimates``.

    Examples: ``'Siding: 1980 sq ft'``, ``'Exterior Paint: 9 gallons'``,
    ``'Door 1: 3ft x 7ft'``, ``'Roofing (Metal): 2236 sq ft'``.
    """
    label = material_label(line)
    if line.kind in (LineItemKind.WINDOW, LineItemKind.DOOR) and line.size is not None:
        return f"{label}: {line.size.label()}"
    return f"{label}: {round(line.quantity)} {line.unit}"


def describe_cost(line: CostLine) -> str:
    """Render a cost line for the ``breakdown`` list."""
    return f"{line.label}: {format_cost_range(line.low, line.high)}"


def describe_location(multiplier_low: float, multiplier_high: float) -> str:
    return f"Location adjustment: x{multiplier_low:.2f} - x{multiplier_high:.2f}"


def summarize(
    address: Address,
    measurement: BuildingMeasurement,
    openings: WindowDoorCount,
    cost: CostEstimate,
) -> str:
    """One-line summary of a remodel estimate."""
    return (
        f"Remodel at {address.display_name}: {measurement.area:.0f}sqft, "
        f"{openings.windows} windows, {openings.doors} doors, "
        f"~{format_cost_range(cost.total_low, cost.total_high)}."
    )
