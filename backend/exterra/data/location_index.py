"""Location multiplier bands for regional cost adjustment.

Each band is a ``(low, high)`` multiplier pair applied to the low and high
cost bounds respectively. Addresses whose state is not recognised fall to
the discount band.
"""

from __future__ import annotations

from exterra.data.states import match_state

HIGH_COST_BAND: tuple[float, float] = (1.15, 1.35)
STANDARD_BAND: tuple[float, float] = (1.00, 1.15)
DISCOUNT_BAND: tuple[float, float] = (0.90, 1.05)

# Coastal and high-cost-of-living states.
HIGH_COST_STATES: frozenset[str] = frozenset({
    "alaska",
    "california",
    "connecticut",
    "district of columbia",
    "hawaii",
    "maryland",
    "massachusetts",
    "new jersey",
    "new york",
    "oregon",
    "rhode island",
    "washington",
})


def location_multiplier(address: str) -> tuple[float, float]:
    """Return the ``(low, high)`` cost multiplier for an address string."""
    state = match_state(address)
    if state is None:
        return DISCOUNT_BAND
    if state in HIGH_COST_STATES:
        return HIGH_COST_BAND
    return STANDARD_BAND
