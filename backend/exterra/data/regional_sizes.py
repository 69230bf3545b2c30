"""Average single-family home footprint by state.

Used as the terminal fallback of the measurement chain. Values are
rounded regional averages of finished ground-floor area in square feet.
"""

from __future__ import annotations

from exterra.data.states import match_state

REGIONAL_AVERAGE_SQFT: dict[str, float] = {
    # Northeast
    "connecticut": 1700.0,
    "maine": 1500.0,
    "massachusetts": 1600.0,
    "new hampshire": 1600.0,
    "new jersey": 1700.0,
    "new york": 1600.0,
    "pennsylvania": 1600.0,
    "rhode island": 1500.0,
    "vermont": 1500.0,
    # Midwest
    "illinois": 1700.0,
    "indiana": 1800.0,
    "iowa": 1700.0,
    "kansas": 1800.0,
    "michigan": 1600.0,
    "minnesota": 1800.0,
    "missouri": 1700.0,
    "nebraska": 1800.0,
    "ohio": 1700.0,
    "wisconsin": 1700.0,
    # South
    "alabama": 1900.0,
    "arkansas": 1800.0,
    "florida": 1900.0,
    "georgia": 2000.0,
    "kentucky": 1700.0,
    "louisiana": 1900.0,
    "maryland": 1800.0,
    "mississippi": 1800.0,
    "north carolina": 1900.0,
    "oklahoma": 1800.0,
    "south carolina": 1900.0,
    "tennessee": 1900.0,
    "texas": 2100.0,
    "virginia": 1900.0,
    "west virginia": 1500.0,
    # West
    "arizona": 1900.0,
    "california": 1700.0,
    "colorado": 1900.0,
    "nevada": 1900.0,
    "oregon": 1700.0,
    "utah": 2000.0,
    "washington": 1800.0,
}

DEFAULT_AVERAGE_SQFT: float = 1500.0


def regional_average_sqft(address: str) -> float:
    """Look up the average home size for the state named in ``address``."""
    state = match_state(address)
    if state is None:
        return DEFAULT_AVERAGE_SQFT
    return REGIONAL_AVERAGE_SQFT.get(state, DEFAULT_AVERAGE_SQFT)
