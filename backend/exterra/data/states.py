"""Coarse US state detection from free-text address strings."""

from __future__ import annotations

US_STATES: tuple[str, ...] = (
    "alabama", "alaska", "arizona", "arkansas", "california", "colorado",
    "connecticut", "delaware", "district of columbia", "florida", "georgia",
    "hawaii", "idaho", "illinois", "indiana", "iowa", "kansas", "kentucky",
    "louisiana", "maine", "maryland", "massachusetts", "michigan",
    "minnesota", "mississippi", "missouri", "montana", "nebraska", "nevada",
    "new hampshire", "new jersey", "new mexico", "new york",
    "north carolina", "north dakota", "ohio", "oklahoma", "oregon",
    "pennsylvania", "rhode island", "south carolina", "south dakota",
    "tennessee", "texas", "utah", "vermont", "virginia", "washington",
    "west virginia", "wisconsin", "wyoming",
)

# Longest names first so "west virginia" wins over "virginia" and
# "arkansas" over "kansas".
_BY_LENGTH: tuple[str, ...] = tuple(sorted(US_STATES, key=len, reverse=True))


def match_state(address: str) -> str | None:
    """Return the lowercase state name found in ``address``, if any.

    Comma-separated parts are checked from the right, so the state in a
    geocoded ``display_name`` wins over a street or city sharing its name.
    """
    for part in reversed(address.lower().split(",")):
        for state in _BY_LENGTH:
            if state in part:
                return state
    return None
