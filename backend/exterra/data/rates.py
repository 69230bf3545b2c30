"""Unit rate table for exterior remodel line items (2025 national averages).

Every rate is a low/high pair for material and for labor. Window and door
rates are flat per opening, bucketed by size; roofing rates are per square
foot of roof surface, keyed by roofing material.
"""

from __future__ import annotations

from dataclasses import dataclass

from exterra.models.enums import LineItemKind


@dataclass(frozen=True)
class UnitRate:
    """Material and labor cost per unit, low and high."""

    material_low: float
    material_high: float
    labor_low: float
    labor_high: float
    unit: str

    @property
    def low(self) -> float:
        return self.material_low + self.labor_low

    @property
    def high(self) -> float:
        return self.material_high + self.labor_high


SIDING_RATE = UnitRate(3.00, 5.50, 2.00, 4.00, "sq ft")
PAINT_RATE = UnitRate(35.00, 55.00, 0.0, 0.0, "gallon")
# Labor for painting is charged per square foot of painted surface.
PAINT_LABOR_PER_SQFT: tuple[float, float] = (1.00, 2.00)
PAINT_COVERAGE_SQFT_PER_GALLON = 400.0

WINDOW_RATES: dict[str, UnitRate] = {
    "standard": UnitRate(250.0, 400.0, 100.0, 200.0, "each"),
    "large": UnitRate(400.0, 650.0, 150.0, 250.0, "each"),
}
DOOR_RATES: dict[str, UnitRate] = {
    "standard": UnitRate(500.0, 900.0, 200.0, 350.0, "each"),
    "large": UnitRate(800.0, 1300.0, 250.0, 400.0, "each"),
}

# Openings at or above these areas (sq ft) use the "large" bucket.
LARGE_WINDOW_MIN_SQFT = 20.0
LARGE_DOOR_MIN_SQFT = 24.0

DEFAULT_ROOF_MATERIAL = "Asphalt Shingles"
ROOFING_RATES: dict[str, UnitRate] = {
    "Asphalt Shingles": UnitRate(1.50, 2.50, 1.50, 3.00, "sq ft"),
    "Metal": UnitRate(4.00, 8.00, 2.50, 4.50, "sq ft"),
    "Clay Tile": UnitRate(6.00, 10.00, 3.00, 5.00, "sq ft"),
    "Slate": UnitRate(10.00, 20.00, 5.00, 8.00, "sq ft"),
    "Wood Shakes": UnitRate(4.50, 7.00, 2.50, 4.00, "sq ft"),
}

# OSM ``roof:material`` tag values -> roofing material names.
ROOF_MATERIAL_TAGS: dict[str, str] = {
    "asphalt": "Asphalt Shingles",
    "asphalt_shingle": "Asphalt Shingles",
    "roof_tiles": "Clay Tile",
    "tile": "Clay Tile",
    "tiles": "Clay Tile",
    "clay": "Clay Tile",
    "metal": "Metal",
    "metal_sheet": "Metal",
    "tin": "Metal",
    "copper": "Metal",
    "slate": "Slate",
    "wood": "Wood Shakes",
    "shingle": "Asphalt Shingles",
}


def opening_bucket(kind: LineItemKind, area_sqft: float) -> str:
    """Size bucket for a window or door of the given area."""
    threshold = (
        LARGE_WINDOW_MIN_SQFT if kind == LineItemKind.WINDOW else LARGE_DOOR_MIN_SQFT
    )
    return "large" if area_sqft >= threshold else "standard"


def roofing_rate(material: str | None) -> UnitRate:
    """Rate for a roofing material, defaulting to asphalt shingles."""
    if material and material in ROOFING_RATES:
        return ROOFING_RATES[material]
    return ROOFING_RATES[DEFAULT_ROOF_MATERIAL]


def roof_material_from_tag(tag: str | None) -> str:
    """Map an OSM ``roof:material`` tag to a roofing material name."""
    if not tag:
        return DEFAULT_ROOF_MATERIAL
    return ROOF_MATERIAL_TAGS.get(tag.strip().lower(), DEFAULT_ROOF_MATERIAL)
