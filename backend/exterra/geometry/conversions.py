"""Unit conversions between map/image space and real-world feet.

Formulas:

- Latitude degrees to feet: ``deg * 364320``.
- Longitude degrees to feet: ``deg * 364320 * cos(latitude)``.
- Web-Mercator ground resolution: ``156543.03392 * cos(lat) / 2**zoom``
  meters per pixel.
"""

from __future__ import annotations

import math

from exterra.models.enums import RoofPitch

FEET_PER_DEGREE_LATITUDE = 364_320.0
EARTH_METERS_PER_PIXEL_AT_ZOOM_0 = 156_543.03392
FEET_PER_METER = 3.28084
SQFT_PER_SQM = 10.7639

STORY_HEIGHT_FT = 10.0

# Fixed roof surface multipliers (hypotenuse / run) per pitch.
PITCH_FACTORS: dict[RoofPitch, float] = {
    RoofPitch.LOW: 1.054,
    RoofPitch.MEDIUM: 1.118,
    RoofPitch.STEEP: 1.202,
}

# Feet per pixel for user-drawn outlines on satellite tiles, by zoom.
# Fixed at the equatorial ground resolution of the imagery provider.
OUTLINE_FEET_PER_PIXEL: dict[int, float] = {
    zoom: EARTH_METERS_PER_PIXEL_AT_ZOOM_0 / (2**zoom) * FEET_PER_METER
    for zoom in range(15, 23)
}


def lat_degrees_to_feet(degrees: float) -> float:
    return degrees * FEET_PER_DEGREE_LATITUDE


def lon_degrees_to_feet(degrees: float, latitude: float) -> float:
    return degrees * FEET_PER_DEGREE_LATITUDE * math.cos(math.radians(latitude))


def meters_per_pixel(latitude: float, zoom: int) -> float:
    """Ground resolution of a Web-Mercator tile at ``latitude``/``zoom``."""
    return (
        EARTH_METERS_PER_PIXEL_AT_ZOOM_0
        * math.cos(latitude * math.pi / 180.0)
        / (2**zoom)
    )


def pixel_area_to_sqft(pixel_area: float, latitude: float, zoom: int) -> float:
    """Convert an area in square pixels to square feet."""
    mpp = meters_per_pixel(latitude, zoom)
    return pixel_area * mpp * mpp * SQFT_PER_SQM


def pixels_to_feet(pixels: float, latitude: float, zoom: int) -> float:
    return pixels * meters_per_pixel(latitude, zoom) * FEET_PER_METER


def pitch_factor(pitch: RoofPitch) -> float:
    return PITCH_FACTORS[pitch]


def roof_area(area: float, pitch: RoofPitch) -> float:
    """Roof surface area for a footprint ``area`` at ``pitch``."""
    return round(area * PITCH_FACTORS[pitch])


def roof_height(width: float, pitch: RoofPitch, levels: int | None = None) -> float:
    """Ridge height: wall height plus the rise over half the width."""
    base = STORY_HEIGHT_FT * levels if levels else STORY_HEIGHT_FT
    return base + (width / 2.0) * (pitch.rise / 12.0)
