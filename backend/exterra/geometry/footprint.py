"""Footprint geometry: OSM way bounding boxes and drawn roof outlines."""

from __future__ import annotations

import math
from dataclasses import dataclass

from shapely.geometry import MultiPoint, Polygon

from exterra.geometry.conversions import (
    OUTLINE_FEET_PER_PIXEL,
    lat_degrees_to_feet,
    lon_degrees_to_feet,
)


@dataclass(frozen=True)
class FootprintDimensions:
    """Width/length in feet with the area they imply."""

    width: float
    length: float
    area: float


def bounding_box_dimensions(
    nodes: list[tuple[float, float]], latitude: float
) -> FootprintDimensions:
    """Dimensions of the lat/lon bounding box around a building way.

    ``nodes`` are ``(lat, lon)`` pairs. Width is the longer side, both
    sides are rounded to whole feet and ``area = width * length``.
    """
    if len(nodes) < 3:
        msg = f"Need at least 3 nodes for a footprint, got {len(nodes)}"
        raise ValueError(msg)
    min_lat, min_lon, max_lat, max_lon = MultiPoint(nodes).bounds
    lat_feet = lat_degrees_to_feet(max_lat - min_lat)
    lon_feet = lon_degrees_to_feet(max_lon - min_lon, latitude)
    width = round(max(lat_feet, lon_feet))
    length = round(min(lat_feet, lon_feet))
    return FootprintDimensions(
        width=float(width), length=float(length), area=float(width * length)
    )


def outline_dimensions(
    points: list[tuple[float, float]], zoom: int
) -> FootprintDimensions:
    """Dimensions of a user-drawn pixel polygon on a satellite tile.

    Area comes from the polygon itself (shoelace formula), not from the
    bounding box, so it can be smaller than ``width * length``.
    """
    if len(points) < 3:
        msg = f"Need at least 3 outline points, got {len(points)}"
        raise ValueError(msg)
    feet_per_pixel = OUTLINE_FEET_PER_PIXEL.get(zoom)
    if feet_per_pixel is None:
        msg = f"Unsupported outline zoom level: {zoom}"
        raise ValueError(msg)
    polygon = Polygon(points)
    if not polygon.is_valid or math.isclose(polygon.area, 0.0):
        msg = "Outline polygon is self-intersecting or empty"
        raise ValueError(msg)
    min_x, min_y, max_x, max_y = polygon.bounds
    span_x = (max_x - min_x) * feet_per_pixel
    span_y = (max_y - min_y) * feet_per_pixel
    return FootprintDimensions(
        width=float(round(max(span_x, span_y))),
        length=float(round(min(span_x, span_y))),
        area=float(round(polygon.area * feet_per_pixel * feet_per_pixel)),
    )
