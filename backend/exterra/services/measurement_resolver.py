"""Measurement Resolver: building width/length/area from a fallback chain.

Strategies run in order, most precise first:

1. **Footprint**: OSM building way within 50 m, bounding box in feet.
2. **Outline**: user-drawn roof polygon on a satellite tile.
3. **Satellite**: contour detection on a top-down tile.
4. **Photo**: a door of known width scales the facade in a user photo.
5. **Regional default**: average home size for the state in the address.

Each result must fall inside the 500-5000 sq ft sanity band or the next
strategy is tried. The regional default always succeeds, so
:meth:`MeasurementResolver.resolve` never raises.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from exterra.data.rates import roof_material_from_tag
from exterra.data.regional_sizes import regional_average_sqft
from exterra.geometry.conversions import pixel_area_to_sqft, pixels_to_feet
from exterra.geometry.footprint import bounding_box_dimensions, outline_dimensions
from exterra.models.enums import Direction, MeasurementSource
from exterra.models.property import BuildingMeasurement, Coordinates
from exterra.services.calls import Outcome, attempt
from exterra.vision.contours import find_building_contour
from exterra.vision.images import decode_image

if TYPE_CHECKING:
    from exterra.integrations.footprints import OverpassFootprintClient
    from exterra.integrations.imagery import GoogleImageryClient
    from exterra.integrations.recognition import ImageRecognizer
    from exterra.models.request import RoofOutline
    from exterra.vision.images import PhotoPayload

logger = logging.getLogger(__name__)

MIN_SANE_AREA_SQFT = 500.0
MAX_SANE_AREA_SQFT = 5000.0

# Typical footprint proportions: width = sqrt(area) * 1.25.
DEFAULT_WIDTH_FACTOR = 1.25

REFERENCE_DOOR_WIDTH_FT = 3.0

_WIDTH_FACADES = (Direction.NORTH, Direction.SOUTH)
_LENGTH_FACADES = (Direction.EAST, Direction.WEST)


@dataclass(frozen=True)
class MeasurementInput:
    """Everything a measurement strategy may look at."""

    lat: float
    lon: float
    address: str = ""
    photos: dict[Direction, list[PhotoPayload]] = field(default_factory=dict)
    outline: RoofOutline | None = None


class MeasurementStrategy(Protocol):
    name: str

    def attempt(self, inp: MeasurementInput) -> Outcome[BuildingMeasurement]:
        ...


def in_sanity_band(area: float) -> bool:
    return MIN_SANE_AREA_SQFT <= area <= MAX_SANE_AREA_SQFT


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class FootprintStrategy:
    """Bounding box of the nearest OSM building way."""

    name = "footprint"

    def __init__(self, client: OverpassFootprintClient, radius_m: int = 50) -> None:
        self._client = client
        self._radius_m = radius_m

    def attempt(self, inp: MeasurementInput) -> Outcome[BuildingMeasurement]:
        fetched = attempt(
            "Footprint lookup",
            lambda: self._client.fetch(inp.lat, inp.lon, radius_m=self._radius_m),
        )
        if not fetched.ok:
            return Outcome.failed(fetched.error or "footprint lookup failed")
        footprint = fetched.value
        if footprint is None:
            return Outcome.failed(f"no building within {self._radius_m}m")

        dims = bounding_box_dimensions(footprint.nodes, inp.lat)
        return Outcome.success(
            BuildingMeasurement(
                width=dims.width,
                length=dims.length,
                area=dims.area,
                is_reliable=True,
                source=MeasurementSource.FOOTPRINT,
                levels=footprint.levels,
                roof_material=(
                    roof_material_from_tag(footprint.roof_material_tag)
                    if footprint.roof_material_tag
                    else None
                ),
            )
        )


class OutlineStrategy:
    """Shoelace area of a user-drawn roof outline."""

    name = "outline"

    def attempt(self, inp: MeasurementInput) -> Outcome[BuildingMeasurement]:
        if inp.outline is None:
            return Outcome.failed("no outline supplied")
        try:
            dims = outline_dimensions(inp.outline.points, inp.outline.zoom)
        except ValueError as exc:
            return Outcome.failed(str(exc))
        return Outcome.success(
            BuildingMeasurement(
                width=dims.width,
                length=dims.length,
                area=dims.area,
                is_reliable=True,
                source=MeasurementSource.OUTLINE,
            )
        )


class SatelliteStrategy:
    """Contour detection on a top-down satellite tile."""

    name = "satellite"

    def __init__(self, imagery: GoogleImageryClient, zoom: int = 20) -> None:
        self._imagery = imagery
        self._zoom = zoom

    def attempt(self, inp: MeasurementInput) -> Outcome[BuildingMeasurement]:
        tile = attempt(
            "Satellite tile fetch",
            lambda: self._imagery.satellite_tile(inp.lat, inp.lon, zoom=self._zoom),
        )
        if not tile.ok:
            return Outcome.failed(tile.error or "satellite tile unavailable")

        shape = find_building_contour(decode_image(tile.unwrap()))
        if shape is None:
            return Outcome.failed("no building contour in satellite tile")

        area = pixel_area_to_sqft(shape.pixel_area, inp.lat, self._zoom)
        return Outcome.success(
            BuildingMeasurement(
                width=float(round(pixels_to_feet(shape.long_side_px, inp.lat, self._zoom))),
                length=float(round(pixels_to_feet(shape.short_side_px, inp.lat, self._zoom))),
                area=float(round(area)),
                is_reliable=True,
                source=MeasurementSource.SATELLITE,
            )
        )


class PhotoStrategy:
    """Facade width from a user photo, scaled by a detected door.

    North/south photos measure the building width, east/west photos its
    length. A missing axis is filled from the typical footprint ratio.
    """

    name = "photo"

    def __init__(self, recognizer: ImageRecognizer, timeout: float = 4.0) -> None:
        self._recognizer = recognizer
        self._timeout = timeout

    def attempt(self, inp: MeasurementInput) -> Outcome[BuildingMeasurement]:
        width = self._facade_feet(inp.photos, _WIDTH_FACADES)
        length = self._facade_feet(inp.photos, _LENGTH_FACADES)
        if width is None and length is None:
            return Outcome.failed("no photo with a measurable door and facade")

        ratio = DEFAULT_WIDTH_FACTOR**2
        if width is None:
            width = length * ratio  # type: ignore[operator]
        if length is None:
            length = width / ratio
        width, length = max(width, length), min(width, length)
        return Outcome.success(
            BuildingMeasurement(
                width=float(round(width)),
                length=float(round(length)),
                area=float(round(width) * round(length)),
                is_reliable=True,
                source=MeasurementSource.PHOTO,
            )
        )

    def _facade_feet(
        self,
        photos: dict[Direction, list[PhotoPayload]],
        directions: tuple[Direction, ...],
    ) -> float | None:
        for direction in directions:
            candidates = photos.get(direction) or []
            if not candidates or candidates[0].is_oversized:
                continue
            measured = self._measure_facade(candidates[0])
            if measured is not None:
                logger.info("Measured %s facade at %.1f ft", direction, measured)
                return measured
        return None

    def _measure_facade(self, photo: PhotoPayload) -> float | None:
        concepts = attempt(
            "Reference door detection",
            lambda: self._recognizer.recognize(photo.base64_data, photo.media_type),
            timeout=self._timeout,
        )
        if not concepts.ok:
            return None
        doors = [
            c for c in concepts.unwrap()
            if "door" in c.name.lower() and c.box is not None
        ]
        if not doors:
            return None

        image = decode_image(photo.to_bytes())
        image_width = image.shape[1]
        left, _, right, _ = max(doors, key=lambda c: c.score).box  # type: ignore[misc]
        door_px = (right - left) * image_width
        if door_px <= 0:
            return None

        shape = find_building_contour(image)
        if shape is None:
            return None
        return shape.bbox[2] * (REFERENCE_DOOR_WIDTH_FT / door_px)


class RegionalDefaultStrategy:
    """Average home size for the state named in the address."""

    name = "regional_default"

    def attempt(self, inp: MeasurementInput) -> Outcome[BuildingMeasurement]:
        return Outcome.success(regional_default(inp.address))


def regional_default(address: str) -> BuildingMeasurement:
    """Terminal fallback measurement, always flagged unreliable."""
    area = regional_average_sqft(address)
    width = round(math.sqrt(area) * DEFAULT_WIDTH_FACTOR)
    return BuildingMeasurement(
        width=float(width),
        length=round(area / width, 1),
        area=area,
        is_reliable=False,
        source=MeasurementSource.REGIONAL_DEFAULT,
    )


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class MeasurementResolver:
    """Runs measurement strategies in order; first sane result wins."""

    def __init__(self, strategies: Sequence[MeasurementStrategy]) -> None:
        self._strategies = list(strategies)

    @property
    def strategy_names(self) -> list[str]:
        return [s.name for s in self._strategies]

    def resolve(
        self,
        lat: float,
        lon: float,
        address: str = "",
        photos: dict[Direction, list[PhotoPayload]] | None = None,
        outline: RoofOutline | None = None,
        pin: Coordinates | None = None,
    ) -> BuildingMeasurement:
        """Produce a measurement; never raises.

        A user-placed ``pin`` replaces the geocoded coordinates for every
        location-based strategy.
        """
        if pin is not None:
            logger.info("Using user pin (%.6f, %.6f) for measurement", pin.lat, pin.lon)
            lat, lon = pin.lat, pin.lon
        inp = MeasurementInput(
            lat=lat,
            lon=lon,
            address=address,
            photos=photos or {},
            outline=outline,
        )
        for strategy in self._strategies:
            outcome = attempt(
                f"Measurement strategy '{strategy.name}'",
                lambda s=strategy: s.attempt(inp),
            )
            result = outcome.value if outcome.ok else None
            if result is None or not result.ok:
                reason = outcome.error if not outcome.ok else result.error  # type: ignore[union-attr]
                logger.info("Strategy %s skipped: %s", strategy.name, reason)
                continue
            measurement = result.unwrap()
            if not in_sanity_band(measurement.area):
                logger.warning(
                    "Strategy %s produced %.0f sq ft, outside %.0f-%.0f; discarding",
                    strategy.name,
                    measurement.area,
                    MIN_SANE_AREA_SQFT,
                    MAX_SANE_AREA_SQFT,
                )
                continue
            logger.info(
                "Measured %.0f x %.0f ft (%.0f sq ft) via %s",
                measurement.width,
                measurement.length,
                measurement.area,
                strategy.name,
            )
            return measurement

        logger.info("All measurement strategies failed; using regional default")
        return regional_default(address)
