"""Property domain models: address, building measurements, roof, openings."""

from __future__ import annotations

import re

from pydantic import ConfigDict, Field, model_validator

from exterra.models.base import WireModel
from exterra.models.enums import MeasurementSource, PitchSource, RoofPitch

_SIZE_PATTERN = re.compile(
    r"^\s*(\d+(?:\.\d+)?)\s*ft\s*x\s*(\d+(?:\.\d+)?)\s*ft\s*$",
    re.IGNORECASE,
)

DEFAULT_WINDOW_SIZE = "3ft x 4ft"
LARGE_WINDOW_SIZE = "4ft x 5ft"
DEFAULT_DOOR_SIZE = "3ft x 7ft"
LARGE_DOOR_SIZE = "3ft x 8ft"


class Coordinates(WireModel):
    """A latitude/longitude pair in decimal degrees."""

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class Address(WireModel):
    """A geocoded address. Immutable once resolved."""

    model_config = ConfigDict(frozen=True)

    display_name: str
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(lat=self.lat, lon=self.lon)


class BuildingMeasurement(WireModel):
    """Building footprint dimensions in feet and square feet."""

    model_config = ConfigDict(frozen=True)

    width: float = Field(ge=0)
    length: float = Field(ge=0)
    area: float = Field(ge=0)
    is_reliable: bool
    source: MeasurementSource
    levels: int | None = Field(default=None, ge=1)
    roof_material: str | None = None


class RoofInfo(WireModel):
    """Roof geometry derived from the final pitch."""

    pitch: RoofPitch
    height: float
    roof_area: float
    roof_material: str
    is_pitch_reliable: bool
    pitch_source: PitchSource


class OpeningSize(WireModel):
    """Width and height of a window or door in feet."""

    width_ft: float = Field(gt=0)
    height_ft: float = Field(gt=0)

    @property
    def area_sqft(self) -> float:
        return self.width_ft * self.height_ft

    def label(self) -> str:
        return f"{_trim(self.width_ft)}ft x {_trim(self.height_ft)}ft"


def _trim(value: float) -> str:
    return f"{value:g}"


def parse_opening_size(text: str) -> OpeningSize:
    """Parse an informal size string such as ``"3ft x 4ft"``.

    Raises
    ------
    ValueError
        If the string does not look like ``<w>ft x <h>ft`` with positive
        dimensions.
    """
    match = _SIZE_PATTERN.match(text)
    if match is None:
        msg = f"Invalid size '{text}': expected '<width>ft x <height>ft'"
        raise ValueError(msg)
    width, height = float(match.group(1)), float(match.group(2))
    if width <= 0 or height <= 0:
        msg = f"Invalid size '{text}': dimensions must be positive"
        raise ValueError(msg)
    return OpeningSize(width_ft=width, height_ft=height)


class WindowDoorCount(WireModel):
    """Window and door counts with informal per-opening sizes."""

    windows: int = Field(ge=0)
    doors: int = Field(ge=0)
    window_sizes: list[str] = Field(default_factory=list)
    door_sizes: list[str] = Field(default_factory=list)
    is_reliable: bool = False

    @model_validator(mode="after")
    def sizes_do_not_exceed_counts(self) -> WindowDoorCount:
        if len(self.window_sizes) > self.windows:
            msg = (
                f"{len(self.window_sizes)} window sizes given for "
                f"{self.windows} windows"
            )
            raise ValueError(msg)
        if len(self.door_sizes) > self.doors:
            msg = f"{len(self.door_sizes)} door sizes given for {self.doors} doors"
            raise ValueError(msg)
        return self

    def padded_window_sizes(self) -> list[str]:
        """Window sizes with the default size filling any missing entries."""
        missing = self.windows - len(self.window_sizes)
        return [*self.window_sizes, *([DEFAULT_WINDOW_SIZE] * missing)]

    def padded_door_sizes(self) -> list[str]:
        """Door sizes with the default size filling any missing entries."""
        missing = self.doors - len(self.door_sizes)
        return [*self.door_sizes, *([DEFAULT_DOOR_SIZE] * missing)]
