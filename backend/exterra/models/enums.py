"""Enums for the Exterra domain models."""

from enum import StrEnum


class Direction(StrEnum):
    """Compass direction a facade photo faces."""

    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"


class Component(StrEnum):
    """Remodel scope components a customer can request."""

    ROOF = "roof"
    WINDOWS = "windows"
    DOORS = "doors"
    SIDING = "siding"


ALL_COMPONENTS: frozenset[Component] = frozenset(Component)


class RoofPitch(StrEnum):
    """Roof steepness buckets expressed as rise/run."""

    LOW = "4/12"
    MEDIUM = "6/12"
    STEEP = "8/12"

    @property
    def rise(self) -> int:
        """Inches of rise per 12 inches of run."""
        return int(self.value.split("/")[0])


class PitchSource(StrEnum):
    """Where the roof pitch came from."""

    DEFAULT = "default"
    USER_IMAGE = "user_image"
    STREET_VIEW = "street_view"
    SATELLITE = "satellite"


class MeasurementSource(StrEnum):
    """Which fallback stage produced a building measurement."""

    FOOTPRINT = "footprint"
    OUTLINE = "outline"
    SATELLITE = "satellite"
    PHOTO = "photo"
    REGIONAL_DEFAULT = "regional_default"


class LineItemKind(StrEnum):
    """Kinds of material/cost line items, in estimate order."""

    SIDING = "siding"
    PAINT = "paint"
    WINDOW = "window"
    DOOR = "door"
    ROOFING = "roofing"
