"""Domain models for the Exterra remodel estimator."""

from exterra.models.enums import (
    ALL_COMPONENTS,
    Component,
    Direction,
    LineItemKind,
    MeasurementSource,
    PitchSource,
    RoofPitch,
)
from exterra.models.estimate import CostEstimate, CostLine, MaterialLine
from exterra.models.property import (
    Address,
    BuildingMeasurement,
    Coordinates,
    OpeningSize,
    RoofInfo,
    WindowDoorCount,
    parse_opening_size,
)
from exterra.models.record import RemodelRecord
from exterra.models.request import RemodelRequest, RoofOutline

__all__ = [
    "ALL_COMPONENTS",
    "Address",
    "BuildingMeasurement",
    "Component",
    "Coordinates",
    "CostEstimate",
    "CostLine",
    "Direction",
    "LineItemKind",
    "MaterialLine",
    "MeasurementSource",
    "OpeningSize",
    "PitchSource",
    "RemodelRecord",
    "RemodelRequest",
    "RoofInfo",
    "RoofOutline",
    "WindowDoorCount",
    "parse_opening_size",
]
