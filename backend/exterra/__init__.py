"""Exterra exterior remodel estimator.

Usage::

    from exterra import material_estimates, cost_estimate, timeline_estimate

    lines = material_estimates(measurement, openings, roof)
    cost = cost_estimate(lines, measurement.area, "Austin, Texas")
    weeks = timeline_estimate(measurement.area, openings)
"""

__version__ = "0.1.0"

from exterra.estimator import (
    cost_estimate,
    material_estimates,
    render_materials,
    timeline_estimate,
)
from exterra.models.enums import Component, Direction, RoofPitch
from exterra.models.estimate import CostEstimate, MaterialLine
from exterra.models.property import (
    Address,
    BuildingMeasurement,
    RoofInfo,
    WindowDoorCount,
)
from exterra.models.record import RemodelRecord
from exterra.models.request import RemodelRequest

__all__ = [
    "Address",
    "BuildingMeasurement",
    "Component",
    "CostEstimate",
    "Direction",
    "MaterialLine",
    "RemodelRecord",
    "RemodelRequest",
    "RoofInfo",
    "RoofPitch",
    "WindowDoorCount",
    "__version__",
    "cost_estimate",
    "material_estimates",
    "render_materials",
    "timeline_estimate",
]
