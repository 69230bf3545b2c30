"""Persisted remodel record: the aggregate returned to callers."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import Field

from exterra.models.base import WireModel
from exterra.models.enums import Component, Direction
from exterra.models.estimate import CostEstimate, MaterialLine
from exterra.models.property import (
    Address,
    BuildingMeasurement,
    RoofInfo,
    WindowDoorCount,
)


class RemodelRecord(WireModel):
    """Everything computed for one remodel request.

    Created once, never updated. ``remodel_id`` is assigned by the record
    store when the record is saved.
    """

    remodel_id: str | None = None
    address: Address
    measurements: BuildingMeasurement
    roof_info: RoofInfo
    window_door_count: WindowDoorCount
    material_lines: list[MaterialLine]
    material_estimates: list[str]
    cost_estimates: CostEstimate
    timeline_estimate: int = Field(ge=1)
    components: list[Component]
    processed_images: dict[Direction, str] = Field(default_factory=dict)
    all_uploaded_images: dict[Direction, list[str]] = Field(default_factory=dict)
    satellite_image: str | None = None
    satellite_image_error: str | None = None
    street_view_image: str | None = None
    notices: list[str] = Field(default_factory=list)
    summary: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_response(self) -> dict[str, Any]:
        """Build the JSON body returned by the remodel endpoints."""
        return {
            "remodelId": self.remodel_id,
            "addressData": self.address.to_wire(),
            "measurements": self.measurements.to_wire(),
            "isMeasurementsReliable": self.measurements.is_reliable,
            "windowDoorCount": self.window_door_count.to_wire(),
            "materialEstimates": list(self.material_estimates),
            "costEstimates": self.cost_estimates.to_wire(),
            "timelineEstimate": self.timeline_estimate,
            "roofInfo": self.roof_info.to_wire(),
            "processedImages": {str(k): v for k, v in self.processed_images.items()},
            "allUploadedImages": {
                str(k): list(v) for k, v in self.all_uploaded_images.items()
            },
            "satelliteImage": self.satellite_image,
            "satelliteImageError": self.satellite_image_error,
            "streetViewImage": self.street_view_image,
            "notices": list(self.notices),
            "summary": self.summary,
            "createdAt": self.created_at.isoformat(),
        }
