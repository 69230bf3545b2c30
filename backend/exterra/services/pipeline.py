"""Remodel pipeline: orchestrates geocoding, measurement, detection and estimation.

One request runs sequentially through
``START -> GEOCODE -> MEASURE -> ROOF -> DETECT_OPENINGS -> ESTIMATE ->
PERSIST -> RESPOND``. Detection may instead end the run with
``RETRY_REQUESTED`` when user photos for some directions could not be
analysed. Nothing is saved unless the run reaches PERSIST.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from exterra.estimator import (
    cost_estimate,
    material_estimates,
    render_materials,
    timeline_estimate,
)
from exterra.exceptions import ExterraError, PipelineError
from exterra.formatting import summarize
from exterra.integrations.imagery import PREVIEW_SIZE, PREVIEW_ZOOM
from exterra.models.enums import Direction
from exterra.models.record import RemodelRecord
from exterra.services.calls import attempt
from exterra.vision.images import PhotoPayload, guess_media_type, parse_data_uri

if TYPE_CHECKING:
    from exterra.integrations.geocoder import NominatimGeocoder
    from exterra.integrations.imagery import GoogleImageryClient
    from exterra.integrations.records import RecordStore
    from exterra.integrations.storage import BlobStore
    from exterra.models.request import RemodelRequest
    from exterra.services.measurement_resolver import MeasurementResolver
    from exterra.services.opening_detector import OpeningDetector
    from exterra.services.roof_estimator import RoofEstimator

logger = logging.getLogger(__name__)

MISSING_MAPS_KEY_ERROR = (
    "Google Maps API key is missing. Please ensure the Maps Static API is "
    "enabled and the key is configured."
)


class PipelineStage(StrEnum):
    START = "start"
    GEOCODE = "geocode"
    MEASURE = "measure"
    ROOF = "roof"
    DETECT_OPENINGS = "detect_openings"
    ESTIMATE = "estimate"
    PERSIST = "persist"
    RESPOND = "respond"
    RETRY_REQUESTED = "retry_requested"


@dataclass(frozen=True)
class RemodelCompleted:
    """The estimate was computed and saved."""

    record: RemodelRecord


@dataclass(frozen=True)
class RetryRequested:
    """Photos for these directions must be resubmitted."""

    directions: list[Direction]


RemodelOutcome = RemodelCompleted | RetryRequested


@dataclass
class _ImageUploads:
    """Uploads images once per content and remembers their signed URLs."""

    store: BlobStore | None
    prefix: str
    urls: dict[str, str] = field(default_factory=dict)

    def upload(self, photo: PhotoPayload, name: str) -> str | None:
        if self.store is None:
            return None
        if photo.base64_data not in self.urls:
            ext = "png" if photo.media_type == "image/png" else "jpg"
            self.urls[photo.base64_data] = self.store.upload(
                photo.to_bytes(), f"{self.prefix}/{name}.{ext}", photo.media_type
            )
        return self.urls[photo.base64_data]


class RemodelPipeline:
    """Runs one remodel request end to end.

    All collaborators are built once per process and passed in; the
    pipeline itself keeps no state between requests.
    """

    def __init__(
        self,
        geocoder: NominatimGeocoder,
        resolver: MeasurementResolver,
        roof_estimator: RoofEstimator,
        opening_detector: OpeningDetector,
        record_store: RecordStore,
        blob_store: BlobStore | None = None,
        imagery: GoogleImageryClient | None = None,
    ) -> None:
        self._geocoder = geocoder
        self._resolver = resolver
        self._roof_estimator = roof_estimator
        self._opening_detector = opening_detector
        self._record_store = record_store
        self._blob_store = blob_store
        self._imagery = imagery

    @property
    def record_store(self) -> RecordStore:
        return self._record_store

    def run(self, request: RemodelRequest) -> RemodelOutcome:
        """Run the pipeline for a validated request.

        Raises
        ------
        GeocodingError
            If the address cannot be resolved.
        UpstreamServiceError
            If the geocoder is unreachable.
        PersistenceError
            If images or the record cannot be saved.
        PipelineError
            If any stage fails unexpectedly.
        """
        stage = PipelineStage.START
        self._log_stage(stage)
        try:
            stage = PipelineStage.GEOCODE
            self._log_stage(stage)
            address = self._geocoder.geocode(request.address)
            lat, lon = (
                (request.pin.lat, request.pin.lon)
                if request.pin is not None
                else (address.lat, address.lon)
            )

            photos = {
                direction: [parse_data_uri(uri) for uri in uris]
                for direction, uris in request.detection_photos().items()
            }
            notices = [
                f"Multiple images uploaded for {direction}. Only the first image "
                "is processed for analysis; all images are saved."
                for direction, uris in photos.items()
                if len(uris) > 1
            ]

            stage = PipelineStage.MEASURE
            self._log_stage(stage)
            measurement = self._resolver.resolve(
                address.lat,
                address.lon,
                address=address.display_name,
                photos=photos,
                outline=request.outline,
                pin=request.pin,
            )

            street_views = self._street_views(lat, lon) if not photos else None

            stage = PipelineStage.ROOF
            self._log_stage(stage)
            roof = self._roof_estimator.estimate(
                lat,
                lon,
                measurement,
                user_photos=photos,
                street_view_images=street_views,
            )

            stage = PipelineStage.DETECT_OPENINGS
            self._log_stage(stage)
            detection = self._opening_detector.detect(
                photos,
                request.manual_openings(),
                lat=lat,
                lon=lon,
                street_view_images=street_views,
            )
            retry = [
                d for d in detection.retry_directions if not request.retry_photos.get(d)
            ]
            if retry and not detection.from_street_view and not request.has_manual_sizes:
                self._log_stage(PipelineStage.RETRY_REQUESTED)
                logger.info("Requesting retry for %s", [str(d) for d in retry])
                return RetryRequested(directions=retry)
            openings = detection.count

            stage = PipelineStage.ESTIMATE
            self._log_stage(stage)
            components = request.components
            lines = material_estimates(measurement, openings, roof, components)
            cost = cost_estimate(
                lines,
                measurement.area,
                address.display_name,
                is_reliable=measurement.is_reliable or openings.is_reliable,
            )
            weeks = timeline_estimate(measurement.area, openings, components)

            stage = PipelineStage.PERSIST
            self._log_stage(stage)
            uploads = _ImageUploads(self._blob_store, f"remodels/{uuid.uuid4().hex}")
            all_uploaded = {
                direction: [
                    url
                    for i, uri in enumerate(uris, start=1)
                    if (url := uploads.upload(parse_data_uri(uri), f"{direction}-{i}"))
                ]
                for direction, uris in request.all_photos().items()
            }
            processed = {
                direction: url
                for direction, photo in detection.processed.items()
                if (url := uploads.upload(photo, f"{direction}-processed"))
            }
            street_view_url = self._first_street_view_url(street_views, uploads)
            satellite_url, satellite_error = self._satellite_preview(lat, lon, uploads)

            record = RemodelRecord(
                address=address,
                measurements=measurement,
                roof_info=roof,
                window_door_count=openings,
                material_lines=lines,
                material_estimates=render_materials(lines),
                cost_estimates=cost,
                timeline_estimate=weeks,
                components=components,
                processed_images=processed,
                all_uploaded_images={d: u for d, u in all_uploaded.items() if u},
                satellite_image=satellite_url,
                satellite_image_error=satellite_error,
                street_view_image=street_view_url,
                notices=notices,
                summary=summarize(address, measurement, openings, cost),
            )
            remodel_id = self._record_store.add(record)
            record = record.model_copy(update={"remodel_id": remodel_id})

            stage = PipelineStage.RESPOND
            self._log_stage(stage)
            logger.info("Remodel %s saved for %s", remodel_id, address.display_name)
            return RemodelCompleted(record=record)
        except ExterraError:
            logger.warning("Pipeline failed during %s", stage)
            raise
        except Exception as exc:
            msg = f"Remodel pipeline failed during {stage}: {exc}"
            raise PipelineError(msg, stage=str(stage)) from exc

    @staticmethod
    def _log_stage(stage: PipelineStage) -> None:
        logger.info("Pipeline stage: %s", stage)

    def _street_views(self, lat: float, lon: float) -> dict[Direction, bytes] | None:
        if self._imagery is None:
            return None
        imagery = self._imagery
        fetched = attempt("Street view fetch", lambda: imagery.street_views(lat, lon))
        return fetched.value if fetched.ok else {}

    @staticmethod
    def _first_street_view_url(
        street_views: dict[Direction, bytes] | None, uploads: _ImageUploads
    ) -> str | None:
        for direction in Direction:
            data = (street_views or {}).get(direction)
            if data is not None:
                photo = PhotoPayload.from_bytes(data, guess_media_type(data))
                return uploads.upload(photo, f"{direction}-processed")
        return None

    def _satellite_preview(
        self, lat: float, lon: float, uploads: _ImageUploads
    ) -> tuple[str | None, str | None]:
        """Stored satellite preview URL, or the reason there is none."""
        if self._imagery is None:
            return None, MISSING_MAPS_KEY_ERROR
        imagery = self._imagery
        tile = attempt(
            "Satellite preview fetch",
            lambda: imagery.satellite_tile(lat, lon, zoom=PREVIEW_ZOOM, size=PREVIEW_SIZE),
        )
        if not tile.ok:
            return None, tile.error
        photo = PhotoPayload.from_bytes(tile.unwrap(), guess_media_type(tile.unwrap()))
        return uploads.upload(photo, "satellite"), None
