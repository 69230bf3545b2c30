"""Tests for the remodel pipeline with every external service mocked."""

from __future__ import annotations

import base64
from unittest.mock import MagicMock

import cv2
import numpy as np
import pytest

from exterra.exceptions import GeocodingError, PipelineError, UpstreamServiceError
from exterra.integrations.geocoder import NominatimGeocoder
from exterra.integrations.imagery import GoogleImageryClient
from exterra.integrations.recognition import Concept, ImageRecognizer
from exterra.integrations.records import InMemoryRecordStore
from exterra.models.enums import Direction, MeasurementSource
from exterra.models.property import Address, BuildingMeasurement, Coordinates
from exterra.models.request import RemodelRequest
from exterra.services.measurement_resolver import (
    MeasurementResolver,
    RegionalDefaultStrategy,
)
from exterra.services.opening_detector import OpeningDetector
from exterra.services.pipeline import (
    MISSING_MAPS_KEY_ERROR,
    RemodelCompleted,
    RemodelPipeline,
    RetryRequested,
)
from exterra.services.roof_estimator import RoofEstimator

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_ADDRESS = Address(display_name="1 Elm St, Austin, Texas, United States", lat=30.27, lon=-97.74)


def _png_bytes(size: int) -> bytes:
    ok, buffer = cv2.imencode(".png", np.zeros((size, size, 3), dtype=np.uint8))
    assert ok
    return buffer.tobytes()


def _png_uri(size: int = 32) -> str:
    return "data:image/png;base64," + base64.b64encode(_png_bytes(size)).decode()


class _FakeBlobStore:
    def __init__(self) -> None:
        self.uploads: dict[str, bytes] = {}

    def upload(self, data: bytes, key: str, content_type: str) -> str:
        self.uploads[key] = data
        return f"https://files.test/{key}"

    def keys_ending(self, suffix: str) -> list[str]:
        return [k for k in self.uploads if k.endswith(suffix)]


def _make_geocoder(error: Exception | None = None) -> MagicMock:
    geocoder = MagicMock(spec=NominatimGeocoder)
    if error is not None:
        geocoder.geocode.side_effect = error
    else:
        geocoder.geocode.return_value = _ADDRESS
    return geocoder


def _make_recognizer(answer: list[Concept] | Exception) -> MagicMock:
    recognizer = MagicMock(spec=ImageRecognizer)
    if isinstance(answer, Exception):
        recognizer.recognize.side_effect = answer
    else:
        recognizer.recognize.return_value = answer
    return recognizer


def _make_pipeline(
    *,
    recognizer: MagicMock | None = None,
    geocoder: MagicMock | None = None,
    resolver: MeasurementResolver | MagicMock | None = None,
    record_store: InMemoryRecordStore | MagicMock | None = None,
    blob_store: _FakeBlobStore | None = None,
    imagery: MagicMock | None = None,
) -> RemodelPipeline:
    return RemodelPipeline(
        geocoder=geocoder or _make_geocoder(),
        resolver=resolver or MeasurementResolver([RegionalDefaultStrategy()]),
        roof_estimator=RoofEstimator(imagery=imagery),
        opening_detector=OpeningDetector(recognizer, timeout=2.0, imagery=imagery),
        record_store=record_store or InMemoryRecordStore(),
        blob_store=blob_store,
        imagery=imagery,
    )


def _make_request(**overrides: object) -> RemodelRequest:
    data: dict[str, object] = {"address": "1 Elm St, Austin, TX"}
    data.update(overrides)
    return RemodelRequest.model_validate(data)


_GOOD_ANSWER = [Concept("window", 0.8), Concept("window", 0.95), Concept("door", 0.5)]


# ---------------------------------------------------------------------------
# Completed runs
# ---------------------------------------------------------------------------


class TestCompletedRun:
    def test_address_only(self) -> None:
        store = InMemoryRecordStore()
        outcome = _make_pipeline(record_store=store).run(_make_request())
        assert isinstance(outcome, RemodelCompleted)
        record = outcome.record
        assert record.remodel_id is not None
        assert store.get(record.remodel_id).summary == record.summary
        assert record.measurements.source == MeasurementSource.REGIONAL_DEFAULT
        assert record.measurements.area == 2100.0
        assert record.window_door_count.windows == 0
        assert record.cost_estimates.is_reliable is False
        assert record.satellite_image is None
        assert record.satellite_image_error == MISSING_MAPS_KEY_ERROR
        assert record.summary.startswith(
            "Remodel at 1 Elm St, Austin, Texas, United States: 2100sqft, 0 windows"
        )

    def test_detected_openings_make_cost_reliable(self) -> None:
        outcome = _make_pipeline(recognizer=_make_recognizer(_GOOD_ANSWER)).run(
            _make_request(photos={"north": [_png_uri()]})
        )
        assert isinstance(outcome, RemodelCompleted)
        count = outcome.record.window_door_count
        assert (count.windows, count.doors) == (2, 1)
        assert count.is_reliable is True
        assert outcome.record.cost_estimates.is_reliable is True

    def test_components_limit_estimate(self) -> None:
        outcome = _make_pipeline().run(_make_request(components=["roof"]))
        assert isinstance(outcome, RemodelCompleted)
        assert [m.split(" ")[0] for m in outcome.record.material_estimates] == ["Roofing"]

    def test_manual_counts_skip_detection(self) -> None:
        recognizer = _make_recognizer(UpstreamServiceError("down"))
        outcome = _make_pipeline(recognizer=recognizer).run(
            _make_request(
                photos={"north": [_png_uri()]},
                windowCount=5,
                doorCount=2,
                windowSizes=["4ft x 5ft"],
            )
        )
        assert isinstance(outcome, RemodelCompleted)
        recognizer.recognize.assert_not_called()
        assert outcome.record.window_door_count.windows == 5
        assert outcome.record.material_estimates[2] == "Window 1: 4ft x 5ft"

    def test_pin_overrides_geocoded_point(self) -> None:
        resolver = MagicMock(spec=MeasurementResolver)
        resolver.resolve.return_value = BuildingMeasurement(
            width=50,
            length=40,
            area=2000,
            is_reliable=True,
            source=MeasurementSource.FOOTPRINT,
        )
        imagery = MagicMock(spec=GoogleImageryClient)
        imagery.street_views.return_value = {}
        imagery.satellite_tile.return_value = _png_bytes(16)
        _make_pipeline(resolver=resolver, imagery=imagery).run(
            _make_request(pin={"lat": 30.5, "lon": -97.5})
        )
        assert resolver.resolve.call_args.kwargs["pin"] == Coordinates(lat=30.5, lon=-97.5)
        imagery.street_views.assert_called_once_with(30.5, -97.5)
        assert imagery.satellite_tile.call_args.args[:2] == (30.5, -97.5)


# ---------------------------------------------------------------------------
# Retry requests
# ---------------------------------------------------------------------------


class TestRetry:
    def test_failed_photo_requests_retry(self) -> None:
        store = MagicMock(spec=InMemoryRecordStore)
        blobs = _FakeBlobStore()
        outcome = _make_pipeline(
            recognizer=_make_recognizer(UpstreamServiceError("down")),
            record_store=store,
            blob_store=blobs,
        ).run(_make_request(photos={"east": [_png_uri()], "north": [_png_uri(40)]}))
        assert isinstance(outcome, RetryRequested)
        assert outcome.directions == [Direction.NORTH, Direction.EAST]
        store.add.assert_not_called()
        assert blobs.uploads == {}

    def test_only_unretried_directions_requested(self) -> None:
        outcome = _make_pipeline(
            recognizer=_make_recognizer(UpstreamServiceError("down"))
        ).run(
            _make_request(
                photos={"north": [_png_uri()], "south": [_png_uri(40)]},
                retryPhotos={"north": [_png_uri(48)]},
            )
        )
        assert isinstance(outcome, RetryRequested)
        assert outcome.directions == [Direction.SOUTH]

    def test_failed_retry_completes_with_fallback(self) -> None:
        outcome = _make_pipeline(
            recognizer=_make_recognizer(UpstreamServiceError("down"))
        ).run(
            _make_request(
                photos={"north": [_png_uri()]},
                retryPhotos={"north": [_png_uri(48)]},
            )
        )
        assert isinstance(outcome, RemodelCompleted)
        count = outcome.record.window_door_count
        assert (count.windows, count.doors) == (2, 1)
        assert count.is_reliable is False

    def test_no_recognizer_completes_with_fallback(self) -> None:
        outcome = _make_pipeline().run(
            _make_request(photos={"north": [_png_uri()], "south": [_png_uri(40)]})
        )
        assert isinstance(outcome, RemodelCompleted)
        count = outcome.record.window_door_count
        assert (count.windows, count.doors) == (4, 2)
        assert count.is_reliable is False

    def test_street_view_failures_never_retry(self) -> None:
        imagery = MagicMock(spec=GoogleImageryClient)
        imagery.street_views.return_value = {Direction.NORTH: _png_bytes(24)}
        imagery.satellite_tile.side_effect = UpstreamServiceError("quota")
        outcome = _make_pipeline(
            recognizer=_make_recognizer(UpstreamServiceError("down")), imagery=imagery
        ).run(_make_request())
        assert isinstance(outcome, RemodelCompleted)
        assert outcome.record.window_door_count.windows == 2
        assert outcome.record.satellite_image is None
        assert "Satellite preview fetch failed" in (
            outcome.record.satellite_image_error or ""
        )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class TestPersistence:
    def test_all_photos_uploaded_with_notice(self) -> None:
        blobs = _FakeBlobStore()
        outcome = _make_pipeline(
            recognizer=_make_recognizer(_GOOD_ANSWER), blob_store=blobs
        ).run(_make_request(photos={"north": [_png_uri(32), _png_uri(40)]}))
        assert isinstance(outcome, RemodelCompleted)
        record = outcome.record
        assert len(blobs.keys_ending("/north-1.png")) == 1
        assert len(blobs.keys_ending("/north-2.png")) == 1
        assert len(record.all_uploaded_images[Direction.NORTH]) == 2
        # The processed photo is the first upload, stored once.
        assert record.processed_images[Direction.NORTH] == (
            record.all_uploaded_images[Direction.NORTH][0]
        )
        assert blobs.keys_ending("/north-processed.png") == []
        assert record.notices == [
            "Multiple images uploaded for north. Only the first image is "
            "processed for analysis; all images are saved."
        ]

    def test_satellite_preview_stored(self) -> None:
        blobs = _FakeBlobStore()
        imagery = MagicMock(spec=GoogleImageryClient)
        imagery.street_views.return_value = {Direction.WEST: _png_bytes(24)}
        imagery.satellite_tile.return_value = _png_bytes(16)
        outcome = _make_pipeline(imagery=imagery, blob_store=blobs).run(_make_request())
        assert isinstance(outcome, RemodelCompleted)
        record = outcome.record
        assert record.satellite_image is not None
        assert record.satellite_image.endswith("/satellite.png")
        assert record.satellite_image_error is None
        assert record.street_view_image is not None
        assert record.street_view_image.endswith("/west-processed.png")
        imagery.satellite_tile.assert_called_once_with(
            _ADDRESS.lat, _ADDRESS.lon, zoom=18, size=300
        )

    def test_no_blob_store_keeps_urls_empty(self) -> None:
        outcome = _make_pipeline(recognizer=_make_recognizer(_GOOD_ANSWER)).run(
            _make_request(photos={"south": [_png_uri()]})
        )
        assert isinstance(outcome, RemodelCompleted)
        assert outcome.record.processed_images == {}
        assert outcome.record.all_uploaded_images == {}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_geocoding_error_propagates(self) -> None:
        pipeline = _make_pipeline(geocoder=_make_geocoder(GeocodingError("Address not found")))
        with pytest.raises(GeocodingError, match="Address not found"):
            pipeline.run(_make_request())

    def test_unexpected_error_wrapped_with_stage(self) -> None:
        resolver = MagicMock(spec=MeasurementResolver)
        resolver.resolve.side_effect = RuntimeError("boom")
        with pytest.raises(PipelineError) as exc_info:
            _make_pipeline(resolver=resolver).run(_make_request())
        assert exc_info.value.stage == "measure"
        assert "boom" in str(exc_info.value)

    def test_record_store_failure_propagates(self) -> None:
        store = MagicMock(spec=InMemoryRecordStore)
        store.add.side_effect = RuntimeError("disk full")
        with pytest.raises(PipelineError) as exc_info:
            _make_pipeline(record_store=store).run(_make_request())
        assert exc_info.value.stage == "persist"
