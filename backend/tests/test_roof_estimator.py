"""Tests for the roof estimator on synthetic roof-line images."""

from __future__ import annotations

from unittest.mock import MagicMock

import cv2
import numpy as np
import pytest

from exterra.exceptions import UpstreamServiceError
from exterra.integrations.imagery import GoogleImageryClient
from exterra.models.enums import Direction, MeasurementSource, PitchSource, RoofPitch
from exterra.models.property import BuildingMeasurement
from exterra.services.roof_estimator import DEFAULT_PITCH, RoofEstimator
from exterra.vision.images import PhotoPayload

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _encode_png(image: np.ndarray) -> bytes:
    ok, buffer = cv2.imencode(".png", image)
    assert ok
    return buffer.tobytes()


def _line_png(start: tuple[int, int], end: tuple[int, int]) -> bytes:
    image = np.zeros((400, 400, 3), dtype=np.uint8)
    cv2.line(image, start, end, (255, 255, 255), 3)
    return _encode_png(image)


def _blank_png() -> bytes:
    return _encode_png(np.zeros((400, 400, 3), dtype=np.uint8))


_STEEP_LINE = ((100, 350), (250, 50))
_MEDIUM_LINE = ((50, 300), (350, 100))


def _make_measurement(**overrides: object) -> BuildingMeasurement:
    data: dict[str, object] = {
        "width": 50.0,
        "length": 40.0,
        "area": 2000.0,
        "is_reliable": True,
        "source": MeasurementSource.FOOTPRINT,
    }
    data.update(overrides)
    return BuildingMeasurement.model_validate(data)


def _photo(data: bytes) -> PhotoPayload:
    return PhotoPayload.from_bytes(data, "image/png")


# ---------------------------------------------------------------------------
# Default pitch
# ---------------------------------------------------------------------------


class TestDefaultPitch:
    def test_no_images_defaults_to_medium(self) -> None:
        roof = RoofEstimator().estimate(40.0, -86.0, _make_measurement())
        assert roof.pitch == DEFAULT_PITCH == RoofPitch.MEDIUM
        assert roof.is_pitch_reliable is False
        assert roof.pitch_source == PitchSource.DEFAULT
        assert roof.height == 22.5
        assert roof.roof_area == 2236
        assert roof.roof_material == "Asphalt Shingles"

    def test_blank_photo_defaults(self) -> None:
        roof = RoofEstimator().estimate(
            40.0,
            -86.0,
            _make_measurement(),
            user_photos={Direction.NORTH: [_photo(_blank_png())]},
            street_view_images={},
        )
        assert roof.pitch_source == PitchSource.DEFAULT

    def test_undecodable_photo_defaults(self) -> None:
        roof = RoofEstimator().estimate(
            40.0,
            -86.0,
            _make_measurement(),
            user_photos={Direction.NORTH: [_photo(b"not an image")]},
        )
        assert roof.pitch == RoofPitch.MEDIUM
        assert roof.is_pitch_reliable is False

    def test_street_view_fetch_error_defaults(self) -> None:
        imagery = MagicMock(spec=GoogleImageryClient)
        imagery.street_views.side_effect = UpstreamServiceError("quota")
        roof = RoofEstimator(imagery).estimate(40.0, -86.0, _make_measurement())
        assert roof.pitch_source == PitchSource.DEFAULT


# ---------------------------------------------------------------------------
# Detected pitch
# ---------------------------------------------------------------------------


class TestDetectedPitch:
    def test_user_photo_steep_line(self) -> None:
        roof = RoofEstimator().estimate(
            40.0,
            -86.0,
            _make_measurement(),
            user_photos={Direction.SOUTH: [_photo(_line_png(*_STEEP_LINE))]},
        )
        assert roof.pitch == RoofPitch.STEEP
        assert roof.pitch_source == PitchSource.USER_IMAGE
        assert roof.is_pitch_reliable is True
        assert roof.height == pytest.approx(10.0 + 25.0 * 8 / 12)
        assert roof.roof_area == 2404

    def test_user_photo_skips_street_view(self) -> None:
        imagery = MagicMock(spec=GoogleImageryClient)
        RoofEstimator(imagery).estimate(
            40.0,
            -86.0,
            _make_measurement(),
            user_photos={Direction.SOUTH: [_photo(_line_png(*_STEEP_LINE))]},
        )
        imagery.street_views.assert_not_called()

    def test_oversized_photo_ignored(self) -> None:
        huge = PhotoPayload("image/png", "A" * (600 * 1024))
        roof = RoofEstimator().estimate(
            40.0,
            -86.0,
            _make_measurement(),
            user_photos={Direction.NORTH: [huge]},
            street_view_images={Direction.NORTH: _line_png(*_MEDIUM_LINE)},
        )
        assert roof.pitch == RoofPitch.MEDIUM
        assert roof.pitch_source == PitchSource.STREET_VIEW

    def test_street_view_fetched_on_demand(self) -> None:
        imagery = MagicMock(spec=GoogleImageryClient)
        imagery.street_views.return_value = {
            Direction.NORTH: _blank_png(),
            Direction.EAST: _line_png(*_STEEP_LINE),
        }
        roof = RoofEstimator(imagery).estimate(1.0, 2.0, _make_measurement())
        imagery.street_views.assert_called_once_with(1.0, 2.0)
        assert roof.pitch == RoofPitch.STEEP
        assert roof.pitch_source == PitchSource.STREET_VIEW
        assert roof.is_pitch_reliable is True


# ---------------------------------------------------------------------------
# Measurement inputs
# ---------------------------------------------------------------------------


class TestMeasurementInputs:
    def test_levels_raise_wall_height(self) -> None:
        roof = RoofEstimator().estimate(40.0, -86.0, _make_measurement(levels=2))
        assert roof.height == 32.5

    def test_material_from_measurement(self) -> None:
        roof = RoofEstimator().estimate(
            40.0, -86.0, _make_measurement(roof_material="Metal")
        )
        assert roof.roof_material == "Metal"
