"""Tests for Exterra domain models and request validation."""

from __future__ import annotations

import base64

import pytest
from pydantic import ValidationError

from exterra.models.enums import (
    Component,
    Direction,
    LineItemKind,
    MeasurementSource,
    RoofPitch,
)
from exterra.models.estimate import CostEstimate, CostLine
from exterra.models.property import (
    DEFAULT_DOOR_SIZE,
    DEFAULT_WINDOW_SIZE,
    Address,
    BuildingMeasurement,
    OpeningSize,
    WindowDoorCount,
    parse_opening_size,
)
from exterra.models.request import RemodelRequest

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_PNG_URI = "data:image/png;base64," + base64.b64encode(b"\x89PNG fake").decode()


def _make_request(**overrides: object) -> RemodelRequest:
    data: dict[str, object] = {"address": "123 Main St, Austin, Texas"}
    data.update(overrides)
    return RemodelRequest.model_validate(data)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TestEnums:
    def test_pitch_rise(self) -> None:
        assert RoofPitch.LOW.rise == 4
        assert RoofPitch.MEDIUM.rise == 6
        assert RoofPitch.STEEP.rise == 8

    def test_direction_values(self) -> None:
        assert [str(d) for d in Direction] == ["north", "south", "east", "west"]


# ---------------------------------------------------------------------------
# Opening sizes
# ---------------------------------------------------------------------------


class TestOpeningSize:
    def test_parse_simple(self) -> None:
        size = parse_opening_size("3ft x 4ft")
        assert size.width_ft == 3.0
        assert size.height_ft == 4.0
        assert size.area_sqft == 12.0

    def test_parse_decimal_and_spacing(self) -> None:
        size = parse_opening_size(" 2.5 ft X 6ft ")
        assert size.width_ft == 2.5
        assert size.height_ft == 6.0

    def test_label_trims_trailing_zeros(self) -> None:
        assert OpeningSize(width_ft=3.0, height_ft=7.0).label() == "3ft x 7ft"
        assert OpeningSize(width_ft=2.5, height_ft=6.0).label() == "2.5ft x 6ft"

    @pytest.mark.parametrize("text", ["", "3 x 4", "3ft by 4ft", "0ft x 4ft"])
    def test_invalid_sizes_raise(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_opening_size(text)


# ---------------------------------------------------------------------------
# WindowDoorCount
# ---------------------------------------------------------------------------


class TestWindowDoorCount:
    def test_defaults_unreliable(self) -> None:
        count = WindowDoorCount(windows=0, doors=0)
        assert count.is_reliable is False
        assert count.window_sizes == []

    def test_negative_counts_rejected(self) -> None:
        with pytest.raises(ValidationError):
            WindowDoorCount(windows=-1, doors=0)

    def test_more_sizes_than_count_rejected(self) -> None:
        with pytest.raises(ValidationError):
            WindowDoorCount(windows=1, doors=0, window_sizes=["3ft x 4ft"] * 2)

    def test_padding_fills_defaults(self) -> None:
        count = WindowDoorCount(
            windows=3, doors=2, window_sizes=["4ft x 5ft"], door_sizes=[]
        )
        assert count.padded_window_sizes() == [
            "4ft x 5ft",
            DEFAULT_WINDOW_SIZE,
            DEFAULT_WINDOW_SIZE,
        ]
        assert count.padded_door_sizes() == [DEFAULT_DOOR_SIZE, DEFAULT_DOOR_SIZE]

    def test_wire_format_is_camel_case(self) -> None:
        wire = WindowDoorCount(windows=1, doors=1, is_reliable=True).to_wire()
        assert set(wire) == {"windows", "doors", "windowSizes", "doorSizes", "isReliable"}


# ---------------------------------------------------------------------------
# Address / measurement
# ---------------------------------------------------------------------------


class TestAddress:
    def test_out_of_range_latitude_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Address(display_name="Nowhere", lat=91.0, lon=0.0)

    def test_immutable(self) -> None:
        address = Address(display_name="Austin", lat=30.2, lon=-97.7)
        with pytest.raises(ValidationError):
            address.lat = 10.0  # type: ignore[misc]

    def test_wire_uses_display_name_alias(self) -> None:
        wire = Address(display_name="Austin", lat=30.2, lon=-97.7).to_wire()
        assert wire == {"displayName": "Austin", "lat": 30.2, "lon": -97.7}


class TestBuildingMeasurement:
    def test_wire_fields(self) -> None:
        m = BuildingMeasurement(
            width=50.0,
            length=40.0,
            area=2000.0,
            is_reliable=True,
            source=MeasurementSource.FOOTPRINT,
        )
        wire = m.to_wire()
        assert wire["isReliable"] is True
        assert wire["source"] == "footprint"
        assert wire["roofMaterial"] is None

    def test_levels_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            BuildingMeasurement(
                width=1,
                length=1,
                area=1,
                is_reliable=False,
                source=MeasurementSource.PHOTO,
                levels=0,
            )


# ---------------------------------------------------------------------------
# Cost models
# ---------------------------------------------------------------------------


class TestCostModels:
    def test_cost_line_low_above_high_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CostLine(kind=LineItemKind.SIDING, label="Siding", low=10, high=5)

    def test_cost_estimate_totals_ordered(self) -> None:
        with pytest.raises(ValidationError):
            CostEstimate(total_low=100, total_high=50)


# ---------------------------------------------------------------------------
# RemodelRequest
# ---------------------------------------------------------------------------


class TestRemodelRequest:
    def test_minimal_request_defaults(self) -> None:
        req = _make_request()
        assert req.photos == {}
        assert req.window_count is None
        assert req.component_set == frozenset(Component)

    def test_blank_address_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Missing address"):
            _make_request(address="   ")

    def test_address_is_stripped(self) -> None:
        assert _make_request(address="  1 Elm St  ").address == "1 Elm St"

    def test_camel_case_fields_accepted(self) -> None:
        req = _make_request(
            windowCount=3,
            doorCount=2,
            windowSizes=["3ft x 4ft"],
            doorSizes=["3ft x 7ft", "3ft x 8ft"],
        )
        assert req.window_count == 3
        assert req.door_sizes == ["3ft x 7ft", "3ft x 8ft"]

    def test_malformed_photo_rejected(self) -> None:
        with pytest.raises(ValidationError, match="north photo #1"):
            _make_request(photos={"north": ["not-a-data-uri"]})

    def test_unknown_direction_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _make_request(photos={"up": [_PNG_URI]})

    def test_unknown_component_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _make_request(components=["roof", "gutters"])

    def test_empty_components_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _make_request(components=[])

    def test_components_deduplicated(self) -> None:
        req = _make_request(components=["roof", "roof", "siding"])
        assert req.components == [Component.ROOF, Component.SIDING]

    def test_bad_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _make_request(windowCount=1, doorCount=0, windowSizes=["big"])

    def test_more_sizes_than_count_rejected(self) -> None:
        with pytest.raises(ValidationError, match="More window sizes"):
            _make_request(windowCount=1, windowSizes=["3ft x 4ft", "3ft x 4ft"])

    def test_manual_openings_requires_both_counts(self) -> None:
        assert _make_request(windowCount=3).manual_openings() is None

    def test_manual_openings_reliable(self) -> None:
        manual = _make_request(
            windowCount=3, doorCount=2, windowSizes=["4ft x 5ft"]
        ).manual_openings()
        assert manual is not None
        assert manual.is_reliable is True
        assert manual.windows == 3
        assert manual.doors == 2
        assert manual.window_sizes == ["4ft x 5ft"]

    def test_retry_photos_take_precedence(self) -> None:
        other = "data:image/jpeg;base64," + base64.b64encode(b"retry").decode()
        req = _make_request(
            photos={"north": [_PNG_URI], "east": [_PNG_URI]},
            retryPhotos={"north": [other]},
        )
        detection = req.detection_photos()
        assert detection[Direction.NORTH] == [other]
        assert detection[Direction.EAST] == [_PNG_URI]
        assert req.all_photos()[Direction.NORTH] == [_PNG_URI, other]

    def test_outline_needs_three_points(self) -> None:
        with pytest.raises(ValidationError):
            _make_request(outline={"points": [[0, 0], [1, 1]]})

    def test_outline_default_zoom(self) -> None:
        req = _make_request(outline={"points": [[0, 0], [10, 0], [10, 10]]})
        assert req.outline is not None
        assert req.outline.zoom == 20
