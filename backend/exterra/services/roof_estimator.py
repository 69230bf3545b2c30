"""Roof Estimator: pitch, ridge height, roof area and material.

Pitch comes from the first image in which a roof-like line is found,
trying user photos before street-view images. With no usable image the
pitch defaults to 6/12 and is flagged unreliable.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from exterra.data.rates import DEFAULT_ROOF_MATERIAL
from exterra.geometry.conversions import roof_area, roof_height
from exterra.models.enums import Direction, PitchSource, RoofPitch
from exterra.models.property import BuildingMeasurement, RoofInfo
from exterra.services.calls import attempt
from exterra.vision.images import decode_image
from exterra.vision.lines import pitch_from_angle, steepest_roof_angle

if TYPE_CHECKING:
    from exterra.integrations.imagery import GoogleImageryClient
    from exterra.vision.images import PhotoPayload

logger = logging.getLogger(__name__)

DEFAULT_PITCH = RoofPitch.MEDIUM


class RoofEstimator:
    """Derives :class:`RoofInfo` from a measurement and optional imagery.

    When ``imagery`` is given and the caller passes no street-view images,
    they are fetched on demand, only if no user photo yields a pitch.
    """

    def __init__(self, imagery: GoogleImageryClient | None = None) -> None:
        self._imagery = imagery

    def estimate(
        self,
        lat: float,
        lon: float,
        measurement: BuildingMeasurement,
        user_photos: dict[Direction, list[PhotoPayload]] | None = None,
        street_view_images: dict[Direction, bytes] | None = None,
    ) -> RoofInfo:
        pitch: RoofPitch | None = None
        source = PitchSource.DEFAULT

        photo_bytes = (
            (f"{direction} photo", photo.to_bytes())
            for direction, photos in (user_photos or {}).items()
            for photo in photos[:1]
            if not photo.is_oversized
        )
        pitch = self._first_pitch(photo_bytes)
        if pitch is not None:
            source = PitchSource.USER_IMAGE
        else:
            if street_view_images is None:
                street_view_images = self._fetch_street_views(lat, lon)
            pitch = self._first_pitch(
                (f"{direction} street view", data)
                for direction, data in street_view_images.items()
            )
            if pitch is not None:
                source = PitchSource.STREET_VIEW

        is_reliable = pitch is not None
        if pitch is None:
            logger.info("No roof line detected; defaulting pitch to %s", DEFAULT_PITCH)
            pitch = DEFAULT_PITCH

        return RoofInfo(
            pitch=pitch,
            height=roof_height(measurement.width, pitch, measurement.levels),
            roof_area=roof_area(measurement.area, pitch),
            roof_material=measurement.roof_material or DEFAULT_ROOF_MATERIAL,
            is_pitch_reliable=is_reliable,
            pitch_source=source,
        )

    def _fetch_street_views(self, lat: float, lon: float) -> dict[Direction, bytes]:
        if self._imagery is None:
            return {}
        imagery = self._imagery
        fetched = attempt("Street view fetch", lambda: imagery.street_views(lat, lon))
        return fetched.value if fetched.ok and fetched.value else {}

    @staticmethod
    def _first_pitch(candidates: Iterable[tuple[str, bytes]]) -> RoofPitch | None:
        for label, data in candidates:
            angle = attempt(
                f"Roof line detection on {label}",
                lambda data=data: steepest_roof_angle(decode_image(data)),
            )
            if angle.ok and angle.value is not None:
                pitch = pitch_from_angle(angle.value)
                logger.info(
                    "Roof pitch %s from %s (%.1f degrees)", pitch, label, angle.value
                )
                return pitch
        return None
