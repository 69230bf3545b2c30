"""Opening Detector: window and door counts from facade photos.

Only the first photo of each direction is analysed. Directions run
concurrently and are merged back in compass order. Every failure (no
recognizer, oversized photo, upstream error, timeout, no window or door
in the answer) adds the fallback of two default windows and one default
door for that direction. Only upstream failures, timeouts and empty answers
ask the caller for a new photo.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from exterra.models.enums import Direction
from exterra.models.property import (
    DEFAULT_DOOR_SIZE,
    DEFAULT_WINDOW_SIZE,
    LARGE_DOOR_SIZE,
    LARGE_WINDOW_SIZE,
    WindowDoorCount,
)
from exterra.services.calls import attempt
from exterra.vision.images import PhotoPayload, guess_media_type

if TYPE_CHECKING:
    from exterra.integrations.imagery import GoogleImageryClient
    from exterra.integrations.recognition import Concept, ImageRecognizer

logger = logging.getLogger(__name__)

FALLBACK_WINDOWS = 2
FALLBACK_DOORS = 1
HIGH_CONFIDENCE = 0.9


@dataclass(frozen=True)
class DirectionDetection:
    """Openings found on one facade."""

    direction: Direction
    window_sizes: list[str]
    door_sizes: list[str]
    succeeded: bool
    photo: PhotoPayload | None = None
    retryable: bool = True

    @classmethod
    def fallback(
        cls,
        direction: Direction,
        photo: PhotoPayload | None,
        *,
        retryable: bool = True,
    ) -> DirectionDetection:
        """Default openings for a facade that could not be analysed.

        ``retryable`` is False when resubmitting the same facade cannot help
        (no recognizer configured, photo over the size limit).
        """
        return cls(
            direction=direction,
            window_sizes=[DEFAULT_WINDOW_SIZE] * FALLBACK_WINDOWS,
            door_sizes=[DEFAULT_DOOR_SIZE] * FALLBACK_DOORS,
            succeeded=False,
            photo=photo,
            retryable=retryable,
        )


@dataclass(frozen=True)
class DetectionResult:
    """Merged counts plus the per-direction bookkeeping the pipeline needs."""

    count: WindowDoorCount
    processed: dict[Direction, PhotoPayload] = field(default_factory=dict)
    retry_directions: list[Direction] = field(default_factory=list)
    from_street_view: bool = False


def classify_concepts(concepts: list[Concept]) -> tuple[list[str], list[str]]:
    """Window and door sizes for the concepts whose label names one.

    Scores above 0.9 map to the larger standard size.
    """
    windows: list[str] = []
    doors: list[str] = []
    for concept in concepts:
        name = concept.name.lower()
        large = concept.score > HIGH_CONFIDENCE
        if "window" in name:
            windows.append(LARGE_WINDOW_SIZE if large else DEFAULT_WINDOW_SIZE)
        elif "door" in name:
            doors.append(LARGE_DOOR_SIZE if large else DEFAULT_DOOR_SIZE)
    return windows, doors


def merge_detections(detections: list[DirectionDetection]) -> WindowDoorCount:
    """Sum per-direction results; reliable if any direction succeeded."""
    window_sizes = [s for d in detections for s in d.window_sizes]
    door_sizes = [s for d in detections for s in d.door_sizes]
    return WindowDoorCount(
        windows=len(window_sizes),
        doors=len(door_sizes),
        window_sizes=window_sizes,
        door_sizes=door_sizes,
        is_reliable=any(d.succeeded for d in detections),
    )


class OpeningDetector:
    """Counts windows and doors with an image-recognition backend.

    Parameters
    ----------
    recognizer:
        Recognition backend, or None when none is configured (every photo
        then takes the fallback).
    timeout:
        Per-call deadline in seconds for the recognition call.
    imagery:
        Street-view source used when no user photos were submitted.
    """

    def __init__(
        self,
        recognizer: ImageRecognizer | None,
        timeout: float = 4.0,
        imagery: GoogleImageryClient | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._timeout = timeout
        self._imagery = imagery

    def detect(
        self,
        photos: dict[Direction, list[PhotoPayload]],
        manual: WindowDoorCount | None = None,
        *,
        lat: float | None = None,
        lon: float | None = None,
        street_view_images: dict[Direction, bytes] | None = None,
    ) -> DetectionResult:
        """Count openings; manual counts bypass detection entirely."""
        firsts = {d: photos[d][0] for d in Direction if photos.get(d)}

        if manual is not None:
            logger.info(
                "Using manual counts: %d windows, %d doors", manual.windows, manual.doors
            )
            return DetectionResult(count=manual, processed=firsts)

        from_street_view = False
        if not firsts:
            firsts = self._street_view_photos(lat, lon, street_view_images)
            from_street_view = bool(firsts)
            if not firsts:
                logger.info("No photos or street view images; zero openings")
                return DetectionResult(count=WindowDoorCount(windows=0, doors=0))

        with ThreadPoolExecutor(
            max_workers=len(firsts), thread_name_prefix="exterra-openings"
        ) as pool:
            futures = {
                direction: pool.submit(self._detect_direction, direction, photo)
                for direction, photo in firsts.items()
            }
            detections = [futures[d].result() for d in Direction if d in futures]

        count = merge_detections(detections)
        failed = [d.direction for d in detections if not d.succeeded]
        retry = [
            d.direction for d in detections if not d.succeeded and d.retryable
        ]
        logger.info(
            "Detected %d windows, %d doors (reliable=%s, failed=%s)",
            count.windows,
            count.doors,
            count.is_reliable,
            [str(d) for d in failed],
        )
        return DetectionResult(
            count=count,
            processed={d.direction: d.photo for d in detections if d.photo is not None},
            retry_directions=retry,
            from_street_view=from_street_view,
        )

    def _detect_direction(
        self, direction: Direction, photo: PhotoPayload
    ) -> DirectionDetection:
        if photo.is_oversized:
            logger.warning(
                "Skipping %s photo: %d bytes encoded exceeds limit",
                direction,
                photo.encoded_size,
            )
            return DirectionDetection.fallback(direction, photo, retryable=False)
        if self._recognizer is None:
            return DirectionDetection.fallback(direction, photo, retryable=False)

        recognizer = self._recognizer
        outcome = attempt(
            f"Opening detection for {direction}",
            lambda: recognizer.recognize(photo.base64_data, photo.media_type),
            timeout=self._timeout,
        )
        if not outcome.ok:
            return DirectionDetection.fallback(direction, photo)

        windows, doors = classify_concepts(outcome.value or [])
        if not windows and not doors:
            logger.warning("No windows or doors recognised on %s facade", direction)
            return DirectionDetection.fallback(direction, photo)
        return DirectionDetection(
            direction=direction,
            window_sizes=windows,
            door_sizes=doors,
            succeeded=True,
            photo=photo,
        )

    def _street_view_photos(
        self,
        lat: float | None,
        lon: float | None,
        images: dict[Direction, bytes] | None,
    ) -> dict[Direction, PhotoPayload]:
        if images is None and self._imagery is not None and lat is not None and lon is not None:
            imagery = self._imagery
            fetched = attempt("Street view fetch", lambda: imagery.street_views(lat, lon))
            images = fetched.value if fetched.ok else None
        return {
            direction: PhotoPayload.from_bytes(data, guess_media_type(data))
            for direction, data in (images or {}).items()
        }
