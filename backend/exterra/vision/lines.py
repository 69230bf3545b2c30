"""Roof-line detection: edge detection plus probabilistic Hough line fit."""

from __future__ import annotations

import logging
import math

import cv2
import numpy as np

from exterra.models.enums import RoofPitch

logger = logging.getLogger(__name__)

# Lines flatter than this are eaves/gutters, steeper are walls and posts.
_MIN_ROOF_ANGLE = 5.0
_MAX_ROOF_ANGLE = 80.0


def steepest_roof_angle(image: np.ndarray) -> float | None:
    """Angle in degrees of the steepest roof-like line in ``image``.

    Returns None when no line between 5 and 80 degrees from horizontal is
    found.
    """
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image
    blurred = cv2.GaussianBlur(gray, (5, 5), 0)
    edges = cv2.Canny(blurred, 50, 150)

    height, width = gray.shape[:2]
    min_length = max(20, min(width, height) // 10)
    lines = cv2.HoughLinesP(
        edges,
        rho=1,
        theta=np.pi / 180,
        threshold=50,
        minLineLength=min_length,
        maxLineGap=10,
    )
    if lines is None:
        return None

    steepest: float | None = None
    # OpenCV 4 returns (N, 1, 4), OpenCV 5 returns (N, 4).
    for x1, y1, x2, y2 in lines.reshape(-1, 4):
        angle = math.degrees(math.atan2(abs(int(y2) - int(y1)), abs(int(x2) - int(x1))))
        if _MIN_ROOF_ANGLE < angle < _MAX_ROOF_ANGLE and (
            steepest is None or angle > steepest
        ):
            steepest = angle
    logger.debug("Found %d lines, steepest roof angle %s", len(lines), steepest)
    return steepest


def pitch_from_angle(angle: float) -> RoofPitch:
    """Bucket a roof angle: >45 is 8/12, >30 is 6/12, else 4/12."""
    if angle > 45.0:
        return RoofPitch.STEEP
    if angle > 30.0:
        return RoofPitch.MEDIUM
    return RoofPitch.LOW
