"""Building outline detection with OpenCV contours."""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

# Ignore blobs smaller than this fraction of the frame.
_MIN_AREA_FRACTION = 0.01


@dataclass(frozen=True)
class ContourShape:
    """A detected outline in pixel units."""

    pixel_area: float
    width_px: float
    height_px: float
    bbox: tuple[int, int, int, int]

    @property
    def long_side_px(self) -> float:
        return max(self.width_px, self.height_px)

    @property
    def short_side_px(self) -> float:
        return min(self.width_px, self.height_px)


def find_building_contour(image: np.ndarray) -> ContourShape | None:
    """Find the building outline in an image.

    Prefers the contour that contains the image center (the geocoded
    point on a centered tile), otherwise the largest contour. Returns None
    when nothing large enough is found.
    """
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image
    blurred = cv2.GaussianBlur(gray, (5, 5), 0)
    edges = cv2.Canny(blurred, 50, 150)
    kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (5, 5))
    closed = cv2.morphologyEx(edges, cv2.MORPH_CLOSE, kernel)

    contours, _ = cv2.findContours(closed, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    height, width = gray.shape[:2]
    min_area = _MIN_AREA_FRACTION * width * height
    candidates = [c for c in contours if cv2.contourArea(c) >= min_area]
    if not candidates:
        return None

    center = (width / 2.0, height / 2.0)
    containing = [c for c in candidates if cv2.pointPolygonTest(c, center, False) >= 0]
    chosen = max(containing or candidates, key=cv2.contourArea)

    (_, _), (rect_w, rect_h), _ = cv2.minAreaRect(chosen)
    x, y, w, h = cv2.boundingRect(chosen)
    return ContourShape(
        pixel_area=float(cv2.contourArea(chosen)),
        width_px=float(rect_w),
        height_px=float(rect_h),
        bbox=(int(x), int(y), int(w), int(h)),
    )
