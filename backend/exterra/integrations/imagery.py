"""Google static imagery: top-down satellite tiles and street-level views."""

from __future__ import annotations

import logging

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from exterra.exceptions import UpstreamServiceError
from exterra.models.enums import Direction

logger = logging.getLogger(__name__)

STATIC_MAP_URL = "https://maps.googleapis.com/maps/api/staticmap"
STREET_VIEW_URL = "https://maps.googleapis.com/maps/api/streetview"
STREET_VIEW_METADATA_URL = "https://maps.googleapis.com/maps/api/streetview/metadata"

SATELLITE_ZOOM = 20
SATELLITE_SIZE = 640
PREVIEW_ZOOM = 18
PREVIEW_SIZE = 300

# Camera heading in degrees for each compass direction.
HEADINGS: dict[Direction, int] = {
    Direction.NORTH: 0,
    Direction.EAST: 90,
    Direction.SOUTH: 180,
    Direction.WEST: 270,
}


class GoogleImageryClient:
    """Fetches satellite tiles and street-view images as encoded bytes."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            msg = "A Google Maps API key is required for imagery"
            raise ValueError(msg)
        self._api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()

    def satellite_tile(
        self,
        lat: float,
        lon: float,
        zoom: int = SATELLITE_ZOOM,
        size: int = SATELLITE_SIZE,
    ) -> bytes:
        """Top-down satellite tile centered on ``lat``/``lon``.

        Raises
        ------
        UpstreamServiceError
            If the request fails or returns a non-image body.
        """
        params = {
            "center": f"{lat},{lon}",
            "zoom": str(zoom),
            "size": f"{size}x{size}",
            "maptype": "satellite",
            "key": self._api_key,
        }
        return self._get_image(STATIC_MAP_URL, params, "satellite tile")

    @retry(
        retry=retry_if_exception_type(UpstreamServiceError),
        stop=stop_after_attempt(2),
        wait=wait_fixed(0.5),
        reraise=True,
    )
    def street_view(self, lat: float, lon: float, heading: int) -> bytes:
        """Street-level image looking along ``heading``; retried once.

        Raises
        ------
        UpstreamServiceError
            If no panorama exists near the point or both attempts fail.
        """
        location = f"{lat},{lon}"
        try:
            response = self._session.get(
                STREET_VIEW_METADATA_URL,
                params={"location": location, "key": self._api_key},
                timeout=self._timeout,
            )
            response.raise_for_status()
            status = response.json().get("status")
        except (requests.RequestException, ValueError) as exc:
            msg = f"Street view metadata request failed: {exc}"
            raise UpstreamServiceError(msg) from exc
        if status != "OK":
            msg = f"No street view imagery at {location} (status={status})"
            raise UpstreamServiceError(msg)

        params = {
            "location": location,
            "heading": str(heading),
            "size": f"{SATELLITE_SIZE}x{SATELLITE_SIZE}",
            "fov": "90",
            "key": self._api_key,
        }
        return self._get_image(STREET_VIEW_URL, params, "street view image")

    def street_views(self, lat: float, lon: float) -> dict[Direction, bytes]:
        """One street-view image per compass heading; failed headings omitted."""
        images: dict[Direction, bytes] = {}
        for direction, heading in HEADINGS.items():
            try:
                images[direction] = self.street_view(lat, lon, heading)
            except UpstreamServiceError as exc:
                logger.warning("Street view for %s unavailable: %s", direction, exc)
        return images

    def _get_image(self, url: str, params: dict[str, str], label: str) -> bytes:
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            msg = f"Failed to fetch {label}: {exc}"
            raise UpstreamServiceError(msg) from exc

        content_type = response.headers.get("Content-Type", "")
        if not content_type.startswith("image/"):
            msg = f"Expected an image for {label}, got '{content_type}'"
            raise UpstreamServiceError(msg)
        return response.content
