"""Nominatim geocoder: free-text address to display name and coordinates."""

from __future__ import annotations

import logging
from typing import Any

import requests

from exterra.exceptions import GeocodingError, UpstreamServiceError
from exterra.models.property import Address

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"


class NominatimGeocoder:
    """Resolves addresses with the OpenStreetMap Nominatim search API."""

    def __init__(
        self,
        user_agent: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        base_url: str = NOMINATIM_URL,
    ) -> None:
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})
        self._timeout = timeout
        self._base_url = base_url

    def geocode(self, address: str) -> Address:
        """Resolve ``address`` using the first search result.

        Raises
        ------
        GeocodingError
            If the geocoder returns no results.
        UpstreamServiceError
            If the service is unreachable or returns malformed data.
        """
        results = self.search(address)
        if not results:
            msg = "Invalid address: No results found"
            raise GeocodingError(msg)

        first = results[0]
        try:
            resolved = Address(
                display_name=str(first["display_name"]),
                lat=float(first["lat"]),
                lon=float(first["lon"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"Malformed geocoder result: {exc}"
            raise UpstreamServiceError(msg) from exc

        logger.info("Address validated: %s", resolved.display_name)
        return resolved

    def search(self, address: str) -> list[dict[str, Any]]:
        """Raw Nominatim search results for ``address``."""
        try:
            response = self._session.get(
                self._base_url,
                params={"format": "json", "q": address},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            msg = f"Geocoder request failed: {exc}"
            raise UpstreamServiceError(msg) from exc

        if not isinstance(data, list):
            msg = "Geocoder returned an unexpected response shape"
            raise UpstreamServiceError(msg)
        return data
