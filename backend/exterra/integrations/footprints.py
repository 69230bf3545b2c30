"""Overpass API client for OpenStreetMap building footprints."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import requests

from exterra.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)

OVERPASS_URL = "https://overpass-api.de/api/interpreter"

_QUERY_TEMPLATE = """
[out:json];
way["building"](around:{radius},{lat},{lon});
out body;
>;
out skel qt;
"""


@dataclass(frozen=True)
class BuildingFootprint:
    """A closed building way resolved to ``(lat, lon)`` nodes."""

    way_id: int
    nodes: list[tuple[float, float]]
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def levels(self) -> int | None:
        raw = self.tags.get("building:levels") or self.tags.get("levels")
        if raw is None:
            return None
        try:
            levels = int(float(raw))
        except ValueError:
            return None
        return levels if levels >= 1 else None

    @property
    def roof_material_tag(self) -> str | None:
        return self.tags.get("roof:material")


class OverpassFootprintClient:
    """Looks up the nearest building outline around a coordinate."""

    def __init__(
        self,
        user_agent: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        base_url: str = OVERPASS_URL,
    ) -> None:
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})
        self._timeout = timeout
        self._base_url = base_url

    def fetch(
        self, lat: float, lon: float, radius_m: int = 50
    ) -> BuildingFootprint | None:
        """Return the first closed building way with >= 3 nodes, or None.

        Raises
        ------
        UpstreamServiceError
            If Overpass is unreachable or returns malformed JSON.
        """
        query = _QUERY_TEMPLATE.format(radius=radius_m, lat=lat, lon=lon)
        try:
            response = self._session.get(
                self._base_url,
                params={"data": query},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            msg = f"Footprint request failed: {exc}"
            raise UpstreamServiceError(msg) from exc

        elements = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(elements, list):
            msg = "Footprint service returned no 'elements' list"
            raise UpstreamServiceError(msg)
        return self._first_closed_way(elements)

    @staticmethod
    def _first_closed_way(elements: list[dict[str, Any]]) -> BuildingFootprint | None:
        nodes_by_id: dict[int, tuple[float, float]] = {
            el["id"]: (float(el["lat"]), float(el["lon"]))
            for el in elements
            if el.get("type") == "node" and "lat" in el and "lon" in el
        }
        for el in elements:
            if el.get("type") != "way":
                continue
            node_ids: list[int] = el.get("nodes") or []
            if len(node_ids) < 4 or node_ids[0] != node_ids[-1]:
                continue
            resolved = [nodes_by_id[n] for n in node_ids if n in nodes_by_id]
            if len(resolved) != len(node_ids) or len(set(resolved)) < 3:
                continue
            return BuildingFootprint(
                way_id=int(el["id"]),
                nodes=resolved,
                tags={str(k): str(v) for k, v in (el.get("tags") or {}).items()},
            )
        logger.info("No closed building way among %d elements", len(elements))
        return None
