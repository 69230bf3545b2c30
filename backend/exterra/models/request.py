"""Inbound remodel request model and its validation rules."""

from __future__ import annotations

from pydantic import Field, field_validator, model_validator

from exterra.models.base import WireModel
from exterra.models.enums import ALL_COMPONENTS, Component, Direction
from exterra.models.property import Coordinates, WindowDoorCount, parse_opening_size
from exterra.vision.images import parse_data_uri


class RoofOutline(WireModel):
    """A user-drawn roof polygon in pixel coordinates on a satellite tile."""

    points: list[tuple[float, float]] = Field(min_length=3)
    zoom: int = Field(default=20, ge=15, le=22)


class RemodelRequest(WireModel):
    """Body of ``POST /api/remodel``.

    Photos are data URIs grouped by the compass direction of the facade
    they show. ``retry_photos`` carries closer shots resubmitted for the
    directions the previous call asked to retry.
    """

    address: str
    photos: dict[Direction, list[str]] = Field(default_factory=dict)
    retry_photos: dict[Direction, list[str]] = Field(default_factory=dict)
    window_count: int | None = Field(default=None, ge=0)
    door_count: int | None = Field(default=None, ge=0)
    window_sizes: list[str] = Field(default_factory=list)
    door_sizes: list[str] = Field(default_factory=list)
    components: list[Component] = Field(
        default_factory=lambda: sorted(ALL_COMPONENTS)
    )
    outline: RoofOutline | None = None
    pin: Coordinates | None = None

    @field_validator("address")
    @classmethod
    def address_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Missing address in request body"
            raise ValueError(msg)
        return v

    @field_validator("photos", "retry_photos")
    @classmethod
    def photos_must_be_image_data_uris(
        cls, v: dict[Direction, list[str]]
    ) -> dict[Direction, list[str]]:
        for direction, uris in v.items():
            for index, uri in enumerate(uris):
                try:
                    parse_data_uri(uri)
                except ValueError as exc:
                    msg = f"Invalid {direction} photo #{index + 1}: {exc}"
                    raise ValueError(msg) from exc
        return v

    @field_validator("window_sizes", "door_sizes")
    @classmethod
    def sizes_must_parse(cls, v: list[str]) -> list[str]:
        for size in v:
            parse_opening_size(size)
        return v

    @field_validator("components")
    @classmethod
    def components_must_not_be_empty(cls, v: list[Component]) -> list[Component]:
        if not v:
            msg = "components must name at least one of: roof, windows, doors, siding"
            raise ValueError(msg)
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def manual_sizes_fit_counts(self) -> RemodelRequest:
        if self.window_count is not None and len(self.window_sizes) > self.window_count:
            msg = "More window sizes than windowCount"
            raise ValueError(msg)
        if self.door_count is not None and len(self.door_sizes) > self.door_count:
            msg = "More door sizes than doorCount"
            raise ValueError(msg)
        return self

    @property
    def component_set(self) -> frozenset[Component]:
        return frozenset(self.components)

    @property
    def has_manual_sizes(self) -> bool:
        return bool(self.window_sizes or self.door_sizes)

    def manual_openings(self) -> WindowDoorCount | None:
        """Manual window/door entry, or None when either count is missing."""
        if self.window_count is None or self.door_count is None:
            return None
        return WindowDoorCount(
            windows=self.window_count,
            doors=self.door_count,
            window_sizes=list(self.window_sizes),
            door_sizes=list(self.door_sizes),
            is_reliable=True,
        )

    def detection_photos(self) -> dict[Direction, list[str]]:
        """Photos to analyze per direction; retry photos take precedence."""
        merged: dict[Direction, list[str]] = {}
        for direction in Direction:
            retry = self.retry_photos.get(direction) or []
            original = self.photos.get(direction) or []
            chosen = retry or original
            if chosen:
                merged[direction] = list(chosen)
        return merged

    def all_photos(self) -> dict[Direction, list[str]]:
        """Every submitted photo per direction, originals first."""
        combined: dict[Direction, list[str]] = {}
        for direction in Direction:
            uris = [
                *(self.photos.get(direction) or []),
                *(self.retry_photos.get(direction) or []),
            ]
            if uris:
                combined[direction] = uris
        return combined
