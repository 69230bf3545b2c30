"""Process configuration read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

_MIN_RECOGNITION_TIMEOUT = 3.0
_MAX_RECOGNITION_TIMEOUT = 5.0


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        msg = f"Environment variable {name} must be a number, got {raw!r}"
        raise ValueError(msg) from None


@dataclass(frozen=True)
class Settings:
    """Settings shared by every request handled by this process."""

    google_maps_api_key: str = ""
    clarifai_api_key: str = ""
    anthropic_api_key: str = ""
    recognition_timeout_seconds: float = 4.0
    http_timeout_seconds: float = 10.0
    user_agent: str = "Exterra/0.1 (exterior remodel estimates)"
    data_dir: Path = Path("data")
    azure_storage_connection_string: str = ""
    blob_container: str = "exterra"
    signed_url_ttl_seconds: int = 7 * 24 * 3600
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000"]
    )

    def __post_init__(self) -> None:
        clamped = min(
            max(self.recognition_timeout_seconds, _MIN_RECOGNITION_TIMEOUT),
            _MAX_RECOGNITION_TIMEOUT,
        )
        object.__setattr__(self, "recognition_timeout_seconds", clamped)

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from ``os.environ``, falling back to defaults."""
        defaults = cls()
        origins = os.environ.get("EXTERRA_CORS_ORIGINS", "")
        return cls(
            google_maps_api_key=os.environ.get("GOOGLE_MAPS_API_KEY", ""),
            clarifai_api_key=os.environ.get("CLARIFAI_API_KEY", ""),
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
            recognition_timeout_seconds=_env_float(
                "EXTERRA_RECOGNITION_TIMEOUT",
                defaults.recognition_timeout_seconds,
            ),
            http_timeout_seconds=_env_float(
                "EXTERRA_HTTP_TIMEOUT", defaults.http_timeout_seconds
            ),
            user_agent=os.environ.get("EXTERRA_USER_AGENT", defaults.user_agent),
            data_dir=Path(os.environ.get("EXTERRA_DATA_DIR", str(defaults.data_dir))),
            azure_storage_connection_string=os.environ.get(
                "AZURE_STORAGE_CONNECTION_STRING", ""
            ),
            blob_container=os.environ.get(
                "EXTERRA_BLOB_CONTAINER", defaults.blob_container
            ),
            signed_url_ttl_seconds=int(
                _env_float("EXTERRA_SIGNED_URL_TTL", defaults.signed_url_ttl_seconds)
            ),
            cors_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                or defaults.cors_origins
            ),
        )
