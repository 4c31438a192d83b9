"""Runtime configuration for the Digitraffic train tracker."""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

DEFAULT_BASE_URL = "https://rata.digitraffic.fi/api/v1"

# Refresh presets offered to the user, in seconds
REFRESH_RATES = (5, 10, 30, 60)
DEFAULT_REFRESH_RATE = 10

# Centre of Finland
MAP_CENTER: Tuple[float, float] = (62.2426, 25.7482)
MAP_ZOOM = 5


def validate_refresh_rate(rate: int) -> int:
    """Return the rate if it is one of the presets, else raise ValueError."""
    if rate not in REFRESH_RATES:
        choices = ", ".join(str(r) for r in REFRESH_RATES)
        raise ValueError(f"Refresh rate must be one of: {choices} (got {rate})")
    return rate


@dataclass(frozen=True)
class Settings:
    """Configuration options for the tracker."""

    mapbox_token: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    refresh_rate: int = DEFAULT_REFRESH_RATE
    timeout: float = 10.0
    map_output: str = "trains.html"

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings object from environment variables."""
        try:
            refresh_rate = int(os.environ.get("DIGITRAFFIC_REFRESH_RATE", DEFAULT_REFRESH_RATE))
            timeout = float(os.environ.get("DIGITRAFFIC_TIMEOUT", cls.timeout))
        except ValueError as exc:
            raise ValueError(f"Invalid numeric setting in environment: {exc}") from None

        return cls(
            mapbox_token=os.environ.get("MAPBOX_TOKEN") or None,
            base_url=os.environ.get("DIGITRAFFIC_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            refresh_rate=validate_refresh_rate(refresh_rate),
            timeout=timeout,
            map_output=os.environ.get("DIGITRAFFIC_MAP_OUTPUT", cls.map_output),
        )
