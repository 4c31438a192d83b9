"""Station code to name lookup for Finnish rail stations."""

import logging
from typing import Dict, Iterable
from urllib.parse import quote

from .models import Station

logger = logging.getLogger(__name__)

# Common station codes, used until (or unless) the metadata endpoint answers
FALLBACK_STATION_NAMES: Dict[str, str] = {
    "HKI": "Helsinki",
    "PSL": "Pasila",
    "TPE": "Tampere",
    "TKU": "Turku",
    "OL": "Oulu",
    "OLT": "Oulu tavara",
    "KV": "Kouvola",
    "LH": "Lahti",
    "RI": "Riihimäki",
    "KE": "Kerava",
    "JY": "Jyväskylä",
    "VS": "Vaasa",
    "KOK": "Kokkola",
    "TKL": "Tikkurila",
    "EPO": "Espoo",
    "KKN": "Kirkkonummi",
    "HML": "Hämeenlinna",
    "KTM": "Kontiomäki",
    "KMU": "Kotka Mussalo",
    "TPET": "Tampere tavara",
}

STATIC_MAP_URL = "https://staticmap.openstreetmap.de/staticmap.php"


class StationDirectory:
    """Loads and indexes station metadata."""

    def __init__(self):
        """Initialize an empty directory backed by the fallback table."""
        self.stations: Dict[str, Station] = {}
        self.names: Dict[str, str] = {}  # short_code -> station name

    def load_from_client(self, client) -> None:
        """Download station metadata using a DigitrafficClient."""
        logger.info("Downloading station metadata")
        self.load_stations(client.get_stations())
        logger.info(f"Loaded {len(self.stations)} stations")

    def load_stations(self, stations: Iterable[Station]) -> None:
        """Replace the loaded stations with the given ones."""
        self.stations = {}
        self.names = {}
        for station in stations:
            self.stations[station.short_code] = station
            self.names[station.short_code] = station.name

    def get_name(self, station_code: str) -> str:
        """
        Get the display name for a station code.

        Loaded metadata wins over the fallback table; unknown codes are
        returned as-is and a missing code becomes "Unknown".
        """
        if not station_code:
            return "Unknown"
        return self.names.get(station_code) or FALLBACK_STATION_NAMES.get(station_code) or station_code

    def station_map_image_url(self, station_code: str) -> str:
        """URL of a small static map centred on the station."""
        place = quote(f"{self.get_name(station_code)}, Finland")
        return f"{STATIC_MAP_URL}?center={place}&zoom=15&size=150x150&markers={place},ol-marker-blue"

    def __len__(self) -> int:
        return len(self.names)
