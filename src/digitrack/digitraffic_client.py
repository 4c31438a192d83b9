"""Digitraffic rail API fetcher and parser."""

import logging
from typing import Any, List, Optional, Tuple
from datetime import datetime, timezone

import requests

from .config import DEFAULT_BASE_URL
from .models import Station, TimetableRow, TrainDetails, TrainLocation

logger = logging.getLogger(__name__)

LOCATIONS_PATH = "/train-locations/latest"
TRAIN_DETAILS_PATH = "/trains/latest/{train_number}"
STATIONS_PATH = "/metadata/stations"


class DigitrafficError(RuntimeError):
    """Raised when the Digitraffic API cannot be reached or returns bad data."""


class DigitrafficClient:
    """Fetches and parses train data from the Digitraffic rail API."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 10.0):
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. "https://rata.digitraffic.fi/api/v1".
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    def get_train_locations(self) -> List[TrainLocation]:
        """
        Get the latest reported position of every train.

        Returns:
            List of TrainLocation objects, in API order.

        Raises:
            DigitrafficError: If the request fails or the body is not a JSON list.
        """
        payload = self._get_json(LOCATIONS_PATH, "fetching train locations")
        if not isinstance(payload, list):
            raise DigitrafficError("Train locations response is not a list")

        trains = [self._parse_location(item) for item in payload if isinstance(item, dict)]
        logger.debug(f"Parsed {len(trains)} train locations")
        return trains

    def get_train_details(self, train_number: int) -> Optional[TrainDetails]:
        """
        Get the latest timetable for a single train.

        Args:
            train_number: Train number (e.g., 8411).

        Returns:
            TrainDetails, or None if the details could not be fetched.
        """
        path = TRAIN_DETAILS_PATH.format(train_number=train_number)
        try:
            payload = self._get_json(path, f"fetching train {train_number}")
        except DigitrafficError as e:
            logger.error(f"Failed to fetch info for train {train_number}: {e}")
            return None

        if not isinstance(payload, list) or not payload or not isinstance(payload[0], dict):
            logger.error(f"Failed to fetch info for train {train_number}: no train record returned")
            return None

        return self._parse_details(payload[0])

    def get_stations(self) -> List[Station]:
        """
        Get station metadata.

        Returns:
            List of Station objects.

        Raises:
            DigitrafficError: If the request fails or the body is not a JSON list.
        """
        payload = self._get_json(STATIONS_PATH, "fetching station metadata")
        if not isinstance(payload, list):
            raise DigitrafficError("Station metadata response is not a list")

        stations: List[Station] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            code = item.get("stationShortCode")
            name = item.get("stationName")
            if not code or not name:
                continue
            stations.append(
                Station(
                    short_code=code,
                    name=name,
                    latitude=_to_float(item.get("latitude")),
                    longitude=_to_float(item.get("longitude")),
                    passenger_traffic=bool(item.get("passengerTraffic", False)),
                )
            )
        return stations

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def _get_json(self, path: str, action: str) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"Fetching {url}")
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise DigitrafficError(f"Network error while {action}: {e}") from e

        if response.status_code >= 400:
            raise DigitrafficError(
                f"Digitraffic error {response.status_code} while {action}: {response.text[:200]}"
            )
        try:
            return response.json()
        except ValueError as e:
            snippet = response.text[:200] or "<empty body>"
            raise DigitrafficError(f"Non-JSON response while {action}: {snippet}") from e

    @staticmethod
    def _parse_location(item: dict) -> TrainLocation:
        """Parse one entry of the train-locations response."""
        location = item.get("location")
        coordinates = location.get("coordinates") if isinstance(location, dict) else None
        return TrainLocation(
            train_number=_to_int(item.get("trainNumber")),
            train_type=item.get("trainType") or None,
            speed=_to_float(item.get("speed")),
            coordinates=parse_coordinates(coordinates),
            departure_date=item.get("departureDate"),
            timestamp=item.get("timestamp"),
        )

    @staticmethod
    def _parse_details(item: dict) -> TrainDetails:
        """Parse one train record of the trains/latest response."""
        rows: List[TimetableRow] = []
        for row in item.get("timeTableRows") or []:
            if not isinstance(row, dict):
                continue
            rows.append(
                TimetableRow(
                    station_short_code=row.get("stationShortCode", ""),
                    scheduled_time=parse_timestamp(row.get("scheduledTime")),
                    type=row.get("type", ""),
                    train_stopping=bool(row.get("trainStopping", False)),
                    commercial_stop=row.get("commercialStop"),
                )
            )

        return TrainDetails(
            train_number=_to_int(item.get("trainNumber")),
            train_type=item.get("trainType") or None,
            train_category=item.get("trainCategory") or None,
            commuter_line_id=item.get("commuterLineID") or None,
            operator_short_code=item.get("operatorShortCode"),
            cancelled=bool(item.get("cancelled", False)),
            time_table_rows=rows,
        )


def parse_coordinates(value: Any) -> Optional[Tuple[float, float]]:
    """Return (lon, lat) if value is a pair of numbers, else None."""
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    lon, lat = value
    if isinstance(lon, bool) or isinstance(lat, bool):
        return None
    if not isinstance(lon, (int, float)) or not isinstance(lat, (int, float)):
        return None
    return float(lon), float(lat)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an API timestamp like "2024-05-01T10:15:00.000Z" into an aware datetime."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Unparseable timestamp: {value}")
        return None
    # API times are UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
