"""Data models for the Digitraffic train tracker."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from datetime import datetime


@dataclass
class TrainLocation:
    """Represents one train's reported position in a snapshot."""
    train_number: Optional[int]
    train_type: Optional[str]
    speed: Optional[float]
    coordinates: Optional[Tuple[float, float]]  # GeoJSON order: (lon, lat)
    departure_date: Optional[str] = None
    timestamp: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return self.coordinates is not None

    @property
    def train_id(self) -> Optional[str]:
        """Registry key for the train, or None if it cannot be tracked."""
        if not self.train_number:
            return None
        return str(self.train_number)


@dataclass
class TimetableRow:
    """A single ARRIVAL or DEPARTURE row of a train's timetable."""
    station_short_code: str
    scheduled_time: Optional[datetime]
    type: str  # "ARRIVAL" or "DEPARTURE"
    train_stopping: bool
    commercial_stop: Optional[bool] = None


@dataclass
class TrainDetails:
    """Latest timetable information for one train."""
    train_number: Optional[int]
    train_type: Optional[str]
    train_category: Optional[str]
    commuter_line_id: Optional[str] = None
    operator_short_code: Optional[str] = None
    cancelled: bool = False
    time_table_rows: List[TimetableRow] = field(default_factory=list)


@dataclass
class SelectedTrain:
    """A train shown in the detail panel, with its details if they were fetched."""
    train: TrainLocation
    details: Optional[TrainDetails] = None

    @property
    def train_number(self) -> Optional[int]:
        return self.train.train_number

    @property
    def train_type(self) -> Optional[str]:
        return self.train.train_type


@dataclass
class Stop:
    """A station where the train actually stops."""
    station: str
    station_name: str
    arrival_time: Optional[datetime]
    departure_time: Optional[datetime]
    passed: bool
    type: str


@dataclass
class Station:
    """Represents a station from the Digitraffic metadata."""
    short_code: str
    name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    passenger_traffic: bool = False
