"""digitrack - Live Finnish train positions on a map."""

__version__ = "0.1.0"

from .models import TrainLocation, TrainDetails, TimetableRow, SelectedTrain, Stop, Station
from .tracker import TrainTracker
from .station_directory import StationDirectory
from .digitraffic_client import DigitrafficClient, DigitrafficError
from .markers import MarkerReconciler
from .map_surface import MapSurface, InMemoryMap, FoliumMap, Marker

__all__ = [
    "TrainTracker",
    "StationDirectory",
    "DigitrafficClient",
    "DigitrafficError",
    "MarkerReconciler",
    "MapSurface",
    "InMemoryMap",
    "FoliumMap",
    "Marker",
    "TrainLocation",
    "TrainDetails",
    "TimetableRow",
    "SelectedTrain",
    "Stop",
    "Station",
]
