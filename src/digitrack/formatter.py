"""Labels, train-type names and stop lists for the train detail panel."""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from .models import SelectedTrain, Stop, TrainDetails, TrainLocation
from .station_directory import StationDirectory

TRAIN_TYPE_NAMES: Dict[str, str] = {
    "IC": "InterCity",
    "S": "Pendolino",
    "P": "Passenger",
    "K": "Commuter",
    "L": "Commuter",
    "E": "Express",
    "Y": "Night Train",
    "H": "Cargo",
    "T": "Cargo",
    "M": "Cargo",
    "V": "Cargo",
}

TrainRecord = Union[TrainLocation, SelectedTrain]


def create_train_label(train: TrainRecord) -> str:
    """
    Get the marker label for a train.

    Returns:
        "IC123" when type and number are known, "#123" when only the number
        is, and "Train" otherwise.
    """
    if train.train_number:
        if train.train_type:
            return f"{train.train_type}{train.train_number}"
        return f"#{train.train_number}"
    return "Train"


def get_train_type_name(type_code: Optional[str]) -> str:
    """Convert a train type code to a readable name."""
    return TRAIN_TYPE_NAMES.get(type_code or "") or type_code or "Unknown"


def get_detailed_train_type(train: Optional[SelectedTrain]) -> str:
    """
    Get the most specific type description available for a train.

    The category from the fetched details wins; commuter trains include
    their line and long-distance trains their type name. Without details
    the static type name is used.
    """
    if not train:
        return "Unknown"

    details = train.details
    if details and details.train_category:
        category = details.train_category
        if category == "Commuter" and details.commuter_line_id:
            return f"Commuter Line {details.commuter_line_id}"
        if category == "Long-distance" and train.train_type:
            return f"{get_train_type_name(train.train_type)} (Long-distance)"
        if category == "Cargo":
            return "Cargo Train"
        return category

    if train.train_type:
        return get_train_type_name(train.train_type)
    return "Unknown"


def get_train_stop_info(
    details: Optional[TrainDetails],
    directory: StationDirectory,
    now: Optional[datetime] = None,
) -> List[Stop]:
    """
    Get the ordered list of stations where the train stops.

    Args:
        details: Fetched train details, or None.
        directory: Station directory used to resolve names.
        now: Evaluation instant for the "passed" flag. Defaults to now (UTC).

    Returns:
        List of Stop objects. A DEPARTURE row right after an ARRIVAL at the
        same station is merged into that stop.
    """
    if not details or not details.time_table_rows:
        return []

    if now is None:
        now = datetime.now(timezone.utc)

    stops: List[Stop] = []
    for row in details.time_table_rows:
        if not row.train_stopping:
            continue

        scheduled = row.scheduled_time
        if row.type == "DEPARTURE" and stops and stops[-1].station == row.station_short_code:
            stops[-1].departure_time = scheduled
            continue

        stops.append(
            Stop(
                station=row.station_short_code,
                station_name=directory.get_name(row.station_short_code),
                arrival_time=scheduled if row.type == "ARRIVAL" else None,
                departure_time=scheduled if row.type == "DEPARTURE" else None,
                passed=scheduled is not None and scheduled < now,
                type=row.type,
            )
        )

    return stops


def get_origin(details: Optional[TrainDetails], directory: StationDirectory) -> str:
    code = details.time_table_rows[0].station_short_code if details and details.time_table_rows else ""
    return directory.get_name(code)


def get_destination(details: Optional[TrainDetails], directory: StationDirectory) -> str:
    code = details.time_table_rows[-1].station_short_code if details and details.time_table_rows else ""
    return directory.get_name(code)


def get_category_label(details: Optional[TrainDetails]) -> str:
    if not details:
        return "Unknown"
    return details.train_category or "Unknown"


def format_location(train: TrainRecord) -> str:
    """Format coordinates as "lat, lon" with five decimals."""
    location = train.train if isinstance(train, SelectedTrain) else train
    if not location.coordinates:
        return "Not available"
    lon, lat = location.coordinates
    return f"{lat:.5f}, {lon:.5f}"


def format_marker_popup(train: TrainLocation) -> str:
    """Short summary shown when a marker is clicked on the map page."""
    return "\n".join([
        create_train_label(train),
        f"Train Type: {get_train_type_name(train.train_type)}",
        f"Speed: {train.speed or 0:g} km/h",
        f"Location: {format_location(train)}",
    ])


def format_time(value: Optional[datetime]) -> str:
    """Format a timestamp in local time as HH:MM:SS."""
    if value is None:
        return "--:--:--"
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime("%H:%M:%S")


def format_train_details(
    train: SelectedTrain,
    directory: StationDirectory,
    now: Optional[datetime] = None,
) -> str:
    """Render the detail panel for a selected train as text."""
    heading = f"Train {train.train_type or ''}{train.train_number or ''}"
    speed = train.train.speed or 0
    lines = [
        heading,
        "-" * len(heading),
        f"Train Type: {get_detailed_train_type(train)}",
        f"Speed: {speed:g} km/h",
        f"Location: {format_location(train)}",
    ]

    details = train.details
    if not details:
        lines.append("No details available")
        return "\n".join(lines)

    lines.append(f"Origin: {get_origin(details, directory)}")
    lines.append(f"Destination: {get_destination(details, directory)}")
    lines.append(f"Category: {get_category_label(details)}")
    if details.commuter_line_id:
        lines.append(f"Commuter Line: {details.commuter_line_id}")

    stops = get_train_stop_info(details, directory, now=now)
    lines.append("Stops:")
    if not stops:
        lines.append("  No stop information available")
        return "\n".join(lines)

    for stop in stops:
        marker = "x" if stop.passed else " "
        times = []
        if stop.arrival_time:
            times.append(f"Arrival: {format_time(stop.arrival_time)}")
        if stop.departure_time:
            times.append(f"Departure: {format_time(stop.departure_time)}")
        lines.append(f"  [{marker}] {stop.station_name:<20} {'  '.join(times)}".rstrip())
        lines.append(f"      Map: {directory.station_map_image_url(stop.station)}")

    return "\n".join(lines)
