"""Keeps map markers in step with the latest train snapshot."""

import logging
import uuid
from typing import Callable, Dict, Iterable, List, Optional, Set

from .formatter import create_train_label, format_marker_popup
from .map_surface import MapSurface, Marker
from .models import TrainLocation

logger = logging.getLogger(__name__)

INTERCITY_TYPES = {"IC", "S"}
PASSENGER_TYPES = {"P"}
COMMUTER_TYPES = {"K", "L", "E", "Y"}


def marker_style_class(train_type: Optional[str]) -> str:
    """Map a train type code to the marker's category CSS class."""
    if train_type in INTERCITY_TYPES:
        return "intercity-train"
    if train_type in PASSENGER_TYPES:
        return "passenger-train"
    if train_type in COMMUTER_TYPES:
        return "commuter-train"
    return "cargo-train"


def trackable_train_ids(trains: Iterable[TrainLocation]) -> Set[str]:
    """Identifiers of trains that have both a number and a location."""
    return {t.train_id for t in trains if t.train_id and t.has_location}


class MarkerReconciler:
    """
    Diffs snapshots against the markers on a map surface.

    Markers of numbered trains live in the registry and are moved in place
    between snapshots. Unnumbered trains cannot be matched across snapshots,
    so their markers are redrawn from scratch on every update.
    """

    def __init__(self, surface: MapSurface, on_select: Callable[[TrainLocation], None]):
        """
        Args:
            surface: Map surface that draws the markers.
            on_select: Called with the train when its marker is clicked.
        """
        self.surface = surface
        self.on_select = on_select
        self.registry: Dict[str, Marker] = {}
        self._untracked: List[Marker] = []

    def update_markers(self, trains: List[TrainLocation]) -> None:
        """Add, move and remove markers so the map matches the snapshot."""
        current_ids = trackable_train_ids(trains)

        for train_id in list(self.registry):
            if train_id not in current_ids:
                self.surface.remove_marker(self.registry.pop(train_id))
        for marker in self._untracked:
            self.surface.remove_marker(marker)
        self._untracked = []

        added = moved = 0
        for train in trains:
            if not train.has_location:
                continue

            train_id = train.train_id
            if train_id and train_id in self.registry:
                marker = self.registry[train_id]
                self.surface.move_marker(marker, train.coordinates)
                marker.on_click = self._click_handler(train)
                marker.popup = format_marker_popup(train)
                moved += 1
                continue

            marker = self.surface.add_marker(
                train_id or f"unknown-{uuid.uuid4().hex[:9]}",
                train.coordinates,
                create_train_label(train),
                ["train-marker", marker_style_class(train.train_type)],
                on_click=self._click_handler(train),
                popup=format_marker_popup(train),
            )
            if train_id:
                self.registry[train_id] = marker
            else:
                self._untracked.append(marker)
            added += 1

        logger.debug(f"Markers: {added} added, {moved} moved, {len(self.registry)} tracked")

    def get_marker(self, train_id: str) -> Optional[Marker]:
        return self.registry.get(train_id)

    def _click_handler(self, train: TrainLocation) -> Callable[[], None]:
        def handle_click() -> None:
            self.on_select(train)

        return handle_click
