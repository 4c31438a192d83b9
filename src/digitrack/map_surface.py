"""Map surfaces that train markers are drawn on."""

import html
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

import folium

from .config import MAP_CENTER, MAP_ZOOM

logger = logging.getLogger(__name__)

ClickHandler = Callable[[], None]

MAPBOX_TILES = "https://api.mapbox.com/styles/v1/mapbox/streets-v11/tiles/{z}/{x}/{y}?access_token="

MARKER_CSS = """
<style>
.train-marker { padding: 2px 4px; border-radius: 4px; font: bold 11px sans-serif;
  color: #fff; white-space: nowrap; cursor: pointer; }
.intercity-train { background: #d62728; }
.passenger-train { background: #1f77b4; }
.commuter-train { background: #2ca02c; }
.cargo-train { background: #7f7f7f; }
.app-header { position: fixed; top: 0; left: 50px; z-index: 1000; background: #fff;
  padding: 4px 12px; font: 13px sans-serif; }
.error-message { color: #b00020; }
</style>
"""


@dataclass
class Marker:
    """Handle for one marker on a map surface."""
    marker_id: str
    longitude: float
    latitude: float
    label: str
    css_classes: List[str] = field(default_factory=list)
    on_click: Optional[ClickHandler] = None
    popup: Optional[str] = None  # plain text, one line per row

    @property
    def lng_lat(self) -> Tuple[float, float]:
        return self.longitude, self.latitude

    def click(self) -> None:
        """Invoke the marker's click handler, if any."""
        if self.on_click:
            self.on_click()


class MapSurface(ABC):
    """Rendering surface that owns the markers drawn on it."""

    @abstractmethod
    def add_marker(
        self,
        marker_id: str,
        lng_lat: Tuple[float, float],
        label: str,
        css_classes: List[str],
        on_click: Optional[ClickHandler] = None,
        popup: Optional[str] = None,
    ) -> Marker:
        """Create a marker and add it to the map."""

    @abstractmethod
    def move_marker(self, marker: Marker, lng_lat: Tuple[float, float]) -> None:
        """Move an existing marker."""

    @abstractmethod
    def remove_marker(self, marker: Marker) -> None:
        """Take a marker off the map."""


class InMemoryMap(MapSurface):
    """Map surface that only keeps marker state; used headless and in tests."""

    def __init__(self, center: Tuple[float, float] = MAP_CENTER, zoom: int = MAP_ZOOM):
        self.center = center
        self.zoom = zoom
        self.markers: Dict[str, Marker] = {}

    def add_marker(self, marker_id, lng_lat, label, css_classes, on_click=None, popup=None) -> Marker:
        lon, lat = lng_lat
        marker = Marker(
            marker_id=marker_id,
            longitude=lon,
            latitude=lat,
            label=label,
            css_classes=list(css_classes),
            on_click=on_click,
            popup=popup,
        )
        self.markers[marker_id] = marker
        return marker

    def move_marker(self, marker: Marker, lng_lat: Tuple[float, float]) -> None:
        marker.longitude, marker.latitude = lng_lat

    def remove_marker(self, marker: Marker) -> None:
        self.markers.pop(marker.marker_id, None)

    def find_marker(self, label: str) -> Optional[Marker]:
        """Get the first marker carrying the given label."""
        for marker in self.markers.values():
            if marker.label == label:
                return marker
        return None


class FoliumMap(InMemoryMap):
    """Map surface rendered to a standalone Leaflet page with folium."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        center: Tuple[float, float] = MAP_CENTER,
        zoom: int = MAP_ZOOM,
    ):
        super().__init__(center=center, zoom=zoom)
        self.access_token = access_token

    def build(
        self,
        current_time: Optional[datetime] = None,
        train_count: int = 0,
        error: Optional[str] = None,
        loading: bool = False,
        refresh_rate: Optional[int] = None,
    ) -> folium.Map:
        """Build a folium map holding the current markers and status header."""
        if self.access_token:
            fmap = folium.Map(location=list(self.center), zoom_start=self.zoom, tiles=None)
            folium.TileLayer(
                tiles=MAPBOX_TILES + self.access_token,
                attr="© Mapbox © OpenStreetMap",
                name="Mapbox Streets",
            ).add_to(fmap)
        else:
            fmap = folium.Map(location=list(self.center), zoom_start=self.zoom)

        root = fmap.get_root()
        root.header.add_child(folium.Element(MARKER_CSS))
        if refresh_rate:
            # Reload the page on the polling interval
            root.header.add_child(folium.Element(f'<meta http-equiv="refresh" content="{refresh_rate}">'))

        header = ["<div class='app-header'><strong>Finnish Train Tracker</strong>"]
        if current_time:
            header.append(f" &middot; {current_time.strftime('%H:%M:%S')}")
        header.append(f" &middot; Total trains visible: {train_count}")
        if loading:
            header.append(" &middot; Loading train data...")
        if error:
            header.append(f"<div class='error-message'>{html.escape(error)}</div>")
        header.append("</div>")
        root.html.add_child(folium.Element("".join(header)))

        for marker in self.markers.values():
            classes = " ".join(marker.css_classes)
            label = html.escape(marker.label)
            popup = None
            if marker.popup:
                rows = "<br>".join(html.escape(line) for line in marker.popup.splitlines())
                popup = folium.Popup(f'<div class="train-popup">{rows}</div>', max_width=250)
            folium.Marker(
                location=[marker.latitude, marker.longitude],
                tooltip=marker.label,
                popup=popup,
                icon=folium.DivIcon(html=f'<div class="{classes}">{label}</div>'),
            ).add_to(fmap)

        return fmap

    def save(self, path: str, **status) -> None:
        """Render the map to an HTML file."""
        self.build(**status).save(path)
        logger.debug(f"Wrote map with {len(self.markers)} markers to {path}")
