"""Main train tracker: polling, marker updates and train selection."""

import asyncio
import dataclasses
import logging
from datetime import datetime
from typing import Callable, List, Optional

from .config import DEFAULT_REFRESH_RATE, validate_refresh_rate
from .digitraffic_client import DigitrafficClient, DigitrafficError
from .map_surface import InMemoryMap, MapSurface
from .markers import MarkerReconciler
from .models import SelectedTrain, TrainLocation
from .station_directory import StationDirectory

logger = logging.getLogger(__name__)

CLOCK_INTERVAL = 1.0


class TrainTracker:
    """
    Tracks live train positions on a map.

    This class provides methods to:
    - Poll train locations on a user-selectable interval
    - Keep one map marker per trackable train
    - Fetch and hold the details of a selected train

    All state is mutated on the asyncio loop thread; blocking HTTP calls run
    in the loop's default executor.
    """

    def __init__(
        self,
        client: Optional[DigitrafficClient] = None,
        surface: Optional[MapSurface] = None,
        stations: Optional[StationDirectory] = None,
        refresh_rate: int = DEFAULT_REFRESH_RATE,
        on_update: Optional[Callable[["TrainTracker"], None]] = None,
    ):
        """
        Initialize the tracker.

        Args:
            client: API client. A default DigitrafficClient is created if omitted.
            surface: Map surface for the markers. Defaults to an InMemoryMap.
            stations: Station directory. A fresh one is created if omitted.
            refresh_rate: Polling interval in seconds; must be a preset.
            on_update: Called after every refresh and selection change.
        """
        self.client = client if client is not None else DigitrafficClient()
        self.surface = surface if surface is not None else InMemoryMap()
        self.stations = stations if stations is not None else StationDirectory()
        self.refresh_rate = validate_refresh_rate(refresh_rate)
        self.on_update = on_update

        self.trains: List[TrainLocation] = []
        self.selected_train: Optional[SelectedTrain] = None
        self.loading = False
        self.error: Optional[str] = None
        self.current_time = datetime.now()

        self.reconciler = MarkerReconciler(self.surface, self.on_marker_click)

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._poll_handle: Optional[asyncio.TimerHandle] = None
        self._clock_handle: Optional[asyncio.TimerHandle] = None
        self._tasks: set = set()
        self._stopped: Optional[asyncio.Event] = None

    async def start(self) -> None:
        """Load stations, do the first fetch and arm the timers."""
        self._loop = asyncio.get_running_loop()
        self._stopped = asyncio.Event()

        self._tick_clock()
        self._schedule_poll()

        await self.load_stations()
        await self.refresh()

    async def run_until_stopped(self) -> None:
        """Wait, after start(), until stop() is called."""
        await self._stopped.wait()

    def stop(self) -> None:
        """Cancel both timers and release the HTTP session."""
        for handle in (self._poll_handle, self._clock_handle):
            if handle:
                handle.cancel()
        self._poll_handle = None
        self._clock_handle = None
        for task in list(self._tasks):
            task.cancel()
        self.client.close()
        if self._stopped:
            self._stopped.set()
        logger.info("Tracker stopped")

    async def load_stations(self) -> None:
        """Populate the station directory; on failure keep the fallback names."""
        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self.stations.load_from_client, self.client)
        except DigitrafficError as e:
            logger.error(f"Failed to fetch station data: {e}")

    async def fetch_train_locations(self) -> List[TrainLocation]:
        """
        Fetch the latest snapshot.

        Returns:
            The new train list, or an empty list if the fetch failed. On
            failure the previous list is kept and the error is recorded.
        """
        self.loading = True
        try:
            loop = asyncio.get_running_loop()
            trains = await loop.run_in_executor(None, self.client.get_train_locations)
        except DigitrafficError as e:
            self.error = f"Failed to fetch train data: {e}"
            logger.error(self.error)
            return []
        finally:
            self.loading = False

        self.trains = trains
        self.error = None
        logger.info(f"Fetched {len(trains)} train locations")
        return trains

    async def refresh(self) -> bool:
        """Fetch a snapshot and reconcile the markers with it."""
        trains = await self.fetch_train_locations()
        ok = self.error is None
        if ok:
            self.reconciler.update_markers(trains)
        self._notify()
        return ok

    async def refresh_now(self) -> bool:
        """Manual refresh; ignored while a fetch is in flight."""
        if self.loading:
            logger.debug("Refresh already in progress")
            return False
        return await self.refresh()

    def set_refresh_rate(self, rate: int) -> None:
        """
        Change the polling interval.

        The pending poll is cancelled and the next one fires after the new
        interval.

        Raises:
            ValueError: If rate is not one of the presets.
        """
        self.refresh_rate = validate_refresh_rate(rate)
        if self._poll_handle:
            self._poll_handle.cancel()
            self._poll_handle = None
        if self._loop:
            self._schedule_poll()
        logger.info(f"Refresh rate set to {rate}s")

    async def select_train(self, train: TrainLocation) -> SelectedTrain:
        """Show a train in the detail panel, fetching its details if it has a number."""
        if not train.train_number:
            selected = SelectedTrain(
                train=dataclasses.replace(train, train_type=train.train_type or "Unknown"),
                details=None,
            )
        else:
            loop = asyncio.get_running_loop()
            details = await loop.run_in_executor(None, self.client.get_train_details, train.train_number)
            selected = SelectedTrain(train=train, details=details)

        self.selected_train = selected
        self._notify()
        return selected

    def close_train_info(self) -> None:
        """Close the detail panel."""
        self.selected_train = None
        self._notify()

    def on_marker_click(self, train: TrainLocation) -> None:
        """Click handler attached to every marker."""
        self._spawn(self.select_train(train))

    def _schedule_poll(self) -> None:
        self._poll_handle = self._loop.call_later(self.refresh_rate, self._on_poll_timer)

    def _on_poll_timer(self) -> None:
        # Re-arm first so a slow or failing poll never stops the loop
        self._schedule_poll()
        self._spawn(self.refresh())

    def _tick_clock(self) -> None:
        self.current_time = datetime.now()
        self._clock_handle = self._loop.call_later(CLOCK_INTERVAL, self._tick_clock)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error(f"Background task failed: {exc}", exc_info=exc)

    def _notify(self) -> None:
        if self.on_update:
            self.on_update(self)
