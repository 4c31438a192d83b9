"""Command line entry point: keep a live train map up to date."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config import REFRESH_RATES, Settings
from .digitraffic_client import DigitrafficClient
from .formatter import format_train_details
from .map_surface import FoliumMap
from .tracker import TrainTracker

logger = logging.getLogger(__name__)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="digitrack",
        description="Plot live Finnish train positions from Digitraffic on a map.",
    )
    parser.add_argument(
        "--refresh",
        type=int,
        choices=REFRESH_RATES,
        default=settings.refresh_rate,
        help="refresh interval in seconds (default: %(default)s)",
    )
    parser.add_argument(
        "--output",
        default=settings.map_output,
        help="HTML file the map is written to (default: %(default)s)",
    )
    parser.add_argument("--train", type=int, help="show the detail panel for this train number")
    parser.add_argument("--once", action="store_true", help="fetch once, write the map and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


def render(tracker: TrainTracker, output: str) -> None:
    """Write the map page and print the detail panel of the selected train."""
    tracker.surface.save(
        output,
        current_time=tracker.current_time,
        train_count=len(tracker.trains),
        error=tracker.error,
        loading=tracker.loading,
        refresh_rate=tracker.refresh_rate,
    )
    if tracker.selected_train:
        print(format_train_details(tracker.selected_train, tracker.stations))
        print()


async def select_by_number(tracker: TrainTracker, train_number: int) -> bool:
    """Select a train from the current snapshot by its number."""
    for train in tracker.trains:
        if train.train_number == train_number:
            await tracker.select_train(train)
            return True
    logger.warning(f"Train {train_number} is not in the current snapshot")
    return False


async def run_tracker(tracker: TrainTracker, train_number: Optional[int], once: bool) -> None:
    await tracker.start()
    if train_number is not None:
        await select_by_number(tracker, train_number)
    if once:
        tracker.stop()
        return
    try:
        await tracker.run_until_stopped()
    finally:
        tracker.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the digitrack command."""
    load_dotenv()
    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    args = build_parser(settings).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    client = DigitrafficClient(base_url=settings.base_url, timeout=settings.timeout)
    tracker = TrainTracker(
        client=client,
        surface=FoliumMap(access_token=settings.mapbox_token),
        refresh_rate=args.refresh,
        on_update=lambda t: render(t, args.output),
    )

    logger.info(f"Writing map to {args.output}, refreshing every {args.refresh}s")
    try:
        asyncio.run(run_tracker(tracker, args.train, args.once))
    except KeyboardInterrupt:
        print("\nGoodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
