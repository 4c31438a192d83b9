"""Tests for the digitrack command line."""

import unittest
from unittest.mock import MagicMock, patch
import sys
from pathlib import Path

# Add src to path so we can import digitrack
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from digitrack.cli import build_parser, render, select_by_number
from digitrack.config import Settings
from digitrack.models import SelectedTrain, TrainLocation
from digitrack.station_directory import StationDirectory


class TestParser(unittest.TestCase):

    def test_defaults_come_from_settings(self):
        args = build_parser(Settings(refresh_rate=30, map_output="live.html")).parse_args([])
        self.assertEqual(args.refresh, 30)
        self.assertEqual(args.output, "live.html")
        self.assertFalse(args.once)

    def test_rejects_unknown_refresh_rate(self):
        with self.assertRaises(SystemExit):
            build_parser(Settings()).parse_args(["--refresh", "15"])


class TestRender(unittest.TestCase):

    def test_writes_map_and_prints_panel(self):
        tracker = MagicMock()
        tracker.trains = [MagicMock(), MagicMock()]
        tracker.error = None
        tracker.loading = False
        tracker.refresh_rate = 10
        tracker.stations = StationDirectory()
        tracker.selected_train = SelectedTrain(
            TrainLocation(train_number=5, train_type="P", speed=60, coordinates=(25.0, 61.0))
        )

        with patch("builtins.print") as mock_print:
            render(tracker, "out.html")

        tracker.surface.save.assert_called_once()
        args, kwargs = tracker.surface.save.call_args
        self.assertEqual(args, ("out.html",))
        self.assertEqual(kwargs["train_count"], 2)
        self.assertIn("Train P5", mock_print.call_args_list[0][0][0])


class TestSelectByNumber(unittest.IsolatedAsyncioTestCase):

    async def test_selects_matching_train(self):
        tracker = MagicMock()
        train = TrainLocation(train_number=8411, train_type="HL", speed=0, coordinates=None)
        tracker.trains = [train]

        async def select(t):
            return SelectedTrain(t)

        tracker.select_train.side_effect = select

        self.assertTrue(await select_by_number(tracker, 8411))
        tracker.select_train.assert_called_once_with(train)
        self.assertFalse(await select_by_number(tracker, 1))


if __name__ == "__main__":
    unittest.main()
