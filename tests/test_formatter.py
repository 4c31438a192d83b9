"""Tests for the detail panel formatting."""

import unittest
from datetime import datetime, timedelta, timezone
import sys
from pathlib import Path

# Add src to path so we can import digitrack
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from digitrack.models import SelectedTrain, TimetableRow, TrainDetails, TrainLocation
from digitrack.station_directory import StationDirectory
from digitrack.formatter import (
    create_train_label,
    format_location,
    format_marker_popup,
    format_train_details,
    get_destination,
    get_detailed_train_type,
    get_origin,
    get_train_stop_info,
    get_train_type_name,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_train(number=1, train_type="IC", coordinates=(24.9, 60.2), speed=80):
    return TrainLocation(train_number=number, train_type=train_type, speed=speed, coordinates=coordinates)


def row(code, minutes, kind, stopping=True):
    return TimetableRow(
        station_short_code=code,
        scheduled_time=NOW + timedelta(minutes=minutes),
        type=kind,
        train_stopping=stopping,
    )


def make_details(rows, category="Long-distance", commuter_line=None):
    return TrainDetails(
        train_number=1,
        train_type="IC",
        train_category=category,
        commuter_line_id=commuter_line,
        time_table_rows=rows,
    )


class TestTrainLabel(unittest.TestCase):
    """Test marker label derivation."""

    def test_type_and_number(self):
        self.assertEqual(create_train_label(make_train(1, "IC")), "IC1")

    def test_number_only(self):
        self.assertEqual(create_train_label(make_train(42, None)), "#42")

    def test_type_without_number(self):
        self.assertEqual(create_train_label(make_train(None, "IC")), "Train")

    def test_nothing_known(self):
        self.assertEqual(create_train_label(make_train(None, None)), "Train")

    def test_label_is_never_empty(self):
        """Every combination of present/absent type and number gives a label."""
        for number in (None, 0, 7):
            for train_type in (None, "", "P"):
                label = create_train_label(make_train(number, train_type))
                self.assertTrue(label)


class TestTrainType(unittest.TestCase):
    """Test train type classification."""

    def test_type_names(self):
        self.assertEqual(get_train_type_name("IC"), "InterCity")
        self.assertEqual(get_train_type_name("S"), "Pendolino")
        self.assertEqual(get_train_type_name("T"), "Cargo")
        self.assertEqual(get_train_type_name("HDM"), "HDM")
        self.assertEqual(get_train_type_name(None), "Unknown")

    def test_commuter_line(self):
        selected = SelectedTrain(make_train(9, "HL"), make_details([], "Commuter", "R"))
        self.assertEqual(get_detailed_train_type(selected), "Commuter Line R")

    def test_long_distance(self):
        selected = SelectedTrain(make_train(1, "S"), make_details([], "Long-distance"))
        self.assertEqual(get_detailed_train_type(selected), "Pendolino (Long-distance)")

    def test_cargo(self):
        selected = SelectedTrain(make_train(3000, "T"), make_details([], "Cargo"))
        self.assertEqual(get_detailed_train_type(selected), "Cargo Train")

    def test_other_category_is_returned_as_is(self):
        selected = SelectedTrain(make_train(1, "MV"), make_details([], "Shunting"))
        self.assertEqual(get_detailed_train_type(selected), "Shunting")

    def test_falls_back_to_type_name(self):
        self.assertEqual(get_detailed_train_type(SelectedTrain(make_train(1, "P"))), "Passenger")
        self.assertEqual(get_detailed_train_type(SelectedTrain(make_train(1, None))), "Unknown")
        self.assertEqual(get_detailed_train_type(None), "Unknown")


class TestStopList(unittest.TestCase):
    """Test stop list derivation from timetable rows."""

    def setUp(self):
        self.directory = StationDirectory()

    def test_merges_arrival_and_departure(self):
        """An ARRIVAL followed by a DEPARTURE at the same station is one stop."""
        details = make_details([
            row("HKI", -30, "DEPARTURE"),
            row("PSL", -25, "ARRIVAL"),
            row("PSL", -24, "DEPARTURE"),
            row("TPE", 60, "ARRIVAL"),
        ])

        stops = get_train_stop_info(details, self.directory, now=NOW)

        self.assertEqual([s.station for s in stops], ["HKI", "PSL", "TPE"])
        pasila = stops[1]
        self.assertEqual(pasila.station_name, "Pasila")
        self.assertEqual(pasila.arrival_time, NOW - timedelta(minutes=25))
        self.assertEqual(pasila.departure_time, NOW - timedelta(minutes=24))
        self.assertIsNone(stops[0].arrival_time)
        self.assertIsNone(stops[2].departure_time)

    def test_skips_rows_without_stop(self):
        details = make_details([
            row("HKI", -30, "DEPARTURE"),
            row("TKL", -20, "ARRIVAL", stopping=False),
            row("TKL", -20, "DEPARTURE", stopping=False),
            row("RI", 10, "ARRIVAL"),
        ])

        stops = get_train_stop_info(details, self.directory, now=NOW)

        self.assertEqual([s.station for s in stops], ["HKI", "RI"])

    def test_passed_iff_scheduled_before_now(self):
        details = make_details([
            row("HKI", -1, "DEPARTURE"),
            row("PSL", 0, "ARRIVAL"),
            row("TPE", 1, "ARRIVAL"),
        ])

        stops = get_train_stop_info(details, self.directory, now=NOW)

        self.assertEqual([s.passed for s in stops], [True, False, False])

    def test_departure_at_other_station_is_new_stop(self):
        details = make_details([
            row("HKI", 0, "ARRIVAL"),
            row("PSL", 5, "DEPARTURE"),
        ])

        stops = get_train_stop_info(details, self.directory, now=NOW)

        self.assertEqual(len(stops), 2)
        self.assertEqual(stops[1].type, "DEPARTURE")

    def test_no_details(self):
        self.assertEqual(get_train_stop_info(None, self.directory, now=NOW), [])
        self.assertEqual(get_train_stop_info(make_details([]), self.directory, now=NOW), [])

    def test_origin_and_destination(self):
        details = make_details([row("HKI", 0, "DEPARTURE"), row("OL", 300, "ARRIVAL")])
        self.assertEqual(get_origin(details, self.directory), "Helsinki")
        self.assertEqual(get_destination(details, self.directory), "Oulu")
        self.assertEqual(get_origin(None, self.directory), "Unknown")


class TestDetailPanel(unittest.TestCase):
    """Test the text rendering of the detail panel."""

    def setUp(self):
        self.directory = StationDirectory()

    def test_marker_popup(self):
        text = format_marker_popup(make_train(1, "IC", speed=None))
        self.assertEqual(
            text.splitlines(),
            ["IC1", "Train Type: InterCity", "Speed: 0 km/h", "Location: 60.20000, 24.90000"],
        )

    def test_location(self):
        self.assertEqual(format_location(make_train()), "60.20000, 24.90000")
        self.assertEqual(format_location(make_train(coordinates=None)), "Not available")

    def test_panel_with_details(self):
        details = make_details(
            [row("HKI", -10, "DEPARTURE"), row("KE", 20, "ARRIVAL")],
            category="Commuter",
            commuter_line="R",
        )
        text = format_train_details(SelectedTrain(make_train(9, "HL"), details), self.directory, now=NOW)

        self.assertIn("Train HL9", text)
        self.assertIn("Train Type: Commuter Line R", text)
        self.assertIn("Speed: 80 km/h", text)
        self.assertIn("Origin: Helsinki", text)
        self.assertIn("Destination: Kerava", text)
        self.assertIn("Commuter Line: R", text)
        self.assertIn("[x] Helsinki", text)
        self.assertIn("[ ] Kerava", text)
        self.assertIn("Map: " + self.directory.station_map_image_url("KE"), text)
        self.assertIn("center=Kerava%2C%20Finland", text)

    def test_panel_without_details(self):
        text = format_train_details(SelectedTrain(make_train(speed=None)), self.directory)

        self.assertIn("Speed: 0 km/h", text)
        self.assertIn("No details available", text)
        self.assertNotIn("Stops:", text)

    def test_panel_without_stops(self):
        text = format_train_details(SelectedTrain(make_train(), make_details([])), self.directory)
        self.assertIn("No stop information available", text)


if __name__ == "__main__":
    unittest.main()
