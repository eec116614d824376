import unittest
import os
import sys
from datetime import date, datetime
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from stendat.booking import booking_utils as util
from stendat.booking.models import Booking, User
from stendat.booking.period import TIME_SLOTS, TimeSlot, find_time_slot
from stendat.booking.slot_engine import week_dates


class FormattingTest(unittest.TestCase):

    def test_date_header(self):
        self.assertEqual(util.format_date_header(date(2026, 10, 19)), "19 Hën")
        self.assertEqual(util.format_date_header(date(2026, 10, 25)), "25 Die")

    def test_month_year_single_month(self):
        self.assertEqual(util.format_month_year(week_dates(date(2026, 10, 20))), "Tetor 2026")

    def test_month_year_spanning_two_months(self):
        self.assertEqual(util.format_month_year(week_dates(date(2026, 11, 1))), "Tetor - Nëntor 2026")

    def test_long_date(self):
        self.assertEqual(util.format_date_for_display(date(2026, 10, 19)), "E Hënë, 19 Tetor 2026")

    def test_time_slot_label(self):
        self.assertEqual(util.format_time_slot(TimeSlot(10, 12)), "10:00-12:00")


class ParamParsingTest(unittest.TestCase):

    def test_parse_date(self):
        self.assertEqual(util.parse_date_param("2026-10-21", None), date(2026, 10, 21))
        self.assertEqual(util.parse_date_param(None, date(2026, 1, 1)), date(2026, 1, 1))
        self.assertEqual(util.parse_date_param("", date(2026, 1, 1)), date(2026, 1, 1))

    def test_parse_bad_date(self):
        for raw in ("21-10-2026", "2026-02-30", "tomorrow"):
            with self.assertRaises(ValueError):
                util.parse_date_param(raw, None)

    def test_parse_slot(self):
        self.assertEqual(util.parse_slot_param("14"), TimeSlot(14, 16))
        for raw in (None, "11", "x", "20"):
            with self.assertRaises(ValueError):
                util.parse_slot_param(raw)

    def test_find_time_slot(self):
        self.assertEqual([find_time_slot(slot.start) for slot in TIME_SLOTS], list(TIME_SLOTS))
        self.assertIsNone(find_time_slot(9))


class WeekGridTest(unittest.TestCase):

    def test_grid_rows_and_cells(self):
        now = datetime(2026, 10, 20, 13, 0)
        me = User(id=1, username="me", name="Me")
        days = week_dates(now)
        bookings = [
            Booking(date=date(2026, 10, 21), time_slot=TimeSlot(10, 12), user_id=1, user_name="Me", id="1"),
            Booking(date=date(2026, 10, 21), time_slot=TimeSlot(10, 12), user_id=2, user_name="Other", id="2"),
            Booking(date=date(2026, 10, 20), time_slot=TimeSlot(10, 12), user_id=1, user_name="Me", id="3"),
        ]
        grid = util.build_week_grid(bookings, days, me, now)
        self.assertEqual(len(grid), 5)
        self.assertTrue(all(len(row["cells"]) == 7 for row in grid))

        morning = grid[0]
        self.assertEqual(morning["label"], "10:00-12:00")
        monday, tuesday, wednesday = morning["cells"][:3]
        self.assertEqual(monday["state"], "past")
        self.assertEqual(tuesday["state"], "past")
        self.assertFalse(tuesday["bookings"][0]["deletable"])
        self.assertEqual(wednesday["state"], "full")
        self.assertFalse(wednesday["clickable"])
        own, other = wednesday["bookings"]
        self.assertTrue(own["own"] and own["deletable"])
        self.assertFalse(other["own"] or other["deletable"])

        self.assertEqual(grid[2]["cells"][1]["state"], "empty")
        self.assertTrue(grid[2]["cells"][1]["clickable"])


if __name__ == '__main__':
    unittest.main()
