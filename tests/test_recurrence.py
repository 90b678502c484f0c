"""Tests for RecurrenceSpec, CalendarEvent validation and build_rrule."""
import unittest
from datetime import datetime, timedelta, timezone

from meetings_to_ics_impl import CalendarEvent, Frequency, RecurrenceSpec, build_rrule

START = datetime(2024, 6, 4, 19, 30, tzinfo=timezone.utc)


class BuildRruleTests(unittest.TestCase):
    """Tests for build_rrule."""

    def test_none_returns_none(self):
        self.assertIsNone(build_rrule(None))

    def test_interval_one_and_no_days_is_bare_freq(self):
        self.assertEqual(build_rrule(RecurrenceSpec(Frequency.WEEKLY)), "FREQ=WEEKLY")
        self.assertEqual(build_rrule(RecurrenceSpec(Frequency.DAILY, 1, [])), "FREQ=DAILY")

    def test_weekly_single_day(self):
        rec = RecurrenceSpec(Frequency.WEEKLY, 1, ["TU"])
        self.assertEqual(build_rrule(rec), "FREQ=WEEKLY;BYDAY=TU")

    def test_field_order(self):
        rec = RecurrenceSpec(
            Frequency.WEEKLY,
            interval=2,
            by_weekday=["WE", "MO"],
            until=datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
        )
        self.assertEqual(
            build_rrule(rec),
            "FREQ=WEEKLY;INTERVAL=2;BYDAY=WE,MO;UNTIL=20241231T235959Z",
        )

    def test_monthly_with_interval(self):
        rec = RecurrenceSpec(Frequency.MONTHLY, interval=3)
        self.assertEqual(build_rrule(rec), "FREQ=MONTHLY;INTERVAL=3")

    def test_no_empty_fields(self):
        rule = build_rrule(RecurrenceSpec(Frequency.YEARLY))
        self.assertNotIn(";;", rule)
        self.assertFalse(rule.endswith(";"))


class RecurrenceSpecTests(unittest.TestCase):
    """Tests for RecurrenceSpec validation."""

    def test_string_frequency_coerced(self):
        self.assertIs(RecurrenceSpec("DAILY").frequency, Frequency.DAILY)

    def test_unknown_frequency_rejected(self):
        with self.assertRaises(ValueError):
            RecurrenceSpec("HOURLY")

    def test_interval_below_one_rejected(self):
        with self.assertRaises(ValueError):
            RecurrenceSpec(Frequency.WEEKLY, interval=0)

    def test_unknown_weekday_code_rejected(self):
        with self.assertRaises(ValueError):
            RecurrenceSpec(Frequency.WEEKLY, by_weekday=["XX"])

    def test_weekdays_stored_as_tuple(self):
        rec = RecurrenceSpec(Frequency.WEEKLY, by_weekday=["MO", "FR"])
        self.assertEqual(rec.by_weekday, ("MO", "FR"))


class CalendarEventTests(unittest.TestCase):
    """Tests for CalendarEvent invariants."""

    def test_valid_event(self):
        ev = CalendarEvent("Group", START, START + timedelta(hours=1))
        self.assertIsNone(ev.recurrence)

    def test_empty_summary_rejected(self):
        with self.assertRaises(ValueError):
            CalendarEvent("", START, START + timedelta(hours=1))

    def test_end_equal_start_rejected(self):
        with self.assertRaises(ValueError):
            CalendarEvent("Group", START, START)

    def test_end_before_start_rejected(self):
        with self.assertRaises(ValueError):
            CalendarEvent("Group", START, START - timedelta(minutes=1))

    def test_until_before_start_rejected(self):
        rec = RecurrenceSpec(Frequency.WEEKLY, until=START - timedelta(days=1))
        with self.assertRaises(ValueError):
            CalendarEvent("Group", START, START + timedelta(hours=1), recurrence=rec)

    def test_until_equal_start_allowed(self):
        rec = RecurrenceSpec(Frequency.WEEKLY, until=START)
        ev = CalendarEvent("Group", START, START + timedelta(hours=1), recurrence=rec)
        self.assertEqual(ev.recurrence.until, START)

    def test_url_with_line_break_rejected(self):
        for url in ["https://a\nATTENDEE:mailto:x@y", "https://a\rb", "https://a\r\nb"]:
            with self.assertRaises(ValueError):
                CalendarEvent("Group", START, START + timedelta(hours=1), url=url)

    def test_immutable(self):
        ev = CalendarEvent("Group", START, START + timedelta(hours=1))
        with self.assertRaises(AttributeError):
            ev.summary = "Other"


if __name__ == "__main__":
    unittest.main()
