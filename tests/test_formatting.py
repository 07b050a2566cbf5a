"""Tests for file naming, date normalization and transcript documents."""

import unittest

from harvester.formatting import (
    DELIMITER,
    MAX_FILENAME_LENGTH,
    build_filename,
    format_transcript,
    normalize_date,
    sanitize_filename,
)
from harvester.models import ItemRecord, TranscriptEntry

ILLEGAL = '<>:"/\\|?*'


class TestSanitizeFilename(unittest.TestCase):
    """Verify the sanitizer's guarantees."""

    SAMPLES = [
        'Acme: "Q1" review / plan?',
        "  lots   of\t\nwhitespace  ",
        "a|b<c>d*e\\f",
        "x" * 250,
        ("word " * 60),
        "ends with space at the cut" + " " * 3 + "y" * 200,
        "",
    ]

    def test_is_idempotent(self):
        """Sanitizing twice should equal sanitizing once."""
        for sample in self.SAMPLES:
            once = sanitize_filename(sample)
            self.assertEqual(sanitize_filename(once), once, sample)

    def test_has_no_illegal_characters_and_bounded_length(self):
        for sample in self.SAMPLES:
            result = sanitize_filename(sample)
            self.assertLessEqual(len(result), MAX_FILENAME_LENGTH)
            for ch in ILLEGAL:
                self.assertNotIn(ch, result)

    def test_replaces_and_collapses(self):
        self.assertEqual(sanitize_filename('Acme: "Q1"  review'), "Acme- -Q1- review")


class TestNormalizeDate(unittest.TestCase):
    def test_parses_display_date_with_timezone(self):
        """A long display date with a zone suffix should become YYYY-MM-DD."""
        self.assertEqual(normalize_date("January 5, 2024, 10:00 AM EST"), "2024-01-05")

    def test_strips_other_zone_abbreviations(self):
        self.assertEqual(normalize_date("March 12, 2023, 4:30 PM PT"), "2023-03-12")

    def test_falls_back_to_text_before_first_comma(self):
        """Unparseable input should fall back to its first comma-separated chunk."""
        self.assertEqual(normalize_date("garbage date string, rest"), "garbage date string")


class TestBuildFilename(unittest.TestCase):
    def test_joins_metadata_in_order(self):
        item = ItemRecord(
            item_id="1",
            title="Kickoff/Intro",
            company="Acme",
            date="January 5, 2024, 10:00 AM EST",
            participants="Ann, Bob",
        )
        self.assertEqual(build_filename(item), "Acme - 2024-01-05 - Kickoff-Intro - Ann, Bob")

    def test_skips_missing_parts(self):
        item = ItemRecord(item_id="1", title="Kickoff")
        self.assertEqual(build_filename(item), "Kickoff")

    def test_placeholder_when_nothing_known(self):
        self.assertEqual(build_filename(ItemRecord(item_id="1", title="")), "Unknown Call")


class TestFormatTranscript(unittest.TestCase):
    def test_header_and_entries(self):
        item = ItemRecord(item_id="1", title="Kickoff", company="Acme", date="Jan 5", duration="30m", participants="Ann")
        entries = [
            TranscriptEntry("0:00", "Ann", "Hello"),
            TranscriptEntry("0:05", "Bob", "Hi there"),
        ]
        text = format_transcript(entries, item)
        lines = text.split("\n")
        self.assertEqual(lines[:5], ["Kickoff", "Company: Acme", "Date: Jan 5", "Duration: 30m", "Participants: Ann"])
        self.assertEqual(lines[5:9], ["", DELIMITER, "TRANSCRIPT", DELIMITER])
        self.assertIn("[0:00] Ann:\nHello\n\n[0:05] Bob:\nHi there\n", text)

    def test_title_placeholder(self):
        text = format_transcript([], ItemRecord(item_id="1", title=""))
        self.assertTrue(text.startswith("Call Transcript\n"))


if __name__ == "__main__":
    unittest.main()
