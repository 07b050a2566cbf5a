"""Tests for data model classes."""

import unittest

from harvester.models import ErrorRecord, ItemRecord, ItemSummary, RunState, TranscriptEntry


def _make_item(**overrides) -> ItemRecord:
    """Helper to build an ItemRecord with sensible defaults."""
    defaults = dict(
        item_id="42",
        title="Quarterly review",
        company="Acme",
        date="January 5, 2024, 10:00 AM EST",
        duration="32m",
        participants="Ann, Bob",
        summary_text="Renewal discussion",
        detail_link="/call?id=42",
    )
    defaults.update(overrides)
    return ItemRecord(**defaults)


class TestItemRecord(unittest.TestCase):
    """Verify ItemRecord creation and immutability."""

    def test_optional_fields_default_to_empty(self):
        """Only identity and title are required."""
        item = ItemRecord(item_id="1", title="Call")
        self.assertEqual(item.company, "")
        self.assertEqual(item.detail_link, "")

    def test_item_is_immutable(self):
        """Frozen dataclass should raise on attribute assignment."""
        item = _make_item()
        with self.assertRaises(AttributeError):
            item.title = "other"


class TestItemSummary(unittest.TestCase):
    def test_from_item_copies_list_metadata(self):
        """Summary should carry every list-level field plus the link."""
        summary = ItemSummary.from_item(_make_item())
        self.assertEqual(summary.summary, "Renewal discussion")
        self.assertEqual(summary.link, "/call?id=42")
        self.assertEqual(summary.item_id, "42")


class TestRunState(unittest.TestCase):
    """Verify snapshots and checkpoint serialization of RunState."""

    def test_snapshot_exposes_last_five_errors(self):
        """Only the most recent five errors are visible; the log keeps all."""
        state = RunState(errors=[ErrorRecord(title=f"e{i}", error="x") for i in range(8)])
        snap = state.snapshot()
        self.assertEqual([e.title for e in snap.errors], ["e3", "e4", "e5", "e6", "e7"])
        self.assertEqual(len(state.errors), 8)

    def test_snapshot_is_detached_from_state(self):
        """Mutating the state after snapshotting should not change the snapshot."""
        state = RunState(running=True, processed_count=1)
        snap = state.snapshot()
        state.processed_count = 5
        state.errors.append(ErrorRecord(title="late", error="x"))
        self.assertEqual(snap.processed_count, 1)
        self.assertEqual(snap.errors, ())

    def test_dict_roundtrip(self):
        """to_dict/from_dict should preserve errors, summaries and counters."""
        state = RunState(
            running=True,
            current_page=2,
            total_pages=3,
            total_results=25,
            processed_count=4,
            failed_count=1,
            errors=[ErrorRecord(title="Page 2 scrape", error="boom"), ErrorRecord("Call", "bad", page=1)],
            summaries=[ItemSummary.from_item(_make_item())],
            folder_name="2024-01-05",
            source_id="source",
        )
        restored = RunState.from_dict(state.to_dict())
        self.assertEqual(restored, state)

    def test_error_record_dict_omits_missing_page(self):
        self.assertEqual(ErrorRecord("CSV Export", "disk full").to_dict(), {"title": "CSV Export", "error": "disk full"})
        self.assertEqual(ErrorRecord("Call", "x", page=3).to_dict()["page"], 3)


class TestTranscriptEntry(unittest.TestCase):
    def test_create_entry(self):
        entry = TranscriptEntry(timestamp="0:01", speaker="Ann", text="Hello")
        self.assertEqual(entry.speaker, "Ann")


if __name__ == "__main__":
    unittest.main()
