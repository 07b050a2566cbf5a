"""Tests for the folder sink and the JSON checkpoint store."""

import csv
import json
import tempfile
import unittest
from pathlib import Path

from harvester.formatting import build_filename
from harvester.models import ErrorRecord, ItemRecord, ItemSummary, RunState
from harvester.storage import INDEX_FILENAME, MAX_NAME_BYTES, FolderSink, JsonCheckpointStore, fit_name, unique_path


def _summary(**overrides) -> ItemSummary:
    defaults = dict(
        title="Kickoff",
        company="Acme",
        date="January 5, 2024",
        duration="30m",
        participants="Ann, Bob",
        summary="Talked renewal",
        link="/call?id=1",
        item_id="1",
    )
    defaults.update(overrides)
    return ItemSummary(**defaults)


class TestFolderSink(unittest.TestCase):
    """Verify document and index writes."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.sink = FolderSink(str(self.root))

    def tearDown(self):
        self._tmp.cleanup()

    def test_write_document_creates_folder(self):
        path = self.sink.write_document("hello", "Gong Transcripts/run", "Acme - Kickoff")
        self.assertEqual(Path(path), self.root / "Gong Transcripts" / "run" / "Acme - Kickoff.txt")
        self.assertEqual(Path(path).read_text(encoding="utf-8"), "hello")

    def test_write_document_sanitizes_name(self):
        path = self.sink.write_document("x", "f", 'a/b: "c"')
        self.assertEqual(Path(path).name, "a-b- -c-.txt")

    def test_collisions_are_renamed_not_overwritten(self):
        """A second write with the same name should land beside the first."""
        first = self.sink.write_document("one", "f", "same")
        second = self.sink.write_document("two", "f", "same")
        third = self.sink.write_document("three", "f", "same")
        self.assertEqual(Path(second).name, "same (1).txt")
        self.assertEqual(Path(third).name, "same (2).txt")
        self.assertEqual(Path(first).read_text(encoding="utf-8"), "one")

    def test_index_quotes_every_field(self):
        """Quotes inside fields are doubled and every field is wrapped."""
        path = self.sink.write_index([_summary(title='He said "hi"')], "f")
        text = Path(path).read_text(encoding="utf-8")
        lines = text.splitlines()
        self.assertEqual(lines[0], "Company,Date,Duration,Title,Participants,Summary,Call Link")
        self.assertIn('"He said ""hi"""', lines[1])
        self.assertTrue(lines[1].startswith('"Acme","January 5, 2024","30m",'))

    def test_index_reparses_to_original_values(self):
        summaries = [_summary(title='He said "hi"', summary="line one\nline two"), _summary(company="", link="")]
        path = self.sink.write_index(summaries, "f")
        with open(path, encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))
        self.assertEqual(len(rows), 3)
        self.assertEqual(rows[1][3], 'He said "hi"')
        self.assertEqual(rows[1][5], "line one\nline two")
        self.assertEqual(rows[2][0], "")

    def test_index_collision(self):
        self.sink.write_index([_summary()], "f")
        second = self.sink.write_index([_summary()], "f")
        self.assertEqual(Path(second).name, "call_summaries (1).csv")
        self.assertTrue((self.root / "f" / INDEX_FILENAME).exists())


    def test_long_multibyte_name_is_shortened_to_fit(self):
        """A 200-character CJK name is far over 255 bytes; it must still be written."""
        item = ItemRecord(
            item_id="1",
            title="季度业务回顾会议" * 20,
            company="株式会社",
            date="January 5, 2024, 10:00 AM EST",
        )
        name = build_filename(item)
        self.assertGreater(len(name.encode("utf-8")), MAX_NAME_BYTES)

        first = Path(self.sink.write_document("one", "f", name))
        second = Path(self.sink.write_document("two", "f", name))

        self.assertLessEqual(len(first.name.encode("utf-8")), MAX_NAME_BYTES)
        self.assertLessEqual(len(second.name.encode("utf-8")), MAX_NAME_BYTES)
        self.assertTrue(first.name.startswith("株式会社 - 2024-01-05 - 季度"))
        self.assertTrue(first.name.endswith(".txt"))
        self.assertTrue(second.name.endswith(" (1).txt"))
        self.assertEqual(first.read_text(encoding="utf-8"), "one")
        self.assertEqual(second.read_text(encoding="utf-8"), "two")


class TestUniquePath(unittest.TestCase):
    def test_free_path_is_kept(self):
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "a.txt"
            self.assertEqual(unique_path(target), target)

    def test_fit_name_keeps_short_names(self):
        self.assertEqual(fit_name("Acme - Kickoff", ".txt"), "Acme - Kickoff.txt")

    def test_fit_name_never_splits_a_character(self):
        name = fit_name("会" * 100, " (12).txt")
        self.assertLessEqual(len(name.encode("utf-8")), MAX_NAME_BYTES)
        self.assertTrue(name.endswith(" (12).txt"))
        self.assertEqual(set(name[: -len(" (12).txt")]), {"会"})


class TestJsonCheckpointStore(unittest.TestCase):
    """Verify fire-and-forget saves and loading."""

    def test_roundtrip_keeps_latest_state(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "state" / "run.json"
            store = JsonCheckpointStore(str(path))
            state = RunState(running=True, folder_name="run")
            for n in range(20):
                state.processed_count = n
                store.save(state)
            state.errors.append(ErrorRecord(title="Call", error="bad", page=1))
            store.save(state)
            store.close()

            loaded = JsonCheckpointStore(str(path)).load()
            self.assertEqual(loaded.processed_count, 19)
            self.assertEqual(loaded.errors, [ErrorRecord(title="Call", error="bad", page=1)])

    def test_missing_file_loads_none(self):
        with tempfile.TemporaryDirectory() as tmp:
            store = JsonCheckpointStore(str(Path(tmp) / "nope.json"))
            self.assertIsNone(store.load())
            store.close()

    def test_corrupt_file_loads_none(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.json"
            path.write_text("{not json", encoding="utf-8")
            store = JsonCheckpointStore(str(path))
            self.assertIsNone(store.load())
            store.close()

    def test_file_is_plain_json(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.json"
            store = JsonCheckpointStore(str(path))
            store.save(RunState(total_pages=3))
            store.close()
            data = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(data["total_pages"], 3)


if __name__ == "__main__":
    unittest.main()
