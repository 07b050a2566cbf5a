from __future__ import annotations

import csv
import json
import logging
import os
import queue
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .formatting import sanitize_filename
from .models import ItemSummary, RunState

logger = logging.getLogger(__name__)

INDEX_FILENAME = "call_summaries.csv"
# Most file systems cap a single path component at 255 bytes.
MAX_NAME_BYTES = 255
INDEX_HEADER = ("Company", "Date", "Duration", "Title", "Participants", "Summary", "Call Link")


class PersistenceSink(ABC):
    """Abstract base class for output backends.

    A sink writes named blobs into logical folders and resolves name
    collisions itself; it never overwrites an existing output.
    """

    @abstractmethod
    def write_document(self, content: str, folder: str, filename: str) -> str:
        """Persist one transcript document and return where it landed."""

    @abstractmethod
    def write_index(self, summaries: Iterable[ItemSummary], folder: str) -> str:
        """Persist the batch index and return where it landed."""


def fit_name(stem: str, tail: str, limit: int = MAX_NAME_BYTES) -> str:
    """Join ``stem`` and ``tail``, cutting the stem so the UTF-8 name fits ``limit`` bytes."""
    budget = limit - len(tail.encode("utf-8"))
    encoded = stem.encode("utf-8")
    if len(encoded) > budget:
        stem = encoded[:budget].decode("utf-8", "ignore").rstrip()
    return f"{stem}{tail}"


def unique_path(path: Path) -> Path:
    """Return ``path`` or the first free ``name (n).ext`` sibling.

    Names are shortened where needed to stay within the file-system limit.
    """
    candidate = path.with_name(fit_name(path.stem, path.suffix))
    n = 0
    while candidate.exists():
        n += 1
        candidate = path.with_name(fit_name(path.stem, f" ({n}){path.suffix}"))
    return candidate


def index_rows(summaries: Iterable[ItemSummary]) -> Iterable[tuple]:
    for s in summaries:
        yield (s.company, s.date, s.duration, s.title, s.participants, s.summary, s.link)


class FolderSink(PersistenceSink):
    """Writes UTF-8 files under ``root/<folder>/``."""

    def __init__(self, root: str) -> None:
        self._root = Path(root)

    def _target(self, folder: str, filename: str) -> Path:
        directory = self._root / folder
        directory.mkdir(parents=True, exist_ok=True)
        return unique_path(directory / filename)

    def write_document(self, content: str, folder: str, filename: str) -> str:
        path = self._target(folder, f"{sanitize_filename(filename)}.txt")
        path.write_text(content, encoding="utf-8")
        logger.debug("wrote %s", path)
        return str(path)

    def write_index(self, summaries: Iterable[ItemSummary], folder: str) -> str:
        path = self._target(folder, INDEX_FILENAME)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(",".join(INDEX_HEADER) + "\n")
            writer = csv.writer(f, quoting=csv.QUOTE_ALL, lineterminator="\n")
            writer.writerows(index_rows(summaries))
        logger.info("wrote index %s", path)
        return str(path)


class CheckpointStore(ABC):
    """Durable home of the latest RunState."""

    @abstractmethod
    def save(self, state: RunState) -> None:
        """Record ``state``. May return before the write is durable."""

    @abstractmethod
    def load(self) -> Optional[RunState]:
        """Return the last durable state, or None when there is none."""

    def close(self) -> None:
        """Flush pending writes and release resources."""


class JsonCheckpointStore(CheckpointStore):
    """Keeps RunState in a single JSON file, written by a background thread.

    Saves are fire-and-forget. Queued saves collapse so only the newest
    state is written; each write replaces the file atomically.
    """

    def __init__(self, path: str) -> None:
        self._path = Path(path)
        self._queue: queue.Queue[Optional[Dict[str, Any]]] = queue.Queue()
        self._thread = threading.Thread(target=self._writer, daemon=True)
        self._thread.start()

    @property
    def path(self) -> Path:
        return self._path

    def save(self, state: RunState) -> None:
        self._queue.put(state.to_dict())

    def load(self) -> Optional[RunState]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return RunState.from_dict(data)
        except FileNotFoundError:
            return None
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("ignoring unreadable checkpoint %s: %s", self._path, exc)
            return None

    def close(self) -> None:
        self._queue.put(None)
        self._thread.join(timeout=5)

    def _writer(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                break
            stop = False
            while True:
                try:
                    newer = self._queue.get_nowait()
                except queue.Empty:
                    break
                if newer is None:
                    stop = True
                    break
                item = newer
            self._write(item)
            if stop:
                break

    def _write(self, data: Dict[str, Any]) -> None:
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            logger.error("checkpoint write to %s failed: %s", self._path, exc)
