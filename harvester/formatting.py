from __future__ import annotations

import re
from typing import Iterable

from dateutil import parser as date_parser

from .models import ItemRecord, TranscriptEntry

MAX_FILENAME_LENGTH = 200
DELIMITER = "=" * 60

_ILLEGAL_CHARS_RE = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_TZ_RE = re.compile(r"\s*\b(ET|CT|MT|PT|EST|CST|MST|PST|UTC)$", re.IGNORECASE)


def sanitize_filename(name: str) -> str:
    """Make ``name`` safe as a file name. Idempotent."""
    cleaned = _ILLEGAL_CHARS_RE.sub("-", name)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    return cleaned[:MAX_FILENAME_LENGTH].rstrip()


def normalize_date(raw: str) -> str:
    """Turn a display date like ``January 5, 2024, 10:00 AM EST`` into ``2024-01-05``.

    Falls back to the text before the first comma when the date cannot be parsed.
    """
    stripped = _TRAILING_TZ_RE.sub("", raw).strip()
    try:
        return date_parser.parse(stripped).strftime("%Y-%m-%d")
    except (ValueError, OverflowError):
        return raw.split(",")[0]


def build_filename(item: ItemRecord) -> str:
    parts = []
    if item.company:
        parts.append(item.company)
    if item.date:
        parts.append(normalize_date(item.date))
    if item.title:
        parts.append(item.title)
    if item.participants:
        parts.append(item.participants)
    return sanitize_filename(" - ".join(parts) or "Unknown Call")


def format_transcript(entries: Iterable[TranscriptEntry], item: ItemRecord) -> str:
    lines = [item.title or "Call Transcript"]
    if item.company:
        lines.append(f"Company: {item.company}")
    if item.date:
        lines.append(f"Date: {item.date}")
    if item.duration:
        lines.append(f"Duration: {item.duration}")
    if item.participants:
        lines.append(f"Participants: {item.participants}")
    lines += ["", DELIMITER, "TRANSCRIPT", DELIMITER, ""]

    for entry in entries:
        lines.append(f"[{entry.timestamp}] {entry.speaker}:")
        lines.append(entry.text)
        lines.append("")

    return "\n".join(lines)
