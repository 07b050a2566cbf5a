from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .models import ElementRef, ItemRecord, PaginationInfo, TranscriptEntry

DEFAULT_PER_PAGE = 10

_ITEM_ID_RE = re.compile(r"[?&]id=(\d+)")
_RESULTS_COUNT_RE = re.compile(r"(\d[\d,]*)\s+of\s+(\d[\d,]*)", re.IGNORECASE)
_SUMMARY_SUFFIX_RE = re.compile(r"Open call brief$")


def reconcile_page_count(explicit_pages: int, total_results: int, per_page: int) -> int:
    """Take the larger of the rendered page-count and ``ceil(total/per_page)``.

    Pagination controls may be only partially rendered, so the explicit
    count can lag behind the computed one.
    """
    if total_results > 0 and per_page > 0:
        return max(explicit_pages, math.ceil(total_results / per_page))
    return explicit_pages


def item_id_from_link(link: str) -> str:
    match = _ITEM_ID_RE.search(link or "")
    return match.group(1) if match else ""


def _soup(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html, "html.parser")
    # inert template content is never rendered, so it must not shift indexes
    for template in soup.find_all("template"):
        template.decompose()
    return soup


def _count(text: str) -> int:
    return int(text.replace(",", ""))


def _text(el: Optional[Tag]) -> str:
    if el is None:
        return ""
    return el.get_text().strip()


def _int(text: str) -> Optional[int]:
    try:
        return int(text.strip())
    except ValueError:
        return None


class ExtractionStrategy(ABC):
    """Pure extraction from snapshots of one application's pages.

    Every method takes the HTML of a rendered view and returns records or
    element references. Missing optional fields fall back to documented
    defaults instead of failing.
    """

    list_container_selector: str
    transcript_unit_selector: str

    @abstractmethod
    def extract_list_page(self, html: str) -> Tuple[List[ItemRecord], PaginationInfo]:
        raise NotImplementedError

    @abstractmethod
    def find_page_control(self, html: str, page_number: int) -> Optional[ElementRef]:
        raise NotImplementedError

    @abstractmethod
    def find_next_control(self, html: str) -> Optional[ElementRef]:
        raise NotImplementedError

    @abstractmethod
    def find_transcript_control(self, html: str) -> Optional[ElementRef]:
        raise NotImplementedError

    @abstractmethod
    def parse_transcript(self, html: str) -> List[TranscriptEntry]:
        raise NotImplementedError


class GongStrategy(ExtractionStrategy):
    """Selectors for the Gong call search and call pages."""

    list_container_selector = "ul.call-list"
    card_selector = "li.call-result"
    main_link_selector = "a.call-result__main"
    title_selector = ".call-title-block"
    row_selector = ".call-result__row"
    duration_selector = ".call-duration"
    summary_selector = '[role="textbox"]'
    company_selector = '[data-testid="show-account-info"] .gong-btn__text'

    results_count_selector = ".pagination-results-top-state"
    page_number_selector = "li.page-number"
    next_page_selector = "li.next-page a"

    transcript_control_selector = 'button, [role="tab"]'
    transcript_control_label = "Transcript"
    transcript_unit_selector = ".monologue-inner"
    speaker_selector = ".timestamp__speaker"
    timestamp_selector = ".timestamp__timer"
    unit_text_selector = ".monologue-text"

    def extract_list_page(self, html: str) -> Tuple[List[ItemRecord], PaginationInfo]:
        soup = _soup(html)
        items = [self._parse_card(card, index) for index, card in enumerate(soup.select(self.card_selector))]
        return items, self._parse_pagination(soup)

    def _parse_card(self, card: Tag, index: int) -> ItemRecord:
        main_link = card.select_one(self.main_link_selector)
        title_el = main_link.select_one(self.title_selector) if main_link else None
        rows = main_link.select(self.row_selector) if main_link else []
        link = (main_link.get("href") or "") if main_link else ""

        summary = _text(card.select_one(self.summary_selector))
        summary = _SUMMARY_SUFFIX_RE.sub("", summary).strip()

        return ItemRecord(
            item_id=item_id_from_link(link),
            title=_text(title_el) or f"Unknown Call {index + 1}",
            company=_text(card.select_one(self.company_selector)),
            date=_text(rows[1]) if len(rows) > 1 else "",
            duration=_text(card.select_one(self.duration_selector)),
            participants=_text(rows[0]) if rows else "",
            summary_text=summary,
            detail_link=link,
        )

    def _parse_pagination(self, soup: BeautifulSoup) -> PaginationInfo:
        total_results = 0
        per_page = DEFAULT_PER_PAGE
        count_el = soup.select_one(self.results_count_selector)
        if count_el is not None:
            match = _RESULTS_COUNT_RE.search(count_el.get_text())
            if match:
                per_page = _count(match.group(1))
                total_results = _count(match.group(2))

        current_page = 1
        explicit_pages = 1
        controls = soup.select(self.page_number_selector)
        if controls:
            explicit_pages = 0
            for li in controls:
                num = _int(li.get_text())
                if num is None:
                    continue
                explicit_pages = max(explicit_pages, num)
                if "active" in (li.get("class") or []):
                    current_page = num

        return PaginationInfo(
            total_results=total_results,
            current_page=current_page,
            total_pages=reconcile_page_count(explicit_pages, total_results, per_page),
            per_page=per_page,
        )

    def find_page_control(self, html: str, page_number: int) -> Optional[ElementRef]:
        soup = _soup(html)
        for index, li in enumerate(soup.select(self.page_number_selector)):
            if _int(li.get_text()) != page_number:
                continue
            for inner in ("a", "span"):
                if li.select_one(inner) is not None:
                    return ElementRef(self.page_number_selector, index, inner)
            return ElementRef(self.page_number_selector, index)
        return None

    def find_next_control(self, html: str) -> Optional[ElementRef]:
        soup = _soup(html)
        if soup.select_one(self.next_page_selector) is None:
            return None
        return ElementRef(self.next_page_selector, 0)

    def find_transcript_control(self, html: str) -> Optional[ElementRef]:
        soup = _soup(html)
        for el in soup.select(self.transcript_control_selector):
            if el.get_text().strip() == self.transcript_control_label:
                return ElementRef(self.transcript_control_selector, 0, text=self.transcript_control_label)
        return None

    def parse_transcript(self, html: str) -> List[TranscriptEntry]:
        soup = _soup(html)
        entries: List[TranscriptEntry] = []
        for unit in soup.select(self.transcript_unit_selector):
            text_el = unit.select_one(self.unit_text_selector)
            text = ""
            if text_el is not None:
                text = (text_el.get("aria-label") or "").strip() or _text(text_el)
            if not text:
                continue
            entries.append(
                TranscriptEntry(
                    timestamp=_text(unit.select_one(self.timestamp_selector)),
                    speaker=_text(unit.select_one(self.speaker_selector)) or "Unknown",
                    text=text,
                )
            )
        return entries
