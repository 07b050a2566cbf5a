from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# Number of trailing error records surfaced to observers.
VISIBLE_ERRORS = 5


@dataclass(frozen=True)
class ViewHandle:
    view_id: str


@dataclass(frozen=True)
class ElementRef:
    """Addresses the ``index``-th match of ``selector`` in document order.

    When ``inner`` is set, the target is the first match of ``inner``
    inside that element. When ``text`` is set, only matches whose
    whitespace-trimmed text equals it are counted, so the rendering side
    resolves the element by label rather than by raw position.
    """

    selector: str
    index: int = 0
    inner: Optional[str] = None
    text: Optional[str] = None


@dataclass(frozen=True)
class ItemRecord:
    item_id: str
    title: str
    company: str = ""
    date: str = ""
    duration: str = ""
    participants: str = ""
    summary_text: str = ""
    detail_link: str = ""


@dataclass(frozen=True)
class TranscriptEntry:
    timestamp: str
    speaker: str
    text: str


@dataclass(frozen=True)
class PaginationInfo:
    total_results: int
    current_page: int
    total_pages: int
    per_page: int


@dataclass(frozen=True)
class ErrorRecord:
    title: str
    error: str
    page: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"title": self.title, "error": self.error}
        if self.page is not None:
            data["page"] = self.page
        return data


@dataclass(frozen=True)
class ItemSummary:
    """List-level metadata of one item, kept for the batch index."""

    title: str
    company: str
    date: str
    duration: str
    participants: str
    summary: str
    link: str
    item_id: str

    @classmethod
    def from_item(cls, item: ItemRecord) -> "ItemSummary":
        return cls(
            title=item.title,
            company=item.company,
            date=item.date,
            duration=item.duration,
            participants=item.participants,
            summary=item.summary_text,
            link=item.detail_link,
            item_id=item.item_id,
        )


@dataclass(frozen=True)
class ItemOutcome:
    title: str
    success: bool
    error: Optional[str] = None
    path: Optional[str] = None


@dataclass(frozen=True)
class StatusSnapshot:
    running: bool
    paused: bool
    current_page: int
    total_pages: int
    total_results: int
    processed_count: int
    failed_count: int
    folder_name: str
    errors: Tuple[ErrorRecord, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "paused": self.paused,
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total_results": self.total_results,
            "processed_count": self.processed_count,
            "failed_count": self.failed_count,
            "folder_name": self.folder_name,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class RunState:
    """The single mutable record of a run. Owned by RunController."""

    running: bool = False
    paused: bool = False
    current_page: int = 0
    total_pages: int = 0
    total_results: int = 0
    processed_count: int = 0
    failed_count: int = 0
    errors: List[ErrorRecord] = field(default_factory=list)
    summaries: List[ItemSummary] = field(default_factory=list)
    folder_name: str = ""
    source_id: Optional[str] = None

    def snapshot(self) -> StatusSnapshot:
        return StatusSnapshot(
            running=self.running,
            paused=self.paused,
            current_page=self.current_page,
            total_pages=self.total_pages,
            total_results=self.total_results,
            processed_count=self.processed_count,
            failed_count=self.failed_count,
            folder_name=self.folder_name,
            errors=tuple(self.errors[-VISIBLE_ERRORS:]),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["errors"] = [e.to_dict() for e in self.errors]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunState":
        return cls(
            running=bool(data.get("running", False)),
            paused=bool(data.get("paused", False)),
            current_page=int(data.get("current_page", 0)),
            total_pages=int(data.get("total_pages", 0)),
            total_results=int(data.get("total_results", 0)),
            processed_count=int(data.get("processed_count", 0)),
            failed_count=int(data.get("failed_count", 0)),
            errors=[ErrorRecord(**e) for e in data.get("errors", [])],
            summaries=[ItemSummary(**s) for s in data.get("summaries", [])],
            folder_name=str(data.get("folder_name", "")),
            source_id=data.get("source_id"),
        )
