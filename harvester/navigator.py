from __future__ import annotations

import logging
from typing import List, Tuple
from urllib.parse import urlsplit

from .config import HarvestConfig
from .errors import ExtractionError, HookInstallError, NavigationError, SourceUnavailable, SurfaceError
from .models import ItemRecord, PaginationInfo, TranscriptEntry, ViewHandle
from .strategies import ExtractionStrategy
from .surface import RenderingSurface
from .waits import best_effort_wait, required_wait, settle

logger = logging.getLogger(__name__)


def origin_of(url: str) -> str:
    parts = urlsplit(url or "")
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"cannot derive an origin from {url!r}")
    return f"{parts.scheme}://{parts.netloc}"


def detail_url(item_id: str, origin_url: str) -> str:
    """Build the detail-view address for ``item_id`` on the origin of ``origin_url``."""
    return f"{origin_of(origin_url)}/call?id={item_id}"


class PageNavigator:
    """Drives the rendering surface: opens views, paginates, reads content."""

    def __init__(self, surface: RenderingSurface, strategy: ExtractionStrategy, config: HarvestConfig) -> None:
        self._surface = surface
        self._strategy = strategy
        self._config = config

    async def resolve_origin(self, source: ViewHandle) -> str:
        try:
            url = await self._surface.view_url(source)
            return origin_of(url)
        except (SurfaceError, ValueError) as exc:
            raise SourceUnavailable(f"Could not get search view URL: {exc}") from exc

    async def read_list_page(self, view: ViewHandle) -> Tuple[List[ItemRecord], PaginationInfo]:
        html = await self._surface.snapshot(view)
        return self._strategy.extract_list_page(html)

    async def goto_list_page(self, view: ViewHandle, page_number: int) -> None:
        """Activate the control for ``page_number``, or "next" when it is not rendered."""
        html = await self._surface.snapshot(view)
        target = self._strategy.find_page_control(html, page_number)
        if target is None:
            target = self._strategy.find_next_control(html)
        if target is None:
            raise NavigationError(f"Could not navigate to page {page_number}")

        await self._surface.activate(view, target)
        await settle(self._config.page_click_delay)
        await best_effort_wait(
            self._surface.wait_for_selector(
                view, self._strategy.list_container_selector, self._config.list_wait_timeout
            ),
            f"list container after moving to page {page_number}",
        )
        await settle(self._config.page_post_delay)

    async def open_detail_view(self, item_id: str, origin_url: str) -> ViewHandle:
        """Open the detail view. The caller owns the returned handle and must release it."""
        return await self._surface.open_view(detail_url(item_id, origin_url))

    async def wait_for_detail(self, view: ViewHandle) -> None:
        await required_wait(
            self._surface.wait_for_load(view, self._config.load_timeout),
            "Tab load timeout",
        )
        # client-rendered content arrives after the load signal
        await settle(self._config.detail_settle)

    async def ensure_hooks(self, view: ViewHandle) -> None:
        try:
            alive = await self._surface.probe_hooks(view)
        except SurfaceError:
            alive = False
        if alive:
            return
        try:
            await self._surface.install_hooks(view)
        except SurfaceError as exc:
            raise HookInstallError(f"Could not install extraction hooks: {exc}") from exc
        await settle(self._config.hook_settle)

    async def extract_detail(self, view: ViewHandle) -> List[TranscriptEntry]:
        """Open the transcript panel and read its entries in document order.

        Raises ExtractionError when the panel control is missing and
        WaitTimeout when transcript units never appear. An empty result is
        returned as-is; deciding that it is a failure is up to the caller.
        """
        html = await self._surface.snapshot(view)
        control = self._strategy.find_transcript_control(html)
        if control is None:
            raise ExtractionError("Transcript tab not found on call page")

        await self._surface.activate(view, control)
        await settle(self._config.transcript_tab_settle)
        await required_wait(
            self._surface.wait_for_selector(
                view, self._strategy.transcript_unit_selector, self._config.transcript_wait_timeout
            ),
            "Transcript content did not load",
        )
        await settle(self._config.transcript_post_settle)

        return self._strategy.parse_transcript(await self._surface.snapshot(view))

    async def release(self, view: ViewHandle) -> None:
        try:
            await self._surface.close_view(view)
        except SurfaceError as exc:
            logger.debug("view %s already gone: %s", view.view_id, exc)
