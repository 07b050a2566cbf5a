from __future__ import annotations

import logging
import re
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Optional

from playwright.async_api import BrowserContext, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import SurfaceError, SurfaceTimeout
from .models import ElementRef, ViewHandle

logger = logging.getLogger(__name__)

HOOKS_SCRIPT = """
window.__harvesterHooks = {
  ping: () => true,
  serialize: () => document.documentElement.outerHTML,
};
"""

PROBE_SCRIPT = "() => Boolean(window.__harvesterHooks && window.__harvesterHooks.ping())"

SERIALIZE_SCRIPT = "() => window.__harvesterHooks.serialize()"

CLICK_SCRIPT = "el => el.click()"


def label_pattern(label: str) -> "re.Pattern[str]":
    """Match an element whose whole text, ignoring surrounding whitespace, is ``label``."""
    return re.compile(rf"^\s*{re.escape(label)}\s*$")


class RenderingSurface(ABC):
    """Capability to open, query, drive and close views of a web application.

    Timeouts are given in seconds. Implementations raise ``SurfaceTimeout``
    when a wait expires and ``SurfaceError`` for any other failure.
    """

    @abstractmethod
    async def open_view(self, url: str) -> ViewHandle:
        """Open ``url`` in a new non-focused view without waiting for it to load."""

    @abstractmethod
    async def wait_for_load(self, view: ViewHandle, timeout: float) -> None:
        """Block until the view reports load-complete."""

    @abstractmethod
    async def view_url(self, view: ViewHandle) -> str:
        ...

    @abstractmethod
    async def snapshot(self, view: ViewHandle) -> str:
        """Return the current rendered structure of the view as HTML."""

    @abstractmethod
    async def activate(self, view: ViewHandle, target: ElementRef) -> None:
        """Simulate a click on the referenced element."""

    @abstractmethod
    async def wait_for_selector(self, view: ViewHandle, selector: str, timeout: float) -> None:
        ...

    @abstractmethod
    async def probe_hooks(self, view: ViewHandle) -> bool:
        ...

    @abstractmethod
    async def install_hooks(self, view: ViewHandle) -> None:
        ...

    @abstractmethod
    async def close_view(self, view: ViewHandle) -> None:
        ...


class PlaywrightSurface(RenderingSurface):
    """RenderingSurface backed by pages of a Playwright browser context."""

    def __init__(self, context: BrowserContext, focus: Optional[Page] = None) -> None:
        self._context = context
        self._pages: Dict[str, Page] = {}
        self._focus = focus

    def adopt(self, page: Page) -> ViewHandle:
        """Register an already-open page, typically the search results, as a view."""
        handle = ViewHandle(view_id=uuid.uuid4().hex)
        self._pages[handle.view_id] = page
        if self._focus is None:
            self._focus = page
        return handle

    def _page(self, view: ViewHandle) -> Page:
        page = self._pages.get(view.view_id)
        if page is None or page.is_closed():
            raise SurfaceError(f"view {view.view_id} is not open")
        return page

    async def open_view(self, url: str) -> ViewHandle:
        try:
            page = await self._context.new_page()
        except PlaywrightError as exc:
            raise SurfaceError(f"could not open view: {exc}") from exc
        try:
            await page.goto(url, wait_until="commit")
        except PlaywrightError as exc:
            await self._discard(page)
            raise SurfaceError(f"could not open {url}: {exc}") from exc

        handle = ViewHandle(view_id=uuid.uuid4().hex)
        self._pages[handle.view_id] = page
        if self._focus is not None and not self._focus.is_closed():
            try:
                await self._focus.bring_to_front()
            except PlaywrightError as exc:
                logger.debug("could not refocus source page: %s", exc)
        return handle

    @staticmethod
    async def _discard(page: Page) -> None:
        try:
            await page.close()
        except PlaywrightError as exc:
            logger.debug("page close after failed navigation: %s", exc)

    async def wait_for_load(self, view: ViewHandle, timeout: float) -> None:
        page = self._page(view)
        try:
            await page.wait_for_load_state("load", timeout=timeout * 1000)
        except PlaywrightTimeoutError as exc:
            raise SurfaceTimeout("Tab load timeout") from exc
        except PlaywrightError as exc:
            raise SurfaceError(str(exc)) from exc

    async def view_url(self, view: ViewHandle) -> str:
        return self._page(view).url

    async def snapshot(self, view: ViewHandle) -> str:
        page = self._page(view)
        try:
            if await page.evaluate(PROBE_SCRIPT):
                return await page.evaluate(SERIALIZE_SCRIPT)
            return await page.content()
        except PlaywrightError as exc:
            raise SurfaceError(f"snapshot failed: {exc}") from exc

    async def activate(self, view: ViewHandle, target: ElementRef) -> None:
        page = self._page(view)
        locator = page.locator(target.selector)
        if target.text is not None:
            locator = locator.filter(has_text=label_pattern(target.text))
        locator = locator.nth(target.index)
        if target.inner:
            locator = locator.locator(target.inner).first
        try:
            await locator.evaluate(CLICK_SCRIPT)
        except PlaywrightError as exc:
            raise SurfaceError(f"could not activate {target.selector}[{target.index}]: {exc}") from exc

    async def wait_for_selector(self, view: ViewHandle, selector: str, timeout: float) -> None:
        page = self._page(view)
        try:
            await page.wait_for_selector(selector, state="attached", timeout=timeout * 1000)
        except PlaywrightTimeoutError as exc:
            raise SurfaceTimeout(f"Timeout waiting for: {selector}") from exc
        except PlaywrightError as exc:
            raise SurfaceError(str(exc)) from exc

    async def probe_hooks(self, view: ViewHandle) -> bool:
        page = self._page(view)
        try:
            return bool(await page.evaluate(PROBE_SCRIPT))
        except PlaywrightError as exc:
            raise SurfaceError(f"hook probe failed: {exc}") from exc

    async def install_hooks(self, view: ViewHandle) -> None:
        page = self._page(view)
        try:
            await page.add_script_tag(content=HOOKS_SCRIPT)
        except PlaywrightError as exc:
            raise SurfaceError(f"hook install failed: {exc}") from exc

    async def close_view(self, view: ViewHandle) -> None:
        page = self._pages.pop(view.view_id, None)
        if page is None or page.is_closed():
            return
        try:
            await page.close()
        except PlaywrightError as exc:
            raise SurfaceError(str(exc)) from exc
