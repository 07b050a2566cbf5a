from __future__ import annotations

import asyncio
import datetime as _dt
import logging
from typing import List, Optional, Tuple

from .config import HarvestConfig
from .models import ErrorRecord, ItemRecord, ItemSummary, PaginationInfo, RunState, StatusSnapshot, ViewHandle
from .navigator import PageNavigator
from .processor import ItemProcessor
from .progress import ProgressBroadcaster
from .storage import CheckpointStore, PersistenceSink
from .strategies import ExtractionStrategy, GongStrategy
from .surface import RenderingSurface
from .waits import settle

logger = logging.getLogger(__name__)

FATAL_TITLE = "Fatal Error"
INDEX_TITLE = "CSV Export"


class RunController:
    """Owns the run lifecycle: Idle -> Running <-> Paused -> Completed | Stopped.

    Pause and stop are cooperative. Both loops check them at the top of
    every iteration, so an in-flight item or page navigation always runs
    to completion first; pause latency is bounded by one item.

    RunState is mutated only here (item outcomes come back from the
    ItemProcessor as values). Every mutation is followed by a checkpoint
    and a progress broadcast.
    """

    def __init__(
        self,
        surface: RenderingSurface,
        sink: PersistenceSink,
        checkpoints: CheckpointStore,
        config: Optional[HarvestConfig] = None,
        strategy: Optional[ExtractionStrategy] = None,
        broadcaster: Optional[ProgressBroadcaster] = None,
    ) -> None:
        self._config = config or HarvestConfig()
        self._sink = sink
        self._checkpoints = checkpoints
        self._broadcaster = broadcaster or ProgressBroadcaster()
        self._navigator = PageNavigator(surface, strategy or GongStrategy(), self._config)
        self._processor = ItemProcessor(self._navigator, sink, self._config)
        # last known state survives a controller restart for status queries
        self._state = checkpoints.load() or RunState()

    @property
    def broadcaster(self) -> ProgressBroadcaster:
        return self._broadcaster

    @property
    def is_running(self) -> bool:
        return self._state.running

    def get_status(self) -> StatusSnapshot:
        return self._state.snapshot()

    def pause(self) -> None:
        self._state.paused = True
        self._commit()

    def resume(self) -> None:
        self._state.paused = False
        self._commit()

    def stop(self) -> None:
        self._state.running = False
        self._state.paused = False
        self._commit()

    async def start(self, source: ViewHandle, folder_name: Optional[str] = None) -> StatusSnapshot:
        """Drive a complete run over the result list shown in ``source``."""
        self._state = RunState(
            running=True,
            folder_name=folder_name or _dt.date.today().isoformat(),
            source_id=source.view_id,
        )
        folder = self._config.run_folder(self._state.folder_name)
        self._commit()

        try:
            origin_url = await self._navigator.resolve_origin(source)
            first_page = await self._navigator.read_list_page(source)
        except Exception as exc:  # noqa: BLE001
            self._fatal(exc)
            return self.get_status()

        try:
            self._apply_pagination(first_page[1])
            self._commit()
            await self._page_loop(source, origin_url, folder, first_page)
            self._write_index(folder)
        except Exception as exc:  # noqa: BLE001
            logger.exception("run aborted")
            self._fatal(exc)
            return self.get_status()

        self._state.running = False
        self._state.paused = False
        self._commit()
        logger.info(
            "run finished: processed=%d failed=%d pages=%d/%d",
            self._state.processed_count,
            self._state.failed_count,
            self._state.current_page,
            self._state.total_pages,
        )
        return self.get_status()

    async def _page_loop(
        self,
        source: ViewHandle,
        origin_url: str,
        folder: str,
        first_page: Tuple[List[ItemRecord], PaginationInfo],
    ) -> None:
        page = 1
        while page <= self._state.total_pages:
            if not await self._proceed():
                break

            if page == 1:
                items, pagination = first_page
            else:
                try:
                    await self._navigator.goto_list_page(source, page)
                    await settle(self._config.after_navigation_delay)
                except Exception as exc:  # noqa: BLE001
                    self._record_failure(f"Page {page} navigation", exc)
                    page += 1
                    continue
                try:
                    items, pagination = await self._navigator.read_list_page(source)
                except Exception as exc:  # noqa: BLE001
                    self._record_failure(f"Page {page} scrape", exc)
                    page += 1
                    continue
                self._apply_pagination(pagination)

            self._state.current_page = page
            self._state.summaries.extend(ItemSummary.from_item(item) for item in items)
            self._commit()

            await self._item_loop(items, origin_url, folder, page)
            self._commit()
            page += 1

    async def _item_loop(self, items: List[ItemRecord], origin_url: str, folder: str, page: int) -> None:
        for index, item in enumerate(items):
            if not await self._proceed():
                break
            outcome = await self._processor.process(item, origin_url, folder, index)
            if outcome.success:
                self._state.processed_count += 1
            else:
                self._state.failed_count += 1
                self._state.errors.append(ErrorRecord(title=outcome.title, error=outcome.error or "", page=page))
            self._commit()

    async def _proceed(self) -> bool:
        """Loop-top checkpoint: wait out a pause, then report whether to continue."""
        while self._state.running and self._state.paused:
            await asyncio.sleep(self._config.pause_poll_interval)
        return self._state.running

    def _apply_pagination(self, pagination: PaginationInfo) -> None:
        self._state.total_results = max(self._state.total_results, pagination.total_results)
        self._state.total_pages = max(self._state.total_pages, pagination.total_pages)

    def _write_index(self, folder: str) -> None:
        if not self._state.summaries:
            return
        try:
            self._sink.write_index(self._state.summaries, folder)
        except Exception as exc:  # noqa: BLE001
            logger.warning("index write failed: %s", exc)
            self._state.errors.append(ErrorRecord(title=INDEX_TITLE, error=str(exc) or type(exc).__name__))
            self._commit()

    def _record_failure(self, title: str, exc: Exception) -> None:
        message = str(exc) or type(exc).__name__
        logger.warning("%s failed: %s", title, message)
        self._state.failed_count += 1
        self._state.errors.append(ErrorRecord(title=title, error=message))
        self._commit()

    def _fatal(self, exc: Exception) -> None:
        message = str(exc) or type(exc).__name__
        logger.error("fatal: %s", message)
        self._state.running = False
        self._state.paused = False
        self._state.errors.append(ErrorRecord(title=FATAL_TITLE, error=message))
        self._commit()

    def _commit(self) -> None:
        self._checkpoints.save(self._state)
        self._broadcaster.publish(self._state.snapshot())
