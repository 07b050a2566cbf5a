from __future__ import annotations

import logging
from typing import Optional

from .config import HarvestConfig
from .errors import EmptyTranscriptError, MissingItemId
from .formatting import build_filename, format_transcript
from .models import ItemOutcome, ItemRecord, ViewHandle
from .navigator import PageNavigator
from .storage import PersistenceSink
from .waits import settle

logger = logging.getLogger(__name__)


class ItemProcessor:
    """Runs the lifecycle of one list item and contains its failures.

    open detail view -> ensure hooks -> extract -> format -> persist ->
    release view. Any exception along the way becomes a failed
    ItemOutcome; nothing propagates to the caller.
    """

    def __init__(self, navigator: PageNavigator, sink: PersistenceSink, config: HarvestConfig) -> None:
        self._navigator = navigator
        self._sink = sink
        self._config = config

    async def process(self, item: ItemRecord, origin_url: str, folder: str, index: int = 0) -> ItemOutcome:
        label = item.title or f"Card {index}"

        if not item.item_id:
            return self._failed(label, MissingItemId("No call ID found in link"))

        view: Optional[ViewHandle] = None
        try:
            view = await self._navigator.open_detail_view(item.item_id, origin_url)
            await self._navigator.wait_for_detail(view)
            await self._navigator.ensure_hooks(view)

            entries = await self._navigator.extract_detail(view)
            if not entries:
                raise EmptyTranscriptError("No transcript entries found")

            path = self._sink.write_document(format_transcript(entries, item), folder, build_filename(item))
            logger.info("saved %s (%d entries)", path, len(entries))
            outcome = ItemOutcome(title=label, success=True, path=path)
        except Exception as exc:  # noqa: BLE001
            outcome = self._failed(label, exc)
        finally:
            if view is not None:
                await self._navigator.release(view)

        await settle(self._config.inter_item_delay)
        return outcome

    @staticmethod
    def _failed(label: str, exc: Exception) -> ItemOutcome:
        message = str(exc) or type(exc).__name__
        logger.warning("item %r failed: %s", label, message)
        return ItemOutcome(title=label, success=False, error=message)
