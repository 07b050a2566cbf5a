from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from .controller import RunController
from .models import StatusSnapshot

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Message-based front door to a RunController.

    Each ``handle`` call answers immediately; START schedules the run as
    a background asyncio task instead of awaiting it.
    """

    def __init__(self, controller: RunController) -> None:
        self._controller = controller
        self._task: Optional[asyncio.Task] = None

    async def handle(self, message: Dict[str, Any]) -> Dict[str, Any]:
        action = message.get("action")
        if action == "START":
            return self._start(message)
        if action == "PAUSE":
            self._controller.pause()
            return {"paused": True}
        if action == "RESUME":
            self._controller.resume()
            return {"resumed": True}
        if action == "STOP":
            self._controller.stop()
            return {"stopped": True}
        if action == "GET_STATUS":
            return self._controller.get_status().to_dict()
        return {"error": f"unknown action: {action!r}"}

    def _start(self, message: Dict[str, Any]) -> Dict[str, Any]:
        if self._task is not None and not self._task.done():
            return {"started": False, "error": "a run is already in progress"}
        source = message.get("source")
        if source is None:
            return {"started": False, "error": "START requires a source"}
        self._task = asyncio.create_task(self._controller.start(source, message.get("folder_name")))
        return {"started": True}

    async def wait_for_run(self) -> Optional[StatusSnapshot]:
        """Await the active run, if any, and return its final status."""
        if self._task is None:
            return None
        return await self._task
