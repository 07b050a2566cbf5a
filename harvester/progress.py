from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

from .models import StatusSnapshot

logger = logging.getLogger(__name__)

PROGRESS_UPDATE = "PROGRESS_UPDATE"

Subscriber = Callable[[Dict[str, Any]], None]


class ProgressBroadcaster:
    """Pushes a status snapshot to every subscriber after each state change.

    Delivery is best effort: a subscriber that raises is logged and the
    run carries on.
    """

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, snapshot: StatusSnapshot) -> None:
        message = {"type": PROGRESS_UPDATE, "data": snapshot.to_dict()}
        for callback in list(self._subscribers):
            try:
                callback(message)
            except Exception:  # noqa: BLE001
                logger.exception("progress subscriber %r failed", callback)
