"""Wait primitives.

Two kinds of wait exist and each call site picks one explicitly:

- ``required_wait``: a timeout is a hard failure (``WaitTimeout``).
- ``best_effort_wait``: a timeout is logged and execution proceeds.

``settle`` is the fixed cooperative delay used after actions that trigger
client-side rendering without a reliable completion signal.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable

from .errors import SurfaceTimeout, WaitTimeout

logger = logging.getLogger(__name__)


async def required_wait(awaitable: Awaitable[object], what: str) -> None:
    try:
        await awaitable
    except SurfaceTimeout as exc:
        raise WaitTimeout(what) from exc


async def best_effort_wait(awaitable: Awaitable[object], what: str) -> bool:
    """Return True if the condition was met, False if the wait timed out."""
    try:
        await awaitable
    except SurfaceTimeout:
        logger.debug("best-effort wait timed out: %s", what)
        return False
    return True


async def settle(seconds: float) -> None:
    await asyncio.sleep(max(0.0, seconds))
