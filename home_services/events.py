"""
Server-sent event framing.

The dashboard only ever sends one kind of event: an `update` whenever the
config directory changes. Idle connections get a comment line as keep-alive
so proxies do not time them out.
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

logger = logging.getLogger(__name__)

KEEPALIVE = ":\n\n"
UPDATE = "update"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_event(data: str, event: Optional[str] = None) -> str:
    """Format one SSE frame. Multi-line data is split over several data lines."""
    lines = []
    if event:
        lines.append(f"event: {event}")
    for line in data.split("\n"):
        lines.append(f"data: {line}")
    return "\n".join(lines) + "\n\n"


async def event_stream(queue: asyncio.Queue, keepalive: float = 15.0) -> AsyncIterator[str]:
    """Yield an update frame per queued change, and a keep-alive when idle."""
    while True:
        try:
            await asyncio.wait_for(queue.get(), timeout=keepalive)
        except asyncio.TimeoutError:
            yield KEEPALIVE
            continue
        logger.debug("Sending update event")
        yield format_event(UPDATE)
