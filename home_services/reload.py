"""
Debounced reload client.

Python counterpart of static/index.js. Subscribes to the dashboard's event
stream and triggers a reload once no update has arrived for a quiet window.

DebouncedReloader holds the behaviour and knows nothing about HTTP.
EventSourceClient feeds it from an httpx stream and reconnects dropped
streams the way a browser EventSource does.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Optional

import httpx

from .config import config

logger = logging.getLogger(__name__)


class DebouncedReloader:
    """
    Reload after a quiet period on an event channel.

    - on_open() discards the error handler.
    - on_message() discards the error handler and restarts the single timer.
    - When the timer fires, the channel is closed and reload() runs once.
    - on_error() closes the channel without reloading, but only while the
      error handler is still installed. Afterwards errors are ignored.
    """

    def __init__(
        self,
        reload: Callable[[], None],
        close: Optional[Callable[[], None]] = None,
        window: float = 0.2,
    ):
        self._reload = reload
        self._close = close
        self.window = window
        self._timer: Optional[asyncio.TimerHandle] = None
        self._error_handler: Optional[Callable[[], None]] = self._close_on_error
        self.closed = False
        self.reloaded = False

    @property
    def handles_errors(self) -> bool:
        return self._error_handler is not None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def on_open(self):
        logger.debug("sse:open")
        self._error_handler = None

    def on_error(self):
        if self._error_handler is None:
            logger.debug("sse:error ignored, no handler installed")
            return
        logger.debug("sse:error")
        self._error_handler()

    def on_message(self, data: str):
        if self.closed:
            return
        self._error_handler = None
        logger.debug(f"sse event {data}")
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.window, self._fire)

    def close(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self.closed:
            return
        self.closed = True
        if self._close is not None:
            self._close()

    def _close_on_error(self):
        self.close()

    def _fire(self):
        self._timer = None
        logger.info("debounced, reloading")
        self.close()
        self.reloaded = True
        self._reload()


@dataclass
class ServerSentEvent:
    """
    One parsed SSE item.

    Messages have dispatch=True. A `retry:` field is reported on its own as
    soon as it is parsed, with dispatch=False and no data.
    """

    data: str
    event: str = "message"
    id: Optional[str] = None
    retry: Optional[int] = None
    dispatch: bool = True


async def iter_sse(lines: AsyncIterator[str]) -> AsyncIterator[ServerSentEvent]:
    """Parse SSE lines into events. Comments and unknown fields are skipped."""
    data: list[str] = []
    event = ""
    event_id = None

    async for line in lines:
        line = line.rstrip("\r\n")
        if not line:
            if data:
                yield ServerSentEvent(
                    data="\n".join(data),
                    event=event or "message",
                    id=event_id,
                )
            data, event = [], ""
            continue
        if line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if field == "data":
            data.append(value)
        elif field == "event":
            event = value
        elif field == "id":
            event_id = value
        elif field == "retry" and value.isascii() and value.isdigit():
            yield ServerSentEvent(data="", event="retry", id=event_id, retry=int(value), dispatch=False)


class EventSourceClient:
    """Drive a DebouncedReloader from an HTTP event stream."""

    def __init__(
        self,
        url: str,
        reload: Callable[[], None],
        window: float = None,
        retry: float = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.retry = config.reload_retry if retry is None else retry
        self.reloader = DebouncedReloader(
            reload=reload,
            close=self._on_close,
            window=config.reload_debounce if window is None else window,
        )
        self._client = client
        self._task: Optional[asyncio.Task] = None
        self._closed_event = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self.reloader.closed

    def close(self):
        self.reloader.close()

    def _on_close(self):
        self._closed_event.set()
        task = self._task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def run(self):
        """Connect and keep reconnecting until the reloader closes the channel."""
        owns_client = self._client is None
        client = self._client or httpx.AsyncClient(timeout=httpx.Timeout(10.0, read=None))
        try:
            while not self.closed:
                self._task = asyncio.ensure_future(self._connect(client))
                try:
                    await self._task
                except asyncio.CancelledError:
                    if not self.closed:
                        raise
                finally:
                    self._task = None

                if self.closed:
                    break
                logger.debug(f"Stream ended, reconnecting in {self.retry}s")
                try:
                    await asyncio.wait_for(self._closed_event.wait(), timeout=self.retry)
                except asyncio.TimeoutError:
                    pass
        finally:
            if owns_client:
                await client.aclose()

    async def _connect(self, client: httpx.AsyncClient):
        try:
            async with client.stream("GET", self.url, headers={"Accept": "text/event-stream"}) as response:
                content_type = response.headers.get("content-type", "")
                if response.status_code != 200 or not content_type.startswith("text/event-stream"):
                    logger.warning(f"Unexpected response from {self.url}: {response.status_code} {content_type}")
                    self.reloader.on_error()
                    return

                self.reloader.on_open()
                async for sse in iter_sse(response.aiter_lines()):
                    if sse.retry is not None:
                        self.retry = sse.retry / 1000
                    if sse.dispatch:
                        self.reloader.on_message(sse.data)
        except httpx.HTTPError as e:
            logger.warning(f"Event stream error for {self.url}: {e}")
            self.reloader.on_error()
            return

        # Dropped after opening: same path as a transport error.
        self.reloader.on_error()


async def watch(
    url: str,
    on_reload: Callable[[], Awaitable[None] | None],
    window: float = None,
    retry: float = None,
    client: Optional[httpx.AsyncClient] = None,
):
    """
    Run reload clients back to back until cancelled.

    Each client stands in for one page load: after it reloads, a fresh one
    connects. A client closed by an initial error ends the loop.
    """
    while True:
        reloads = []
        es = EventSourceClient(url, reload=lambda: reloads.append(True), window=window, retry=retry, client=client)
        await es.run()
        if not reloads:
            logger.info(f"Event stream {url} closed without reload")
            return
        result = on_reload()
        if asyncio.iscoroutine(result):
            await result
