"""
Config directory watcher.

Wraps a single watchdog observer shared by all event-stream subscribers. Each
subscriber gets its own non-recursive watch handler and an asyncio queue that
receives one item per created or modified file. Events are raised on the
observer thread and handed to the subscriber's loop thread-safely.
"""

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import ObservedWatch

from .errors import WatchError

logger = logging.getLogger(__name__)


class QueueEventHandler(FileSystemEventHandler):
    """Forwards created/modified events into an asyncio queue."""

    def __init__(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue):
        super().__init__()
        self._loop = loop
        self._queue = queue

    def _forward(self, event: FileSystemEvent):
        logger.debug(f"Change detected: {event.event_type} {event.src_path}")
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event.src_path)
        except RuntimeError:
            # Subscriber's loop already closed; its watch is about to go away.
            logger.debug("Dropping change event for closed loop")

    def on_created(self, event: FileSystemEvent):
        self._forward(event)

    def on_modified(self, event: FileSystemEvent):
        self._forward(event)


class ConfigWatcher:
    """Shares one observer thread between all subscribers."""

    def __init__(self):
        self._observer: Optional[Observer] = None
        self._refs: dict[ObservedWatch, int] = {}
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self):
        """Start the observer thread."""
        with self._lock:
            if self.running:
                return
            self._observer = Observer()
            self._observer.daemon = True
            self._observer.start()
        logger.info("Config watcher started")

    def stop(self):
        """Stop the observer thread and drop all watches."""
        with self._lock:
            observer = self._observer
            self._observer = None
            self._refs.clear()
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=5)
        logger.info("Config watcher stopped")

    def _add(self, path: Path, handler: FileSystemEventHandler) -> ObservedWatch:
        if not path.is_dir():
            raise WatchError(
                f"`{path}` is not a directory",
                context="setting up inotify for cfg path",
            )
        with self._lock:
            try:
                watch = self._observer.schedule(handler, str(path), recursive=False)
            except OSError as e:
                raise WatchError(str(e), context="setting up inotify for cfg path") from e
            self._refs[watch] = self._refs.get(watch, 0) + 1
            return watch

    def _remove(self, watch: ObservedWatch, handler: FileSystemEventHandler):
        with self._lock:
            if self._observer is None or watch not in self._refs:
                return
            self._observer.remove_handler_for_watch(handler, watch)
            self._refs[watch] -= 1
            if self._refs[watch] == 0:
                del self._refs[watch]
                self._observer.unschedule(watch)

    def open(self, path: Path) -> "Subscription":
        """
        Start watching a directory. Must be called from the subscriber's loop.

        Raises:
            WatchError: if the watch cannot be set up.
        """
        if not self.running:
            self.start()

        queue: asyncio.Queue = asyncio.Queue()
        handler = QueueEventHandler(asyncio.get_running_loop(), queue)
        watch = self._add(path, handler)
        logger.debug(f"Watching {path} ({self._refs.get(watch, 0)} subscriber(s))")
        return Subscription(self, watch, handler, queue)

    @asynccontextmanager
    async def subscribe(self, path: Path) -> AsyncIterator[asyncio.Queue]:
        """Watch a directory for the lifetime of the context, yielding its change queue."""
        subscription = self.open(path)
        try:
            yield subscription.queue
        finally:
            subscription.close()


class Subscription:
    """One subscriber's watch on a directory. Closing it is idempotent."""

    def __init__(
        self,
        watcher: ConfigWatcher,
        watch: ObservedWatch,
        handler: FileSystemEventHandler,
        queue: asyncio.Queue,
    ):
        self.queue = queue
        self._watcher = watcher
        self._watch = watch
        self._handler = handler
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._watcher._remove(self._watch, self._handler)
        logger.debug(f"Stopped watching {self._watch.path}")


config_watcher = ConfigWatcher()
