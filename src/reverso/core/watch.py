"""Debounced, single-flight rescans driven by file change notifications."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from reverso.constants import DEFAULT_WATCH_DEBOUNCE_MS
from reverso.core.ports.watcher import FileWatcherPort

logger = logging.getLogger(__name__)

WatchEventType = Literal["start", "complete", "error", "change"]


@dataclass(frozen=True)
class WatchEvent:
    type: WatchEventType
    paths: tuple[str, ...] = ()
    result: Any = None
    error: BaseException | None = None


class WatchSession:
    """Turn bursts of change notifications into serialized scans.

    Each notification emits a ``change`` event and re-arms the debounce timer. When the
    timer fires a scan starts, unless one is already running; then exactly one
    follow-up scan is queued no matter how many notifications arrive meanwhile.
    Events reach the single consumer of :meth:`events` in order.
    """

    def __init__(
        self,
        scan: Callable[[], Awaitable[Any]],
        *,
        debounce_ms: int = DEFAULT_WATCH_DEBOUNCE_MS,
        max_events: int = 100,
    ) -> None:
        self._scan = scan
        self._delay = debounce_ms / 1000
        self._events: asyncio.Queue[WatchEvent | None] = asyncio.Queue(maxsize=max_events)
        self._watcher: FileWatcherPort | None = None
        self._debounce: asyncio.Task[None] | None = None
        self._scan_task: asyncio.Task[None] | None = None
        self._rescan_pending = False
        self._stopped = False

    @property
    def scanning(self) -> bool:
        return self._scan_task is not None and not self._scan_task.done()

    async def start(self, watcher: FileWatcherPort | None = None, *, initial_scan: bool = True) -> None:
        self._watcher = watcher
        if watcher is not None:
            await watcher.start()
        if initial_scan:
            self.request_scan()

    async def notify(self, paths: Iterable[str | Path]) -> None:
        if self._stopped:
            return
        changed = tuple(sorted(str(path) for path in paths))
        await self._emit(WatchEvent(type="change", paths=changed))
        if self._debounce is not None:
            self._debounce.cancel()
        self._debounce = asyncio.create_task(self._debounced())

    def request_scan(self) -> None:
        """Scan now, or once more after the running scan finishes."""
        if self._stopped:
            return
        if self.scanning:
            self._rescan_pending = True
            return
        self._scan_task = asyncio.create_task(self._run_scans())

    async def _debounced(self) -> None:
        await asyncio.sleep(self._delay)
        self._debounce = None
        self.request_scan()

    async def _run_scans(self) -> None:
        while True:
            self._rescan_pending = False
            await self._emit(WatchEvent(type="start"))
            try:
                result = await self._scan()
            except Exception as exc:
                logger.exception("Scan failed")
                await self._emit(WatchEvent(type="error", error=exc))
            else:
                await self._emit(WatchEvent(type="complete", result=result))
            if not self._rescan_pending or self._stopped:
                return

    async def _emit(self, event: WatchEvent | None) -> None:
        if self._stopped:
            self._make_room()
            self._events.put_nowait(event)
            return
        await self._events.put(event)

    def _make_room(self) -> None:
        if self._events.full():
            dropped = self._events.get_nowait()
            logger.warning("Event queue full on stop; dropped %s event", dropped.type if dropped else "end")

    async def events(self) -> AsyncIterator[WatchEvent]:
        while True:
            event = await self._events.get()
            if event is None:
                return
            yield event

    async def stop(self) -> None:
        """Stop watching, let an in-flight scan finish, then end the event stream."""
        if self._stopped:
            return
        self._stopped = True
        self._rescan_pending = False
        if self._debounce is not None:
            self._debounce.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._debounce
            self._debounce = None
        if self._watcher is not None:
            await self._watcher.stop()
        if self._scan_task is not None:
            # A scan blocked on a full queue needs one free slot to finish.
            self._make_room()
            await self._scan_task
            self._scan_task = None
        await self._emit(None)
