from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from pathlib import Path

from watchfiles import awatch

from reverso.constants import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_INCLUDE_PATTERNS
from reverso.core.discovery import is_candidate
from reverso.core.ports.watcher import ChangeCallback

logger = logging.getLogger(__name__)


class WatchfilesWatcher:
    """Watch a source tree for markup changes and hand the changed paths to a callback.

    Implements the ``FileWatcherPort`` protocol. Paths are filtered with the same
    include/exclude globs the scanner uses.
    """

    def __init__(
        self,
        directory: str | Path,
        on_change: ChangeCallback,
        include: Sequence[str] = DEFAULT_INCLUDE_PATTERNS,
        exclude: Sequence[str] = DEFAULT_EXCLUDE_PATTERNS,
    ) -> None:
        self._directory = Path(directory)
        self._on_change = on_change
        self._include = tuple(include)
        self._exclude = tuple(exclude)
        self._task: asyncio.Task[None] | None = None

    def accepts(self, path: Path) -> bool:
        try:
            relative = path.resolve().relative_to(self._directory.resolve()).as_posix()
        except ValueError:
            relative = path.as_posix()
        return is_candidate(relative, self._include, self._exclude)

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watching %s for marker changes", self._directory)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Stopped watching %s", self._directory)

    async def _watch(self) -> None:
        async for changes in awatch(self._directory):
            paths = {Path(p) for _, p in changes if self.accepts(Path(p))}
            if not paths:
                continue
            logger.debug("Detected changes in %d file(s)", len(paths))
            try:
                await self._on_change(paths)
            except Exception:
                logger.exception("Error in watcher callback")
