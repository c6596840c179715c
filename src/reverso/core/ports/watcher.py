from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, Protocol

# Receives the markup files that changed, already filtered by include/exclude globs.
ChangeCallback = Callable[[set[Path]], Coroutine[Any, Any, None]]


class FileWatcherPort(Protocol):
    """Source of change notifications for a ``WatchSession``.

    An implementation invokes its ``ChangeCallback`` between ``start()`` and ``stop()``;
    ``stop()`` returns once no callback is running any more.
    """

    async def start(self) -> None: ...

    async def stop(self) -> None: ...
