"""Tests for the watchfiles watcher adapter."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from reverso.core.ports.watcher import FileWatcherPort
from reverso.watcher.watchfiles_adapter import WatchfilesWatcher


class TestAccepts:
    @pytest.mark.parametrize(
        ("relative", "expected"),
        [
            ("Home.tsx", True),
            ("components/Card.jsx", True),
            ("about.html", True),
            ("utils/format.ts", False),
            ("readme.txt", False),
            ("node_modules/lib/Button.tsx", False),
            ("components/Card.test.tsx", False),
        ],
    )
    def test_default_filters(self, tmp_path: Path, relative: str, expected: bool) -> None:
        watcher = WatchfilesWatcher(tmp_path, AsyncMock())
        assert watcher.accepts(tmp_path / relative) is expected

    def test_custom_include(self, tmp_path: Path) -> None:
        watcher = WatchfilesWatcher(tmp_path, AsyncMock(), include=["pages/**"], exclude=[])
        assert watcher.accepts(tmp_path / "pages" / "Home.tsx")
        assert not watcher.accepts(tmp_path / "components" / "Hero.tsx")


class TestWatchfilesWatcher:
    def test_implements_protocol(self, tmp_path: Path) -> None:
        watcher: FileWatcherPort = WatchfilesWatcher(tmp_path, AsyncMock())
        assert hasattr(watcher, "start")
        assert hasattr(watcher, "stop")

    @pytest.mark.asyncio
    async def test_start_and_stop(self, tmp_path: Path) -> None:
        watcher = WatchfilesWatcher(tmp_path, AsyncMock())

        with patch("reverso.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            assert watcher._task is not None
            await watcher.stop()
            assert watcher._task is None

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self, tmp_path: Path) -> None:
        watcher = WatchfilesWatcher(tmp_path, AsyncMock())
        await watcher.stop()

    @pytest.mark.asyncio
    async def test_double_start_is_noop(self, tmp_path: Path) -> None:
        watcher = WatchfilesWatcher(tmp_path, AsyncMock())

        with patch("reverso.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            task = watcher._task
            await watcher.start()
            assert watcher._task is task
            await watcher.stop()

    @pytest.mark.asyncio
    async def test_callback_receives_markup_files(self, tmp_path: Path) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher(tmp_path, callback)
        changes = {
            (1, str(tmp_path / "Home.tsx")),
            (2, str(tmp_path / "notes.txt")),
            (1, str(tmp_path / "about.html")),
        }

        with patch("reverso.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter(changes)
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_called_once()
        assert callback.call_args[0][0] == {tmp_path / "Home.tsx", tmp_path / "about.html"}

    @pytest.mark.asyncio
    async def test_callback_not_called_for_other_files(self, tmp_path: Path) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher(tmp_path, callback)
        changes = {(1, str(tmp_path / "readme.txt")), (2, str(tmp_path / "node_modules" / "x" / "A.tsx"))}

        with patch("reverso.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter(changes)
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_stop_watching(self, tmp_path: Path) -> None:
        callback = AsyncMock(side_effect=RuntimeError("boom"))
        watcher = WatchfilesWatcher(tmp_path, callback)

        with patch("reverso.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter({(1, str(tmp_path / "Home.tsx"))})
            await watcher.start()
            await asyncio.sleep(0.05)
            assert watcher._task is not None
            assert not watcher._task.done()
            await watcher.stop()


async def _empty_async_iter() -> AsyncIterator[Any]:
    """Async iterator that never yields, just blocks until cancelled."""
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return
    yield  # pragma: no cover


async def _single_change_iter(changes: set[tuple[int, str]]) -> AsyncIterator[set[tuple[int, str]]]:
    yield changes
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return
