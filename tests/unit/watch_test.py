"""Tests for the debounced watch session."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from reverso.core.watch import WatchEvent, WatchSession


async def _drain(session: WatchSession) -> list[WatchEvent]:
    return [event async for event in session.events()]


class _CountingScan:
    def __init__(self, gate: asyncio.Event | None = None) -> None:
        self.calls = 0
        self.gate = gate

    async def __call__(self) -> int:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        return self.calls


@pytest.mark.asyncio
async def test_burst_of_changes_triggers_one_scan() -> None:
    scan = _CountingScan()
    session = WatchSession(scan, debounce_ms=20)
    await session.start(initial_scan=False)

    await session.notify(["src/b.tsx", "src/a.tsx"])
    await session.notify(["src/c.tsx"])
    await asyncio.sleep(0.1)
    await session.stop()

    events = await _drain(session)
    assert [event.type for event in events] == ["change", "change", "start", "complete"]
    assert events[0].paths == ("src/a.tsx", "src/b.tsx")
    assert events[-1].result == 1
    assert scan.calls == 1


@pytest.mark.asyncio
async def test_requests_during_scan_queue_a_single_follow_up() -> None:
    gate = asyncio.Event()
    scan = _CountingScan(gate)
    session = WatchSession(scan, debounce_ms=0)
    await session.start()
    await asyncio.sleep(0)
    assert session.scanning

    for _ in range(3):
        session.request_scan()
    gate.set()
    await asyncio.sleep(0.05)
    await session.stop()

    assert scan.calls == 2
    assert [event.type for event in await _drain(session)] == ["start", "complete", "start", "complete"]


@pytest.mark.asyncio
async def test_scan_failure_becomes_error_event() -> None:
    session = WatchSession(AsyncMock(side_effect=RuntimeError("boom")), debounce_ms=0)
    await session.start()
    await asyncio.sleep(0.01)
    await session.stop()

    events = await _drain(session)
    assert [event.type for event in events] == ["start", "error"]
    assert isinstance(events[1].error, RuntimeError)


@pytest.mark.asyncio
async def test_stop_waits_for_running_scan() -> None:
    finished = asyncio.Event()

    async def _slow_scan() -> None:
        await asyncio.sleep(0.05)
        finished.set()

    session = WatchSession(_slow_scan)
    await session.start()
    await asyncio.sleep(0)
    await session.stop()

    assert finished.is_set()
    assert [event.type for event in await _drain(session)] == ["start", "complete"]


@pytest.mark.asyncio
async def test_pending_debounce_is_cancelled_by_stop() -> None:
    scan = _CountingScan()
    session = WatchSession(scan, debounce_ms=1000)
    await session.start(initial_scan=False)
    await session.notify(["src/a.tsx"])
    await session.stop()
    await session.notify(["src/b.tsx"])

    assert scan.calls == 0
    assert [event.type for event in await _drain(session)] == ["change"]


@pytest.mark.asyncio
async def test_watcher_lifecycle_follows_session() -> None:
    watcher = AsyncMock()
    session = WatchSession(_CountingScan(), debounce_ms=0)
    await session.start(watcher, initial_scan=False)
    watcher.start.assert_awaited_once()

    await session.stop()
    await session.stop()
    watcher.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_stop_without_consumer_does_not_hang_on_full_queue() -> None:
    scan = _CountingScan()
    session = WatchSession(scan, debounce_ms=0, max_events=1)
    await session.start()
    await asyncio.sleep(0.05)
    assert session.scanning

    await asyncio.wait_for(session.stop(), 1.0)

    assert not session.scanning
    assert scan.calls == 1
    assert await asyncio.wait_for(_drain(session), 1.0) == []


@pytest.mark.asyncio
async def test_stop_before_first_scan_runs_with_full_queue() -> None:
    scan = _CountingScan()
    session = WatchSession(scan, debounce_ms=0, max_events=1)
    await session.start()

    await asyncio.wait_for(session.stop(), 1.0)

    assert scan.calls == 1
    assert await asyncio.wait_for(_drain(session), 1.0) == []
