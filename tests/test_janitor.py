import asyncio

import pytest

from longpoll.models import Janitor, PollCoordinator, PollStatus, PublishCoordinator, PublishOutcome
from tests.conftest import wait_until


class ManualTicker:
    """Stands in for asyncio.sleep: each tick advances the fake clock."""

    def __init__(self, clock, ticks: int):
        self.clock = clock
        self.ticks = ticks
        self.calls = 0
        self.idle = asyncio.Event()

    async def __call__(self, seconds: float):
        if self.calls >= self.ticks:
            self.idle.set()
            await asyncio.Event().wait()
        self.calls += 1
        self.clock.advance(seconds)


@pytest.mark.asyncio
async def test_sweep_evicts_only_inactive_clients(registry, clock):
    janitor = Janitor(registry, interval=60, client_timeout=60)
    await registry.get_or_create("old")
    clock.advance(50)
    await registry.get_or_create("recent")
    clock.advance(11)

    assert await janitor.sweep() == ["old"]
    assert registry.client_ids() == ["recent"]
    assert await janitor.sweep() == []


@pytest.mark.asyncio
async def test_evicted_client_is_not_found_then_reregistered(registry, clock):
    janitor = Janitor(registry, interval=60, client_timeout=60)
    poller = PollCoordinator(registry, timeout=0)
    publisher = PublishCoordinator(registry)

    await poller.poll("c1")
    old_state = registry.lookup("c1")
    clock.advance(61)
    await janitor.sweep()
    assert publisher.publish("c1", "hi") == PublishOutcome.NOT_FOUND

    result = await poller.poll("c1")
    assert result.status == PollStatus.EMPTY
    new_state = registry.lookup("c1")
    assert new_state is not old_state
    assert new_state.last_seen == clock.now
    assert not new_state.mailbox.closed


@pytest.mark.asyncio
async def test_polling_client_survives_sweeps(registry, clock):
    janitor = Janitor(registry, interval=60, client_timeout=60)
    poller = PollCoordinator(registry, timeout=0)
    for _ in range(5):
        await poller.poll("c1")
        clock.advance(59)
        assert await janitor.sweep() == []
    assert "c1" in registry


@pytest.mark.asyncio
async def test_run_loop_sweeps_each_tick_and_stops(registry, clock):
    ticker = ManualTicker(clock, ticks=2)
    janitor = Janitor(registry, interval=60, client_timeout=90, sleep=ticker)
    await registry.get_or_create("c1")

    janitor.start()
    assert janitor.running
    await asyncio.wait_for(ticker.idle.wait(), 1.0)
    # 120s of virtual time passed: the second tick evicted the client
    assert "c1" not in registry

    await janitor.stop()
    assert not janitor.running
    assert janitor.task is None


@pytest.mark.asyncio
async def test_start_is_idempotent(registry):
    janitor = Janitor(registry, interval=3600, client_timeout=60)
    task = janitor.start()
    assert janitor.start() is task
    await janitor.stop()
    await janitor.stop()
    assert task.cancelled()


@pytest.mark.asyncio
async def test_sweep_releases_waiting_poll(registry, clock):
    janitor = Janitor(registry, interval=60, client_timeout=60)
    poller = PollCoordinator(registry, timeout=5.0)
    task = asyncio.create_task(poller.poll("c1"))
    await wait_until(lambda: "c1" in registry)
    clock.advance(61)
    await janitor.sweep()
    result = await asyncio.wait_for(task, 1.0)
    assert result.status == PollStatus.CLIENT_GONE
