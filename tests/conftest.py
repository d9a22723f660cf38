import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio

from longpoll.main import create_app
from longpoll.models import ClientRegistry
from longpoll.utilities import Settings


class FakeClock:
    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


async def wait_until(predicate, timeout: float = 1.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return ClientRegistry(clock=clock)


@pytest.fixture
def settings():
    return Settings(
        poll_timeout=0.2,
        client_timeout=60.0,
        cleanup_interval=60.0,
        disconnect_check_interval=0.05,
    )


@pytest.fixture
def app(settings, registry):
    return create_app(settings, registry)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
