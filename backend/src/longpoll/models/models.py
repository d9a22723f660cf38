import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Set

from longpoll.utilities import utcnow

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class MailboxClosed(Exception):
    """Raised to a waiter when the mailbox is closed by eviction."""


# ------------ In-memory structures ------------
@dataclass(frozen=True)
class Event:
    message: str
    time: datetime

    def to_dict(self) -> dict:
        return {"message": self.message, "time": self.time.isoformat()}


class Mailbox:
    ''' Single-slot holding cell: empty, occupied by one Event, or closed.'''

    def __init__(self):
        self._event: Optional[Event] = None
        self._closed = False
        # one future per waiting poll; resolved on deposit or close
        self._waiters: Set[asyncio.Future] = set()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def full(self) -> bool:
        return self._event is not None

    @property
    def waiter_count(self) -> int:
        return len(self._waiters)

    def try_deposit(self, event: Event) -> bool:
        """Put `event` into the slot without waiting.

        Returns False if the slot is already occupied (the pending event wins)
        or the mailbox is closed.
        """
        if self._closed or self._event is not None:
            return False
        self._event = event
        self._wake_all()
        return True

    async def take(self, timeout: float) -> Optional[Event]:
        """Consume the pending event, waiting up to `timeout` seconds for one.

        Returns None on timeout and raises MailboxClosed if the mailbox is
        closed before an event is taken. Cancellation removes the waiter and
        leaves any pending event in the slot.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            if self._event is not None:
                event, self._event = self._event, None
                return event
            if self._closed:
                raise MailboxClosed()
            remaining = deadline - loop.time()
            if remaining <= 0:
                return None
            waiter = loop.create_future()
            self._waiters.add(waiter)
            try:
                await asyncio.wait_for(waiter, remaining)
            except asyncio.TimeoutError:
                pass
            finally:
                self._waiters.discard(waiter)

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._event = None
        self._wake_all()

    def _wake_all(self):
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(None)


@dataclass
class ClientState:
    last_seen: datetime
    mailbox: Mailbox = field(default_factory=Mailbox)


class ClientRegistry:
    ''' Client id -> ClientState, created on first poll and removed by the janitor.'''

    def __init__(self, clock: Clock = utcnow):
        self.clock = clock
        self._clients: Dict[str, ClientState] = {}
        # guards structural changes; reads do not await and need no lock
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, client_id: str) -> bool:
        return client_id in self._clients

    def client_ids(self) -> List[str]:
        return list(self._clients)

    async def get_or_create(self, client_id: str) -> ClientState:
        async with self._lock:
            now = self.clock()
            state = self._clients.get(client_id)
            if state is None:
                state = ClientState(last_seen=now)
                self._clients[client_id] = state
                logger.info("Client subscribed: %s", client_id)
            else:
                state.last_seen = now
            return state

    def lookup(self, client_id: str) -> Optional[ClientState]:
        # publishing is not liveness: last_seen stays untouched
        return self._clients.get(client_id)

    async def evict(self, client_id: str) -> bool:
        async with self._lock:
            return self._remove(client_id)

    async def evict_idle(self, max_idle: timedelta, now: Optional[datetime] = None) -> List[str]:
        """Evict every client whose last poll is older than `max_idle`."""
        async with self._lock:
            now = now or self.clock()
            idle = [cid for cid, state in self._clients.items() if now - state.last_seen > max_idle]
            for cid in idle:
                self._remove(cid)
            return idle

    def _remove(self, client_id: str) -> bool:
        state = self._clients.pop(client_id, None)
        if state is None:
            return False
        # wakes any poll still waiting on this client
        state.mailbox.close()
        return True
