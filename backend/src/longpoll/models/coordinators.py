import enum
import logging
from dataclasses import dataclass
from typing import Optional

from longpoll.models.models import ClientRegistry, Event, MailboxClosed

logger = logging.getLogger(__name__)


class PollStatus(str, enum.Enum):
    DELIVERED = "delivered"
    EMPTY = "empty"
    CLIENT_GONE = "client_gone"


class PublishOutcome(str, enum.Enum):
    DELIVERED = "delivered"
    NOT_FOUND = "not_found"
    DROPPED = "dropped"


@dataclass(frozen=True)
class PollResult:
    status: PollStatus
    event: Optional[Event] = None


class PollCoordinator:
    ''' Holds one poll request open against a client's mailbox.'''

    def __init__(self, registry: ClientRegistry, timeout: float):
        self.registry = registry
        self.timeout = timeout
        # stats
        self.counts = {status: 0 for status in PollStatus}

    async def poll(self, client_id: str, timeout: Optional[float] = None) -> PollResult:
        state = await self.registry.get_or_create(client_id)
        try:
            event = await state.mailbox.take(self.timeout if timeout is None else timeout)
        except MailboxClosed:
            logger.info("Client evicted while polling: %s", client_id)
            result = PollResult(PollStatus.CLIENT_GONE)
        else:
            if event is None:
                logger.info("Poll timeout for client: %s", client_id)
                result = PollResult(PollStatus.EMPTY)
            else:
                result = PollResult(PollStatus.DELIVERED, event)
        self.counts[result.status] += 1
        return result


class PublishCoordinator:
    ''' Best-effort, non-blocking delivery into a client's mailbox.'''

    def __init__(self, registry: ClientRegistry):
        self.registry = registry
        # stats
        self.counts = {outcome: 0 for outcome in PublishOutcome}

    def publish(self, client_id: str, message: str) -> PublishOutcome:
        state = self.registry.lookup(client_id)
        if state is None or state.mailbox.closed:
            outcome = PublishOutcome.NOT_FOUND
        elif state.mailbox.try_deposit(Event(message, self.registry.clock())):
            outcome = PublishOutcome.DELIVERED
        else:
            logger.info("Client channel is full, dropping event for: %s", client_id)
            outcome = PublishOutcome.DROPPED
        self.counts[outcome] += 1
        return outcome
