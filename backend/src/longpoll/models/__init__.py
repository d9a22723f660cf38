from longpoll.models.models import ClientRegistry, ClientState, Event, Mailbox, MailboxClosed
from longpoll.models.coordinators import PollCoordinator, PollResult, PollStatus, PublishCoordinator, PublishOutcome
from longpoll.models.janitor import Janitor
