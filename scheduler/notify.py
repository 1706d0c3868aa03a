import logging
import time
from collections import deque
from typing import Callable, Deque, List, NamedTuple
from hazards.model import Event
from .eventlog import EventLog

logger = logging.getLogger(__name__)

class Notification(NamedTuple):
    username: str
    title: str
    body: str
    source: str

class EventLogNotifier:
    """Notification sink that records every notification in the event log.

    Push delivery belongs to a separate service that can tail the log.
    """

    def __init__(self, log: EventLog, clock: Callable[[], int] = lambda: int(time.time() * 1000)):
        self.log = log
        self.clock = clock
        self.sent: Deque[Notification] = deque(maxlen=10_000)

    async def notify(self, username: str, title: str, body: str, source: str) -> None:
        n = Notification(username, title, body, source)
        self.sent.append(n)
        self.log.append(Event("Notification", self.clock(), n._asdict()))
        logger.debug("Notification to %s: %s - %s", username, title, body)

    def for_user(self, username: str) -> List[Notification]:
        return [n for n in self.sent if n.username == username]
