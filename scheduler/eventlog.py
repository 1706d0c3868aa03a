import itertools
import threading
from collections import deque
from typing import Deque, List, Optional, Tuple
from hazards.model import Event

EVENT_LOG_CAPACITY = 100_000

class EventLog:
    """Append-only record of pass outcomes and notifications, pageable by offset.

    Offsets are absolute and keep counting after the oldest entries fall off
    the end of a bounded log; paging from an evicted offset resumes at the
    oldest retained event.
    """

    def __init__(self, capacity: Optional[int] = EVENT_LOG_CAPACITY):
        self._log: Deque[Event] = deque(maxlen=capacity)
        self._total = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._log)

    @property
    def first_offset(self) -> int:
        with self._lock:
            return self._total - len(self._log)

    def append(self, evt: Event) -> int:
        with self._lock:
            self._log.append(evt)
            self._total += 1
            return self._total - 1

    def append_many(self, evts: List[Event]) -> Tuple[int, int]:
        """Append events and return (start_offset, end_offset)."""
        with self._lock:
            start = self._total
            self._log.extend(evts)
            self._total += len(evts)
            end = self._total - 1
        return start, end

    def since(self, offset: int, limit: int = 1000) -> Tuple[List[Event], int]:
        """Return events starting from offset, up to limit."""
        with self._lock:
            first = self._total - len(self._log)
            offset = max(first, offset)
            start = offset - first
            chunk = list(itertools.islice(self._log, start, start + limit))
        return chunk, offset + len(chunk)
