import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional
from hazards.model import Event
from .eventlog import EventLog

logger = logging.getLogger(__name__)

Pass = Callable[[int], Awaitable[List[Event]]]
Clock = Callable[[], int]

def wall_clock_ms() -> int:
    return int(time.time() * 1000)

@dataclass
class TaskStatus:
    name: str
    interval_s: float
    runs: int = 0
    failures: int = 0
    skipped: int = 0
    last_started_ms: Optional[int] = None
    last_duration_ms: Optional[float] = None
    last_error: Optional[str] = None

class PeriodicTask:
    """Runs one component pass on a fixed cadence, never overlapping itself."""

    def __init__(self, name: str, fn: Pass, interval_s: float, clock: Clock, events: EventLog):
        self.name = name
        self.fn = fn
        self.interval_s = interval_s
        self.clock = clock
        self.events = events
        self.status = TaskStatus(name=name, interval_s=interval_s)
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    async def run_once(self) -> Optional[List[Event]]:
        """Run the pass now; returns None if it was skipped or failed."""
        if self._lock.locked():
            self.status.skipped += 1
            logger.warning("[%s] Previous pass still running, skipping", self.name)
            return None

        async with self._lock:
            now = self.clock()
            self.status.last_started_ms = now
            started = time.perf_counter()
            try:
                evts = await self.fn(now)
            except Exception as e:
                # The next interval is the retry
                self.status.failures += 1
                self.status.last_error = repr(e)
                logger.exception("[%s] Pass failed", self.name)
                self.events.append(Event("PassFailed", now, {"task": self.name, "error": repr(e)}))
                return None
            finally:
                self.status.runs += 1
                self.status.last_duration_ms = (time.perf_counter() - started) * 1000

        if evts:
            logger.info("[%s] Pass produced %d events", self.name, len(evts))
            self.events.append_many(evts)
        return evts

    async def start(self):
        """Start the periodic loop."""
        if self._task:
            return
        self._task = asyncio.create_task(self._loop(), name=f"periodic-{self.name}")

    async def stop(self):
        """Stop the loop gracefully."""
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None

    async def _loop(self):
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_s)

class TickScheduler:
    """Drives every component pass as an independent periodic task."""

    def __init__(self, clock: Clock = wall_clock_ms, events: Optional[EventLog] = None):
        self.clock = clock
        self.events = events or EventLog()
        self.tasks: Dict[str, PeriodicTask] = {}

    def add(self, name: str, fn: Pass, interval_s: float) -> PeriodicTask:
        if name in self.tasks:
            raise ValueError(f"task {name!r} already registered")
        task = PeriodicTask(name, fn, interval_s, self.clock, self.events)
        self.tasks[name] = task
        return task

    async def start(self):
        for task in self.tasks.values():
            await task.start()
        logger.info("Scheduler started %d tasks: %s", len(self.tasks), ", ".join(self.tasks))

    async def stop(self):
        for task in self.tasks.values():
            await task.stop()
        logger.info("Scheduler stopped")

    async def run(self, name: str) -> Optional[List[Event]]:
        """Trigger one pass immediately, outside its cadence."""
        if name not in self.tasks:
            raise KeyError(name)
        return await self.tasks[name].run_once()

    def status(self) -> List[TaskStatus]:
        return [t.status for t in self.tasks.values()]
