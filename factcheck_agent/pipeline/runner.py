from __future__ import annotations

import signal
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..orchestrator import Orchestrator
from ..output.scheduler import PostScheduler
from ..utils.logging import get_logger

logger = get_logger("fc.pipeline.runner")


def _local_now() -> datetime:
    return datetime.now().astimezone()


class Runner:
    """Drive ingestion cycles and posting slots on one timeline.

    Ingestion runs immediately on start and then every ``interval``; the
    publish queue is drained at each posting slot. Between events the loop
    sleeps on a stop event so shutdown is prompt.
    """

    def __init__(
        self,
        orchestrator: Orchestrator,
        scheduler: PostScheduler,
        *,
        interval: timedelta,
        clock: Callable[[], datetime] = _local_now,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        if interval <= timedelta(0):
            raise ValueError("interval must be positive")
        self.orchestrator = orchestrator
        self.scheduler = scheduler
        self.interval = interval
        self.clock = clock
        self.stop_event = stop_event or threading.Event()

    def stop(self) -> None:
        self.stop_event.set()

    def install_signal_handlers(self) -> None:
        def _shutdown_handler(signum, _frame):
            logger.info("Shutdown signal %s received, stopping runner...", signum)
            self.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            signal.signal(sig, _shutdown_handler)

    def tick(self, now: datetime, next_cycle: datetime, next_drain: datetime) -> tuple[datetime, datetime]:
        """Run whatever is due at ``now`` and return the next due times."""
        if now >= next_cycle:
            self.orchestrator.run_cycle()
            next_cycle = now + self.interval
        if now >= next_drain:
            result = self.scheduler.drain(now=now)
            logger.info("Posting slot %s: %s", next_drain.strftime("%H:%M"), result.outcome)
            next_drain = self.scheduler.next_slot(now)
        return next_cycle, next_drain

    def run(self) -> None:
        now = self.clock()
        next_cycle = now
        next_drain = self.scheduler.next_slot(now)
        logger.info(
            "Runner started: ingestion every %s, next posting slot %s",
            self.interval,
            next_drain.isoformat(),
        )
        while not self.stop_event.is_set():
            next_cycle, next_drain = self.tick(self.clock(), next_cycle, next_drain)
            wait_s = (min(next_cycle, next_drain) - self.clock()).total_seconds()
            if wait_s > 0:
                self.stop_event.wait(wait_s)
        logger.info("Runner stopped.")
