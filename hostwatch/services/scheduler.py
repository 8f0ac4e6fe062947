import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from hostwatch.errors import SampleError, SchedulerStateError, SinkError
from hostwatch.models.alerts import AlertEvent, Thresholds
from hostwatch.services.alert_sink import AlertSink, format_alert_line, record_with_retry
from hostwatch.services.evaluator import evaluate
from hostwatch.services.sampler import Sampler

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class SchedulerStats:
    """Counters for one scheduler lifetime."""

    ticks: int = 0
    sample_failures: int = 0
    events_recorded: int = 0
    events_dropped: int = 0


class Scheduler:
    """
    Runs the sample -> evaluate -> record cycle on a fixed interval.

    States: IDLE -> RUNNING -> STOPPED. STOPPED is terminal; build a new
    Scheduler to run again. The loop waits first and then ticks, so the
    interval is a lower bound between ticks, not an exact period. stop()
    only takes effect at the wait boundary: a tick that already started
    finishes sinking all of its events, and no sampling happens afterwards.

    Example:
        scheduler = Scheduler(sampler, sink, thresholds)
        scheduler.start(interval=300)
        ...
        scheduler.stop()
        scheduler.join()
    """

    def __init__(
        self,
        sampler: Sampler,
        sink: AlertSink,
        thresholds: Thresholds,
        sink_max_attempts: int = 3,
    ):
        self.sampler = sampler
        self.sink = sink
        self.thresholds = thresholds
        self.sink_max_attempts = sink_max_attempts
        self.stats = SchedulerStats()

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._state = SchedulerState.IDLE

    @property
    def state(self) -> SchedulerState:
        return self._state

    def run(self, interval: float) -> None:
        """Run the loop in the calling thread until stop() is called."""
        self._enter_running(interval)
        self._loop(interval)

    def start(self, interval: float) -> None:
        """Run the loop on a background thread."""
        self._enter_running(interval)
        self._thread = threading.Thread(
            target=self._loop,
            args=(interval,),
            name="hostwatch-scheduler",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """
        Request shutdown. Idempotent; a stopped scheduler cannot restart.

        Takes no lock, so it is safe to call from a signal handler.
        """
        self._stop_event.set()
        if self._state == SchedulerState.IDLE:
            self._state = SchedulerState.STOPPED

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for a background loop to exit. Returns True once it has."""
        if self._thread is None:
            return self._state == SchedulerState.STOPPED
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def tick(self) -> List[AlertEvent]:
        """
        Execute one sample -> evaluate -> record cycle.

        A failing sampler skips the tick; the loop carries on at the next
        interval. An event that still cannot be written
        after sink_max_attempts is logged as dropped and the remaining events
        of the tick are still attempted. Returns the evaluated events.
        """
        self.stats.ticks += 1
        try:
            snapshot = self.sampler.sample()
        except SampleError as exc:
            self.stats.sample_failures += 1
            logger.error("sampling failed, skipping tick: %s", exc)
            return []
        except Exception:
            self.stats.sample_failures += 1
            logger.exception("sampler raised unexpectedly, skipping tick")
            return []

        events = evaluate(snapshot, self.thresholds)
        for event in events:
            try:
                record_with_retry(self.sink, event, attempts=self.sink_max_attempts)
            except SinkError as exc:
                self.stats.events_dropped += 1
                logger.critical(
                    "ALERT DROPPED after %d attempts: %s (%s)",
                    self.sink_max_attempts,
                    format_alert_line(event),
                    exc,
                )
            else:
                self.stats.events_recorded += 1
        return events

    def _enter_running(self, interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        with self._lock:
            if self._state != SchedulerState.IDLE:
                raise SchedulerStateError(
                    f"cannot start scheduler in state {self._state.value}"
                )
            self._state = SchedulerState.RUNNING
        logger.info("scheduler started with interval=%ss", interval)

    def _loop(self, interval: float) -> None:
        try:
            while not self._stop_event.wait(interval):
                self.tick()
        finally:
            with self._lock:
                self._state = SchedulerState.STOPPED
            logger.info(
                "scheduler stopped after %d ticks (%d sample failures, "
                "%d alerts recorded, %d dropped)",
                self.stats.ticks,
                self.stats.sample_failures,
                self.stats.events_recorded,
                self.stats.events_dropped,
            )
