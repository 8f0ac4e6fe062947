import logging
import os
import time
from collections import deque
from typing import List

import portalocker

from hostwatch.errors import SinkError
from hostwatch.models.alerts import AlertEvent

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 10.0

_SHARED_LOCK = portalocker.LockFlags.SHARED | portalocker.LockFlags.NON_BLOCKING


def format_alert_line(event: AlertEvent) -> str:
    """
    Render an AlertEvent as a single alert log line (without newline).

    Example: "2026-10-18T06:25:00+00:00 | web01 | Disk usage: 85%"
    """
    timestamp = event.timestamp.isoformat(timespec="seconds")
    return (
        f"{timestamp} | {event.host_id} | "
        f"{event.metric.label} usage: {event.observed_value:g}%"
    )


class AlertSink:
    """Durable, append-only destination for alert events."""

    def record(self, event: AlertEvent) -> None:
        raise NotImplementedError


class FileAlertSink(AlertSink):
    """
    Appends one line per event to a text file.

    Each write holds an exclusive lock on the file and is fsync'ed before
    record() returns, so several writers on the same log never interleave
    partial lines. A lock that cannot be taken within `lock_timeout` seconds
    fails the write with SinkError. Rotation and truncation are left to
    external tools.
    """

    def __init__(self, path: str, lock_timeout: float = DEFAULT_LOCK_TIMEOUT):
        self.path = path
        self.lock_timeout = lock_timeout

    def record(self, event: AlertEvent) -> None:
        line = format_alert_line(event) + "\n"
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with portalocker.Lock(
                self.path, mode="a", encoding="utf-8", timeout=self.lock_timeout
            ) as handle:
                handle.write(line)
                handle.flush()
                os.fsync(handle.fileno())
        except portalocker.LockException as exc:
            raise SinkError(
                f"alert log {self.path} still locked after {self.lock_timeout}s"
            ) from exc
        except OSError as exc:
            raise SinkError(f"cannot append to alert log {self.path}: {exc}") from exc

    def tail(self, limit: int = 20) -> List[str]:
        """Return the last `limit` lines of the alert log, oldest first."""
        try:
            with portalocker.Lock(
                self.path,
                mode="r",
                encoding="utf-8",
                timeout=self.lock_timeout,
                flags=_SHARED_LOCK,
            ) as handle:
                lines = deque((line.rstrip("\n") for line in handle), maxlen=limit)
        except FileNotFoundError:
            return []
        except portalocker.LockException as exc:
            raise SinkError(
                f"alert log {self.path} still locked after {self.lock_timeout}s"
            ) from exc
        except OSError as exc:
            raise SinkError(f"cannot read alert log {self.path}: {exc}") from exc
        return list(lines)


def record_with_retry(
    sink: AlertSink,
    event: AlertEvent,
    attempts: int = 3,
    delay_seconds: float = 0.0,
) -> None:
    """
    Record one event, retrying the same event on SinkError.

    After `attempts` failed writes the last SinkError is re-raised; the caller
    decides how loudly to report the dropped alert.
    """
    last_error = None
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            sink.record(event)
            return
        except SinkError as exc:
            last_error = exc
            logger.warning(
                "alert write failed (attempt %d/%d): %s", attempt, attempts, exc
            )
            if attempt < attempts and delay_seconds > 0:
                time.sleep(delay_seconds)
    raise last_error
