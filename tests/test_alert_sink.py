from datetime import datetime, timezone

import portalocker
import pytest

from hostwatch.errors import SinkError
from hostwatch.models.alerts import AlertEvent, Metric
from hostwatch.services.alert_sink import (
    AlertSink,
    FileAlertSink,
    format_alert_line,
    record_with_retry,
)

NOW = datetime(2026, 10, 18, 6, 25, tzinfo=timezone.utc)


def make_event(metric: Metric = Metric.DISK, value: float = 85.0, limit: int = 80) -> AlertEvent:
    return AlertEvent(
        timestamp=NOW,
        host_id="web01",
        metric=metric,
        observed_value=value,
        limit=limit,
    )


def test_format_alert_line():
    assert format_alert_line(make_event()) == (
        "2026-10-18T06:25:00+00:00 | web01 | Disk usage: 85%"
    )
    assert format_alert_line(make_event(Metric.MEM, 72.5)).endswith("| Memory usage: 72.5%")
    assert format_alert_line(make_event(Metric.CPU, 95)).endswith("| CPU usage: 95%")


def test_records_are_appended_in_call_order(tmp_path):
    path = tmp_path / "log" / "alerts.log"
    sink = FileAlertSink(str(path))
    events = [
        make_event(Metric.DISK, 81),
        make_event(Metric.MEM, 82),
        make_event(Metric.CPU, 93),
        make_event(Metric.DISK, 84),
    ]

    for event in events:
        sink.record(event)

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines == [format_alert_line(e) for e in events]


def test_existing_log_is_appended_not_truncated(tmp_path):
    path = tmp_path / "alerts.log"
    path.write_text("previous line\n", encoding="utf-8")

    FileAlertSink(str(path)).record(make_event())

    assert path.read_text(encoding="utf-8").splitlines()[0] == "previous line"


def test_unwritable_target_raises_sink_error(tmp_path):
    # A directory cannot be opened for appending.
    sink = FileAlertSink(str(tmp_path))
    with pytest.raises(SinkError):
        sink.record(make_event())


def test_tail_returns_last_lines(tmp_path):
    path = tmp_path / "alerts.log"
    sink = FileAlertSink(str(path))
    assert sink.tail(5) == []

    for value in range(81, 91):
        sink.record(make_event(value=value))

    tail = sink.tail(3)
    assert len(tail) == 3
    assert tail[-1].endswith("Disk usage: 90%")
    assert tail[0].endswith("Disk usage: 88%")


class FlakySink(AlertSink):
    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0
        self.recorded = []

    def record(self, event):
        self.calls += 1
        if self.calls <= self.failures:
            raise SinkError("disk full")
        self.recorded.append(event)


def test_retry_recovers_from_transient_failures():
    sink = FlakySink(failures=2)
    event = make_event()

    record_with_retry(sink, event, attempts=3)

    assert sink.calls == 3
    assert sink.recorded == [event]


def test_retry_gives_up_after_bounded_attempts():
    sink = FlakySink(failures=10)

    with pytest.raises(SinkError, match="disk full"):
        record_with_retry(sink, make_event(), attempts=3)

    assert sink.calls == 3
    assert sink.recorded == []


def test_held_lock_fails_write_instead_of_blocking(tmp_path):
    path = tmp_path / "alerts.log"
    sink = FileAlertSink(str(path), lock_timeout=0.2)

    with portalocker.Lock(str(path), mode="a", timeout=1):
        with pytest.raises(SinkError, match="still locked"):
            sink.record(make_event())

    assert path.read_text(encoding="utf-8") == ""


def test_retry_gives_up_while_another_writer_holds_the_lock(tmp_path):
    path = tmp_path / "alerts.log"
    sink = FileAlertSink(str(path), lock_timeout=0.1)

    with portalocker.Lock(str(path), mode="a", timeout=1):
        with pytest.raises(SinkError):
            record_with_retry(sink, make_event(), attempts=3)

    # Once the other writer is gone the same event goes through.
    record_with_retry(sink, make_event(), attempts=3)
    assert path.read_text(encoding="utf-8").splitlines() == [format_alert_line(make_event())]


def test_tail_waits_for_exclusive_writer(tmp_path):
    path = tmp_path / "alerts.log"
    sink = FileAlertSink(str(path), lock_timeout=0.1)
    sink.record(make_event())

    with portalocker.Lock(str(path), mode="a", timeout=1):
        with pytest.raises(SinkError, match="still locked"):
            sink.tail(5)

    assert sink.tail(5) == [format_alert_line(make_event())]
