from datetime import datetime, timezone

import pytest

from hostwatch.models.alerts import Metric, Thresholds
from hostwatch.models.host import Snapshot
from hostwatch.services.evaluator import evaluate

NOW = datetime(2026, 10, 18, 6, 25, tzinfo=timezone.utc)


def make_snapshot(disk: float, mem: float, cpu: float) -> Snapshot:
    return Snapshot(
        timestamp=NOW,
        host_id="web01",
        disk_used_pct=disk,
        mem_used_pct=mem,
        cpu_busy_pct=cpu,
    )


def test_disk_and_cpu_breach():
    events = evaluate(
        make_snapshot(disk=85, mem=50, cpu=95),
        Thresholds(disk_limit=80, mem_limit=80, cpu_limit=90),
    )

    assert [(e.metric, e.observed_value, e.limit) for e in events] == [
        (Metric.DISK, 85, 80),
        (Metric.CPU, 95, 90),
    ]
    assert all(e.timestamp == NOW and e.host_id == "web01" for e in events)


def test_quiet_host_with_default_thresholds_yields_nothing():
    assert evaluate(make_snapshot(disk=10, mem=10, cpu=10), Thresholds()) == []


@pytest.mark.parametrize(
    "snapshot,metric",
    [
        (make_snapshot(disk=80, mem=0, cpu=0), Metric.DISK),
        (make_snapshot(disk=0, mem=80, cpu=0), Metric.MEM),
        (make_snapshot(disk=0, mem=0, cpu=90), Metric.CPU),
    ],
)
def test_value_equal_to_limit_alerts(snapshot, metric):
    events = evaluate(snapshot, Thresholds())
    assert [e.metric for e in events] == [metric]


def test_just_below_limit_does_not_alert():
    assert evaluate(make_snapshot(disk=79.9, mem=79.9, cpu=89.9), Thresholds()) == []


def test_order_is_disk_mem_cpu():
    events = evaluate(make_snapshot(disk=100, mem=100, cpu=100), Thresholds())
    assert [e.metric for e in events] == [Metric.DISK, Metric.MEM, Metric.CPU]


def test_zero_limit_always_alerts():
    events = evaluate(
        make_snapshot(disk=0, mem=0, cpu=0),
        Thresholds(disk_limit=0, mem_limit=0, cpu_limit=0),
    )
    assert len(events) == 3


def test_evaluate_is_repeatable():
    snapshot = make_snapshot(disk=90, mem=85, cpu=20)
    thresholds = Thresholds()
    assert evaluate(snapshot, thresholds) == evaluate(snapshot, thresholds)
