from typing import List

from hostwatch.models.alerts import AlertEvent, Metric, Thresholds
from hostwatch.models.host import Snapshot


def evaluate(snapshot: Snapshot, thresholds: Thresholds) -> List[AlertEvent]:
    """
    Compare a Snapshot against Thresholds and return the breaches.

    Pure function: no I/O, no state. Limits are inclusive (a value equal to
    its limit alerts). Events are always ordered disk, memory, CPU.
    """
    checks = (
        (Metric.DISK, snapshot.disk_used_pct, thresholds.disk_limit),
        (Metric.MEM, snapshot.mem_used_pct, thresholds.mem_limit),
        (Metric.CPU, snapshot.cpu_busy_pct, thresholds.cpu_limit),
    )

    events: List[AlertEvent] = []
    for metric, observed, limit in checks:
        if observed >= limit:
            events.append(
                AlertEvent(
                    timestamp=snapshot.timestamp,
                    host_id=snapshot.host_id,
                    metric=metric,
                    observed_value=observed,
                    limit=limit,
                )
            )
    return events
