import logging
import math
import os
from datetime import datetime, timezone

import psutil
from pydantic import ValidationError

from hostwatch.errors import SampleError
from hostwatch.models.host import Snapshot

logger = logging.getLogger(__name__)


class Sampler:
    """Interface for anything that can produce a Snapshot of the local host."""

    def sample(self) -> Snapshot:
        raise NotImplementedError


class PsutilSampler(Sampler):
    """
    Sampler backed by psutil, which hides the per-OS measurement mechanism.

    All three metrics are read for every call. If any of them fails, the whole
    call raises SampleError; a partially populated Snapshot is never returned.
    """

    def __init__(self, host_id: str, mount_point: str = "/", cpu_window: float = 1.0):
        self.host_id = host_id
        self.mount_point = mount_point
        self.cpu_window = cpu_window

    def sample(self) -> Snapshot:
        timestamp = datetime.now(timezone.utc)
        disk = self._disk_used_pct()
        mem = self._mem_used_pct()
        cpu = self._cpu_busy_pct()
        logger.debug(
            "sampled %s: disk=%s mem=%s cpu=%s", self.host_id, disk, mem, cpu
        )
        try:
            return Snapshot(
                timestamp=timestamp,
                host_id=self.host_id,
                disk_used_pct=disk,
                mem_used_pct=mem,
                cpu_busy_pct=cpu,
            )
        except ValidationError as exc:
            raise SampleError(f"implausible metrics for {self.host_id}: {exc}") from exc

    def _disk_used_pct(self) -> float:
        try:
            usage = psutil.disk_usage(self.mount_point)
        except (OSError, psutil.Error) as exc:
            raise SampleError(
                f"cannot stat filesystem at {self.mount_point}: {exc}"
            ) from exc
        if usage.total <= 0:
            raise SampleError(f"filesystem at {self.mount_point} reports zero size")
        return round(min(max(usage.used / usage.total * 100, 0.0), 100.0), 1)

    def _mem_used_pct(self) -> float:
        try:
            mem = psutil.virtual_memory()
        except (OSError, psutil.Error) as exc:
            raise SampleError(f"cannot read memory statistics: {exc}") from exc
        if mem.total <= 0:
            raise SampleError("memory statistics report zero total memory")
        # Truncated, not rounded, like `free | awk` integer arithmetic.
        used = math.floor((mem.total - mem.available) / mem.total * 100)
        return float(min(max(used, 0), 100))

    def _cpu_busy_pct(self) -> float:
        try:
            times = psutil.cpu_times_percent(interval=self.cpu_window)
        except (OSError, psutil.Error) as exc:
            raise SampleError(f"cannot read CPU times: {exc}") from exc
        busy = 100.0 - times.idle
        return round(min(max(busy, 0.0), 100.0), 1)


def check_mount_point(path: str) -> None:
    """
    Fail fast if the configured mount point cannot be sampled.

    Raises SampleError when the path does not exist or cannot be stat'ed.
    """
    if not os.path.exists(path):
        raise SampleError(f"mount point {path} does not exist")
    try:
        psutil.disk_usage(path)
    except (OSError, psutil.Error) as exc:
        raise SampleError(f"cannot stat filesystem at {path}: {exc}") from exc
