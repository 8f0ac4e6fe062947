from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Metric(str, Enum):
    """Metrics checked on every tick, in evaluation order."""

    DISK = "disk"
    MEM = "mem"
    CPU = "cpu"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    Metric.DISK: "Disk",
    Metric.MEM: "Memory",
    Metric.CPU: "CPU",
}


class Thresholds(BaseModel):
    """Inclusive alert limits in percent, fixed for the process lifetime."""

    model_config = ConfigDict(frozen=True)

    disk_limit: int = Field(80, ge=0, le=100, description="Disk usage limit in percent")
    mem_limit: int = Field(80, ge=0, le=100, description="Memory usage limit in percent")
    cpu_limit: int = Field(90, ge=0, le=100, description="CPU busy limit in percent")


class AlertEvent(BaseModel):
    """A single threshold breach observed at one tick."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(..., description="Timestamp of the snapshot that breached")
    host_id: str
    metric: Metric
    observed_value: float = Field(..., ge=0, le=100)
    limit: int = Field(..., ge=0, le=100)
