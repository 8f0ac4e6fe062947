from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Snapshot(BaseModel):
    """Point-in-time resource usage of one host."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(..., description="When the sample was taken (UTC)")
    host_id: str = Field(..., description="Configured host identifier")
    disk_used_pct: float = Field(
        ...,
        ge=0,
        le=100,
        description="Filesystem usage of the configured mount point in percent",
    )
    mem_used_pct: float = Field(
        ...,
        ge=0,
        le=100,
        description="RAM usage in percent, (total - available) / total",
    )
    cpu_busy_pct: float = Field(
        ...,
        ge=0,
        le=100,
        description="CPU utilisation in percent over a short sampling window",
    )
