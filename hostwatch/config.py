import logging
import os
import socket
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from hostwatch.errors import ConfigError
from hostwatch.models.alerts import Thresholds


class Settings(BaseModel):
    # Identity / sampling
    host_id: str = Field(
        default_factory=socket.gethostname,
        min_length=1,
        description="Host identifier written into every alert line",
    )
    mount_point: str = Field(
        default="/",
        description="Mount point whose filesystem usage is sampled",
    )
    interval_seconds: int = Field(
        default=300,
        gt=0,
        description="Seconds between two ticks (matches a 5-minute cron cadence)",
    )
    cpu_sample_window: float = Field(
        default=1.0,
        gt=0,
        description="Window in seconds over which CPU idle time is measured",
    )

    # Thresholds, inclusive
    disk_limit: int = Field(default=80, ge=0, le=100)
    mem_limit: int = Field(default=80, ge=0, le=100)
    cpu_limit: int = Field(default=90, ge=0, le=100)

    # Alert sink
    alert_log_path: str = Field(
        default="/var/log/hostwatch/alerts.log",
        description="Append-only alert log file",
    )
    sink_max_attempts: int = Field(
        default=3,
        ge=1,
        description="How often a single alert line is attempted before it is reported as dropped",
    )
    sink_lock_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for the alert log lock before a write fails",
    )

    # External maintenance actions, by catalog name
    maintenance_actions: Optional[List[str]] = Field(
        default=None,
        description="Names of maintenance actions to run on their own timers, e.g. ['docker-prune']",
    )

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def thresholds(self) -> Thresholds:
        return Thresholds(
            disk_limit=self.disk_limit,
            mem_limit=self.mem_limit,
            cpu_limit=self.cpu_limit,
        )

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """
        Build Settings from environment variables.

        Unset variables fall back to the field defaults. Keyword overrides
        (e.g. from command line flags) win over the environment; None values
        are ignored. Raises ConfigError for anything pydantic rejects.
        """
        env_map = {
            "host_id": "HOST_ID",
            "mount_point": "MOUNT_POINT",
            "interval_seconds": "INTERVAL_SECONDS",
            "cpu_sample_window": "CPU_SAMPLE_WINDOW",
            "disk_limit": "DISK_LIMIT",
            "mem_limit": "MEM_LIMIT",
            "cpu_limit": "CPU_LIMIT",
            "alert_log_path": "ALERT_LOG_PATH",
            "sink_max_attempts": "SINK_MAX_ATTEMPTS",
            "sink_lock_timeout": "SINK_LOCK_TIMEOUT",
            "log_level": "LOG_LEVEL",
        }
        values = {}
        for field_name, env_name in env_map.items():
            raw = os.getenv(env_name)
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()

        raw_actions = os.getenv("MAINTENANCE_ACTIONS", "")
        actions = [item.strip() for item in raw_actions.split(",") if item.strip()]
        if actions:
            values["maintenance_actions"] = actions

        values.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigError(f"invalid configuration: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
