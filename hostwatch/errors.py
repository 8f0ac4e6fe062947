class HostwatchError(RuntimeError):
    """Base class for all hostwatch errors."""


class SampleError(HostwatchError):
    """A host metric source could not be read. Transient, retried next tick."""


class SinkError(HostwatchError):
    """An alert event could not be written to the alert log."""


class ConfigError(HostwatchError):
    """Invalid configuration at startup. The process must not start."""


class SchedulerStateError(HostwatchError):
    """Illegal scheduler state transition, e.g. restarting a stopped scheduler."""
