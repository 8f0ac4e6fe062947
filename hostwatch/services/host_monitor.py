from hostwatch.config import get_settings
from hostwatch.models.host import Snapshot
from hostwatch.services.alert_sink import FileAlertSink
from hostwatch.services.sampler import PsutilSampler


def get_sampler() -> PsutilSampler:
    settings = get_settings()
    return PsutilSampler(
        host_id=settings.host_id,
        mount_point=settings.mount_point,
        cpu_window=settings.cpu_sample_window,
    )


def get_alert_sink() -> FileAlertSink:
    settings = get_settings()
    return FileAlertSink(settings.alert_log_path, lock_timeout=settings.sink_lock_timeout)


def get_host_status() -> Snapshot:
    """
    Take a fresh Snapshot of the local host with the configured settings.

    Raises SampleError if any metric source is unavailable.
    """
    return get_sampler().sample()
