import argparse
import logging
import signal
import sys
from typing import List, Optional

from hostwatch.config import Settings
from hostwatch.errors import ConfigError, SampleError
from hostwatch.services.alert_sink import FileAlertSink
from hostwatch.services.maintenance import MaintenanceRunner, resolve_actions
from hostwatch.services.sampler import PsutilSampler, check_mount_point
from hostwatch.services.scheduler import Scheduler

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STARTUP_FAILURE = 1
EXIT_CONFIG_ERROR = 2

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hostwatch",
        description="Sample disk, memory and CPU usage and log threshold breaches.",
    )
    parser.add_argument("--host-id", help="Host identifier in alert lines (env HOST_ID)")
    parser.add_argument("--mount", dest="mount_point", help="Mount point to sample (env MOUNT_POINT)")
    parser.add_argument("--interval", dest="interval_seconds", type=int, help="Seconds between ticks (env INTERVAL_SECONDS)")
    parser.add_argument("--alert-log", dest="alert_log_path", help="Alert log file (env ALERT_LOG_PATH)")
    parser.add_argument("--log-level", dest="log_level", help="Logging level (env LOG_LEVEL)")
    parser.add_argument("--once", action="store_true", help="Run a single tick and exit")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Process entry point.

    Returns 0 after a clean shutdown (SIGINT/SIGTERM or --once), 2 for an
    invalid configuration and 1 if the mount point cannot be sampled.
    """
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env(
            host_id=args.host_id,
            mount_point=args.mount_point,
            interval_seconds=args.interval_seconds,
            alert_log_path=args.alert_log_path,
            log_level=args.log_level,
        )
        actions = resolve_actions(settings.maintenance_actions or [])
    except ConfigError as exc:
        configure_logging()
        logger.error("refusing to start: %s", exc)
        return EXIT_CONFIG_ERROR

    configure_logging(settings.log_level)

    try:
        check_mount_point(settings.mount_point)
    except SampleError as exc:
        logger.error("refusing to start: %s", exc)
        return EXIT_STARTUP_FAILURE

    scheduler = Scheduler(
        sampler=PsutilSampler(
            host_id=settings.host_id,
            mount_point=settings.mount_point,
            cpu_window=settings.cpu_sample_window,
        ),
        sink=FileAlertSink(settings.alert_log_path, lock_timeout=settings.sink_lock_timeout),
        thresholds=settings.thresholds,
        sink_max_attempts=settings.sink_max_attempts,
    )

    if args.once:
        scheduler.tick()
        return EXIT_OK

    runner = MaintenanceRunner(actions)

    def _shutdown(signum, frame):
        scheduler.stop()
        runner.stop()
        logger.info("received %s, shutting down", signal.Signals(signum).name)

    previous_handlers = {
        signum: signal.signal(signum, _shutdown)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }

    logger.info(
        "watching %s on %s (disk>=%d%% mem>=%d%% cpu>=%d%%), alerts -> %s",
        settings.host_id,
        settings.mount_point,
        settings.disk_limit,
        settings.mem_limit,
        settings.cpu_limit,
        settings.alert_log_path,
    )
    runner.start()
    try:
        scheduler.run(settings.interval_seconds)
    finally:
        runner.stop()
        runner.join(timeout=5.0)
        for signum, handler in previous_handlers.items():
            if handler is not None:
                signal.signal(signum, handler)
    return EXIT_OK
