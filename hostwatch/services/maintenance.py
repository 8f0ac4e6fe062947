import logging
import subprocess
import threading
from typing import Dict, Iterable, List, Optional

from hostwatch.errors import ConfigError
from hostwatch.models.maintenance import ActionResult, MaintenanceAction

logger = logging.getLogger(__name__)

_DAY = 24 * 60 * 60

# Routine jobs from the host maintenance runbook. None of them is enabled
# unless listed in Settings.maintenance_actions.
CATALOG: Dict[str, MaintenanceAction] = {
    action.name: action
    for action in (
        MaintenanceAction(
            name="truncate-container-logs",
            command=[
                "find", "/var/lib/docker/containers",
                "-name", "*-json.log",
                "-exec", "truncate", "-s", "0", "{}", "+",
            ],
            interval_seconds=_DAY,
        ),
        MaintenanceAction(
            name="docker-prune",
            command=["docker", "system", "prune", "-af"],
            interval_seconds=7 * _DAY,
        ),
        MaintenanceAction(
            name="apply-sysctl",
            command=["sysctl", "--system"],
            interval_seconds=_DAY,
        ),
        MaintenanceAction(
            name="package-update",
            command=["apt-get", "update", "-q"],
            interval_seconds=_DAY,
            timeout_seconds=1800,
        ),
    )
}


def resolve_actions(names: Iterable[str]) -> List[MaintenanceAction]:
    """Look up catalog entries by name. Unknown names raise ConfigError."""
    actions: List[MaintenanceAction] = []
    for name in names:
        try:
            actions.append(CATALOG[name])
        except KeyError:
            raise ConfigError(
                f"unknown maintenance action {name!r}; "
                f"known actions: {', '.join(sorted(CATALOG))}"
            ) from None
    return actions


def run_action(action: MaintenanceAction) -> ActionResult:
    """
    Run a maintenance command once and report the outcome.

    Never raises: a missing binary, a timeout or a non-zero exit status are
    returned as a failed ActionResult and logged, so that maintenance can
    never disturb the alerting loop.
    """
    try:
        result = subprocess.run(
            action.command,
            check=False,
            capture_output=True,
            text=True,
            timeout=action.timeout_seconds,
        )
    except FileNotFoundError:
        error = f"{action.command[0]} binary not found on host system"
        logger.warning("maintenance action %s failed: %s", action.name, error)
        return ActionResult(name=action.name, ok=False, error=error)
    except subprocess.TimeoutExpired:
        error = f"timed out after {action.timeout_seconds}s"
        logger.warning("maintenance action %s failed: %s", action.name, error)
        return ActionResult(name=action.name, ok=False, error=error)
    except OSError as exc:
        logger.warning("maintenance action %s failed: %s", action.name, exc)
        return ActionResult(name=action.name, ok=False, error=str(exc))

    if result.returncode != 0:
        error = f"exited with return code {result.returncode}: {result.stderr.strip()}"
        logger.warning("maintenance action %s failed: %s", action.name, error)
        return ActionResult(
            name=action.name,
            ok=False,
            returncode=result.returncode,
            error=error,
        )

    logger.info("maintenance action %s completed", action.name)
    return ActionResult(name=action.name, ok=True, returncode=0)


class MaintenanceRunner:
    """Runs each action on its own timer thread until stop() is called."""

    def __init__(self, actions: Iterable[MaintenanceAction]):
        self.actions = list(actions)
        self._stop_event = threading.Event()
        self._threads: List[threading.Thread] = []

    def start(self) -> None:
        for action in self.actions:
            thread = threading.Thread(
                target=self._loop,
                args=(action,),
                name=f"hostwatch-maintenance-{action.name}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

    def stop(self) -> None:
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        for thread in self._threads:
            thread.join(timeout)

    def _loop(self, action: MaintenanceAction) -> None:
        while not self._stop_event.wait(action.interval_seconds):
            run_action(action)
