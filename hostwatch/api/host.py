from fastapi import APIRouter, HTTPException

from hostwatch.errors import SampleError
from hostwatch.models.host import Snapshot
from hostwatch.services import host_monitor

router = APIRouter()


@router.get("/status", response_model=Snapshot, summary="Host status")
def host_status() -> Snapshot:
    """
    Return a fresh Snapshot of disk, memory and CPU usage.

    Sampling blocks for the configured CPU window. If a metric source is
    unavailable, a HTTP 503 Service Unavailable is returned.
    """
    try:
        return host_monitor.get_host_status()
    except SampleError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
