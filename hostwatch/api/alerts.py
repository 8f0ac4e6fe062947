from typing import List

from fastapi import APIRouter, HTTPException, Query

from hostwatch.config import get_settings
from hostwatch.errors import SampleError, SinkError
from hostwatch.models.alerts import AlertEvent, Thresholds
from hostwatch.services import host_monitor
from hostwatch.services.evaluator import evaluate

router = APIRouter()


@router.get("/thresholds", response_model=Thresholds, summary="Configured limits")
def thresholds() -> Thresholds:
    return get_settings().thresholds


@router.get("/check", response_model=List[AlertEvent], summary="Dry-run evaluation")
def check() -> List[AlertEvent]:
    """
    Sample the host now and return the alerts it would raise.

    Nothing is written to the alert log.
    """
    try:
        snapshot = host_monitor.get_host_status()
    except SampleError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return evaluate(snapshot, get_settings().thresholds)


@router.get("/recent", response_model=List[str], summary="Latest alert log lines")
def recent(limit: int = Query(20, ge=1, le=1000)) -> List[str]:
    try:
        return host_monitor.get_alert_sink().tail(limit)
    except SinkError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
