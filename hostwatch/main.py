from fastapi import FastAPI

from .api import alerts, health, host

app = FastAPI(title="hostwatch")

app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(host.router, prefix="/host", tags=["host"])
app.include_router(alerts.router, prefix="/alerts", tags=["alerts"])
