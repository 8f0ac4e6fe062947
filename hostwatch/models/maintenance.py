from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MaintenanceAction(BaseModel):
    """An opaque one-shot host maintenance command run on its own timer."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Catalog name, e.g. docker-prune")
    command: List[str] = Field(..., min_length=1, description="argv, executed without a shell")
    interval_seconds: int = Field(..., gt=0, description="Seconds between two runs")
    timeout_seconds: int = Field(600, gt=0)


class ActionResult(BaseModel):
    """Outcome of one maintenance action run."""

    name: str
    ok: bool
    returncode: Optional[int] = Field(
        None,
        description="Exit status of the command, None if it never ran to completion",
    )
    error: Optional[str] = Field(
        None,
        description="Human readable reason if the action failed",
    )
