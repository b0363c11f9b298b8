import time
from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request) -> dict[str, Any]:  # type: ignore[misc]
    started = request.app.state.started_monotonic
    return {"ok": True, "uptime": round(time.monotonic() - started, 3)}
