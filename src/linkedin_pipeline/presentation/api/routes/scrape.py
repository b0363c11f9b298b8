import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scrape"])


@router.post("/scrape-on-demand")
def scrape_on_demand(request: Request) -> dict[str, Any]:  # type: ignore[misc]
    """Run one scrape synchronously. 409 while another run holds the guard."""
    logger.info("[API] /scrape-on-demand requested")
    state = request.app.state
    report = state.guard.try_run(state.run)
    if report is None:
        raise HTTPException(status_code=409, detail="A scrape run is already in progress")
    return report.to_dict()
