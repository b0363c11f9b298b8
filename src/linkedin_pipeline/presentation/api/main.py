from __future__ import annotations

import time
from collections.abc import Callable

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from starlette.responses import Response

from linkedin_pipeline.domain.entities.run_report import RunReport
from linkedin_pipeline.presentation.api.routes.health import router as health_router
from linkedin_pipeline.presentation.api.routes.scrape import router as scrape_router
from linkedin_pipeline.presentation.scheduler import RunGuard


def create_app(
    run: Callable[[], RunReport],
    *,
    guard: RunGuard | None = None,
    registry: CollectorRegistry | None = None,
) -> FastAPI:
    app = FastAPI(title="LinkedIn Pipeline", version="0.1.0")
    app.state.run = run
    app.state.guard = guard or RunGuard()
    app.state.registry = registry or CollectorRegistry()
    app.state.started_monotonic = time.monotonic()
    app.include_router(health_router)
    app.include_router(scrape_router)

    @app.get("/metrics")
    def metrics() -> Response:  # type: ignore[misc]
        data = generate_latest(app.state.registry)
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    return app
