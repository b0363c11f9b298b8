from __future__ import annotations

import json
import logging
import threading

import typer

from linkedin_pipeline.application.ports.clock_port import SystemClock
from linkedin_pipeline.application.use_cases.login_strategies import ManualLoginStrategy, check_login
from linkedin_pipeline.config import Settings
from linkedin_pipeline.domain.entities.cookie import describe_cookie_status
from linkedin_pipeline.domain.errors import ConfigurationError
from linkedin_pipeline.domain.services.login_heuristic import LoginHeuristic, LoginVerdict
from linkedin_pipeline.logging_setup import configure_logging
from linkedin_pipeline.presentation.scheduler import RunGuard, RunScheduler, parse_schedule
from linkedin_pipeline.presentation.wiring import (
    Pipeline,
    build_launcher,
    build_pipeline,
    build_proxy_gateway,
    build_session_store,
)

logger = logging.getLogger(__name__)

app = typer.Typer(help="LinkedIn feed pipeline CLI")

EXIT_RUN_FAILED = 1
EXIT_CONFIG = 2


def _settings() -> Settings:
    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(EXIT_CONFIG)
    configure_logging(settings.log_level)
    return settings


def _prepare(settings: Settings) -> Pipeline:
    """Build and validate everything a run needs, or exit with the config code."""
    try:
        pipeline = build_pipeline(settings)
        settings.validate_startup(has_stored_session=bool(pipeline.session_store.load()))
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(EXIT_CONFIG)
    return pipeline


@app.command("run-once")
def run_once() -> None:
    """Run a single scrape and exit (0 ok, 1 failed run, 2 configuration error)."""
    pipeline = _prepare(_settings())
    report = pipeline.run_scrape.execute()
    typer.echo(json.dumps(report.to_dict(), indent=2))
    if not report.success:
        raise typer.Exit(EXIT_RUN_FAILED)


@app.command()
def run() -> None:
    """Run on SCRAPE_SCHEDULE until interrupted."""
    settings = _settings()
    try:
        spec = parse_schedule(settings.scrape_schedule)
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(EXIT_CONFIG)
    pipeline = _prepare(settings)
    scheduler = RunScheduler(pipeline.run_scrape.execute, spec, run_on_start=settings.run_on_start)
    try:
        scheduler.start()
    except KeyboardInterrupt:
        logger.info("[CLI] interrupted, stopping scheduler")


@app.command("cookie-status")
def cookie_status() -> None:
    settings = _settings()
    cookies = build_session_store(settings).load()
    typer.echo(describe_cookie_status(cookies, SystemClock().now()))


@app.command("capture-session")
def capture_session(
    timeout: float | None = typer.Option(None, "--timeout", "-t", help="Seconds to wait for the login"),
) -> None:
    """Open a visible browser, wait for a manual login and store the cookies."""
    settings = _settings()
    try:
        proxy = build_proxy_gateway(settings)
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(EXIT_CONFIG)
    if not proxy.verify_egress():
        typer.echo("Proxy egress verification failed; not opening a login page", err=True)
        raise typer.Exit(EXIT_RUN_FAILED)

    store = build_session_store(settings)
    heuristic = LoginHeuristic(min_score=settings.login_min_signals)
    wait = timeout or settings.manual_login_timeout
    strategy = ManualLoginStrategy(
        build_launcher(settings, proxy),
        timeout_seconds=wait,
        poll_interval=settings.manual_login_poll_interval,
    )
    typer.echo(f"Log in in the browser window; waiting up to {wait:.0f}s")
    cookies = strategy.capture(
        lambda page: check_login(heuristic, page) is LoginVerdict.CONFIRMED,
        timeout_ms=int(settings.page_timeout * 1000),
    )
    if cookies is None:
        typer.echo("Timed out waiting for login", err=True)
        raise typer.Exit(EXIT_RUN_FAILED)
    store.save(cookies)
    typer.echo(f"Saved {len(cookies)} cookies to {store.path}")
    typer.echo(describe_cookie_status(cookies, SystemClock().now()))


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host"),
    port: int | None = typer.Option(None, "--port", "-p"),
    with_schedule: bool = typer.Option(False, "--schedule/--no-schedule", help="Also run on SCRAPE_SCHEDULE"),
) -> None:
    """Serve /health, /metrics and /scrape-on-demand."""
    import uvicorn

    from linkedin_pipeline.presentation.api.main import create_app

    settings = _settings()
    pipeline = _prepare(settings)
    guard = RunGuard()
    if with_schedule:
        try:
            spec = parse_schedule(settings.scrape_schedule)
        except ConfigurationError as exc:
            typer.echo(f"Configuration error: {exc}", err=True)
            raise typer.Exit(EXIT_CONFIG)
        scheduler = RunScheduler(
            pipeline.run_scrape.execute, spec, guard=guard, run_on_start=settings.run_on_start
        )
        threading.Thread(target=scheduler.start, name="scheduler", daemon=True).start()

    api = create_app(pipeline.run_scrape.execute, guard=guard, registry=pipeline.metrics.registry)
    uvicorn.run(api, host=host, port=port or settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    app()
