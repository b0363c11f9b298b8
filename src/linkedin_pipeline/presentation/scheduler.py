from __future__ import annotations

import logging
import re
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import schedule

from linkedin_pipeline.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_EVERY = re.compile(r"^every\s+(?:(\d+)\s+)?(minute|hour|day)s?$")
_DAILY_AT = re.compile(r"^every\s+day\s+at\s+(\d{1,2}):(\d{2})$")
_CRON_MINUTES = re.compile(r"^\*/(\d+)\s+\*\s+\*\s+\*\s+\*$")
_CRON_HOURS = re.compile(r"^(\d{1,2})\s+\*/(\d+)\s+\*\s+\*\s+\*$")


@dataclass(frozen=True)
class ScheduleSpec:
    unit: str  # minutes | hours | days
    interval: int
    at: str | None = None

    def register(self, scheduler: schedule.Scheduler, job: Callable[[], object]) -> schedule.Job:
        every = getattr(scheduler.every(self.interval), self.unit)
        if self.at:
            every = every.at(self.at)
        return every.do(job)

    def describe(self) -> str:
        text = f"every {self.interval} {self.unit}"
        return f"{text} at {self.at}" if self.at else text


def parse_schedule(expression: str) -> ScheduleSpec:
    """Parse the supported subset of interval and cron expressions.

    >>> parse_schedule("every 6 hours")
    ScheduleSpec(unit='hours', interval=6, at=None)
    >>> parse_schedule("15 */4 * * *")
    ScheduleSpec(unit='hours', interval=4, at=':15')
    """
    expr = " ".join((expression or "").strip().lower().split())
    if m := _DAILY_AT.match(expr):
        hour, minute = int(m.group(1)), int(m.group(2))
        if hour > 23 or minute > 59:
            raise ConfigurationError(f"Invalid time in schedule {expression!r}")
        return ScheduleSpec("days", 1, f"{hour:02d}:{minute:02d}")
    if m := _EVERY.match(expr):
        return _spec(f"{m.group(2)}s", int(m.group(1) or 1), expression)
    if m := _CRON_MINUTES.match(expr):
        return _spec("minutes", int(m.group(1)), expression)
    if m := _CRON_HOURS.match(expr):
        minute = int(m.group(1))
        if minute > 59:
            raise ConfigurationError(f"Invalid minute in schedule {expression!r}")
        return _spec("hours", int(m.group(2)), expression, at=f":{minute:02d}")
    raise ConfigurationError(f"Unsupported schedule expression {expression!r}")


def _spec(unit: str, interval: int, expression: str, at: str | None = None) -> ScheduleSpec:
    if interval < 1:
        raise ConfigurationError(f"Schedule interval must be positive: {expression!r}")
    return ScheduleSpec(unit, interval, at)


class RunGuard:
    """Non-blocking lock shared by every trigger so runs never overlap."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def try_run(self, fn: Callable[[], T]) -> T | None:
        """Run ``fn`` unless another run holds the guard; returns None when skipped."""
        if not self._lock.acquire(blocking=False):
            return None
        try:
            return fn()
        finally:
            self._lock.release()


class RunScheduler:
    def __init__(
        self,
        run: Callable[[], object],
        spec: ScheduleSpec,
        *,
        guard: RunGuard | None = None,
        scheduler: schedule.Scheduler | None = None,
        run_on_start: bool = True,
        poll_seconds: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.run = run
        self.spec = spec
        self.guard = guard or RunGuard()
        self.scheduler = scheduler or schedule.Scheduler()
        self.run_on_start = run_on_start
        self.poll_seconds = poll_seconds
        self._sleep = sleep
        self._stop = threading.Event()
        self.skipped = 0

    def tick(self) -> object | None:
        try:
            result = self.guard.try_run(self.run)
        except Exception:
            # the polling loop outlives any single run
            logger.exception("[Scheduler] run raised, keeping the schedule")
            return None
        if result is None and self.guard.busy:
            self.skipped += 1
            logger.warning("[Scheduler] previous run still in progress, skipping this tick")
        return result

    def stop(self) -> None:
        self._stop.set()

    def start(self, *, max_polls: int | None = None) -> None:
        job = self.spec.register(self.scheduler, self.tick)
        logger.info("[Scheduler] scheduled %s, next run at %s", self.spec.describe(), job.next_run)
        if self.run_on_start:
            self.tick()
        polls = 0
        while not self._stop.is_set():
            self.scheduler.run_pending()
            polls += 1
            if max_polls is not None and polls >= max_polls:
                break
            self._sleep(self.poll_seconds)
