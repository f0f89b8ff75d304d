"""Wall-clock job runner.

Jobs are registered with a trigger that knows its next fire time; run_due()
executes whatever is due at the moment it is given, so the jobs themselves can
be exercised without touching the real clock.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Callable

from utils.date_helpers import add_months, days_in_month, sunday_weekday

logger = logging.getLogger(__name__)

MAX_MONTH_SCAN = 48


@dataclass(frozen=True)
class DailyTrigger:
    hour: int
    minute: int = 0

    @property
    def at(self) -> time:
        return time(self.hour, self.minute)

    def next_after(self, moment: datetime) -> datetime:
        candidate = datetime.combine(moment.date(), self.at)
        if candidate <= moment:
            candidate += timedelta(days=1)
        return candidate


@dataclass(frozen=True)
class CalendarTrigger:
    """Fires at hour:minute on a weekday (0=Sunday..6=Saturday) or a day of month.

    A day of month missing from a month (e.g. the 31st in April) skips that month.
    """
    hour: int
    minute: int = 0
    weekday: int | None = None
    day: int | None = None

    @classmethod
    def weekly_from(cls, d: date, at: time) -> "CalendarTrigger":
        return cls(at.hour, at.minute, weekday=sunday_weekday(d))

    @classmethod
    def monthly_from(cls, d: date, at: time) -> "CalendarTrigger":
        return cls(at.hour, at.minute, day=d.day)

    @property
    def at(self) -> time:
        return time(self.hour, self.minute)

    def next_after(self, moment: datetime) -> datetime:
        if self.weekday is not None:
            for offset in range(8):
                d = moment.date() + timedelta(days=offset)
                candidate = datetime.combine(d, self.at)
                if sunday_weekday(d) == self.weekday and candidate > moment:
                    return candidate
        elif self.day is not None:
            first = moment.date().replace(day=1)
            for offset in range(MAX_MONTH_SCAN):
                month = add_months(first, offset)
                if self.day > days_in_month(month.year, month.month):
                    continue
                candidate = datetime.combine(month.replace(day=self.day), self.at)
                if candidate > moment:
                    return candidate
            raise ValueError(f"Day {self.day} never occurs")
        return DailyTrigger(self.hour, self.minute).next_after(moment)


@dataclass
class Job:
    name: str
    func: Callable[[datetime], object]
    trigger: object
    next_fire: datetime


class Scheduler:
    def __init__(self):
        self._jobs: dict[str, Job] = {}
        self._lock = threading.RLock()

    def register(
        self,
        name: str,
        func: Callable[[datetime], object],
        trigger,
        now: datetime,
        first_fire: datetime | None = None,
    ) -> Job:
        """Add or replace a job. It first fires at first_fire, else the trigger's next time."""
        job = Job(name=name, func=func, trigger=trigger,
                  next_fire=first_fire or trigger.next_after(now))
        with self._lock:
            self._jobs[name] = job
        logger.debug("Registered job %s, next fire %s", name, job.next_fire)
        return job

    def unregister(self, name: str):
        with self._lock:
            self._jobs.pop(name, None)

    def get(self, name: str) -> Job | None:
        with self._lock:
            return self._jobs.get(name)

    def jobs(self) -> list[Job]:
        with self._lock:
            return sorted(self._jobs.values(), key=lambda j: j.next_fire)

    def run_due(self, now: datetime) -> list[str]:
        """Run every job due at `now`. Failures are logged, never raised."""
        ran = []
        for job in self.jobs():
            if job.next_fire > now:
                continue
            try:
                job.func(now)
            except Exception:
                logger.exception("Scheduled job %s failed", job.name)
            ran.append(job.name)
            with self._lock:
                # A job may have re-registered itself while running.
                if self._jobs.get(job.name) is job:
                    job.next_fire = job.trigger.next_after(now)
        return ran

    def run_forever(
        self,
        poll_seconds: float = 30.0,
        stop_event: threading.Event | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        stop = stop_event or threading.Event()
        logger.info("Scheduler started with %d jobs", len(self._jobs))
        while not stop.is_set():
            self.run_due(clock())
            stop.wait(poll_seconds)
        logger.info("Scheduler stopped")
