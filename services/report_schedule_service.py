import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from database.report_schedule_dao import ReportScheduleDAO
from models.report_schedule import ReportSchedule
from services.mailer import Attachment, MailMessage
from services.report_service import ReportOptions, ReportService
from services.scheduler import CalendarTrigger, Scheduler
from utils.constants import APP_NAME, REPORT_FORMATS, REPORT_FREQUENCIES, TIMESTAMP_FORMAT
from utils.date_helpers import add_months, format_date, parse_date, today

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass
class DispatchResult:
    schedule_id: int
    status: str             # 'ok' | 'skipped' | 'error'
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def job_name(schedule_id: int) -> str:
    return f"report-schedule-{schedule_id}"


def advance_send_date(frequency: str, next_send_date: date) -> date:
    if frequency == "weekly":
        return next_send_date + timedelta(days=7)
    return add_months(next_send_date, 1)


class ReportScheduleService:
    def __init__(
        self,
        schedule_dao: ReportScheduleDAO,
        report_service: ReportService,
        renderer,
        mailer=None,
        send_time: time = time(6, 30),
        scheduler: Scheduler | None = None,
    ):
        self._dao = schedule_dao
        self._reports = report_service
        self._renderer = renderer
        self._mailer = mailer
        self._send_time = send_time
        self._scheduler = scheduler

    def attach(self, scheduler: Scheduler):
        self._scheduler = scheduler

    # ── CRUD ──────────────────────────────────────────────────────────────────

    def get_all(self) -> list[ReportSchedule]:
        return self._dao.get_all()

    def get_by_id(self, schedule_id: int) -> ReportSchedule | None:
        return self._dao.get_by_id(schedule_id)

    def create(
        self,
        recipient_email: str,
        format_: str = "pdf",
        frequency: str = "monthly",
        next_send_date: str | None = None,
        include_budget_overview: bool = True,
        include_trends: bool = True,
        include_recurring: bool = True,
        user_id: int | None = None,
        reference_date: date | None = None,
    ) -> ReportSchedule:
        """Create a schedule; the first send defaults to one period from today."""
        self._validate(recipient_email, format_, frequency)
        if next_send_date:
            first = parse_date(next_send_date)
            if first is None:
                raise ValueError("Invalid next send date.")
        else:
            first = advance_send_date(frequency, reference_date or today())
        schedule = self._dao.create(
            recipient_email=recipient_email.strip(), format_=format_, frequency=frequency,
            next_send_date=format_date(first),
            include_budget_overview=include_budget_overview,
            include_trends=include_trends,
            include_recurring=include_recurring,
            user_id=user_id,
        )
        self._resync(schedule)
        return schedule

    def update(
        self,
        schedule_id: int,
        recipient_email: str,
        format_: str,
        frequency: str,
        next_send_date: str,
        include_budget_overview: bool = True,
        include_trends: bool = True,
        include_recurring: bool = True,
        is_active: bool = True,
    ) -> ReportSchedule | None:
        if self._dao.get_by_id(schedule_id) is None:
            raise ValueError(f"Report schedule {schedule_id} not found.")
        self._validate(recipient_email, format_, frequency)
        if not parse_date(next_send_date):
            raise ValueError("Invalid next send date.")
        schedule = self._dao.update(
            schedule_id=schedule_id, recipient_email=recipient_email.strip(),
            format_=format_, frequency=frequency, next_send_date=next_send_date,
            include_budget_overview=include_budget_overview,
            include_trends=include_trends,
            include_recurring=include_recurring,
            is_active=is_active,
        )
        self._resync(schedule)
        return schedule

    def delete(self, schedule_id: int):
        self._dao.delete(schedule_id)
        if self._scheduler is not None:
            self._scheduler.unregister(job_name(schedule_id))

    # ── Dispatch ──────────────────────────────────────────────────────────────

    def dispatch(self, schedule_id: int, today_: date | None = None, now: datetime | None = None) -> DispatchResult:
        """Send one scheduled report if it is due.

        On success last_sent_at is stamped and next_send_date moves forward one
        period; on any failure the schedule is left untouched so it is retried.
        """
        ref = today_ or today()
        schedule = self._dao.get_by_id(schedule_id)
        if schedule is None or not schedule.is_active:
            return DispatchResult(schedule_id, "skipped", "missing or inactive")
        due = parse_date(schedule.next_send_date)
        if due is None or due > ref:
            return DispatchResult(schedule_id, "skipped", f"not due until {schedule.next_send_date}")
        if self._mailer is None:
            logger.warning("Skipping report schedule %s: no mail transport configured", schedule_id)
            return DispatchResult(schedule_id, "skipped", "no mailer configured")

        moment = now or datetime.now()
        try:
            start, end = ReportService.prior_period(schedule.frequency, ref)
            report = self._reports.build_report(start, end, moment)
            content = self._renderer.render(report, schedule.format, ReportOptions.from_schedule(schedule))
            extension = "xlsx" if schedule.format == "excel" else "pdf"
            self._mailer.send(MailMessage(
                sender=self._mailer.sender,
                to=schedule.recipient_email,
                subject=f"{APP_NAME} Summary - {start:%B %Y}",
                text=f"Attached is your scheduled {schedule.format.upper()} report.",
                attachments=[Attachment(f"expense-report-{start:%Y-%m}.{extension}", content)],
            ))
            next_date = advance_send_date(schedule.frequency, due)
            self._dao.mark_sent(schedule.id, moment.strftime(TIMESTAMP_FORMAT), format_date(next_date))
        except Exception as exc:
            logger.exception("Report schedule %s failed to send", schedule_id)
            return DispatchResult(schedule_id, "error", str(exc))

        logger.info("Sent %s report to %s, next on %s",
                    schedule.frequency, schedule.recipient_email, next_date)
        self._resync(self._dao.get_by_id(schedule_id), moment)
        return DispatchResult(schedule_id, "ok")

    def dispatch_due(self, today_: date | None = None, now: datetime | None = None) -> list[DispatchResult]:
        """Daily sweep over every active schedule whose send date has arrived."""
        ref = today_ or today()
        results = [self.dispatch(s.id, ref, now) for s in self._dao.get_due(format_date(ref))]
        if results:
            sent = sum(1 for r in results if r.ok)
            logger.info("Report sweep: %d sent, %d not sent", sent, len(results) - sent)
        return results

    # ── Scheduler wiring ──────────────────────────────────────────────────────

    def register_jobs(self, scheduler: Scheduler, now: datetime | None = None):
        self._scheduler = scheduler
        for schedule in self._dao.get_active():
            self.sync_job(scheduler, schedule, now)

    def sync_job(self, scheduler: Scheduler, schedule: ReportSchedule, now: datetime | None = None):
        """(Re)register the calendar job for a schedule, or drop it when inactive."""
        name = job_name(schedule.id)
        due = parse_date(schedule.next_send_date)
        if not schedule.is_active or due is None:
            scheduler.unregister(name)
            return
        if schedule.frequency == "weekly":
            trigger = CalendarTrigger.weekly_from(due, self._send_time)
        else:
            trigger = CalendarTrigger.monthly_from(due, self._send_time)
        schedule_id = schedule.id
        scheduler.register(
            name,
            lambda moment: self.dispatch(schedule_id, moment.date(), moment),
            trigger,
            now or datetime.now(),
            first_fire=datetime.combine(due, self._send_time),
        )

    def _resync(self, schedule: ReportSchedule | None, now: datetime | None = None):
        if self._scheduler is not None and schedule is not None:
            self.sync_job(self._scheduler, schedule, now)

    def _validate(self, recipient_email, format_, frequency):
        if not recipient_email or not EMAIL_RE.match(recipient_email.strip()):
            raise ValueError("A valid recipient email is required.")
        if format_ not in REPORT_FORMATS:
            raise ValueError("Format must be pdf or excel.")
        if frequency not in REPORT_FREQUENCIES:
            raise ValueError("Frequency must be weekly or monthly.")
