import argparse
import logging
import os
import signal
import sys
import threading
from dataclasses import dataclass
from datetime import datetime

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.ledger_dao import LedgerDAO
from database.recurring_dao import RecurringDAO
from database.expected_income_dao import ExpectedIncomeDAO
from database.budget_goal_dao import BudgetGoalDAO
from database.report_schedule_dao import ReportScheduleDAO

from services.budget_service import BudgetService
from services.import_service import ImportFailedError, ImportService
from services.income_service import IncomeService
from services.ledger_service import LedgerService
from services.mailer import SmtpMailer
from services.recurring_service import RecurringService
from services.report_renderer import ReportRenderer
from services.report_schedule_service import ReportScheduleService
from services.report_service import ReportOptions, ReportService
from services.scheduler import DailyTrigger, Scheduler

from utils.app_config import get_db_folder, get_log_level, get_smtp_settings, set_db_folder
from utils.constants import APP_NAME
from utils.currency import format_currency
from utils.date_helpers import parse_clock, parse_date, today

logger = logging.getLogger(APP_NAME)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
CLOCK_SETTINGS = ("recurring_run_time", "report_run_time", "report_send_time")


@dataclass
class App:
    db: DatabaseManager
    ledger: LedgerService
    budget: BudgetService
    income: IncomeService
    importer: ImportService
    recurring: RecurringService
    reports: ReportService
    schedules: ReportScheduleService


def build_app(db: DatabaseManager, mailer=None) -> App:
    # ── DAOs ─────────────────────────────────────────────────────────────────
    expense_dao = LedgerDAO(db, "expense")
    credit_dao = LedgerDAO(db, "credit")
    recurring_dao = RecurringDAO(db)
    income_dao = ExpectedIncomeDAO(db)
    goal_dao = BudgetGoalDAO(db)
    schedule_dao = ReportScheduleDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    renderer = ReportRenderer(db.get_setting("currency_symbol", "€"))
    budget_svc = BudgetService(goal_dao)
    report_svc = ReportService(expense_dao, credit_dao, recurring_dao, budget_svc, renderer)
    schedule_svc = ReportScheduleService(
        schedule_dao, report_svc, renderer, mailer,
        send_time=parse_clock(db.get_setting("report_send_time"), "06:30"),
    )
    return App(
        db=db,
        ledger=LedgerService(expense_dao, credit_dao),
        budget=budget_svc,
        income=IncomeService(income_dao, credit_dao),
        importer=ImportService(db, expense_dao, credit_dao),
        recurring=RecurringService(db, recurring_dao, expense_dao, credit_dao),
        reports=report_svc,
        schedules=schedule_svc,
    )


def build_scheduler(app: App, now: datetime) -> Scheduler:
    """Daily recurring tick, daily report sweep and one job per active schedule."""
    scheduler = Scheduler()
    recurring_at = parse_clock(app.db.get_setting("recurring_run_time"), "03:05")
    sweep_at = parse_clock(app.db.get_setting("report_run_time"), "06:15")
    scheduler.register(
        "recurring-transactions",
        lambda moment: app.recurring.fire_due_rules(moment.date()),
        DailyTrigger(recurring_at.hour, recurring_at.minute),
        now,
    )
    scheduler.register(
        "report-sweep",
        lambda moment: app.schedules.dispatch_due(moment.date(), moment),
        DailyTrigger(sweep_at.hour, sweep_at.minute),
        now,
    )
    app.schedules.register_jobs(scheduler, now)
    return scheduler


# ── Commands ──────────────────────────────────────────────────────────────────

def cmd_run(app: App, args) -> int:
    now = datetime.now()
    scheduler = build_scheduler(app, now)

    # Catch up on anything that fell due while the process was down.
    app.recurring.fire_due_rules(now.date())
    app.schedules.dispatch_due(now.date(), now)

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())
    scheduler.run_forever(poll_seconds=args.poll, stop_event=stop)
    return 0


def cmd_fire_recurring(app: App, args) -> int:
    result = app.recurring.fire_due_rules(_today_arg(args.today))
    print(f"Fired {len(result.fired)} recurring transaction(s), {len(result.failed)} failed.")
    return 0 if result.ok else 1


def cmd_send_reports(app: App, args) -> int:
    results = app.schedules.dispatch_due(_today_arg(args.today))
    for r in results:
        print(f"Schedule {r.schedule_id}: {r.status} {r.detail}".rstrip())
    if not results:
        print("No report schedules due.")
    return 0 if all(r.status != "error" for r in results) else 1


def cmd_import_csv(app: App, args) -> int:
    with open(args.path, "r", encoding="utf-8-sig", newline="") as f:
        text = f.read()
    try:
        result = app.importer.import_csv(text)
    except ImportFailedError as e:
        print(f"Import failed: {e}", file=sys.stderr)
        return 1
    print(
        f"Imported {result.inserted} transaction(s); "
        f"{result.duplicates} duplicate(s) skipped, {result.dropped} row(s) dropped."
    )
    return 0


def cmd_export_report(app: App, args) -> int:
    options = ReportOptions(
        include_budget_overview=not args.no_budget,
        include_trends=not args.no_trends,
        include_recurring=not args.no_recurring,
    )
    filename, content = app.reports.export(args.format, args.start, args.end, options)
    output = args.output or filename
    with open(output, "wb") as f:
        f.write(content)
    print(f"Wrote {output}")
    return 0


def cmd_reconcile(app: App, args) -> int:
    symbol = app.db.get_setting("currency_symbol", "€")
    report = app.income.reconcile(args.month)
    print(f"Income reconciliation for {report.month}")
    if not report.results:
        print("  No expected income configured.")
    for entry in report.results:
        print(
            f"  {entry.income.name:<24} {entry.status:<8} "
            f"{format_currency(entry.received_amount, symbol)} / "
            f"{format_currency(entry.income.expected_amount, symbol)} "
            f"(due {entry.due_date})"
        )
    return 0


def cmd_config(app: App, args) -> int:
    if args.clear_db_folder:
        set_db_folder(None)
        print("Database folder cleared; the current directory is used.")
    elif args.set_db_folder:
        folder = os.path.abspath(args.set_db_folder)
        set_db_folder(folder)
        print(f"Database folder set to {folder}")
    else:
        print(f"Database folder: {get_db_folder() or '(current directory)'}")
        print(f"Log level: {get_log_level()}")
    return 0


def cmd_setting(app: App, args) -> int:
    if args.value is None:
        value = app.db.get_setting(args.key, None)
        if value is None:
            print(f"{args.key} is not set", file=sys.stderr)
            return 1
        print(f"{args.key} = {value}")
        return 0
    if args.key in CLOCK_SETTINGS:
        try:
            datetime.strptime(args.value, "%H:%M")
        except ValueError:
            raise ValueError(f"{args.key} must be HH:MM.")
    app.db.set_setting(args.key, args.value)
    print(f"{args.key} = {args.value}")
    return 0


def _today_arg(value: str | None):
    if not value:
        return today()
    d = parse_date(value)
    if d is None:
        raise SystemExit(f"Invalid date: {value}")
    return d


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="expense-tracker", description=APP_NAME)
    parser.add_argument("--db-folder", default=None, help="Folder holding the tracker database")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run the scheduler loop")
    run.add_argument("--poll", type=float, default=30.0, help="Seconds between scheduler checks")
    run.set_defaults(func=cmd_run)

    fire = sub.add_parser("fire-recurring", help="Post every recurring rule that is due")
    fire.add_argument("--today", default=None, help="Reference date YYYY-MM-DD")
    fire.set_defaults(func=cmd_fire_recurring)

    send = sub.add_parser("send-reports", help="Send every scheduled report that is due")
    send.add_argument("--today", default=None, help="Reference date YYYY-MM-DD")
    send.set_defaults(func=cmd_send_reports)

    imp = sub.add_parser("import-csv", help="Import a bank statement CSV")
    imp.add_argument("path")
    imp.set_defaults(func=cmd_import_csv)

    export = sub.add_parser("export-report", help="Export a PDF or Excel report")
    export.add_argument("--format", choices=["pdf", "excel"], default="pdf")
    export.add_argument("--start", default=None)
    export.add_argument("--end", default=None)
    export.add_argument("--output", default=None)
    export.add_argument("--no-budget", action="store_true")
    export.add_argument("--no-trends", action="store_true")
    export.add_argument("--no-recurring", action="store_true")
    export.set_defaults(func=cmd_export_report)

    rec = sub.add_parser("reconcile", help="Reconcile expected income for a month")
    rec.add_argument("--month", default=None, help="Month YYYY-MM (default: current)")
    rec.set_defaults(func=cmd_reconcile)

    cfg = sub.add_parser("config", help="Show or change the pre-database configuration")
    group = cfg.add_mutually_exclusive_group()
    group.add_argument("--set-db-folder", default=None, metavar="PATH")
    group.add_argument("--clear-db-folder", action="store_true")
    cfg.set_defaults(func=cmd_config)

    setting = sub.add_parser("setting", help="Read or write an app setting")
    setting.add_argument("key")
    setting.add_argument("value", nargs="?", default=None)
    setting.set_defaults(func=cmd_setting)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # ── Bootstrap: logging and DB folder from pre-DB config ───────────────────
    logging.basicConfig(level=get_log_level(), format=LOG_FORMAT)
    db = DatabaseManager.open(db_folder=args.db_folder or get_db_folder())

    settings = get_smtp_settings()
    mailer = SmtpMailer(settings) if settings else None
    if mailer is None:
        logger.warning("SMTP settings incomplete; scheduled reports will not be sent")

    app = build_app(db, mailer)
    try:
        return args.func(app, args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
