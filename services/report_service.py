from dataclasses import dataclass, field
from datetime import date, datetime

from database.ledger_dao import LedgerDAO
from database.recurring_dao import RecurringDAO
from models.budget_goal import BudgetProgress
from models.recurring_rule import RecurringRule
from models.transaction import Transaction
from services.budget_service import BudgetService
from utils.constants import TREND_MONTHS
from utils.currency import round_to_two
from utils.date_helpers import (
    add_months, format_date, month_bounds, parse_date, prior_iso_week, prior_month, today,
)


@dataclass
class ReportTotals:
    total_expenses: float = 0.0
    total_credits: float = 0.0
    balance: float = 0.0


@dataclass
class ReportData:
    start_date: str
    end_date: str
    generated_at: str
    totals: ReportTotals
    expenses: list[Transaction] = field(default_factory=list)
    credits: list[Transaction] = field(default_factory=list)
    budget_goals: list[BudgetProgress] = field(default_factory=list)
    recurring: list[RecurringRule] = field(default_factory=list)
    trends: list[dict] = field(default_factory=list)   # [{month, income, expense, net}]


@dataclass
class ReportOptions:
    include_budget_overview: bool = True
    include_trends: bool = True
    include_recurring: bool = True

    @classmethod
    def from_schedule(cls, schedule) -> "ReportOptions":
        return cls(
            include_budget_overview=schedule.include_budget_overview,
            include_trends=schedule.include_trends,
            include_recurring=schedule.include_recurring,
        )


class ReportService:
    def __init__(
        self,
        expense_dao: LedgerDAO,
        credit_dao: LedgerDAO,
        recurring_dao: RecurringDAO,
        budget_service: BudgetService,
        renderer=None,
    ):
        self._expenses = expense_dao
        self._credits = credit_dao
        self._recurring = recurring_dao
        self._budget = budget_service
        self._renderer = renderer

    @staticmethod
    def resolve_range(start=None, end=None, ref_date: date | None = None) -> tuple[date, date]:
        """Defaults to the current month; a reversed range is swapped."""
        ref = ref_date or today()
        default_start, default_end = month_bounds(ref)
        start_d = parse_date(start) if start else default_start
        end_d = parse_date(end) if end else default_end
        if start_d is None or end_d is None:
            raise ValueError("Invalid date range supplied.")
        if end_d < start_d:
            start_d, end_d = end_d, start_d
        return start_d, end_d

    @staticmethod
    def prior_period(frequency: str, ref_date: date) -> tuple[date, date]:
        """The period a scheduled report covers: last ISO week or last calendar month."""
        if frequency == "weekly":
            return prior_iso_week(ref_date)
        return prior_month(ref_date)

    def build_report(self, start: date, end: date, now: datetime | None = None) -> ReportData:
        start_s, end_s = format_date(start), format_date(end)
        expenses = self._expenses.search(start=start_s, end=end_s, newest_first=False)
        credits = self._credits.search(start=start_s, end=end_s, newest_first=False)

        total_expenses = sum(e.amount for e in expenses)
        total_credits = sum(c.amount for c in credits)
        totals = ReportTotals(
            total_expenses=round_to_two(total_expenses),
            total_credits=round_to_two(total_credits),
            balance=round_to_two(total_credits - total_expenses),
        )

        return ReportData(
            start_date=start_s,
            end_date=end_s,
            generated_at=(now or datetime.now()).strftime("%Y-%m-%d %H:%M"),
            totals=totals,
            expenses=expenses,
            credits=credits,
            budget_goals=self._budget.get_progress_between(start_s, end_s),
            recurring=self._recurring.get_active(),
            trends=self.get_trends(end),
        )

    def get_trends(self, end: date, months: int = TREND_MONTHS) -> list[dict]:
        """Income/expense per month for the `months` months ending with end's month."""
        first = add_months(end.replace(day=1), -(months - 1))
        _, last = month_bounds(end)
        span = (format_date(first), format_date(last))
        income = self._credits.get_monthly_totals(*span)
        expense = self._expenses.get_monthly_totals(*span)

        rows = []
        for i in range(months):
            key = add_months(first, i).strftime("%Y-%m")
            inc = round_to_two(income.get(key, 0.0))
            exp = round_to_two(expense.get(key, 0.0))
            rows.append({"month": key, "income": inc, "expense": exp, "net": round_to_two(inc - exp)})
        return rows

    def export(
        self,
        fmt: str = "pdf",
        start=None,
        end=None,
        options: ReportOptions | None = None,
    ) -> tuple[str, bytes]:
        """Render an on-demand report; returns (filename, content)."""
        if self._renderer is None:
            raise RuntimeError("No report renderer configured.")
        start_d, end_d = self.resolve_range(start, end)
        report = self.build_report(start_d, end_d)
        content = self._renderer.render(report, fmt, options or ReportOptions())
        extension = "xlsx" if fmt == "excel" else "pdf"
        filename = f"expense-report-{start_d:%Y%m%d}-{end_d:%Y%m%d}.{extension}"
        return filename, content
