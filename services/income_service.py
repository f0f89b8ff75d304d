from datetime import date

from database.expected_income_dao import ExpectedIncomeDAO
from database.ledger_dao import LedgerDAO
from models.expected_income import ExpectedIncome, ReconciliationEntry, ReconciliationReport
from utils.constants import FREQUENCIES
from utils.currency import round_to_two
from utils.date_helpers import (
    clamp_day_to_month, format_date, format_month, month_bounds, parse_date,
    parse_month, today,
)


class IncomeService:
    def __init__(self, income_dao: ExpectedIncomeDAO, credit_dao: LedgerDAO):
        self._dao = income_dao
        self._credits = credit_dao

    def get_all(self) -> list[ExpectedIncome]:
        return self._dao.get_all()

    def get_by_id(self, income_id: int) -> ExpectedIncome | None:
        return self._dao.get_by_id(income_id)

    def create(
        self,
        name: str,
        category: str,
        expected_amount: float,
        frequency: str = "monthly",
        due_day: int | None = None,
        notes: str | None = None,
    ) -> ExpectedIncome:
        self._validate(name, category, expected_amount, frequency, due_day)
        return self._dao.create(
            name.strip(), category.strip(), expected_amount, frequency, due_day, notes
        )

    def update(
        self,
        income_id: int,
        name: str,
        category: str,
        expected_amount: float,
        frequency: str = "monthly",
        due_day: int | None = None,
        notes: str | None = None,
        last_received_date: str | None = None,
    ) -> ExpectedIncome | None:
        self._validate(name, category, expected_amount, frequency, due_day)
        if last_received_date and not parse_date(last_received_date):
            raise ValueError("Invalid last received date.")
        return self._dao.update(
            income_id, name.strip(), category.strip(), expected_amount,
            frequency, due_day, notes, last_received_date,
        )

    def delete(self, income_id: int):
        self._dao.delete(income_id)

    def reconcile(self, month: str | None = None, ref_date: date | None = None) -> ReconciliationReport:
        """Compare each expected income with the credits received in a YYYY-MM month.

        Status is 'on_time' once the received total covers the expected amount,
        'partial' for a smaller positive total and 'missing' for nothing; an
        uncovered income whose due date has passed is reported as 'late'.
        """
        ref = ref_date or today()
        first = parse_month(month) if month else ref.replace(day=1)
        if first is None:
            raise ValueError(f"Invalid month: {month}")
        start, end = month_bounds(first)

        results = []
        for income in self._dao.get_all():
            credits = self._credits.search(
                start=format_date(start), end=format_date(end),
                category=income.category, newest_first=False,
            )
            received = sum(c.amount for c in credits)

            if income.due_day is not None:
                due = start.replace(day=clamp_day_to_month(start.year, start.month, income.due_day))
            else:
                due = end

            if received >= income.expected_amount:
                status = "on_time"
            elif received > 0:
                status = "partial"
            else:
                status = "missing"
            if status != "on_time" and ref > due:
                status = "late"

            results.append(ReconciliationEntry(
                income=income,
                received_amount=round_to_two(received),
                received_records=credits,
                due_date=format_date(due),
                last_received=credits[-1].date if credits else None,
                status=status,
            ))

        return ReconciliationReport(month=format_month(start), results=results)

    def _validate(self, name, category, expected_amount, frequency, due_day):
        if not name or not name.strip():
            raise ValueError("Name is required.")
        if not category or not category.strip():
            raise ValueError("Category is required.")
        if expected_amount is None or expected_amount <= 0:
            raise ValueError("Expected amount must be positive.")
        if frequency not in FREQUENCIES:
            raise ValueError("Invalid frequency.")
        if due_day is not None and not 1 <= due_day <= 31:
            raise ValueError("Due day must be between 1 and 31.")
