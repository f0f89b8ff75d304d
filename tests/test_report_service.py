from datetime import date, datetime

import pytest

from database.budget_goal_dao import BudgetGoalDAO
from services.budget_service import BudgetService
from services.report_service import ReportService


@pytest.fixture
def service(db, expense_dao, credit_dao, recurring_dao):
    return ReportService(expense_dao, credit_dao, recurring_dao, BudgetService(BudgetGoalDAO(db)))


def seed(db, expense_dao, credit_dao, recurring_dao):
    expense_dao.create("Tesco", 40.25, "2024-03-03", "Groceries")
    expense_dao.create("Rent", 900.0, "2024-03-01", "Utilities")
    expense_dao.create("Lidl", 10.0, "2024-02-10", "Groceries")
    credit_dao.create("Salary", 2000.0, "2024-03-25", "Income")
    credit_dao.create("Salary", 1900.0, "2024-01-25", "Income")
    db.get_connection().commit()
    recurring_dao.create("expense", "Rent", "Utilities", 900.0, "monthly", "2024-04-01")
    recurring_dao.create("expense", "Old", "Utilities", 5.0, "monthly", "2024-04-01", is_active=False)


def test_build_report_totals_and_lists(service, db, expense_dao, credit_dao, recurring_dao):
    seed(db, expense_dao, credit_dao, recurring_dao)
    report = service.build_report(date(2024, 3, 1), date(2024, 3, 31), datetime(2024, 4, 1, 9, 0))

    assert report.totals.total_expenses == 940.25
    assert report.totals.total_credits == 2000.0
    assert report.totals.balance == 1059.75
    assert [e.name for e in report.expenses] == ["Rent", "Tesco"]
    assert [r.name for r in report.recurring] == ["Rent"]
    assert report.generated_at == "2024-04-01 09:00"


def test_trends_cover_six_months_ending_with_period(service, db, expense_dao, credit_dao, recurring_dao):
    seed(db, expense_dao, credit_dao, recurring_dao)
    trends = service.get_trends(date(2024, 3, 31))
    assert [t["month"] for t in trends] == ["2023-10", "2023-11", "2023-12", "2024-01", "2024-02", "2024-03"]
    assert trends[-1] == {"month": "2024-03", "income": 2000.0, "expense": 940.25, "net": 1059.75}
    assert trends[3]["income"] == 1900.0
    assert trends[4]["expense"] == 10.0


def test_resolve_range_defaults_and_swaps():
    assert ReportService.resolve_range(ref_date=date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert ReportService.resolve_range("2024-03-31", "2024-03-01") == (date(2024, 3, 1), date(2024, 3, 31))
    with pytest.raises(ValueError):
        ReportService.resolve_range("yesterday", "2024-03-01")


def test_prior_period():
    assert ReportService.prior_period("weekly", date(2024, 3, 13)) == (date(2024, 3, 4), date(2024, 3, 10))
    assert ReportService.prior_period("monthly", date(2024, 1, 5)) == (date(2023, 12, 1), date(2023, 12, 31))


def test_export_names_file_after_range(db, expense_dao, credit_dao, recurring_dao):
    class Renderer:
        def render(self, report, fmt, options):
            return fmt.encode()

    service = ReportService(
        expense_dao, credit_dao, recurring_dao, BudgetService(BudgetGoalDAO(db)), Renderer(),
    )
    assert service.export("excel", "2024-03-01", "2024-03-31") == ("expense-report-20240301-20240331.xlsx", b"excel")
    assert service.export("pdf", "2024-03-01", "2024-03-31")[0] == "expense-report-20240301-20240331.pdf"
