import pytest

from database.db_manager import DatabaseManager
from database.ledger_dao import LedgerDAO
from database.recurring_dao import RecurringDAO
from database.report_schedule_dao import ReportScheduleDAO


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(str(tmp_path / "tracker.db"))
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def expense_dao(db):
    return LedgerDAO(db, "expense")


@pytest.fixture
def credit_dao(db):
    return LedgerDAO(db, "credit")


@pytest.fixture
def recurring_dao(db):
    return RecurringDAO(db)


@pytest.fixture
def schedule_dao(db):
    return ReportScheduleDAO(db)
