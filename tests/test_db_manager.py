import pytest

from database.db_manager import DatabaseManager
from utils.constants import DB_FILE


def test_default_settings_are_seeded(db):
    assert db.get_setting("currency_symbol") == "€"
    assert db.get_setting("recurring_run_time") == "03:05"
    assert db.get_setting("report_run_time") == "06:15"
    assert db.get_setting("report_send_time") == "06:30"
    assert db.get_setting("missing", "fallback") == "fallback"


def test_set_setting_overwrites(db):
    db.set_setting("currency_symbol", "$")
    assert db.get_setting("currency_symbol") == "$"


def test_transaction_rolls_back_on_error(db, expense_dao):
    with pytest.raises(RuntimeError):
        with db.transaction():
            expense_dao.create("Tesco", 10.0, "2024-03-01", "Groceries")
            raise RuntimeError("abort")
    assert expense_dao.search() == []

    with db.transaction():
        expense_dao.create("Tesco", 10.0, "2024-03-01", "Groceries")
    assert len(expense_dao.search()) == 1


def test_initialize_is_idempotent(tmp_path):
    path = str(tmp_path / DB_FILE)
    first = DatabaseManager(path)
    first.initialize()
    first.set_setting("currency_symbol", "$")
    first.close()

    second = DatabaseManager.open(str(tmp_path))
    assert second.db_path == path
    assert second.get_setting("currency_symbol") == "$"
    second.close()
