import pytest

from services.ledger_service import LedgerService


@pytest.fixture
def service(expense_dao, credit_dao):
    return LedgerService(expense_dao, credit_dao)


def test_add_and_list_newest_first(service):
    service.add("expense", "Tesco", 10.0, "2024-03-01", "Groceries")
    service.add("expense", "Lidl", 12.5, "2024-03-05", "Groceries")
    service.add("credit", "Salary", 2000.0, "2024-03-25", "Income")

    assert [t.name for t in service.list("expense")] == ["Lidl", "Tesco"]
    assert [t.name for t in service.list("credit")] == ["Salary"]


def test_list_filters_by_name_and_range(service):
    service.add("expense", "Tesco Express", 10.0, "2024-03-01", "Groceries")
    service.add("expense", "TESCO", 11.0, "2024-03-10", "Groceries")
    service.add("expense", "Lidl", 12.5, "2024-03-05", "Groceries")

    assert [t.amount for t in service.list("expense", name="tesco")] == [11.0, 10.0]
    assert [t.name for t in service.list("expense", start="2024-03-05", end="2024-03-10")] == ["TESCO", "Lidl"]


def test_update_and_delete(service):
    tx = service.add("expense", "Tesco", 10.0, "2024-03-01", "Groceries")
    updated = service.update("expense", tx.id, "Tesco", 15.0, "2024-03-02", "Groceries")
    assert (updated.amount, updated.date) == (15.0, "2024-03-02")
    service.delete("expense", tx.id)
    assert service.get_by_id("expense", tx.id) is None


def test_validation(service):
    with pytest.raises(ValueError):
        service.add("transfer", "X", 1.0, "2024-03-01", "Y")
    with pytest.raises(ValueError):
        service.add("expense", "X", 0, "2024-03-01", "Y")
    with pytest.raises(ValueError):
        service.add("expense", "X", 1.0, "03/01/2024", "Y")
    with pytest.raises(ValueError):
        service.add("expense", "X", 1.0, "2024-03-01", " ")
