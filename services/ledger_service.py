from models.transaction import Transaction
from database.ledger_dao import LedgerDAO
from utils.constants import LEDGER_TABLES
from utils.date_helpers import parse_date


class LedgerService:
    """Manual entry and lookup of expenses and credits."""

    def __init__(self, expense_dao: LedgerDAO, credit_dao: LedgerDAO):
        self._daos = {"expense": expense_dao, "credit": credit_dao}

    def add(self, kind: str, name: str, amount: float, date: str, category: str) -> Transaction:
        dao = self._dao(kind)
        self._validate(name, amount, date, category)
        tx = dao.create(name.strip(), amount, date, category.strip())
        dao._db.get_connection().commit()
        return tx

    def list(
        self,
        kind: str,
        name: str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> list[Transaction]:
        """Newest first; name is a case-insensitive substring, start/end inclusive."""
        return self._dao(kind).search(name=name, start=start, end=end)

    def get_by_id(self, kind: str, tx_id: int) -> Transaction | None:
        return self._dao(kind).get_by_id(tx_id)

    def update(
        self, kind: str, tx_id: int, name: str, amount: float, date: str, category: str
    ) -> Transaction | None:
        self._validate(name, amount, date, category)
        return self._dao(kind).update(tx_id, name.strip(), amount, date, category.strip())

    def delete(self, kind: str, tx_id: int):
        self._dao(kind).delete(tx_id)

    def _dao(self, kind: str) -> LedgerDAO:
        if kind not in LEDGER_TABLES:
            raise ValueError(f"Invalid ledger: {kind}")
        return self._daos[kind]

    def _validate(self, name, amount, date, category):
        if not name or not name.strip():
            raise ValueError("Name is required.")
        if not category or not category.strip():
            raise ValueError("Category is required.")
        if amount is None or amount <= 0:
            raise ValueError("Amount must be positive.")
        if not parse_date(date):
            raise ValueError("Invalid date format. Use YYYY-MM-DD.")
