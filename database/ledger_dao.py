from typing import Optional
from database.db_manager import DatabaseManager
from models.transaction import Transaction
from utils.constants import LEDGER_TABLES


class LedgerDAO:
    """Rows of one ledger table: 'expenses' or 'credits'.

    create() does not commit; callers own the transaction.
    """

    def __init__(self, db: DatabaseManager, kind: str):
        if kind not in LEDGER_TABLES:
            raise ValueError(f"Unknown ledger: {kind}")
        self._db = db
        self.kind = kind
        self.table = LEDGER_TABLES[kind]

    def _row_to_model(self, row) -> Transaction:
        return Transaction(
            id=row["id"],
            kind=self.kind,
            name=row["name"],
            amount=row["amount"],
            date=row["date"],
            category=row["category"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_by_id(self, tx_id: int) -> Optional[Transaction]:
        conn = self._db.get_connection()
        row = conn.execute(
            f"SELECT * FROM {self.table} WHERE id = ?", (tx_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def search(
        self,
        name: str | None = None,
        start: str | None = None,
        end: str | None = None,
        category: str | None = None,
        newest_first: bool = True,
    ) -> list[Transaction]:
        conn = self._db.get_connection()
        sql = f"SELECT * FROM {self.table} WHERE 1=1"
        params: list = []

        if name:
            sql += " AND LOWER(name) LIKE ?"
            params.append(f"%{name.lower()}%")
        if start:
            sql += " AND date >= ?"
            params.append(start)
        if end:
            sql += " AND date <= ?"
            params.append(end)
        if category:
            sql += " AND category = ?"
            params.append(category)

        order = "DESC" if newest_first else "ASC"
        sql += f" ORDER BY date {order}, id {order}"
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]

    def exists(self, name: str, amount: float, date: str) -> bool:
        """True when a row with the same (name, amount, date) is already stored."""
        conn = self._db.get_connection()
        row = conn.execute(
            f"""SELECT 1 FROM {self.table}
                WHERE name = ? AND ROUND(amount, 2) = ROUND(?, 2) AND date = ?
                LIMIT 1""",
            (name, amount, date),
        ).fetchone()
        return row is not None

    def create(self, name: str, amount: float, date: str, category: str) -> Transaction:
        conn = self._db.get_connection()
        cursor = conn.execute(
            f"INSERT INTO {self.table} (name, amount, date, category) VALUES (?, ?, ?, ?)",
            (name, amount, date, category),
        )
        return self.get_by_id(cursor.lastrowid)

    def update(
        self, tx_id: int, name: str, amount: float, date: str, category: str
    ) -> Optional[Transaction]:
        conn = self._db.get_connection()
        conn.execute(
            f"""UPDATE {self.table}
                SET name=?, amount=?, date=?, category=?, updated_at=datetime('now')
                WHERE id=?""",
            (name, amount, date, category, tx_id),
        )
        conn.commit()
        return self.get_by_id(tx_id)

    def delete(self, tx_id: int):
        conn = self._db.get_connection()
        conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (tx_id,))
        conn.commit()

    def get_monthly_totals(self, start: str, end: str) -> dict[str, float]:
        """Return {YYYY-MM: total} for months with rows in [start, end]."""
        conn = self._db.get_connection()
        rows = conn.execute(
            f"""SELECT strftime('%Y-%m', date) AS month, SUM(amount) AS total
                FROM {self.table}
                WHERE date BETWEEN ? AND ?
                GROUP BY month
                ORDER BY month""",
            (start, end),
        ).fetchall()
        return {r["month"]: r["total"] for r in rows}
