from typing import Optional
from database.db_manager import DatabaseManager
from models.recurring_rule import RecurringRule


class RecurringDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> RecurringRule:
        return RecurringRule(
            id=row["id"],
            type=row["type"],
            name=row["name"],
            category=row["category"],
            amount=row["amount"],
            frequency=row["frequency"],
            next_run_date=row["next_run_date"],
            is_active=bool(row["is_active"]),
            day_of_month=row["day_of_month"],
            weekday=row["weekday"],
            last_run_date=row["last_run_date"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_all(self) -> list[RecurringRule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT * FROM recurring_transactions
               ORDER BY is_active DESC, next_run_date ASC, id ASC"""
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_active(self) -> list[RecurringRule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT * FROM recurring_transactions
               WHERE is_active = 1
               ORDER BY next_run_date ASC, id ASC"""
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_due(self, as_of: str) -> list[RecurringRule]:
        """Active rules whose next_run_date is on or before as_of."""
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT * FROM recurring_transactions
               WHERE is_active = 1 AND next_run_date <= ?
               ORDER BY next_run_date ASC, id ASC""",
            (as_of,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, rule_id: int) -> Optional[RecurringRule]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM recurring_transactions WHERE id = ?", (rule_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        type_: str,
        name: str,
        category: str,
        amount: float,
        frequency: str,
        next_run_date: str,
        day_of_month: int | None = None,
        weekday: int | None = None,
        is_active: bool = True,
    ) -> RecurringRule:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO recurring_transactions
               (type, name, category, amount, frequency, day_of_month,
                weekday, next_run_date, is_active)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                type_, name, category, amount, frequency, day_of_month,
                weekday, next_run_date, 1 if is_active else 0,
            ),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        rule_id: int,
        name: str,
        category: str,
        amount: float,
        frequency: str,
        next_run_date: str,
        day_of_month: int | None = None,
        weekday: int | None = None,
        is_active: bool = True,
    ) -> Optional[RecurringRule]:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE recurring_transactions SET
               name=?, category=?, amount=?, frequency=?, day_of_month=?,
               weekday=?, next_run_date=?, is_active=?, updated_at=datetime('now')
               WHERE id=?""",
            (
                name, category, amount, frequency, day_of_month, weekday,
                next_run_date, 1 if is_active else 0, rule_id,
            ),
        )
        conn.commit()
        return self.get_by_id(rule_id)

    def set_active(self, rule_id: int, is_active: bool):
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE recurring_transactions SET is_active = ? WHERE id = ?",
            (1 if is_active else 0, rule_id),
        )
        conn.commit()

    def mark_run(self, rule_id: int, last_run_date: str, next_run_date: str):
        """Record a firing. Does not commit; the caller pairs it with the ledger insert."""
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE recurring_transactions
               SET last_run_date = ?, next_run_date = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (last_run_date, next_run_date, rule_id),
        )

    def delete(self, rule_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM recurring_transactions WHERE id = ?", (rule_id,))
        conn.commit()
