from typing import Optional
from database.db_manager import DatabaseManager
from models.expected_income import ExpectedIncome


class ExpectedIncomeDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> ExpectedIncome:
        return ExpectedIncome(
            id=row["id"],
            name=row["name"],
            category=row["category"],
            expected_amount=row["expected_amount"],
            frequency=row["frequency"],
            due_day=row["due_day"],
            notes=row["notes"],
            last_received_date=row["last_received_date"],
        )

    def get_all(self) -> list[ExpectedIncome]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM expected_incomes ORDER BY name ASC"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, income_id: int) -> Optional[ExpectedIncome]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM expected_incomes WHERE id = ?", (income_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        name: str,
        category: str,
        expected_amount: float,
        frequency: str = "monthly",
        due_day: int | None = None,
        notes: str | None = None,
    ) -> ExpectedIncome:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO expected_incomes
               (name, category, expected_amount, frequency, due_day, notes)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (name, category, expected_amount, frequency, due_day, notes),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        income_id: int,
        name: str,
        category: str,
        expected_amount: float,
        frequency: str,
        due_day: int | None = None,
        notes: str | None = None,
        last_received_date: str | None = None,
    ) -> Optional[ExpectedIncome]:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE expected_incomes
               SET name=?, category=?, expected_amount=?, frequency=?, due_day=?,
                   notes=?, last_received_date=?, updated_at=datetime('now')
               WHERE id=?""",
            (name, category, expected_amount, frequency, due_day, notes,
             last_received_date, income_id),
        )
        conn.commit()
        return self.get_by_id(income_id)

    def delete(self, income_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM expected_incomes WHERE id = ?", (income_id,))
        conn.commit()
