from typing import Optional
from database.db_manager import DatabaseManager
from models.budget_goal import BudgetGoal, BudgetProgress


class BudgetGoalDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> BudgetGoal:
        return BudgetGoal(
            id=row["id"],
            category=row["category"],
            monthly_limit=row["monthly_limit"],
            is_active=bool(row["is_active"]),
        )

    def get_active(self) -> list[BudgetGoal]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM budget_goals WHERE is_active = 1 ORDER BY category"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, goal_id: int) -> Optional[BudgetGoal]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM budget_goals WHERE id = ?", (goal_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, category: str, monthly_limit: float) -> BudgetGoal:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "INSERT INTO budget_goals (category, monthly_limit) VALUES (?, ?)",
            (category, monthly_limit),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def update(self, goal_id: int, category: str, monthly_limit: float) -> Optional[BudgetGoal]:
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE budget_goals SET category = ?, monthly_limit = ? WHERE id = ?",
            (category, monthly_limit, goal_id),
        )
        conn.commit()
        return self.get_by_id(goal_id)

    def deactivate(self, goal_id: int):
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE budget_goals SET is_active = 0 WHERE id = ?", (goal_id,)
        )
        conn.commit()

    def get_progress(self, start: str, end: str) -> list[BudgetProgress]:
        """Active goals joined with expense totals for their category in [start, end]."""
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT bg.id, bg.category, bg.monthly_limit,
                      COALESCE(SUM(e.amount), 0) AS spent_amount
               FROM budget_goals bg
               LEFT JOIN expenses e
                 ON bg.category = e.category AND e.date BETWEEN ? AND ?
               WHERE bg.is_active = 1
               GROUP BY bg.id, bg.category, bg.monthly_limit""",
            (start, end),
        ).fetchall()
        return [
            BudgetProgress(
                id=r["id"],
                category=r["category"],
                monthly_limit=r["monthly_limit"],
                spent_amount=round(r["spent_amount"], 2),
            )
            for r in rows
        ]
