from typing import Optional
from database.db_manager import DatabaseManager
from models.report_schedule import ReportSchedule


class ReportScheduleDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> ReportSchedule:
        return ReportSchedule(
            id=row["id"],
            recipient_email=row["recipient_email"],
            format=row["format"],
            frequency=row["frequency"],
            next_send_date=row["next_send_date"],
            include_budget_overview=bool(row["include_budget_overview"]),
            include_trends=bool(row["include_trends"]),
            include_recurring=bool(row["include_recurring"]),
            is_active=bool(row["is_active"]),
            last_sent_at=row["last_sent_at"],
            user_id=row["user_id"] if "user_id" in row.keys() else None,
        )

    def get_all(self) -> list[ReportSchedule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT * FROM report_schedules
               ORDER BY is_active DESC, next_send_date ASC, id ASC"""
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_active(self) -> list[ReportSchedule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT * FROM report_schedules
               WHERE is_active = 1
               ORDER BY next_send_date ASC, id ASC"""
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_due(self, as_of: str) -> list[ReportSchedule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT * FROM report_schedules
               WHERE is_active = 1 AND next_send_date <= ?
               ORDER BY next_send_date ASC, id ASC""",
            (as_of,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, schedule_id: int) -> Optional[ReportSchedule]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM report_schedules WHERE id = ?", (schedule_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        recipient_email: str,
        format_: str,
        frequency: str,
        next_send_date: str,
        include_budget_overview: bool = True,
        include_trends: bool = True,
        include_recurring: bool = True,
        user_id: int | None = None,
    ) -> ReportSchedule:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO report_schedules
               (recipient_email, format, frequency, include_budget_overview,
                include_trends, include_recurring, next_send_date, user_id)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                recipient_email, format_, frequency,
                1 if include_budget_overview else 0,
                1 if include_trends else 0,
                1 if include_recurring else 0,
                next_send_date, user_id,
            ),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        schedule_id: int,
        recipient_email: str,
        format_: str,
        frequency: str,
        next_send_date: str,
        include_budget_overview: bool = True,
        include_trends: bool = True,
        include_recurring: bool = True,
        is_active: bool = True,
    ) -> Optional[ReportSchedule]:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE report_schedules
               SET recipient_email=?, format=?, frequency=?,
                   include_budget_overview=?, include_trends=?, include_recurring=?,
                   next_send_date=?, is_active=?, updated_at=datetime('now')
               WHERE id=?""",
            (
                recipient_email, format_, frequency,
                1 if include_budget_overview else 0,
                1 if include_trends else 0,
                1 if include_recurring else 0,
                next_send_date, 1 if is_active else 0, schedule_id,
            ),
        )
        conn.commit()
        return self.get_by_id(schedule_id)

    def mark_sent(self, schedule_id: int, sent_at: str, next_send_date: str):
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE report_schedules
               SET last_sent_at = ?, next_send_date = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (sent_at, next_send_date, schedule_id),
        )
        conn.commit()

    def delete(self, schedule_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM report_schedules WHERE id = ?", (schedule_id,))
        conn.commit()
