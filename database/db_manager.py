import sqlite3
import os
from contextlib import contextmanager
from utils.constants import DB_FILE, DEFAULT_SETTINGS


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    @contextmanager
    def transaction(self):
        """Yield the connection; commit on success, roll back on any error."""
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise

    def initialize(self):
        """Create schema and seed defaults."""
        conn = self.get_connection()
        self._create_schema(conn)
        self._migrate_schema(conn)
        self._seed_defaults(conn)
        conn.commit()

    def _migrate_schema(self, conn: sqlite3.Connection):
        """Idempotent ALTER TABLE for columns added after initial release."""
        cols = {row[1] for row in conn.execute("PRAGMA table_info(report_schedules)").fetchall()}
        if "user_id" not in cols:
            conn.execute("ALTER TABLE report_schedules ADD COLUMN user_id INTEGER")

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS expenses (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                name        TEXT NOT NULL,
                amount      REAL NOT NULL CHECK(amount > 0),
                date        TEXT NOT NULL,
                category    TEXT NOT NULL DEFAULT 'Uncategorized',
                created_at  TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS credits (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                name        TEXT NOT NULL,
                amount      REAL NOT NULL CHECK(amount > 0),
                date        TEXT NOT NULL,
                category    TEXT NOT NULL DEFAULT 'Income',
                created_at  TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS recurring_transactions (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                type          TEXT NOT NULL CHECK(type IN ('expense','credit')),
                name          TEXT NOT NULL,
                category      TEXT NOT NULL,
                amount        REAL NOT NULL CHECK(amount > 0),
                frequency     TEXT NOT NULL DEFAULT 'monthly',
                day_of_month  INTEGER CHECK(day_of_month BETWEEN 1 AND 31),
                weekday       INTEGER CHECK(weekday BETWEEN 0 AND 6),
                next_run_date TEXT NOT NULL,
                last_run_date TEXT,
                is_active     INTEGER NOT NULL DEFAULT 1,
                created_at    TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at    TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS expected_incomes (
                id                 INTEGER PRIMARY KEY AUTOINCREMENT,
                name               TEXT NOT NULL,
                category           TEXT NOT NULL,
                expected_amount    REAL NOT NULL CHECK(expected_amount > 0),
                frequency          TEXT NOT NULL DEFAULT 'monthly',
                due_day            INTEGER CHECK(due_day BETWEEN 1 AND 31),
                notes              TEXT,
                last_received_date TEXT,
                created_at         TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at         TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS budget_goals (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                category      TEXT NOT NULL,
                monthly_limit REAL NOT NULL CHECK(monthly_limit > 0),
                is_active     INTEGER NOT NULL DEFAULT 1
            );

            CREATE TABLE IF NOT EXISTS report_schedules (
                id                      INTEGER PRIMARY KEY AUTOINCREMENT,
                recipient_email         TEXT NOT NULL,
                format                  TEXT NOT NULL DEFAULT 'pdf' CHECK(format IN ('pdf','excel')),
                frequency               TEXT NOT NULL DEFAULT 'monthly' CHECK(frequency IN ('weekly','monthly')),
                include_budget_overview INTEGER NOT NULL DEFAULT 1,
                include_trends          INTEGER NOT NULL DEFAULT 1,
                include_recurring       INTEGER NOT NULL DEFAULT 1,
                next_send_date          TEXT NOT NULL,
                last_sent_at            TEXT,
                is_active               INTEGER NOT NULL DEFAULT 1,
                created_at              TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at              TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE INDEX IF NOT EXISTS idx_expenses_date       ON expenses(date);
            CREATE INDEX IF NOT EXISTS idx_expenses_category   ON expenses(category);
            CREATE INDEX IF NOT EXISTS idx_credits_date        ON credits(date);
            CREATE INDEX IF NOT EXISTS idx_credits_category    ON credits(category);
            CREATE INDEX IF NOT EXISTS idx_recurring_next_run  ON recurring_transactions(next_run_date);
            CREATE INDEX IF NOT EXISTS idx_schedules_next_send ON report_schedules(next_send_date);

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)

    def _seed_defaults(self, conn: sqlite3.Connection):
        for key, value in DEFAULT_SETTINGS:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    def get_setting(self, key: str, default: str = "") -> str:
        conn = self.get_connection()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str):
        conn = self.get_connection()
        conn.execute(
            "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
            (key, value),
        )
        conn.commit()

    @staticmethod
    def open(db_folder: str | None = None) -> "DatabaseManager":
        """Startup factory: opens (creating if needed) the tracker database.

        db_folder: if provided, the DB file is stored in that directory instead of CWD.
        """
        if db_folder:
            os.makedirs(db_folder, exist_ok=True)
            path = os.path.join(db_folder, DB_FILE)
        else:
            path = DB_FILE
        db = DatabaseManager(path)
        db.initialize()
        return db

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
