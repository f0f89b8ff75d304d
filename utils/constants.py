APP_NAME = "Expense Tracker"
DB_FILE = "expense_tracker.db"

DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

LEDGER_TABLES = {
    "expense": "expenses",
    "credit": "credits",
}

RECURRING_TYPES = ["expense", "credit"]
FREQUENCIES = ["weekly", "biweekly", "monthly", "quarterly", "yearly"]
DAY_INTERVALS = {
    "weekly": 7,
    "biweekly": 14,
}
MONTH_INTERVALS = {
    "monthly": 1,
    "quarterly": 3,
    "yearly": 12,
}

REPORT_FORMATS = ["pdf", "excel"]
REPORT_FREQUENCIES = ["weekly", "monthly"]
TREND_MONTHS = 6

INCOME_CATEGORY = "Income"
UNCATEGORIZED = "Uncategorized"

DEFAULT_SETTINGS = [
    ("currency_symbol", "€"),
    ("recurring_run_time", "03:05"),
    ("report_run_time", "06:15"),
    ("report_send_time", "06:30"),
]
