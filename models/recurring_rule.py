from dataclasses import dataclass
from typing import Optional


@dataclass
class RecurringRule:
    id: int
    type: str               # 'expense' | 'credit'
    name: str
    category: str
    amount: float
    frequency: str          # 'weekly' | 'biweekly' | 'monthly' | 'quarterly' | 'yearly'
    next_run_date: str      # 'YYYY-MM-DD'
    is_active: bool
    day_of_month: Optional[int] = None   # 1-31, clamped to month length
    weekday: Optional[int] = None        # 0=Sun..6=Sat
    last_run_date: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
