from dataclasses import dataclass
from typing import Optional


@dataclass
class ReportSchedule:
    id: int
    recipient_email: str
    format: str             # 'pdf' | 'excel'
    frequency: str          # 'weekly' | 'monthly'
    next_send_date: str     # 'YYYY-MM-DD'
    include_budget_overview: bool = True
    include_trends: bool = True
    include_recurring: bool = True
    is_active: bool = True
    last_sent_at: Optional[str] = None
    user_id: Optional[int] = None
