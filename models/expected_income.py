from dataclasses import dataclass
from typing import Optional


@dataclass
class ExpectedIncome:
    id: int
    name: str
    category: str
    expected_amount: float
    frequency: str = "monthly"
    due_day: Optional[int] = None
    notes: Optional[str] = None
    last_received_date: Optional[str] = None


@dataclass
class ReconciliationEntry:
    income: ExpectedIncome
    received_amount: float
    received_records: list
    due_date: str
    last_received: Optional[str]
    status: str             # 'on_time' | 'partial' | 'missing' | 'late'


@dataclass
class ReconciliationReport:
    month: str              # 'YYYY-MM'
    results: list[ReconciliationEntry]
