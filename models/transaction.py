from dataclasses import dataclass


@dataclass
class Transaction:
    id: int
    kind: str               # 'expense' | 'credit'
    name: str
    amount: float
    date: str               # 'YYYY-MM-DD'
    category: str
    created_at: str = ""
    updated_at: str = ""
