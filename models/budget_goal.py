from dataclasses import dataclass


@dataclass
class BudgetGoal:
    id: int
    category: str
    monthly_limit: float
    is_active: bool = True


@dataclass
class BudgetProgress:
    id: int
    category: str
    monthly_limit: float
    spent_amount: float = 0.0

    @property
    def remaining_amount(self) -> float:
        return round(self.monthly_limit - self.spent_amount, 2)

    @property
    def percentage_used(self) -> float:
        if self.monthly_limit <= 0:
            return 0.0
        return round(self.spent_amount / self.monthly_limit * 100, 2)
