from models.budget_goal import BudgetGoal, BudgetProgress
from database.budget_goal_dao import BudgetGoalDAO
from utils.date_helpers import current_month_str, month_range


class BudgetService:
    def __init__(self, goal_dao: BudgetGoalDAO):
        self._dao = goal_dao

    def get_active(self) -> list[BudgetGoal]:
        return self._dao.get_active()

    def create(self, category: str, monthly_limit: float) -> BudgetGoal:
        self._validate(category, monthly_limit)
        return self._dao.create(category.strip(), monthly_limit)

    def update(self, goal_id: int, category: str, monthly_limit: float) -> BudgetGoal | None:
        self._validate(category, monthly_limit)
        return self._dao.update(goal_id, category.strip(), monthly_limit)

    def delete(self, goal_id: int):
        """Goals are deactivated, not removed."""
        self._dao.deactivate(goal_id)

    def get_progress(self, month: str | None = None) -> list[BudgetProgress]:
        """Spending against each active goal for a YYYY-MM month, most used first."""
        start, end = month_range(month or current_month_str())
        return self.get_progress_between(start, end)

    def get_progress_between(self, start: str, end: str) -> list[BudgetProgress]:
        progress = self._dao.get_progress(start, end)
        progress.sort(key=lambda p: p.percentage_used, reverse=True)
        return progress

    def _validate(self, category, monthly_limit):
        if not category or not category.strip():
            raise ValueError("Category is required.")
        if monthly_limit is None or monthly_limit <= 0:
            raise ValueError("Monthly limit must be positive.")
