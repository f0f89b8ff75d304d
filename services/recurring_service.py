import logging
from dataclasses import dataclass, field
from datetime import date

from models.recurring_rule import RecurringRule
from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.ledger_dao import LedgerDAO
from services.recurrence import compute_next_run, initial_next_run
from utils.constants import FREQUENCIES, RECURRING_TYPES
from utils.date_helpers import parse_date, format_date, today

logger = logging.getLogger(__name__)


@dataclass
class FiringResult:
    fired: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class RecurringService:
    def __init__(
        self,
        db: DatabaseManager,
        recurring_dao: RecurringDAO,
        expense_dao: LedgerDAO,
        credit_dao: LedgerDAO,
    ):
        self._db = db
        self._dao = recurring_dao
        self._ledgers = {"expense": expense_dao, "credit": credit_dao}

    def get_all(self) -> list[RecurringRule]:
        return self._dao.get_all()

    def get_active(self) -> list[RecurringRule]:
        return self._dao.get_active()

    def get_by_id(self, rule_id: int) -> RecurringRule | None:
        return self._dao.get_by_id(rule_id)

    def create(
        self,
        type_: str,
        name: str,
        category: str,
        amount: float,
        frequency: str = "monthly",
        day_of_month: int | None = None,
        weekday: int | None = None,
        start_date: str | None = None,
        is_active: bool = True,
        reference_date: date | None = None,
    ) -> RecurringRule:
        """Create a rule. A start date after today becomes the first run;
        otherwise the first run is computed from today."""
        self._validate(type_, name, category, amount, frequency, day_of_month, weekday)
        ref = reference_date or today()
        anchors = RecurringRule(
            id=0, type=type_, name=name, category=category, amount=amount,
            frequency=frequency, next_run_date="", is_active=is_active,
            day_of_month=day_of_month, weekday=weekday,
        )
        first_run = initial_next_run(anchors, parse_date(start_date), ref)
        return self._dao.create(
            type_=type_, name=name.strip(), category=category.strip(),
            amount=amount, frequency=frequency, next_run_date=format_date(first_run),
            day_of_month=day_of_month, weekday=weekday, is_active=is_active,
        )

    def update(
        self,
        rule_id: int,
        name: str,
        category: str,
        amount: float,
        frequency: str,
        next_run_date: str,
        day_of_month: int | None = None,
        weekday: int | None = None,
        is_active: bool = True,
    ) -> RecurringRule | None:
        existing = self._dao.get_by_id(rule_id)
        if existing is None:
            raise ValueError(f"Recurring rule {rule_id} not found.")
        self._validate(existing.type, name, category, amount, frequency, day_of_month, weekday)
        if not parse_date(next_run_date):
            raise ValueError("Invalid next run date.")
        return self._dao.update(
            rule_id=rule_id, name=name.strip(), category=category.strip(),
            amount=amount, frequency=frequency, next_run_date=next_run_date,
            day_of_month=day_of_month, weekday=weekday, is_active=is_active,
        )

    def set_active(self, rule_id: int, is_active: bool):
        self._dao.set_active(rule_id, is_active)

    def delete(self, rule_id: int):
        self._dao.delete(rule_id)

    def fire_due_rules(self, reference_date: date | None = None) -> FiringResult:
        """Post every active rule due on or before reference_date (default: today).

        Each rule gets one ledger row dated reference_date, then its
        last_run_date/next_run_date are advanced. The pair is committed per
        rule; a failing rule is rolled back and skipped.
        """
        ref = reference_date or today()
        ref_str = format_date(ref)
        result = FiringResult()

        for rule in self._dao.get_due(ref_str):
            try:
                with self._db.transaction():
                    self._fire(rule, ref)
            except Exception:
                logger.exception("Recurring rule %s (%s) failed to post", rule.id, rule.name)
                result.failed.append(rule.id)
                continue
            result.fired.append(rule.id)

        if result.fired or result.failed:
            logger.info(
                "Processed %d recurring transactions (%d failed)",
                len(result.fired), len(result.failed),
            )
        return result

    def _fire(self, rule: RecurringRule, ref: date):
        ledger = self._ledgers.get(rule.type)
        if ledger is None:
            raise ValueError(f"Rule {rule.id} has unknown type {rule.type!r}")
        ref_str = format_date(ref)
        ledger.create(rule.name, rule.amount, ref_str, rule.category)
        self._dao.mark_run(rule.id, ref_str, format_date(compute_next_run(rule, ref)))

    def _validate(self, type_, name, category, amount, frequency, day_of_month, weekday):
        if type_ not in RECURRING_TYPES:
            raise ValueError("Type must be expense or credit.")
        if not name or not name.strip():
            raise ValueError("Name cannot be empty.")
        if not category or not category.strip():
            raise ValueError("Category cannot be empty.")
        if amount is None or amount <= 0:
            raise ValueError("Amount must be positive.")
        if frequency not in FREQUENCIES:
            raise ValueError("Invalid frequency.")
        if day_of_month is not None and not 1 <= day_of_month <= 31:
            raise ValueError("Day of month must be between 1 and 31.")
        if weekday is not None and not 0 <= weekday <= 6:
            raise ValueError("Weekday must be between 0 (Sunday) and 6 (Saturday).")
