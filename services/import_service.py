import logging
from dataclasses import dataclass

from database.db_manager import DatabaseManager
from database.ledger_dao import LedgerDAO
from models.bank_row import NormalizedRow
from services.bank_normalizer import normalize_bank_rows, read_csv_rows

logger = logging.getLogger(__name__)


class ImportFailedError(RuntimeError):
    """The import was rolled back; nothing from it was stored."""


@dataclass
class ImportResult:
    inserted: int = 0
    duplicates: int = 0
    dropped: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.duplicates + self.dropped


class ImportService:
    def __init__(self, db: DatabaseManager, expense_dao: LedgerDAO, credit_dao: LedgerDAO):
        self._db = db
        self._ledgers = {"expense": expense_dao, "income": credit_dao}

    def import_csv(self, text: str) -> ImportResult:
        return self.import_rows(read_csv_rows(text))

    def import_rows(self, raw_rows: list[dict]) -> ImportResult:
        """Normalize raw bank rows and store them in one all-or-nothing transaction.

        A row whose (name, amount, date) already exists in its ledger is counted
        as a duplicate and skipped.
        """
        normalized = normalize_bank_rows(raw_rows)
        result = ImportResult(dropped=len(raw_rows) - len(normalized))
        try:
            with self._db.transaction():
                for row in normalized:
                    if self._insert_unless_duplicate(row):
                        result.inserted += 1
                    else:
                        result.duplicates += 1
        except Exception as exc:
            logger.exception("CSV import rolled back after %d rows", result.inserted + result.duplicates)
            raise ImportFailedError("Import failed; no rows were saved.") from exc

        logger.info(
            "Imported %d rows (%d duplicates, %d dropped)",
            result.inserted, result.duplicates, result.dropped,
        )
        return result

    def _insert_unless_duplicate(self, row: NormalizedRow) -> bool:
        dao = self._ledgers[row.type]
        if dao.exists(row.name, row.amount, row.date):
            return False
        dao.create(row.name, row.amount, row.date, row.category)
        return True
