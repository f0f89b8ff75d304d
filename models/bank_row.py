from dataclasses import dataclass

KNOWN_LAYOUT_KEYS = ("Posted Transactions Date", "Debit Amount", "Credit Amount")
DESCRIPTION_KEYS = ("Description1", "Description2", "Description3")


@dataclass(frozen=True)
class KnownBankRow:
    """Row from the bank export with separate debit/credit columns."""
    posted_date: str
    debit: str
    credit: str
    transaction_type: str
    descriptions: tuple[str, ...]

    @classmethod
    def from_mapping(cls, raw: dict) -> "KnownBankRow":
        return cls(
            posted_date=str(raw.get("Posted Transactions Date") or ""),
            debit=str(raw.get("Debit Amount") or ""),
            credit=str(raw.get("Credit Amount") or ""),
            transaction_type=str(raw.get("Transaction Type") or ""),
            descriptions=tuple(str(raw.get(k) or "") for k in DESCRIPTION_KEYS),
        )


@dataclass(frozen=True)
class GenericBankRow:
    """Any other export shape, including already-normalized rows."""
    date: str
    debit: str
    credit: str
    amount: str
    descriptions: tuple[str, ...]
    description: str

    @classmethod
    def from_mapping(cls, raw: dict) -> "GenericBankRow":
        return cls(
            date=_first(raw, "date", "Date", "Transaction Date", "Posted Transactions Date"),
            debit=_first(raw, "debit", "Debit", "Debit Amount"),
            credit=_first(raw, "credit", "Credit", "Credit Amount"),
            amount=_first(raw, "amount", "Amount", "Local Currency Amount"),
            descriptions=tuple(str(raw.get(k) or "") for k in DESCRIPTION_KEYS),
            description=_first(raw, "description", "Description", "name", "Name"),
        )


@dataclass(frozen=True)
class NormalizedRow:
    type: str       # 'expense' | 'income'
    name: str
    amount: float
    date: str       # 'YYYY-MM-DD'
    category: str

    def as_dict(self) -> dict:
        return {
            "type": self.type,
            "name": self.name,
            "amount": self.amount,
            "date": self.date,
            "category": self.category,
        }


def is_known_layout(raw: dict) -> bool:
    return any(k in raw for k in KNOWN_LAYOUT_KEYS)


def _first(raw: dict, *keys: str) -> str:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return str(value)
    return ""
