"""Turn rows from an uploaded bank CSV into canonical transactions.

The layout is decided once from the first row: the bank export with
"Posted Transactions Date" / "Debit Amount" / "Credit Amount" columns, or a
generic shape with debit/credit or a single signed amount. Rows that end up
without a valid date or with a non-positive amount are dropped.
"""
import csv
import io
import math
import re
from datetime import date

from dateutil import parser as date_parser

from models.bank_row import GenericBankRow, KnownBankRow, NormalizedRow, is_known_layout
from utils.constants import DATE_FORMAT, INCOME_CATEGORY, UNCATEGORIZED

# Ordered: first match wins, so a later, broader pattern never overrides an earlier one.
CATEGORY_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(p, re.IGNORECASE), category)
    for p, category in [
        (r"NETFLIX|SPOTIFY", "Entertainment"),
        (r"LIDL|ALDI|TESCO|SUPERVALU|SPAR|MORE 4|POLSKI", "Groceries"),
        (r"APPLEGREEN|PETROL|PARKING|ONLINE MOTOR|TOLL", "Carro"),
        (r"AIB CARD PYMT|NAPS LOAN|PREMIUM CREDIT", "Loan/CreditCard"),
        (r"IRISH LIFE|BRECAN PHARM|GP|THE MEDICAL CENTER", "Healthcare"),
        (r"BORD GAIS|EIR|RENT|GAS|MORIATY REAL", "Utilities"),
        (r"FEES|TAX|STAMP DUTY", "Fees"),
        (r"MICROSOFT|APPLE|GOOGLE|OPENAI|TRAE", "Licenses"),
        (r"AMAZON", "Others"),
        (r"APACHE PIZZA|SPAR EAST|EDDIE ROCKETS", "Eating Out"),
        (r"LEAP CARD|IRISH RAIL", "Transport"),
        (r"HUMMGROUP|FOOT LOCKER", "Gifts"),
        (r"PLATINUM", "Gym"),
        (r"GUSTAVO|HPNUTRITION|SP DISCOUNT|IHERB|VITAMIN SHOP|MOV &", "Self-Care"),
        (r"PREMIER LOTT|IKEA|PENNEYS|AMAZON\.IE", "Others"),
        (r"PYEU|FABIO|REV|SALARY", "Income"),
    ]
]

_PREFIX_RE = re.compile(r"^\s*(VDC-WWW|VDC-|VDP-|D/D)\s*", re.IGNORECASE)
_SEPARATOR_RUN_RE = re.compile(r"[\s-]{2,}")
_WORD_START_RE = re.compile(r"\b([a-z])")
_DMY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})(?:[\sT].*)?$")
_DAY_FIRST_RE = re.compile(r"^\d{1,2}/")


def normalize_bank_rows(raw_rows) -> list[NormalizedRow]:
    if not raw_rows:
        return []
    rows = list(raw_rows)
    if is_known_layout(rows[0]):
        candidates = (_from_known(KnownBankRow.from_mapping(r)) for r in rows)
    else:
        candidates = (_from_generic(GenericBankRow.from_mapping(r)) for r in rows)
    return [row for row in candidates if row is not None]


def parse_number(value) -> float:
    """Strip whitespace and thousands separators; anything unparsable is 0."""
    if value is None:
        return 0.0
    text = re.sub(r"\s+", "", str(value)).replace(",", "")
    if not text:
        return 0.0
    try:
        number = float(text)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def to_iso_date(value) -> str | None:
    """DD/MM/YYYY -> YYYY-MM-DD, falling back to a looser parse.

    A trailing time is ignored. Other slash dates that start with the day
    (05/03/24) are read day-first; year-first and ISO strings month-first.
    """
    if not value:
        return None
    text = str(value).strip()
    m = _DMY_RE.match(text)
    if m:
        dd, mm, yyyy = m.groups()
        try:
            return date(int(yyyy), int(mm), int(dd)).strftime(DATE_FORMAT)
        except ValueError:
            return None
    try:
        parsed = date_parser.parse(text, dayfirst=bool(_DAY_FIRST_RE.match(text))).date()
    except (ValueError, OverflowError):
        return None
    if parsed.year < 1000:
        return None
    return parsed.strftime(DATE_FORMAT)


def clean_name(raw) -> str:
    if not raw:
        return ""
    s = _PREFIX_RE.sub("", str(raw), count=1)
    s = s.replace("*", "")
    s = _SEPARATOR_RUN_RE.sub(" ", s).strip()
    return _WORD_START_RE.sub(lambda m: m.group(1).upper(), s.lower())


def derive_category(name: str) -> str:
    if not name:
        return UNCATEGORIZED
    for pattern, category in CATEGORY_RULES:
        if pattern.search(name):
            return category
    return UNCATEGORIZED


def read_csv_rows(text: str) -> list[dict]:
    """Parse uploaded CSV text into header-mapped rows with trimmed keys and values."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    rows = []
    for raw in reader:
        rows.append({
            (k or "").strip(): (v or "").strip() if isinstance(v, str) else ""
            for k, v in raw.items()
            if k is not None
        })
    return rows


def _join_descriptions(parts) -> str:
    return " - ".join(p.strip() for p in parts if p and p.strip())


def _build(type_: str, amount: float, iso: str | None, name_raw: str) -> NormalizedRow | None:
    if not iso or amount <= 0:
        return None
    name = clean_name(name_raw).strip()
    category = INCOME_CATEGORY if type_ == "income" else derive_category(name)
    return NormalizedRow(type=type_, name=name, amount=amount, date=iso, category=category)


def _from_known(row: KnownBankRow) -> NormalizedRow | None:
    debit = parse_number(row.debit)
    credit = parse_number(row.credit)
    if credit > 0:
        type_ = "income"
    elif debit > 0:
        type_ = "expense"
    elif "credit" in row.transaction_type.lower():
        type_ = "income"
    else:
        type_ = "expense"
    amount = credit if type_ == "income" else debit
    name_raw = _join_descriptions(row.descriptions)
    return _build(type_, amount, to_iso_date(row.posted_date), name_raw)


def _from_generic(row: GenericBankRow) -> NormalizedRow | None:
    debit = parse_number(row.debit)
    credit = parse_number(row.credit)
    if credit > 0:
        type_, amount = "income", credit
    elif debit > 0:
        type_, amount = "expense", debit
    else:
        signed = parse_number(row.amount)
        if signed < 0:
            type_, amount = "expense", abs(signed)
        else:
            type_, amount = "income", signed
    name_raw = _join_descriptions(row.descriptions) or row.description
    return _build(type_, amount, to_iso_date(row.date), name_raw)
