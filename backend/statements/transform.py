"""
Transform Layer - Deterministic normalization of parser-service transactions.

This module implements:
1. Multi-format date parsing against a fixed, ordered pattern list
2. Thousands-separator stripping for amounts and balances
3. Sign policy: DEBIT is negative, CREDIT is positive, anything else keeps
   its natural sign. Balances are never sign-forced.

Normalization is best-effort: a field that cannot be parsed keeps its raw
value, and no input ever raises.
"""
import math
import re
from datetime import datetime, date
from typing import Any, Callable, List, Optional, Tuple

from .schema import DEBIT, CREDIT, RawTransaction, NormalizedTransaction

CANONICAL_DATE_FORMAT = "%d-%m-%Y"

_TIME_SUFFIX = re.compile(
    r'[T\s]+\d{1,2}:\d{2}(:\d{2}(\.\d+)?)?\s*([AaPp][Mm])?\s*(Z|[+-]\d{2}:?\d{2})?$'
)
_SEPARATORS = re.compile(r'[\s/.,]+')


def _strptime(fmt: str) -> Callable[[str], Optional[date]]:
    def parse(text: str) -> Optional[date]:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            return None
    return parse


def _iso_8601(text: str) -> Optional[date]:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


# ─────────────────────────────────────────────────────────────
# Date Patterns
# ─────────────────────────────────────────────────────────────
# Tried in order; first valid calendar date wins. The order decides
# ambiguous input: '01-02-2024' is 1 February, never 2 January.
# All patterns except ISO-8601 see the separator-canonicalized text.

DATE_PATTERNS: List[Tuple[str, Callable[[str], Optional[date]]]] = [
    ("DD-MM-YYYY", _strptime("%d-%m-%Y")),
    ("YYYY-MM-DD", _strptime("%Y-%m-%d")),
    ("MM-DD-YYYY", _strptime("%m-%d-%Y")),
    ("DD-MM-YY", _strptime("%d-%m-%y")),
    ("DD-Mon-YYYY", _strptime("%d-%b-%Y")),
    ("DD-Mon-YY", _strptime("%d-%b-%y")),
    ("DD-Month-YYYY", _strptime("%d-%B-%Y")),
    ("Mon-DD-YYYY", _strptime("%b-%d-%Y")),
    ("Month-DD-YYYY", _strptime("%B-%d-%Y")),
    ("YYYY-Mon-DD", _strptime("%Y-%b-%d")),
]

ISO_PATTERN = ("ISO-8601", _iso_8601)


def parse_date(value: Any) -> Optional[date]:
    """Parse a date string using the ordered pattern list."""
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None

    text = _SEPARATORS.sub("-", _TIME_SUFFIX.sub("", raw)).strip("-")
    for _, parser in DATE_PATTERNS:
        parsed = parser(text)
        if parsed is not None:
            return parsed

    return ISO_PATTERN[1](raw)


def normalize_date(value: Any) -> Any:
    parsed = parse_date(value)
    if parsed is None:
        return value
    # strftime does not zero-pad years below 1000
    return f"{parsed.day:02d}-{parsed.month:02d}-{parsed.year:04d}"


def parse_number(value: Any) -> Optional[float]:
    """
    Strip thousands separators and parse as float.
    Returns None for anything that is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        val_str = str(value).replace(',', '').strip()
        if not val_str:
            return None
        try:
            number = float(val_str)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


class FieldNormalizer:
    """
    Pure, total normalizer for a single raw transaction.
    Returns a new dict; the input is never mutated.
    """

    def normalize(self, raw: RawTransaction) -> NormalizedTransaction:
        if not isinstance(raw, dict):
            return raw

        tx = dict(raw)

        if "date" in tx:
            tx["date"] = normalize_date(tx["date"])

        if tx.get("amount") is not None:
            amount = parse_number(tx["amount"])
            if amount is not None:
                tx["amount"] = self._apply_sign(amount, tx.get("type"))

        if tx.get("balance") is not None:
            balance = parse_number(tx["balance"])
            if balance is not None:
                tx["balance"] = balance

        return tx

    def _apply_sign(self, amount: float, tx_type: Any) -> float:
        kind = tx_type.strip().upper() if isinstance(tx_type, str) else None
        if kind == DEBIT:
            return -abs(amount)
        if kind == CREDIT:
            return abs(amount)
        return amount
