"""
Order Resolution - Puts descending statements into ascending order.

Some banks list the newest transaction first. Reconciliation walks the list
from oldest to newest, so a descending statement is reversed once, at
end-of-stream. Only the two endpoints are inspected: a statement that is out
of order in the middle is left alone.
"""
from datetime import datetime, date
from typing import Any, Dict, List, Optional

from .transform import CANONICAL_DATE_FORMAT


def _canonical_date(tx: Any) -> Optional[date]:
    value = tx.get("date") if isinstance(tx, dict) else None
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value, CANONICAL_DATE_FORMAT).date()
    except ValueError:
        return None


class OrderResolver:

    def is_descending(self, transactions: List[Dict[str, Any]]) -> bool:
        if len(transactions) < 2:
            return False
        first = _canonical_date(transactions[0])
        last = _canonical_date(transactions[-1])
        return first is not None and last is not None and first > last

    def resolve(self, transactions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Reverse in place iff the first date is after the last. Returns the same list."""
        if self.is_descending(transactions):
            transactions.reverse()
        return transactions
