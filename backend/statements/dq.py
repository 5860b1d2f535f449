"""
Reconciliation Engine - Balance accuracy check for a normalized statement.

The anchor is the balance of the first transaction. That is the balance
*after* the first transaction, not a true opening balance, so the first
amount is excluded from the running sum:

    balance[0] + sum(amount[1..n]) == balance[n]   (within tolerance)

Downstream accuracy comparisons depend on this exact convention.
"""
from typing import Any, Dict, List

from .config import Config
from .models import AccuracyResult


def _numeric(value: Any) -> float:
    # Normalized fields are floats; anything left raw counts as zero
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


class ReconciliationEngine:
    """
    Single-pass, rule-based reconciliation. Computed once per run.
    """

    def __init__(self, tolerance: float = None):
        self.tolerance = Config.RECONCILIATION_TOLERANCE if tolerance is None else tolerance

    def reconcile(self, transactions: List[Dict[str, Any]]) -> AccuracyResult:
        if not transactions:
            raise ValueError("Cannot reconcile an empty transaction list")

        opening_balance = _numeric(self._field(transactions[0], "balance"))
        closing_balance = _numeric(self._field(transactions[-1], "balance"))

        running_total = opening_balance
        for tx in transactions[1:]:
            running_total += _numeric(self._field(tx, "amount"))

        calculated = round(running_total, 2)
        is_accurate = abs(calculated - closing_balance) < self.tolerance

        return AccuracyResult(
            opening_balance=opening_balance,
            closing_balance=closing_balance,
            calculated_closing_balance=calculated,
            is_accurate=is_accurate
        )

    def _field(self, tx: Any, name: str) -> Any:
        return tx.get(name) if isinstance(tx, dict) else None
