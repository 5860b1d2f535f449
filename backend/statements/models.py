from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

COMPLETED = "completed"
FAILED = "failed"


@dataclass
class Event:
    kind: str
    payload: Any

    def to_dict(self):
        return self.payload


@dataclass
class AccuracyResult:
    opening_balance: float
    closing_balance: float
    calculated_closing_balance: float
    is_accurate: bool

    def to_dict(self):
        return {
            "openingBalance": self.opening_balance,
            "closingBalance": self.closing_balance,
            "calculatedClosingBalance": self.calculated_closing_balance,
            "isAccurate": self.is_accurate
        }


@dataclass
class RunAccumulator:
    """Everything one run keeps until end-of-stream"""
    transactions: List[Dict[str, Any]] = field(default_factory=list)
    page_count: int = 0
    bank_name: Optional[str] = None


@dataclass
class AuditOutcome:
    file_name: str
    processing_status: str
    page_count: int = 0
    bank_name: Optional[str] = None
    transaction_count: int = 0
    is_accurate: bool = False
    error_message: str = ""
