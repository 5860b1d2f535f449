"""
Event Schema - TypedDict definitions for the NDJSON wire format.

Inbound events come from the parser service; outbound events are the same
events with normalized transactions, plus one synthesized terminal event.
"""
from typing import TypedDict, Dict, Any, List, Optional, Union

# Event tags
METADATA = "metadata"
PAGE_DATA = "page_data"
UNRECOGNIZED = "unrecognized"
ACCURACY = "accuracy"
ERROR = "error"

KNOWN_TAGS = (METADATA, PAGE_DATA)

DEBIT = "DEBIT"
CREDIT = "CREDIT"


class DocumentMetadata(TypedDict, total=False):
    """Statement-level metadata as sent by the parser service"""
    page_count: int
    bank_name: Optional[str]


class MetadataEvent(TypedDict):
    type: str                               # 'metadata'
    documentmetadata: DocumentMetadata


class RawTransaction(TypedDict, total=False):
    """
    Transaction as received. Every field is optional and untyped; unknown
    fields (description, reference, ...) are carried through verbatim.
    """
    date: str                               # Any of the supported date formats
    amount: Union[str, float, int]          # May contain thousands separators
    type: str                               # 'DEBIT' | 'CREDIT' | absent
    balance: Union[str, float, int]


class NormalizedTransaction(TypedDict, total=False):
    date: str                               # DD-MM-YYYY, or raw if unparseable
    amount: Union[float, str]               # Signed by type, or raw if unparseable
    type: str
    balance: Union[float, str]              # Unsigned-as-given, or raw


class PageDataEvent(TypedDict):
    type: str                               # 'page_data'
    transactions: List[Dict[str, Any]]


class AccuracyPayload(TypedDict):
    openingBalance: float
    closingBalance: float
    calculatedClosingBalance: float
    isAccurate: bool


class AccuracyEvent(TypedDict):
    type: str                               # 'accuracy'
    accuracy: AccuracyPayload


class ErrorEvent(TypedDict):
    type: str                               # 'error'
    message: str
