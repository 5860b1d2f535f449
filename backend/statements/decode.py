"""
Decode Layer - Classifies framed NDJSON records into tagged events.

Only 'metadata' and 'page_data' are interpreted. Anything else that is valid
JSON passes through as 'unrecognized'. Invalid JSON is logged and dropped; it
never aborts a run.
"""
import json
import logging
from typing import Optional

from .models import Event
from .schema import KNOWN_TAGS, METADATA, PAGE_DATA, UNRECOGNIZED, DocumentMetadata, MetadataEvent


class RecordDecoder:

    def decode(self, record: str) -> Optional[Event]:
        """Returns an Event, or None when the record must be skipped."""
        if not record or not record.strip():
            return None

        try:
            value = json.loads(record)
        except ValueError as e:
            logging.warning(f"Skipping malformed record ({e}): {record[:200]!r}")
            return None

        tag = value.get("type") if isinstance(value, dict) else None
        if tag not in KNOWN_TAGS:
            return Event(UNRECOGNIZED, value)
        if tag == METADATA:
            return Event(METADATA, value)

        if not isinstance(value.get("transactions"), list):
            logging.warning("page_data event without a transactions list")
        return Event(PAGE_DATA, value)


def read_metadata(payload: MetadataEvent) -> DocumentMetadata:
    """
    Pull page count and bank name out of a metadata event.

    The parser service nests them under 'documentmetadata'; older builds used
    'metadata' or top-level keys, and camelCase spellings show up too.
    """
    meta = payload.get("documentmetadata")
    if not isinstance(meta, dict):
        meta = payload.get("metadata")
    if not isinstance(meta, dict):
        meta = payload

    page_count = meta.get("page_count", meta.get("pageCount"))
    try:
        page_count = max(int(page_count), 0)
    except (TypeError, ValueError, OverflowError):
        page_count = None

    bank_name = meta.get("bank_name", meta.get("bankName"))
    if bank_name is not None and not isinstance(bank_name, str):
        bank_name = str(bank_name)

    return {"page_count": page_count, "bank_name": bank_name or None}
