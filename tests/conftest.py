"""Shared fixtures for pipeline tests."""

import json

import pytest

METADATA_LINE = '{"type":"metadata","documentmetadata":{"page_count":2}}\n'

# The two-chunk split from the parser service, cut inside the "page_data" tag
SPLIT_CHUNKS = [
    b'{"type":"metadata","documentmetadata":{"page_count":2}}\n{"type":"page_d',
    b'ata","transactions":[{"date":"01/02/24","amount":"1,000","type":"DEBIT","balance":"500"}]}\n',
]


class RecordingAudit:
    """Audit collaborator that remembers every outcome it was given."""

    def __init__(self, fail=False):
        self.outcomes = []
        self.user_ids = []
        self.fail = fail

    def log_statement(self, outcome, user_id=None):
        self.outcomes.append(outcome)
        self.user_ids.append(user_id)
        if self.fail:
            raise RuntimeError("database unavailable")
        return True


def ndjson(*events) -> bytes:
    return "".join(json.dumps(e) + "\n" for e in events).encode("utf-8")


def parse_lines(lines) -> list:
    return [json.loads(line) for line in "".join(lines).splitlines() if line.strip()]


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture
def statement_events():
    """A small descending statement split over two pages."""
    return [
        {"type": "metadata", "documentmetadata": {"page_count": 2, "bank_name": "HDFC"}},
        {"type": "page_data", "transactions": [
            {"date": "10/01/2024", "description": "Salary", "amount": "2,000.00", "type": "CREDIT", "balance": "3,050.00"},
            {"date": "05/01/2024", "description": "Groceries", "amount": "200", "type": "DEBIT", "balance": "1,050.00"},
        ]},
        {"type": "page_data", "transactions": [
            {"date": "01/01/2024", "description": "Opening", "amount": "0", "balance": "1,250.00"},
        ]},
    ]
