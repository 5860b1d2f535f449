"""
Tests for the parser service client.

These tests use the responses library to mock the parser service,
validating client behavior without making real HTTP calls.
"""

import pytest
import requests
import responses

from backend.statements.extract import ParserServiceClient, ParserServiceError
from backend.statements.pipeline import StatementPipeline

from conftest import RecordingAudit, parse_lines

URL = "http://parser.test:8000/parse"


@pytest.fixture
def pdf_file(tmp_path):
    path = tmp_path / "statement.pdf"
    path.write_bytes(b"%PDF-1.4 test document")
    return str(path)


@pytest.fixture
def client():
    return ParserServiceClient(URL, api_key="secret-key", timeout=5, chunk_size=16)


class TestOpen:

    @responses.activate
    def test_sends_document_hints_and_api_key(self, client, pdf_file):
        responses.add(responses.POST, URL, body=b'{"type":"metadata"}\n', status=200,
                      content_type="application/x-ndjson")

        response = client.open(pdf_file, "march.pdf", bank_name="HDFC", password="1234")
        response.close()

        request = responses.calls[0].request
        assert request.headers["X-API-KEY"] == "secret-key"
        assert b'name="file"; filename="march.pdf"' in request.body
        assert b'name="bank_name"' in request.body
        assert b"HDFC" in request.body
        assert b'name="password"' in request.body
        assert b"%PDF-1.4 test document" in request.body

    @responses.activate
    def test_optional_hints_are_omitted(self, pdf_file):
        responses.add(responses.POST, URL, body=b"", status=200)

        ParserServiceClient(URL, api_key="").open(pdf_file).close()

        request = responses.calls[0].request
        assert "X-API-KEY" not in request.headers
        assert b'name="bank_name"' not in request.body
        assert b'name="password"' not in request.body

    @responses.activate
    def test_non_success_status_raises(self, client, pdf_file):
        responses.add(responses.POST, URL, body="Unsupported document", status=422)

        with pytest.raises(ParserServiceError) as exc_info:
            client.open(pdf_file)

        assert exc_info.value.status_code == 422
        assert exc_info.value.body == "Unsupported document"
        assert str(exc_info.value).startswith("Parser service error: 422")
        assert str(exc_info.value).endswith("- Unsupported document")

    @responses.activate
    def test_connection_error_propagates(self, client, pdf_file):
        responses.add(responses.POST, URL, body=requests.ConnectionError("refused"))

        with pytest.raises(requests.ConnectionError):
            client.open(pdf_file)


class TestIterChunks:

    @responses.activate
    def test_chunks_feed_the_pipeline(self, client, pdf_file):
        body = (
            b'{"type":"metadata","documentmetadata":{"page_count":1,"bank_name":"SBI"}}\n'
            b'{"type":"page_data","transactions":[{"date":"2024-03-01","amount":"1,500.00","type":"CREDIT","balance":"1,500.00"}]}\n'
        )
        responses.add(responses.POST, URL, body=body, status=200)

        response = client.open(pdf_file)
        chunks = list(client.iter_chunks(response))
        assert all(len(c) <= 16 for c in chunks)
        assert b"".join(chunks) == body

        audit = RecordingAudit()
        pipeline = StatementPipeline(audit=audit)
        run = pipeline.start("statement.pdf")
        events = parse_lines(pipeline.process(chunks, run))

        assert events[1]["transactions"][0]["date"] == "01-03-2024"
        assert events[1]["transactions"][0]["amount"] == 1500.0
        assert events[-1]["accuracy"]["isAccurate"] is True
        assert audit.outcomes[0].bank_name == "SBI"
