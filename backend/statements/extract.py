"""
Extract Layer - Client for the external statement parser service.

The parser service receives the uploaded document and answers with a chunked
NDJSON body. The response is opened with stream=True so chunks can be handed
to the pipeline as they arrive instead of after the whole body is read.
"""
import logging
import os
from typing import Iterator, Optional

import requests

from .config import Config


class ParserServiceError(Exception):
    """Parser service answered with a non-success status."""

    def __init__(self, status_code: int, reason: str = "", body: str = ""):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        message = f"Parser service error: {status_code} {reason}".rstrip()
        if body:
            message = f"{message} - {body}"
        super().__init__(message)


class ParserServiceClient:
    """
    Thin requests wrapper. Holds configuration only, so one instance can be
    shared by concurrent requests.
    """

    def __init__(self, url: str = None, api_key: str = None,
                 timeout: float = None, chunk_size: int = None):
        self.url = url or Config.PARSER_SERVICE_URL
        self.api_key = api_key if api_key is not None else Config.PARSER_API_KEY
        self.timeout = timeout or Config.PARSER_TIMEOUT
        self.chunk_size = chunk_size or Config.CHUNK_SIZE

    def open(self, file_path: str, file_name: str = None,
             bank_name: Optional[str] = None, password: Optional[str] = None) -> requests.Response:
        """
        Send the document and return the open streaming response.

        Raises ParserServiceError on a non-2xx status and
        requests.RequestException on connection failures.
        """
        data = {}
        if bank_name:
            data["bank_name"] = bank_name
        if password:
            data["password"] = password

        headers = {}
        if self.api_key:
            headers["X-API-KEY"] = self.api_key

        logging.info(f"Forwarding {file_name or file_path} to parser service: {self.url}")
        with open(file_path, "rb") as fh:
            files = {"file": (file_name or os.path.basename(file_path), fh, "application/pdf")}
            response = requests.post(
                self.url,
                files=files,
                data=data,
                headers=headers,
                stream=True,
                timeout=self.timeout
            )

        if not response.ok:
            try:
                body = response.text
            finally:
                response.close()
            raise ParserServiceError(response.status_code, response.reason or "", body)

        return response

    def iter_chunks(self, response: requests.Response) -> Iterator[bytes]:
        """Yield raw body chunks, skipping keep-alive empties. Closes the response."""
        try:
            for chunk in response.iter_content(chunk_size=self.chunk_size):
                if chunk:
                    yield chunk
        finally:
            response.close()
