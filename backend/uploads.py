"""
Upload Storage - Temp-file lifecycle for uploaded statements.

The storage directory is passed in explicitly and created on first use.
Every saved upload must be released exactly once, whatever the outcome of
the request.
"""
import logging
import os
import random
from datetime import datetime
from typing import Optional


class UploadError(Exception):
    """Upload rejected before it reached the pipeline."""

    def __init__(self, message: str, status_code: int = 400):
        self.status_code = status_code
        super().__init__(message)


class StoredUpload:

    def __init__(self, path: str, original_name: str):
        self.path = path
        self.original_name = original_name
        self.released = False

    def release(self) -> bool:
        """Delete the file. Only the first call does anything."""
        if self.released:
            return False
        self.released = True
        try:
            if os.path.exists(self.path):
                os.remove(self.path)
        except OSError as e:
            logging.error(f"Error deleting temp file {self.path}: {e}")
        return True


class UploadStore:

    def __init__(self, base_dir: str, allowed_extensions=None, max_size: Optional[int] = None):
        self.base_dir = base_dir
        self.allowed_extensions = {e.lower() for e in (allowed_extensions or {'pdf'})}
        self.max_size = max_size

    def ensure_dir(self) -> str:
        os.makedirs(self.base_dir, exist_ok=True)
        return self.base_dir

    def validate(self, file) -> None:
        """Reject missing, wrong-type or oversized uploads. Leaves the stream at 0."""
        if file is None or not file.filename:
            raise UploadError("No file uploaded")

        ext = os.path.splitext(file.filename)[1].lstrip('.').lower()
        if ext not in self.allowed_extensions:
            allowed = ", ".join(sorted(self.allowed_extensions)).upper()
            raise UploadError(f"Only {allowed} files are allowed")

        if self.max_size is not None:
            file.seek(0, os.SEEK_END)
            size = file.tell()
            file.seek(0)
            if size > self.max_size:
                raise UploadError(
                    f"File too large ({size / (1024 * 1024):.1f}MB). "
                    f"Max is {self.max_size / (1024 * 1024):.0f}MB."
                )

    def save(self, file) -> StoredUpload:
        self.validate(file)
        self.ensure_dir()

        ext = os.path.splitext(file.filename)[1].lower()
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
        unique = f"{timestamp}-{random.randint(0, 10**9)}"
        path = os.path.join(self.base_dir, f"statement-{unique}{ext}")
        file.save(path)
        logging.info(f"Saved upload {file.filename} to {path}")
        return StoredUpload(path, file.filename)
