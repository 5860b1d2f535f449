"""
Framing Layer - Reassembles an NDJSON byte stream into complete text records.

The parser service delivers its response in arbitrary chunks. A chunk can end
in the middle of a JSON value, an escape sequence or a multi-byte UTF-8
character, so records are only released once their terminating newline has
arrived. Only the newly decoded text is searched for a newline; the incomplete
tail is held as a list of pieces and joined once its record completes.
"""
import codecs
import logging
from typing import Iterator, List, Optional

REPLACE_AND_WARN = "statement-replace"


def _replace_and_warn(error: UnicodeDecodeError):
    bad = error.object[error.start:error.end]
    logging.warning(
        f"Invalid {error.encoding} bytes {bytes(bad)!r} in upstream stream, "
        f"replaced with U+FFFD"
    )
    return "\ufffd", error.end


codecs.register_error(REPLACE_AND_WARN, _replace_and_warn)


class FrameReassembler:
    """
    Push-based line framer.

    feed() is called as chunks arrive; finish() once the stream has ended.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors=REPLACE_AND_WARN)
        self._pending: List[str] = []

    @property
    def buffer(self) -> str:
        """Text received since the last newline."""
        return "".join(self._pending)

    def feed(self, chunk: bytes) -> Iterator[str]:
        """
        Append a chunk and return an iterator over the records it completed.

        Every segment but the last is complete; the last becomes the new
        buffer, even when it is empty.
        """
        text = chunk if isinstance(chunk, str) else self._decoder.decode(chunk)
        if "\n" not in text:
            if text:
                self._pending.append(text)
            return iter(())

        head, *records = text.split("\n")
        tail = records.pop()
        self._pending.append(head)
        records.insert(0, "".join(self._pending))
        self._pending = [tail] if tail else []
        return iter(records)

    def finish(self) -> Optional[str]:
        """Flush the trailing record, if any text is left in the buffer."""
        tail = self.buffer + self._decoder.decode(b"", final=True)
        self._pending = []
        self._decoder.reset()
        return tail if tail.strip() else None
