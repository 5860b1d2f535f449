"""
Statement Pipeline Orchestrator - Coordinates Frame, Decode, Transform, Order, Reconcile.

Flow per chunk:   Frame → Decode → (metadata: capture | page_data: Transform) → Emit
Flow at the end:  Flush → Order → Reconcile → Emit terminal event → Report audit

Every run ends with exactly one terminal event downstream ('accuracy' or
'error') and exactly one AuditOutcome reported to the audit collaborator.
"""
import logging
import time
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Optional

import requests

from .decode import RecordDecoder, read_metadata
from .dq import ReconciliationEngine
from .extract import ParserServiceError
from .framing import FrameReassembler
from .load import NDJSONBuffer, accuracy_event, error_event
from .models import AccuracyResult, AuditOutcome, RunAccumulator, COMPLETED, FAILED
from .ordering import OrderResolver
from .schema import METADATA, PAGE_DATA, MetadataEvent, PageDataEvent
from .transform import FieldNormalizer

NO_TRANSACTIONS = "No transactions found in statement"


class RunState(str, Enum):
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    REPORTING = "reporting"
    DONE = "done"
    ERRORED = "errored"


class PipelineStateError(RuntimeError):
    """A run was fed after it stopped streaming."""
    pass


class PipelineRun:
    """
    One request's worth of pipeline state.

    Push-based: feed() per upstream chunk, then finish() on end-of-stream or
    fail() on any error. Events go to `emit` as soon as they are complete.
    """

    def __init__(self, file_name: str, emit: Callable[[Any], None], audit=None,
                 user_id: Optional[str] = None, bank_name: Optional[str] = None,
                 normalizer: FieldNormalizer = None, resolver: OrderResolver = None,
                 engine: ReconciliationEngine = None):
        self.file_name = file_name
        self.emit = emit
        self.audit = audit
        self.user_id = user_id

        self.framer = FrameReassembler()
        self.decoder = RecordDecoder()
        self.normalizer = normalizer or FieldNormalizer()
        self.resolver = resolver or OrderResolver()
        self.engine = engine or ReconciliationEngine()

        # bank_name from the request is only a hint; stream metadata wins
        self.accumulator = RunAccumulator(bank_name=bank_name or None)
        self.accuracy: Optional[AccuracyResult] = None
        self.outcome: Optional[AuditOutcome] = None
        self.state = RunState.STREAMING
        self.start_time = time.time()

    # ─────────────────────────────────────────────────────────────
    # Streaming
    # ─────────────────────────────────────────────────────────────

    def feed(self, chunk: bytes) -> None:
        if self.state != RunState.STREAMING:
            raise PipelineStateError(f"Cannot feed a run in state '{self.state.value}'")
        for record in self.framer.feed(chunk):
            self._handle_record(record)

    def _handle_record(self, record: str) -> None:
        event = self.decoder.decode(record)
        if event is None:
            return

        if event.kind == METADATA:
            self._capture_metadata(event.payload)
            self.emit(event.to_dict())
        elif event.kind == PAGE_DATA:
            self.emit(self._normalize_page(event.payload))
        else:
            self.emit(event.to_dict())

    def _capture_metadata(self, payload: MetadataEvent) -> None:
        meta = read_metadata(payload)
        if meta["page_count"] is not None:
            self.accumulator.page_count = meta["page_count"]
        if meta["bank_name"]:
            self.accumulator.bank_name = meta["bank_name"]

    def _normalize_page(self, payload: PageDataEvent) -> PageDataEvent:
        raw_transactions = payload.get("transactions")
        if not isinstance(raw_transactions, list):
            return payload

        normalized = [self.normalizer.normalize(tx) for tx in raw_transactions]
        self.accumulator.transactions.extend(normalized)
        return dict(payload, transactions=normalized)

    # ─────────────────────────────────────────────────────────────
    # End of stream
    # ─────────────────────────────────────────────────────────────

    def finish(self) -> AuditOutcome:
        """Flush, reorder, reconcile, emit the terminal event and report."""
        if self.outcome is not None:
            return self.outcome
        if self.state != RunState.STREAMING:
            raise PipelineStateError(f"Cannot finish a run in state '{self.state.value}'")

        self.state = RunState.FINALIZING
        tail = self.framer.finish()
        if tail is not None:
            self._handle_record(tail)

        transactions = self.accumulator.transactions
        if not transactions:
            logging.warning(f"No transactions extracted from {self.file_name}")
            self.emit(error_event(NO_TRANSACTIONS))
            return self._report(self._build_outcome(FAILED, NO_TRANSACTIONS))

        if self.resolver.is_descending(transactions):
            logging.info(f"Statement {self.file_name} is in descending order; reversing")
        self.resolver.resolve(transactions)
        self.accuracy = self.engine.reconcile(transactions)
        self.emit(accuracy_event(self.accuracy.to_dict()))

        return self._report(self._build_outcome(COMPLETED))

    def fail(self, error: Any) -> AuditOutcome:
        """
        Move to 'errored', emit a terminal error event and report a failed
        outcome. A run that already reported keeps its first outcome.
        """
        if self.outcome is not None:
            return self.outcome

        message = str(error) or error.__class__.__name__
        self.state = RunState.ERRORED
        try:
            self.emit(error_event(message))
        except Exception as e:
            logging.error(f"Could not emit error event for {self.file_name}: {e}")

        return self._report(self._build_outcome(FAILED, message))

    def _build_outcome(self, status: str, error_message: str = "") -> AuditOutcome:
        return AuditOutcome(
            file_name=self.file_name,
            processing_status=status,
            page_count=self.accumulator.page_count,
            bank_name=self.accumulator.bank_name,
            transaction_count=len(self.accumulator.transactions),
            is_accurate=bool(self.accuracy and self.accuracy.is_accurate),
            error_message=error_message
        )

    def _report(self, outcome: AuditOutcome) -> AuditOutcome:
        self.state = RunState.REPORTING
        self.outcome = outcome

        if self.audit is not None:
            try:
                self.audit.log_statement(outcome, user_id=self.user_id)
            except Exception as e:
                logging.error(f"Audit write failed for {self.file_name}: {e}")

        processing_time = (time.time() - self.start_time) * 1000
        logging.info(
            f"Processed {self.file_name}: status={outcome.processing_status}, "
            f"transactions={outcome.transaction_count}, accurate={outcome.is_accurate}, "
            f"time={processing_time:.0f}ms"
        )
        self.state = RunState.DONE
        return outcome


class StatementPipeline:
    """
    Per-request driver. Holds collaborators only; all run state lives in
    the PipelineRun it creates, so one instance serves concurrent requests.
    """

    def __init__(self, audit=None, tolerance: float = None):
        self.audit = audit
        self.tolerance = tolerance

    def start(self, file_name: str, user_id: Optional[str] = None,
              bank_name: Optional[str] = None) -> PipelineRun:
        """Create a run whose events are buffered as NDJSON lines."""
        return PipelineRun(
            file_name,
            NDJSONBuffer(),
            audit=self.audit,
            user_id=user_id,
            bank_name=bank_name,
            engine=ReconciliationEngine(self.tolerance)
        )

    def process(self, chunks: Iterable[bytes], run: PipelineRun) -> Iterator[str]:
        """
        Drive `run` over upstream chunks.
        Yields NDJSON lines as soon as the chunk that produced them is handled.
        """
        output: NDJSONBuffer = run.emit
        try:
            try:
                for chunk in chunks:
                    run.feed(chunk)
                    yield from output.drain()
                run.finish()
            except (requests.RequestException, ParserServiceError) as e:
                logging.error(f"Upstream failure while streaming {run.file_name}: {e}")
                run.fail(e)
            except Exception as e:
                logging.exception("PIPELINE_ERROR")
                run.fail(e)
            yield from output.drain()
        finally:
            if run.outcome is None:
                logging.warning(f"Stream for {run.file_name} closed before completion")
                run.fail("Stream closed before completion")
