"""
Statements Package - Streaming normalization and reconciliation of parsed bank statements

Modules:
- framing: NDJSON byte stream to complete text records
- decode: Record classification (metadata / page_data / unrecognized)
- transform: Date, amount and balance normalization
- ordering: Descending-statement detection and reversal
- dq: Balance reconciliation accuracy check
- load: Downstream NDJSON emission
- extract: Parser service client
- pipeline: Main orchestrator
- schema: TypedDict definitions
"""
from .pipeline import StatementPipeline, PipelineRun, RunState
from .models import AccuracyResult, AuditOutcome

__all__ = ['StatementPipeline', 'PipelineRun', 'RunState', 'AccuracyResult', 'AuditOutcome']
