"""
Supabase Audit Client - Records the outcome of every statement run.

Writes one row per processed statement to the 'statements' table.
Designed to fail gracefully: a missing configuration or a failed insert is
logged and never surfaces to the requester.
"""
import os
import logging
from typing import Any, Dict, List, Optional
from datetime import datetime

from supabase import create_client, Client

from backend.statements.models import AuditOutcome

STATEMENTS_TABLE = "statements"


class SupabaseLogger:
    """
    Audit writer for pipeline outcomes.
    """

    def __init__(self, url: str = None, key: str = None, service_key: str = None):
        self.url = url or os.environ.get("SUPABASE_URL")
        self.key = key or os.environ.get("SUPABASE_KEY")
        service_key = service_key or os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
        self.client: Optional[Client] = None
        self.admin_client: Optional[Client] = None

        if self.url and self.key:
            try:
                self.client = create_client(self.url, self.key)

                # Admin client bypasses RLS for server-side inserts
                if service_key:
                    self.admin_client = create_client(self.url, service_key)

                logging.info("Supabase clients initialized.")
            except Exception as e:
                logging.warning(f"Failed to initialize Supabase client: {e}")

    @property
    def configured(self) -> bool:
        return self.admin_client is not None or self.client is not None

    def _build_payload(self, outcome: AuditOutcome, user_id: str = None) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            "file_name": outcome.file_name,
            "page_count": outcome.page_count,
            "bank_name": outcome.bank_name or "",
            "processing_status": outcome.processing_status,
            "transaction_count": outcome.transaction_count,
            "is_accurate": outcome.is_accurate,
            "error_message": outcome.error_message or "",
            "created_at": datetime.now().isoformat()
        }

    def log_statement(self, outcome: AuditOutcome, user_id: str = None) -> bool:
        """
        Insert the run outcome into the 'statements' table.
        Returns True when the row was written.
        """
        client = self.admin_client or self.client
        if not client:
            logging.info("Supabase not configured. Skipping audit log.")
            return False

        try:
            payload = self._build_payload(outcome, user_id)
            client.table(STATEMENTS_TABLE).insert(payload).execute()
            logging.info(f"Statement outcome ({outcome.processing_status}) for {outcome.file_name} logged to Supabase.")
            return True
        except Exception as e:
            logging.error(f"Failed to log statement to Supabase: {e}")
            return False

    def get_statement_history(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """
        Fetch the most recent statement outcomes for a user.
        """
        client = self.admin_client or self.client
        if not client or not user_id:
            return []
        try:
            res = (client.table(STATEMENTS_TABLE).select("*").eq("user_id", user_id)
                   .order("created_at", desc=True).limit(limit).execute())
            return res.data or []
        except Exception as e:
            logging.error(f"Failed to fetch statement history: {e}")
            return []
