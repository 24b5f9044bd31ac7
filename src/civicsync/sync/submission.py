"""Submit a report form: gate, create, then opportunistic sync."""

from __future__ import annotations

from typing import Optional

from civicsync.models import CreateOutcome, RejectDecision, ReportForm, Submitted
from civicsync.sync.engine import ReportSyncEngine
from civicsync.sync.validation import SubmissionGate
from civicsync.utils.logging import get_logger
from civicsync.utils.media import describe_photo


logger = get_logger(__name__)


class ReportSubmitter:
    """Glue between the submission form and the sync engine."""

    def __init__(
        self,
        engine: ReportSyncEngine,
        gate: Optional[SubmissionGate] = None,
        sync_after_submit: Optional[bool] = None,
    ) -> None:
        self.engine = engine
        self.gate = gate or SubmissionGate()
        if sync_after_submit is None:
            sync_after_submit = engine.settings.sync_after_submit
        self.sync_after_submit = sync_after_submit

    def submit(
        self,
        form: ReportForm,
        session_user_id: Optional[str] = None,
    ) -> CreateOutcome | RejectDecision:
        decision = self.gate.evaluate(form, session_user_id=session_user_id)
        if isinstance(decision, RejectDecision):
            logger.info("submit.rejected reason=%s details=%s", decision.reason, decision.details)
            return decision

        payload = decision.payload
        if payload.photos:
            logger.debug("submit.photos %s", [describe_photo(photo) for photo in payload.photos])

        outcome = self.engine.create_report(payload)
        if isinstance(outcome, Submitted) and self.sync_after_submit:
            # The store is reachable now; flush anything queued earlier.
            self.engine.sync_local_reports()
        return outcome
