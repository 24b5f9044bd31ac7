"""Offline-first report creation and synchronisation."""

from __future__ import annotations

import math
import threading
from typing import Any, Callable, Optional

from pydantic import ValidationError

from civicsync.config import Settings
from civicsync.models import (
    REPORT_STATUSES,
    CreateOutcome,
    LocalRef,
    LocalReport,
    Queued,
    Report,
    ReportDraft,
    ReportStats,
    Submitted,
    SyncSummary,
    UserStats,
    ref_for,
)
from civicsync.storage.local_queue import LocalQueue
from civicsync.store.base import Order, RemoteStore, StoreError, StoreOk, StoreResult
from civicsync.utils.logging import get_logger
from civicsync.utils.time import local_report_id, utc_now


logger = get_logger(__name__)

POINTS_PER_REPORT = 10
POINTS_PER_RESOLVED = 25


class ReportSyncEngine:
    """Write reports to the remote store, falling back to the local queue.

    Every ``create_report`` call ends in exactly one durable write: a remote
    row or a pending local entry. Queries degrade to the local queue when the
    remote store is unavailable and never raise.
    """

    def __init__(
        self,
        remote: RemoteStore,
        local_queue: LocalQueue,
        settings: Optional[Settings] = None,
    ) -> None:
        self.remote = remote
        self.local_queue = local_queue
        self.settings = settings or Settings()
        self.table = self.settings.reports_table
        self._sync_lock = threading.Lock()

    def create_report(self, payload: ReportDraft) -> CreateOutcome:
        """Persist ``payload`` remotely, or queue it locally on failure."""
        if type(payload) is not ReportDraft:
            # Ids, timestamps and queue state are assigned here, never carried over.
            payload = ReportDraft.model_validate(
                payload.model_dump(exclude={"id", "created_at", "updated_at", "sync_status"})
            )
        now = utc_now()
        record = payload.model_dump(mode="json")
        record["created_at"] = now.isoformat()
        record["updated_at"] = now.isoformat()

        logger.info(
            "report.create.start user_id=%s category=%s status=%s",
            payload.user_id,
            payload.category,
            payload.status,
        )
        result = self._call("insert", self.remote.insert, self.table, record)
        if isinstance(result, StoreOk):
            try:
                report = Report.model_validate(result.data)
            except ValidationError as exc:
                # Unconfirmed insert: queue it and accept a possible duplicate on sync.
                logger.error("report.create.unparsed_response error=%s", exc)
                result = StoreError(message=f"unparsed insert response: {exc}")
            else:
                logger.info("report.create.ok id=%s", report.id)
                return Submitted(report=report)

        return self._queue_locally(payload, result)

    def _queue_locally(self, payload: ReportDraft, failure: StoreError) -> Queued:
        now = utc_now()
        local = LocalReport(
            **payload.model_dump(),
            id=local_report_id(),
            created_at=now,
            updated_at=now,
            sync_status="pending",
        )
        try:
            self.local_queue.append(local)
        except Exception:
            # Neither remote nor local: the report is lost.
            logger.exception("report.create.local_write_failed id=%s", local.id)
            return Queued(report=local, persisted=False, error=failure.message)

        logger.warning(
            "report.create.fallback id=%s error=%s",
            local.id,
            failure.message,
        )
        return Queued(report=local, persisted=True, error=failure.message)

    def get_user_reports(self, user_id: Optional[str] = None) -> list[Report]:
        """Reports newest first, filtered by ``user_id`` when given.

        The local fallback returns the whole queue regardless of ``user_id``.
        """
        filters = {"user_id": user_id} if user_id else None
        result = self._call(
            "select",
            self.remote.select,
            self.table,
            filters=filters,
            order=Order(column="created_at", descending=True),
        )
        return self._reports_or_local(result, "get_user_reports")

    def get_nearby_reports(
        self,
        latitude: float,
        longitude: float,
        radius_km: Optional[float] = None,
    ) -> list[Report]:
        """Reports within ``radius_km``; geography is filtered by the remote store only."""
        radius = self.settings.nearby_radius_km if radius_km is None else radius_km
        result = self._call(
            "rpc",
            self.remote.rpc,
            self.settings.nearby_function,
            {"lat": latitude, "lng": longitude, "radius_km": radius},
        )
        return self._reports_or_local(result, "get_nearby_reports")

    def update_report_status(self, report_id: str, status: str) -> bool:
        """Update status on a remote report; local placeholders are refused.

        Store and network failures return False. An unknown ``status`` is a
        caller bug and raises ``ValueError``.
        """
        if status not in REPORT_STATUSES:
            raise ValueError(f"Unexpected status: {status!r}")

        if isinstance(ref_for(report_id), LocalRef):
            logger.warning("report.status.local_id id=%s", report_id)
            return False

        now = utc_now().isoformat()
        patch: dict[str, Any] = {"status": status, "updated_at": now}
        if status == "resolved":
            patch["resolved_at"] = now

        result = self._call("update", self.remote.update, self.table, report_id, patch)
        if isinstance(result, StoreError):
            logger.error("report.status.failed id=%s error=%s", report_id, result.message)
            return False

        logger.info("report.status.ok id=%s status=%s", report_id, status)
        return True

    def sync_local_reports(self) -> SyncSummary:
        """Re-submit every pending queue entry, then drop the processed entries.

        Entries whose re-submission fails again are queued anew under a fresh
        id. Only one pass runs at a time; overlapping calls return a skipped
        summary.
        """
        if not self._sync_lock.acquire(blocking=False):
            logger.info("sync.skipped reason=already_running")
            return SyncSummary(skipped=True)

        try:
            summary = SyncSummary()
            pending = [r for r in self._read_local() if r.sync_status == "pending"]
            processed: set[str] = set()

            for entry in pending:
                summary.attempted += 1
                outcome = self.create_report(entry.to_draft())
                processed.add(entry.id)
                if isinstance(outcome, Submitted):
                    summary.synced += 1
                else:
                    summary.requeued += 1

            if processed:
                try:
                    self.local_queue.remove_where(lambda report: report.id in processed)
                except Exception:
                    logger.exception("sync.cleanup_failed count=%s", len(processed))

            logger.info(
                "sync.complete attempted=%s synced=%s requeued=%s",
                summary.attempted,
                summary.synced,
                summary.requeued,
            )
            return summary
        finally:
            self._sync_lock.release()

    def get_report_stats(self) -> ReportStats:
        """Counts by status across all reports."""
        result = self._call("select", self.remote.select, self.table, columns="status")
        if isinstance(result, StoreOk) and isinstance(result.data, list):
            statuses = [row.get("status") for row in result.data if isinstance(row, dict)]
        else:
            statuses = [report.status for report in self._read_local()]
        return _stats_from_statuses(statuses)

    def get_user_stats(self, user_id: str) -> UserStats:
        """Contribution summary for one user."""
        reports = self.get_user_reports(user_id)
        submitted = len(reports)
        resolved = sum(1 for report in reports if report.status == "resolved")
        return UserStats(
            reports_submitted=submitted,
            issues_resolved=resolved,
            community_points=submitted * POINTS_PER_REPORT + resolved * POINTS_PER_RESOLVED,
            upvotes_received=math.floor(submitted * 1.5 + resolved * 3),
            member_since=reports[-1].created_at if reports else utc_now(),
        )

    def _reports_or_local(self, result: StoreResult, operation: str) -> list[Report]:
        if isinstance(result, StoreOk) and isinstance(result.data, list):
            reports: list[Report] = []
            for row in result.data:
                try:
                    reports.append(Report.model_validate(row))
                except ValidationError as exc:
                    logger.warning("%s.skip_row error=%s", operation, exc)
            return reports
        if isinstance(result, StoreOk):
            logger.error("%s.unexpected_payload type=%s", operation, type(result.data).__name__)
        local = self._read_local()
        logger.warning("%s.fallback_local count=%s", operation, len(local))
        return list(local)

    def _read_local(self) -> list[LocalReport]:
        try:
            return self.local_queue.read()
        except Exception:
            logger.exception("local_queue.read.failed")
            return []

    def _call(self, operation: str, method: Callable[..., StoreResult], *args: Any, **kwargs: Any) -> StoreResult:
        """Invoke a store method, turning a stray exception into ``StoreError``."""
        try:
            return method(*args, **kwargs)
        except Exception as exc:
            logger.exception("store.%s.raised", operation)
            return StoreError(message=str(exc) or exc.__class__.__name__)


def _stats_from_statuses(statuses: list[Optional[str]]) -> ReportStats:
    return ReportStats(
        total=len(statuses),
        resolved=sum(1 for status in statuses if status == "resolved"),
        pending=sum(1 for status in statuses if status in ("submitted", "draft")),
        in_progress=sum(1 for status in statuses if status == "in_progress"),
    )
