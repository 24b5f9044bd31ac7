"""Core data models for report submission and sync."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from civicsync.utils.time import is_local_id


ReportStatus = Literal["draft", "submitted", "in_progress", "resolved", "closed"]
ReportPriority = Literal["low", "medium", "high", "urgent"]
SyncStatus = Literal["pending", "synced"]

REPORT_STATUSES: tuple[str, ...] = ("draft", "submitted", "in_progress", "resolved", "closed")
REPORT_PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "urgent")

REPORT_CATEGORIES: tuple[str, ...] = (
    "Potholes",
    "Streetlights",
    "Waste Management",
    "Water Issues",
    "Traffic Signals",
    "Public Safety",
    "Parks & Recreation",
    "Noise Complaints",
    "Other",
)

ANONYMOUS_USER_ID = "anonymous"


class ReportDraft(BaseModel):
    """Report payload as authored on the device, before any id is assigned."""

    model_config = ConfigDict(extra="ignore")

    user_id: Optional[str] = ANONYMOUS_USER_ID
    title: str = ""
    description: str = ""
    category: str = "Other"
    priority: ReportPriority = "medium"
    location_latitude: Optional[float] = None
    location_longitude: Optional[float] = None
    location_accuracy: Optional[float] = None
    address: str = ""
    photos: list[str] = Field(default_factory=list)
    audio_uri: Optional[str] = None
    status: ReportStatus = "submitted"
    resolved_at: Optional[datetime] = None


class Report(ReportDraft):
    """Persisted report, remote or queued."""

    id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        # uuid and bigserial primary keys both surface as str
        if value is None or isinstance(value, str):
            return value
        return str(value)

    def to_draft(self) -> ReportDraft:
        """Drop id, timestamps and queue bookkeeping."""
        return ReportDraft.model_validate(
            self.model_dump(exclude={"id", "created_at", "updated_at", "sync_status"})
        )


class LocalReport(Report):
    """Report held in the local queue until a sync pass promotes it."""

    sync_status: SyncStatus = "pending"


class ReportForm(BaseModel):
    """Raw submission form as collected by the client."""

    model_config = ConfigDict(extra="ignore")

    description: str = ""
    title: Optional[str] = None
    category: str = "Other"
    priority: str = "medium"
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    detected_address: str = ""
    manual_address: str = ""
    photos: list[str] = Field(default_factory=list)
    audio_uri: Optional[str] = None


class AcceptDecision(BaseModel):
    """Submission gate acceptance."""

    form: ReportForm
    payload: ReportDraft
    reason: str = "accepted"


class RejectDecision(BaseModel):
    """Submission gate rejection."""

    form: ReportForm
    reason: str
    details: dict[str, Any] = Field(default_factory=dict)


class ReportStats(BaseModel):
    total: int = 0
    resolved: int = 0
    pending: int = 0
    in_progress: int = 0


class UserStats(BaseModel):
    reports_submitted: int = 0
    issues_resolved: int = 0
    community_points: int = 0
    upvotes_received: int = 0
    member_since: datetime


@dataclass(frozen=True)
class RemoteRef:
    """Identifier assigned by the remote store."""

    id: str


@dataclass(frozen=True)
class LocalRef:
    """Placeholder identifier of a report that only exists in the local queue."""

    id: str


ReportRef = Union[RemoteRef, LocalRef]


def ref_for(report_id: str) -> ReportRef:
    """Classify a raw report id."""
    if is_local_id(report_id):
        return LocalRef(report_id)
    return RemoteRef(report_id)


@dataclass(frozen=True)
class Submitted:
    """Report confirmed by the remote store."""

    report: Report

    @property
    def ref(self) -> RemoteRef:
        return RemoteRef(self.report.id)


@dataclass(frozen=True)
class Queued:
    """Report saved locally for a later sync pass.

    ``persisted`` is False when the local queue write failed as well.
    """

    report: LocalReport
    persisted: bool
    error: str

    @property
    def ref(self) -> LocalRef:
        return LocalRef(self.report.id)


CreateOutcome = Union[Submitted, Queued]


@dataclass
class SyncSummary:
    attempted: int = 0
    synced: int = 0
    requeued: int = 0
    skipped: bool = False
