"""Submission gate applied before any report reaches the sync engine."""

from __future__ import annotations

from typing import Optional

from civicsync.models import (
    ANONYMOUS_USER_ID,
    REPORT_PRIORITIES,
    AcceptDecision,
    RejectDecision,
    ReportDraft,
    ReportForm,
)
from civicsync.utils.media import is_data_uri, is_remote_url
from civicsync.utils.text import build_title, normalize_whitespace


DEFAULT_CATEGORY = "Other"


class SubmissionGate:
    """Evaluate a submission form and build the report payload.

    Performs no I/O. A missing session is not an error: the report is
    attributed to ``anonymous``.
    """

    def evaluate(
        self,
        form: ReportForm,
        session_user_id: Optional[str] = None,
    ) -> AcceptDecision | RejectDecision:
        description = form.description.strip()
        if not description:
            return RejectDecision(form=form, reason="missing_description")

        latitude, longitude, accuracy = form.latitude, form.longitude, form.accuracy
        manual_address = form.manual_address.strip()
        if manual_address:
            # A typed address replaces the GPS fix for this submission.
            address = manual_address
            latitude = longitude = accuracy = None
        else:
            address = form.detected_address.strip()

        has_coords = latitude is not None and longitude is not None
        if not has_coords and not address:
            return RejectDecision(form=form, reason="missing_location")

        if has_coords and not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            return RejectDecision(
                form=form,
                reason="invalid_coords",
                details={"latitude": latitude, "longitude": longitude},
            )

        priority = form.priority.strip().lower()
        if priority not in REPORT_PRIORITIES:
            return RejectDecision(
                form=form,
                reason="invalid_priority",
                details={"priority": form.priority},
            )

        for index, photo in enumerate(form.photos):
            if not (is_remote_url(photo) or is_data_uri(photo)):
                return RejectDecision(
                    form=form,
                    reason="invalid_photo",
                    details={"index": index},
                )

        category = normalize_whitespace(form.category) or DEFAULT_CATEGORY
        title = (form.title or "").strip() or build_title(category, description)

        payload = ReportDraft(
            user_id=session_user_id or ANONYMOUS_USER_ID,
            title=title,
            description=description,
            category=category,
            priority=priority,
            location_latitude=latitude if has_coords else None,
            location_longitude=longitude if has_coords else None,
            location_accuracy=accuracy if has_coords else None,
            address=address,
            photos=list(form.photos),
            audio_uri=form.audio_uri,
            status="submitted",
        )
        return AcceptDecision(form=form, payload=payload)
