import re
from datetime import datetime, timedelta, timezone

import pytest

from civicsync.models import LocalRef, LocalReport, Queued, RemoteRef, ReportDraft, Submitted
from civicsync.storage.local_queue import FileLocalQueue
from civicsync.store.base import StoreOk
from civicsync.sync.engine import ReportSyncEngine

from conftest import CountingLocalQueue, FakeRemoteStore


def _base_draft(**overrides) -> ReportDraft:
    payload = {
        "user_id": "user_1",
        "title": "Potholes: Pothole on 5th",
        "description": "Pothole on 5th",
        "category": "Potholes",
        "address": "5th Ave",
        "photos": [],
        "status": "submitted",
        "priority": "medium",
    }
    payload.update(overrides)
    return ReportDraft.model_validate(payload)


def _local_entry(report_id: str, **overrides) -> LocalReport:
    now = datetime.now(timezone.utc)
    payload = {
        **_base_draft().model_dump(),
        "id": report_id,
        "created_at": now,
        "updated_at": now,
        "sync_status": "pending",
    }
    payload.update(overrides)
    return LocalReport.model_validate(payload)


def test_create_report_returns_remote_record(engine, remote, local_queue):
    outcome = engine.create_report(_base_draft())

    assert isinstance(outcome, Submitted)
    assert outcome.ref == RemoteRef("srv-1")
    assert outcome.report.description == "Pothole on 5th"
    assert outcome.report.created_at is not None
    assert local_queue.read() == []


@pytest.mark.parametrize("mode", ["error", "raise"])
def test_create_report_falls_back_to_local_queue(engine, remote, local_queue, mode):
    remote.mode = mode

    outcome = engine.create_report(_base_draft())

    assert isinstance(outcome, Queued)
    assert outcome.persisted is True
    assert isinstance(outcome.ref, LocalRef)
    queued = local_queue.read()
    assert len(queued) == 1
    assert queued[0].id == outcome.report.id
    assert queued[0].sync_status == "pending"
    assert remote.rows == []


def test_create_report_local_write_failure_is_swallowed(remote, settings):
    remote.mode = "raise"
    queue = CountingLocalQueue(fail_append=True)
    engine = ReportSyncEngine(remote=remote, local_queue=queue, settings=settings)

    outcome = engine.create_report(_base_draft())

    assert isinstance(outcome, Queued)
    assert outcome.persisted is False
    assert queue.read() == []


def test_create_report_unparseable_response_is_queued(engine, remote, local_queue):
    remote.insert = lambda table, record: StoreOk(data={"unexpected": True})

    outcome = engine.create_report(_base_draft())

    assert isinstance(outcome, Queued)
    assert len(local_queue.read()) == 1


def test_get_user_reports_filters_and_orders_newest_first(engine, remote):
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    for offset, user in [(0, "alice"), (2, "bob"), (1, "alice"), (3, "alice")]:
        created = (base + timedelta(days=offset)).isoformat()
        remote.rows.append(
            {
                **_base_draft(user_id=user).model_dump(mode="json"),
                "id": f"r-{offset}",
                "created_at": created,
                "updated_at": created,
            }
        )

    reports = engine.get_user_reports("alice")

    assert [report.id for report in reports] == ["r-3", "r-1", "r-0"]
    assert all(report.user_id == "alice" for report in reports)


def test_get_user_reports_fallback_ignores_user_filter(engine, remote, local_queue):
    local_queue.append(_local_entry("local-1", user_id="alice"))
    local_queue.append(_local_entry("local-2", user_id="bob"))
    remote.mode = "raise"

    reports = engine.get_user_reports("alice")

    assert [report.id for report in reports] == ["local-1", "local-2"]


def test_get_user_reports_returns_empty_when_everything_fails(remote, settings):
    remote.mode = "error"

    class BrokenQueue(CountingLocalQueue):
        def read(self):
            raise OSError("storage unavailable")

    engine = ReportSyncEngine(remote=remote, local_queue=BrokenQueue(), settings=settings)

    assert engine.get_user_reports("alice") == []


def test_get_nearby_reports_delegates_to_rpc(engine, remote):
    created = datetime(2026, 2, 1, tzinfo=timezone.utc).isoformat()
    remote.nearby_rows = [
        {**_base_draft().model_dump(mode="json"), "id": "n-1", "created_at": created, "updated_at": created}
    ]

    reports = engine.get_nearby_reports(50.94, 6.96, 2.5)

    assert [report.id for report in reports] == ["n-1"]
    name, params = remote.calls[-1]
    assert name == "rpc"
    assert params == {"function": "get_nearby_reports", "lat": 50.94, "lng": 6.96, "radius_km": 2.5}


def test_get_nearby_reports_uses_default_radius_and_falls_back(engine, remote, local_queue):
    local_queue.append(_local_entry("local-9"))
    remote.mode = "error"

    reports = engine.get_nearby_reports(0.0, 0.0)

    assert [report.id for report in reports] == ["local-9"]
    assert remote.calls[-1][1]["radius_km"] == 5.0


def test_update_report_status_resolved_sets_resolved_at(engine, remote):
    submitted = engine.create_report(_base_draft())
    assert isinstance(submitted, Submitted)

    assert engine.update_report_status(submitted.report.id, "resolved") is True

    row = remote.rows[0]
    assert row["status"] == "resolved"
    assert row["resolved_at"] is not None


def test_update_report_status_other_status_leaves_resolved_at(engine, remote):
    submitted = engine.create_report(_base_draft())

    assert engine.update_report_status(submitted.report.id, "in_progress") is True

    _, patch = remote.calls[-1]
    assert patch["status"] == "in_progress"
    assert "resolved_at" not in patch
    assert remote.rows[0].get("resolved_at") is None


def test_update_report_status_failure_returns_false(engine, remote):
    assert engine.update_report_status("missing-id", "closed") is False
    remote.mode = "raise"
    assert engine.update_report_status("srv-1", "closed") is False


def test_update_report_status_refuses_local_ids(engine, remote, local_queue):
    assert engine.update_report_status("local-1700000000000", "resolved") is False
    assert engine.update_report_status("offline_1700000000000", "resolved") is False
    assert remote.count("update") == 0
    assert local_queue.calls == []


def test_update_report_status_rejects_unknown_status(engine):
    with pytest.raises(ValueError):
        engine.update_report_status("srv-1", "reopened")


def test_report_stats_counts_statuses(engine, remote):
    for status in ["submitted", "draft", "resolved", "in_progress", "closed"]:
        engine.create_report(_base_draft(status=status))

    stats = engine.get_report_stats()

    assert stats.total == 5
    assert stats.pending == 2
    assert stats.resolved == 1
    assert stats.in_progress == 1


def test_report_stats_fall_back_to_local_queue(engine, remote):
    remote.mode = "error"
    engine.create_report(_base_draft())
    engine.create_report(_base_draft(status="resolved"))

    stats = engine.get_report_stats()

    assert stats.total == 2
    assert stats.resolved == 1
    assert stats.pending == 1


def test_user_stats_points_and_member_since(engine, remote):
    first = engine.create_report(_base_draft(user_id="alice"))
    engine.create_report(_base_draft(user_id="alice", status="resolved"))
    engine.create_report(_base_draft(user_id="bob"))

    stats = engine.get_user_stats("alice")

    assert stats.reports_submitted == 2
    assert stats.issues_resolved == 1
    assert stats.community_points == 2 * 10 + 25
    assert stats.upvotes_received == 6
    assert stats.member_since == first.report.created_at


def test_user_stats_without_reports():
    engine = ReportSyncEngine(remote=FakeRemoteStore(), local_queue=CountingLocalQueue())

    stats = engine.get_user_stats("nobody")

    assert stats.reports_submitted == 0
    assert stats.community_points == 0
    assert stats.member_since.tzinfo is not None


def test_local_ids_match_expected_pattern(engine, remote):
    remote.mode = "raise"
    ids = [engine.create_report(_base_draft()).report.id for _ in range(5)]

    assert all(re.fullmatch(r"local-\d+", report_id) for report_id in ids)
    assert len(set(ids)) == 5


def test_get_user_reports_skips_malformed_rows(engine, remote, local_queue):
    created = datetime(2026, 1, 1, tzinfo=timezone.utc).isoformat()
    good = {**_base_draft(user_id="u").model_dump(mode="json"), "id": "r1", "created_at": created, "updated_at": created}
    bad = {**good, "id": "r2", "address": None}
    remote.rows.extend([good, bad])
    local_queue.append(_local_entry("local-9"))

    reports = engine.get_user_reports("u")

    assert [report.id for report in reports] == ["r1"]


def test_get_user_reports_non_list_payload_falls_back(engine, remote, local_queue):
    local_queue.append(_local_entry("local-9"))
    remote.select = lambda *args, **kwargs: StoreOk(data={"message": "unexpected"})

    assert [report.id for report in engine.get_user_reports("u")] == ["local-9"]


def test_engine_reports_unpersisted_when_queue_file_is_corrupt(remote, settings, tmp_path):
    path = tmp_path / "q.json"
    path.write_text("{not json", encoding="utf-8")
    remote.mode = "error"
    engine = ReportSyncEngine(remote=remote, local_queue=FileLocalQueue(path), settings=settings)

    outcome = engine.create_report(_base_draft())

    assert isinstance(outcome, Queued)
    assert outcome.persisted is False
    assert path.read_text(encoding="utf-8") == "{not json"
