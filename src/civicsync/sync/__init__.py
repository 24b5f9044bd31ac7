"""Report sync package."""

from __future__ import annotations

from typing import Optional

from civicsync.config import Settings
from civicsync.storage.local_queue import FileLocalQueue
from civicsync.store.base import RemoteStore
from civicsync.sync.engine import ReportSyncEngine
from civicsync.sync.submission import ReportSubmitter
from civicsync.sync.validation import SubmissionGate


def build_remote_store(settings: Settings) -> RemoteStore:
    """Instantiate the configured remote store binding."""
    if settings.remote_backend == "postgres":
        from civicsync.store.postgres import PostgresRemoteStore

        return PostgresRemoteStore(settings)

    from civicsync.store.supabase import SupabaseRemoteStore

    return SupabaseRemoteStore(settings)


def build_engine(settings: Optional[Settings] = None) -> ReportSyncEngine:
    """Engine wired to the configured store and the file-backed local queue."""
    settings = settings or Settings()
    return ReportSyncEngine(
        remote=build_remote_store(settings),
        local_queue=FileLocalQueue(settings.local_queue_path()),
        settings=settings,
    )


__all__ = [
    "ReportSubmitter",
    "ReportSyncEngine",
    "SubmissionGate",
    "build_engine",
    "build_remote_store",
]
