"""Durable on-device queue of reports awaiting sync."""

from __future__ import annotations

import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Protocol

import orjson
from pydantic import ValidationError

from civicsync.models import LocalReport
from civicsync.utils.logging import get_logger


logger = get_logger(__name__)

Predicate = Callable[[LocalReport], bool]


class LocalQueue(Protocol):
    """Repository of queued reports.

    ``append`` and ``remove_where`` are atomic with respect to each other.
    """

    def read(self) -> list[LocalReport]:
        """Return every queued report (empty if none)."""

    def write(self, reports: Iterable[LocalReport]) -> None:
        """Replace the queue contents."""

    def append(self, report: LocalReport) -> None:
        """Add one report to the end of the queue."""

    def remove_where(self, predicate: Predicate) -> list[LocalReport]:
        """Remove matching reports and return them."""


class MemoryLocalQueue:
    """In-process queue; contents are lost with the process."""

    def __init__(self, reports: Iterable[LocalReport] = ()) -> None:
        self._lock = threading.RLock()
        self._reports: list[LocalReport] = list(reports)

    def read(self) -> list[LocalReport]:
        with self._lock:
            return list(self._reports)

    def write(self, reports: Iterable[LocalReport]) -> None:
        with self._lock:
            self._reports = list(reports)

    def append(self, report: LocalReport) -> None:
        with self._lock:
            self._reports.append(report)

    def remove_where(self, predicate: Predicate) -> list[LocalReport]:
        with self._lock:
            removed = [report for report in self._reports if predicate(report)]
            self._reports = [report for report in self._reports if not predicate(report)]
            return removed


class FileLocalQueue:
    """Queue persisted as a JSON array in a single file.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so readers never observe a partial file.
    Entries that no longer validate as ``LocalReport`` are hidden from
    ``read`` but written back unchanged by ``append`` and ``remove_where``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()

    def read(self) -> list[LocalReport]:
        with self._lock:
            try:
                items = self._load_items()
            except (OSError, ValueError) as exc:
                logger.error("local_queue.read.failed path=%s error=%s", self.path, exc)
                return []
            reports = (_parse(item, self.path) for item in items)
            return [report for report in reports if report is not None]

    def write(self, reports: Iterable[LocalReport]) -> None:
        with self._lock:
            self._store([report.model_dump(mode="json") for report in reports])

    def append(self, report: LocalReport) -> None:
        with self._lock:
            items = self._load_items()
            items.append(report.model_dump(mode="json"))
            self._store(items)

    def remove_where(self, predicate: Predicate) -> list[LocalReport]:
        with self._lock:
            kept: list[Any] = []
            removed: list[LocalReport] = []
            for item in self._load_items():
                report = _parse(item, self.path)
                if report is not None and predicate(report):
                    removed.append(report)
                else:
                    kept.append(item)
            if removed:
                self._store(kept)
            return removed

    def _load_items(self) -> list[Any]:
        """Raw JSON items; raises on an unreadable or malformed file so it is never overwritten."""
        if not self.path.exists():
            return []
        payload = orjson.loads(self.path.read_bytes())
        if not isinstance(payload, list):
            raise ValueError(f"expected a JSON array in {self.path}")
        return payload

    def _store(self, items: list[Any]) -> None:
        data = orjson.dumps(items, option=orjson.OPT_INDENT_2)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def _parse(item: Any, path: Path) -> Optional[LocalReport]:
    try:
        return LocalReport.model_validate(item)
    except ValidationError as exc:
        logger.warning("local_queue.read.skip_invalid path=%s error=%s", path, exc)
        return None
