import itertools
from typing import Any, Mapping, Optional

import pytest

from civicsync.config import Settings
from civicsync.storage.local_queue import MemoryLocalQueue
from civicsync.store.base import Order, StoreError, StoreOk, StoreResult
from civicsync.sync.engine import ReportSyncEngine


class FakeRemoteStore:
    """In-memory reports table with switchable failure modes.

    ``mode`` is "ok", "error" (returns StoreError) or "raise".
    """

    def __init__(self, mode: str = "ok") -> None:
        self.mode = mode
        self.rows: list[dict[str, Any]] = []
        self.calls: list[tuple[str, Any]] = []
        self.nearby_rows: list[dict[str, Any]] = []
        self._ids = itertools.count(1)

    def _failure(self) -> Optional[StoreResult]:
        if self.mode == "raise":
            raise ConnectionError("network unreachable")
        if self.mode == "error":
            return StoreError(message="service unavailable", status_code=503)
        return None

    def insert(self, table: str, record: Mapping[str, Any]) -> StoreResult:
        self.calls.append(("insert", dict(record)))
        failure = self._failure()
        if failure is not None:
            return failure
        row = {**record, "id": f"srv-{next(self._ids)}"}
        self.rows.append(row)
        return StoreOk(data=row)

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Mapping[str, Any]] = None,
        order: Optional[Order] = None,
    ) -> StoreResult:
        self.calls.append(("select", {"columns": columns, "filters": filters, "order": order}))
        failure = self._failure()
        if failure is not None:
            return failure
        rows = [
            row
            for row in self.rows
            if all(row.get(key) == value for key, value in (filters or {}).items())
        ]
        if order is not None:
            rows.sort(key=lambda row: row[order.column], reverse=order.descending)
        if columns != "*":
            wanted = [column.strip() for column in columns.split(",")]
            rows = [{column: row.get(column) for column in wanted} for row in rows]
        return StoreOk(data=rows)

    def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> StoreResult:
        self.calls.append(("update", {"id": record_id, **patch}))
        failure = self._failure()
        if failure is not None:
            return failure
        for row in self.rows:
            if row["id"] == record_id:
                row.update(patch)
                return StoreOk(data=row)
        return StoreError(message="no reports row returned")

    def rpc(self, function: str, params: Mapping[str, Any]) -> StoreResult:
        self.calls.append(("rpc", {"function": function, **params}))
        failure = self._failure()
        if failure is not None:
            return failure
        return StoreOk(data=list(self.nearby_rows))

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)


class CountingLocalQueue(MemoryLocalQueue):
    """Memory queue that records calls and can fail on append."""

    def __init__(self, fail_append: bool = False) -> None:
        super().__init__()
        self.fail_append = fail_append
        self.calls: list[str] = []

    def read(self):
        self.calls.append("read")
        return super().read()

    def write(self, reports):
        self.calls.append("write")
        return super().write(reports)

    def append(self, report):
        self.calls.append("append")
        if self.fail_append:
            raise OSError("No space left on device")
        return super().append(report)

    def remove_where(self, predicate):
        self.calls.append("remove_where")
        return super().remove_where(predicate)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, SYNC_AFTER_SUBMIT=True)


@pytest.fixture
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def local_queue() -> CountingLocalQueue:
    return CountingLocalQueue()


@pytest.fixture
def engine(remote, local_queue, settings) -> ReportSyncEngine:
    return ReportSyncEngine(remote=remote, local_queue=local_queue, settings=settings)
