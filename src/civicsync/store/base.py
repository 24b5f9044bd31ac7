"""Remote store contract and result variants."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Union


@dataclass(frozen=True)
class StoreOk:
    """Successful store call; ``data`` is a row dict or a list of row dicts."""

    data: Any


@dataclass(frozen=True)
class StoreError:
    """Failed store call (network, HTTP or database error)."""

    message: str
    status_code: Optional[int] = None


StoreResult = Union[StoreOk, StoreError]


@dataclass(frozen=True)
class Order:
    column: str
    descending: bool = False


class RemoteStore(Protocol):
    """Store of record for reports.

    Implementations report failures as ``StoreError`` instead of raising.
    """

    def insert(self, table: str, record: Mapping[str, Any]) -> StoreResult:
        """Insert one row and return it with server-assigned fields."""

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Mapping[str, Any]] = None,
        order: Optional[Order] = None,
    ) -> StoreResult:
        """Return rows matching equality ``filters``."""

    def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> StoreResult:
        """Patch one row by id and return it; no match is a ``StoreError``."""

    def rpc(self, function: str, params: Mapping[str, Any]) -> StoreResult:
        """Call a server-side function returning rows."""
