"""Direct Postgres remote store."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional
from uuid import UUID

import psycopg
from psycopg import sql

from civicsync.config import Settings
from civicsync.db.client import db_cursor
from civicsync.store.base import Order, StoreError, StoreOk, StoreResult
from civicsync.utils.logging import get_logger


logger = get_logger(__name__)


class PostgresRemoteStore:
    """Talk to the reports database over a plain connection string."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    def _fetch(self, query: sql.Composable, params: Any, many: bool) -> StoreResult:
        try:
            with db_cursor(self.settings) as cursor:
                cursor.execute(query, params)
                rows = cursor.fetchall() if many else [cursor.fetchone()]
        except psycopg.Error as exc:
            logger.warning("postgres.query.failed error=%s", exc)
            return StoreError(message=str(exc))

        rows = [_jsonable_row(row) for row in rows if row is not None]
        if many:
            return StoreOk(data=rows)
        if not rows:
            return StoreError(message="no row returned")
        return StoreOk(data=rows[0])

    def insert(self, table: str, record: Mapping[str, Any]) -> StoreResult:
        columns = list(record.keys())
        query = sql.SQL("insert into {table} ({columns}) values ({values}) returning *").format(
            table=sql.Identifier(table),
            columns=sql.SQL(", ").join(sql.Identifier(column) for column in columns),
            values=sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        )
        return self._fetch(query, [record[column] for column in columns], many=False)

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Mapping[str, Any]] = None,
        order: Optional[Order] = None,
    ) -> StoreResult:
        if columns.strip() == "*":
            selected: sql.Composable = sql.SQL("*")
        else:
            selected = sql.SQL(", ").join(
                sql.Identifier(column.strip()) for column in columns.split(",")
            )
        query = sql.SQL("select {columns} from {table}").format(
            columns=selected,
            table=sql.Identifier(table),
        )
        params: list[Any] = []
        if filters:
            conditions = [
                sql.SQL("{} = %s").format(sql.Identifier(column)) for column in filters
            ]
            query += sql.SQL(" where ") + sql.SQL(" and ").join(conditions)
            params.extend(filters.values())
        if order is not None:
            query += sql.SQL(" order by {column} {direction}").format(
                column=sql.Identifier(order.column),
                direction=sql.SQL("desc" if order.descending else "asc"),
            )
        return self._fetch(query, params, many=True)

    def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> StoreResult:
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column in patch
        )
        query = sql.SQL("update {table} set {assignments} where id::text = %s returning *").format(
            table=sql.Identifier(table),
            assignments=assignments,
        )
        return self._fetch(query, [*patch.values(), record_id], many=False)

    def rpc(self, function: str, params: Mapping[str, Any]) -> StoreResult:
        arguments = sql.SQL(", ").join(
            sql.SQL("{} => %s").format(sql.Identifier(name)) for name in params
        )
        query = sql.SQL("select * from {function}({arguments})").format(
            function=sql.Identifier(function),
            arguments=arguments,
        )
        return self._fetch(query, list(params.values()), many=True)


def _jsonable_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Convert driver types into the JSON shapes PostgREST would return."""
    converted: dict[str, Any] = {}
    for key, value in row.items():
        if isinstance(value, (datetime, date)):
            converted[key] = value.isoformat()
        elif isinstance(value, UUID):
            converted[key] = str(value)
        elif isinstance(value, Decimal):
            converted[key] = float(value)
        else:
            converted[key] = value
    return converted
