from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

import requests
from flask import current_app, g
from sqlalchemy import Table, delete, inspect as sa_inspect, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    pass


class StoreUnavailable(StoreError):
    """The backend is not configured, or the requested table does not exist."""


Row = dict[str, Any]


class RecordStore:
    """
    Table-oriented record store: equality / not-null filters, ordering, limit,
    insert, update-by-id and delete-by-id. Every call is its own round trip.
    """

    def select(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        not_null: Sequence[str] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        raise NotImplementedError

    def insert(self, table: str, rows: Mapping[str, Any] | Iterable[Mapping[str, Any]]) -> list[Row]:
        raise NotImplementedError

    def update(self, table: str, row_id: Any, values: Mapping[str, Any]) -> Row | None:
        raise NotImplementedError

    def delete(self, table: str, row_id: Any) -> bool:
        raise NotImplementedError

    def has_table(self, table: str) -> bool:
        raise NotImplementedError

    def close(self) -> None:
        return None


def _as_row_list(rows: Mapping[str, Any] | Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    if isinstance(rows, Mapping):
        return [dict(rows)]
    return [dict(r) for r in rows]


class SqlRecordStore(RecordStore):
    """
    Record store on the application's SQLAlchemy engine.

    Tables come from Base.metadata; a declared table that is missing from the
    live database raises StoreUnavailable, same as the hosted service does.
    """

    def __init__(self, engine: Engine, tables: Mapping[str, Table] | None = None) -> None:
        if tables is None:
            from app.registry.models import Base

            tables = Base.metadata.tables
        self.engine = engine
        self._tables = tables
        self._present: dict[str, bool] = {}

    def has_table(self, table: str) -> bool:
        if table not in self._tables:
            return False
        if table not in self._present:
            try:
                self._present[table] = sa_inspect(self.engine).has_table(table)
            except SQLAlchemyError as e:
                raise StoreError(f"Cannot inspect table {table}: {e}") from e
        return self._present[table]

    def _table(self, table: str) -> Table:
        if not self.has_table(table):
            raise StoreUnavailable(f"Table {table} does not exist")
        return self._tables[table]

    @staticmethod
    def _column(t: Table, name: str):
        try:
            return t.c[name]
        except KeyError:
            raise StoreError(f"Unknown column {t.name}.{name}") from None

    def select(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        not_null: Sequence[str] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        t = self._table(table)
        stmt = select(t)
        for col, value in (eq or {}).items():
            stmt = stmt.where(self._column(t, col) == value)
        for col in not_null:
            stmt = stmt.where(self._column(t, col).isnot(None))
        if order_by:
            c = self._column(t, order_by)
            stmt = stmt.order_by(c.desc() if descending else c.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            with self.engine.connect() as conn:
                return [dict(r) for r in conn.execute(stmt).mappings().all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Select from {table} failed: {e}") from e

    def insert(self, table: str, rows: Mapping[str, Any] | Iterable[Mapping[str, Any]]) -> list[Row]:
        t = self._table(table)
        pk = list(t.primary_key.columns)[0]
        payload = _as_row_list(rows)
        inserted: list[Row] = []
        try:
            with self.engine.begin() as conn:
                for row in payload:
                    result = conn.execute(insert(t).values(**row))
                    new_id = result.inserted_primary_key[0]
                    inserted.append(dict(conn.execute(select(t).where(pk == new_id)).mappings().one()))
        except SQLAlchemyError as e:
            raise StoreError(f"Insert into {table} failed: {e}") from e
        return inserted

    def update(self, table: str, row_id: Any, values: Mapping[str, Any]) -> Row | None:
        t = self._table(table)
        pk = list(t.primary_key.columns)[0]
        try:
            with self.engine.begin() as conn:
                result = conn.execute(update(t).where(pk == row_id).values(**dict(values)))
                if not result.rowcount:
                    return None
                row = conn.execute(select(t).where(pk == row_id)).mappings().one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(f"Update of {table} id={row_id} failed: {e}") from e
        return dict(row) if row is not None else None

    def delete(self, table: str, row_id: Any) -> bool:
        t = self._table(table)
        pk = list(t.primary_key.columns)[0]
        try:
            with self.engine.begin() as conn:
                result = conn.execute(delete(t).where(pk == row_id))
        except SQLAlchemyError as e:
            raise StoreError(f"Delete from {table} id={row_id} failed: {e}") from e
        return bool(result.rowcount)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


# PostgREST error codes for "relation does not exist" / "table not in schema cache"
_MISSING_TABLE_CODES = frozenset({"42P01", "PGRST205"})


@dataclass(frozen=True)
class RestRecordStore(RecordStore):
    """
    Hosted table service speaking the PostgREST query dialect
    (`col=eq.value`, `col=not.is.null`, `order=col.desc`, `limit=n`).
    """

    base_url: str
    api_key: str
    timeout_seconds: int = 30
    http: requests.Session = field(default_factory=requests.Session)

    def _headers(self, prefer: str | None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _url(self, table: str) -> str:
        return f"{self.base_url.rstrip('/')}/rest/v1/{table}"

    def request_json(
        self,
        method: str,
        table: str,
        *,
        params: list[tuple[str, str]] | None = None,
        body: Any = None,
        prefer: str | None = None,
    ) -> list[Row]:
        try:
            resp = self.http.request(
                method,
                self._url(table),
                params=params,
                data=json.dumps(body, default=_json_default) if body is not None else None,
                headers=self._headers(prefer),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            raise StoreError(f"{method} {table} failed: {e}") from e

        if resp.status_code >= 400:
            code = ""
            try:
                payload = resp.json()
                if isinstance(payload, dict):
                    code = str(payload.get("code") or "")
            except ValueError:
                pass
            if resp.status_code == 404 or code in _MISSING_TABLE_CODES:
                raise StoreUnavailable(f"Table {table} does not exist (HTTP {resp.status_code})")
            raise StoreError(f"HTTP {resp.status_code} from record store ({table}): {resp.text[:300]}")

        if not resp.content:
            return []
        try:
            data = resp.json()
        except ValueError as e:
            raise StoreError(f"Invalid JSON from record store ({table})") from e
        if isinstance(data, dict):
            return [data]
        return data if isinstance(data, list) else []

    def select(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        not_null: Sequence[str] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        params: list[tuple[str, str]] = [("select", "*")]
        for col, value in (eq or {}).items():
            params.append((col, f"eq.{value}"))
        for col in not_null:
            params.append((col, "not.is.null"))
        if order_by:
            params.append(("order", f"{order_by}.{'desc' if descending else 'asc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        return self.request_json("GET", table, params=params)

    def insert(self, table: str, rows: Mapping[str, Any] | Iterable[Mapping[str, Any]]) -> list[Row]:
        return self.request_json("POST", table, body=_as_row_list(rows), prefer="return=representation")

    def update(self, table: str, row_id: Any, values: Mapping[str, Any]) -> Row | None:
        rows = self.request_json(
            "PATCH",
            table,
            params=[("id", f"eq.{row_id}")],
            body=dict(values),
            prefer="return=representation",
        )
        return rows[0] if rows else None

    def delete(self, table: str, row_id: Any) -> bool:
        rows = self.request_json("DELETE", table, params=[("id", f"eq.{row_id}")], prefer="return=representation")
        return bool(rows)

    def has_table(self, table: str) -> bool:
        try:
            self.select(table, limit=1)
        except StoreUnavailable:
            return False
        return True

    def close(self) -> None:
        self.http.close()


def store_from_config(config: Mapping[str, Any], *, engine: Engine | None = None) -> RecordStore | None:
    """
    Build the configured backend. Returns None when no backend is usable;
    callers surface that as "Database not configured".
    """
    backend = (config.get("RECORD_STORE_BACKEND") or "sql").strip().lower()
    if backend == "none":
        return None
    if backend == "rest":
        url = (config.get("RECORD_STORE_URL") or "").strip()
        key = (config.get("RECORD_STORE_API_KEY") or "").strip()
        if not url or not key:
            logger.error("RECORD STORE CONFIG ERROR: rest backend needs RECORD_STORE_URL and RECORD_STORE_API_KEY")
            return None
        return RestRecordStore(base_url=url, api_key=key, timeout_seconds=int(config.get("RECORD_STORE_TIMEOUT") or 30))
    if backend != "sql":
        logger.error("RECORD STORE CONFIG ERROR: unknown backend %r", backend)
        return None
    if engine is None:
        return None
    return SqlRecordStore(engine)


def record_store() -> RecordStore | None:
    """
    Request-scoped record store. Use inside request handlers.
    """
    if "record_store" in g:
        return g.record_store
    g.record_store = store_from_config(current_app.config, engine=current_app.extensions.get("sqlalchemy_engine"))
    return g.record_store


def teardown_record_store(_exc: BaseException | None) -> None:
    store: RecordStore | None = g.pop("record_store", None)
    if store is not None:
        store.close()
