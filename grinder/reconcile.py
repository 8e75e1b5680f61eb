"""Upsert incoming records into a table by alternate key.

Rows are matched on the target's key columns only, never on the surrogate
row id.  Matched rows are updated when their payload differs, unmatched
records are inserted, and everything is written as one batch on the
caller's connection.  The caller owns the transaction: wrap the call in
``BEGIN IMMEDIATE`` / commit to make the read and the writes atomic.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Iterable

from .errors import ConflictError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpsertTarget:
    """Where and how records are reconciled.

    ``keys`` and ``payload`` map record attribute names to column names.
    """

    table: str
    row_id: str
    keys: dict[str, str]
    payload: dict[str, str]


USERS = UpsertTarget(
    table="Users",
    row_id="Id",
    keys={"user_id": "UserId"},
    payload={"username": "Username"},
)


@dataclass
class ReconcileResult:
    inserted: list = field(default_factory=list)
    updated: list = field(default_factory=list)
    unchanged: list = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.updated)


def _quote(name: str) -> str:
    return f'"{name}"'


def _find_existing(
    conn: sqlite3.Connection, target: UpsertTarget, key: tuple, payload: tuple
) -> tuple[int, tuple] | None:
    """Return ``(row_id, payload)`` of the row matching *key*, if any.

    Several rows can share a key when only key and payload together are
    unique.  A row already holding *payload* is preferred, then the lowest
    row id.
    """
    select = ", ".join(_quote(col) for col in (target.row_id, *target.payload.values()))
    where = " AND ".join(f"{_quote(col)} = ?" for col in target.keys.values())
    order = [_quote(target.row_id)]
    if target.payload:
        same = " AND ".join(f"{_quote(col)} IS ?" for col in target.payload.values())
        order.insert(0, f"({same}) DESC")
    row = conn.execute(
        f"SELECT {select} FROM {_quote(target.table)} WHERE {where} "
        f"ORDER BY {', '.join(order)} LIMIT 1",
        (*key, *payload) if target.payload else key,
    ).fetchone()
    if row is None:
        return None
    return row[0], tuple(row[1:])


def reconcile(
    conn: sqlite3.Connection, target: UpsertTarget, records: Iterable[Any]
) -> ReconcileResult:
    """Merge *records* into ``target.table``.

    A key repeated within *records* folds into its first occurrence with
    the last payload winning, so one call never creates two rows for the
    same key.  Raises ``ConflictError`` when the batch violates a
    uniqueness constraint; nothing is committed by this function.
    """
    # key -> (record, payload) in first-seen order
    incoming: dict[tuple, tuple[Any, tuple]] = {}
    for record in records:
        key = tuple(getattr(record, attr) for attr in target.keys)
        payload = tuple(getattr(record, attr) for attr in target.payload)
        incoming[key] = (record, payload)

    result = ReconcileResult()
    updates: list[tuple] = []
    rows: list[tuple] = []
    for key, (record, payload) in incoming.items():
        existing = _find_existing(conn, target, key, payload)
        if existing is None:
            rows.append((*key, *payload))
            result.inserted.append(record)
            continue
        row_id, stored = existing
        if payload == stored:
            result.unchanged.append(record)
        else:
            updates.append((*payload, row_id))
            result.updated.append(record)

    set_clause = ", ".join(f"{_quote(col)} = ?" for col in target.payload.values())
    columns = [*target.keys.values(), *target.payload.values()]
    try:
        if updates:
            conn.executemany(
                f"UPDATE {_quote(target.table)} SET {set_clause} "
                f"WHERE {_quote(target.row_id)} = ?",
                updates,
            )
        if rows:
            conn.executemany(
                f"INSERT INTO {_quote(target.table)} "
                f"({', '.join(_quote(col) for col in columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                rows,
            )
    except sqlite3.IntegrityError as exc:
        raise ConflictError(f"Reconciling {target.table} failed: {exc}") from exc

    logger.debug(
        "Reconciled %s: %d inserted, %d updated, %d unchanged",
        target.table,
        len(result.inserted),
        len(result.updated),
        len(result.unchanged),
    )
    return result
