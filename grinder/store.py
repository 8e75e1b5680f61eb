"""Row-level access to the grinder store.

``GrinderStore`` wraps the four tables of a migrated store: ``Users``
(written through the reconciler), ``Messages`` (one row per chat and
user), and the ``AdminUsers`` / ``ChatsToMonitor`` username sets.  Run
``migrator.migrate_to_latest`` on the file before using it.
"""

import contextlib
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator

from . import config
from .errors import ConflictError
from .models import Message, User
from .reconcile import USERS, ReconcileResult, reconcile

logger = logging.getLogger(__name__)

# ── Module-level helpers ───────────────────────────────────────────────


def _to_ts(value: datetime) -> int:
    """Convert *value* to unix seconds, treating naive datetimes as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def _from_ts(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def _message_from_row(row: sqlite3.Row) -> Message:
    return Message(
        message_id=row["MessageId"],
        chat_id=row["ChatId"],
        user_id=row["UserId"],
        date=_from_ts(row["Date"]),
        id=row["Id"],
    )


# ── GrinderStore class ────────────────────────────────────────────────


class GrinderStore:
    """Access to a migrated grinder SQLite file."""

    def __init__(self, db_path: str = config.DB_PATH):
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    @contextlib.contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection; commit on success, roll back on error."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ── users ──────────────────────────────────────────────────────

    def reconcile_users(self, records: Iterable[User]) -> ReconcileResult:
        """Upsert *records* into ``Users``, matching on ``user_id``.

        The lookup and the writes share one ``BEGIN IMMEDIATE``
        transaction.  On ``ConflictError`` nothing is committed; retry the
        call.
        """
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            result = reconcile(conn, USERS, records)
        if result.changed:
            logger.info(
                "Users reconciled: %d inserted, %d updated",
                len(result.inserted),
                len(result.updated),
            )
        return result

    def add_user(self, user: User) -> int:
        """Insert *user* and return its row id.

        Raises ``ConflictError`` when the ``(username, user_id)`` pair
        already exists.
        """
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    'INSERT INTO "Users" ("UserId", "Username") VALUES (?, ?)',
                    (user.user_id, user.username),
                )
                return cursor.lastrowid  # type: ignore[return-value]
        except sqlite3.IntegrityError as exc:
            raise ConflictError(
                f"User {user.username!r} ({user.user_id}) already exists"
            ) from exc

    def get_user(self, user_id: int) -> User | None:
        with self._connect() as conn:
            row = conn.execute(
                'SELECT "Id", "UserId", "Username" FROM "Users" '
                'WHERE "UserId" = ? ORDER BY "Id" LIMIT 1',
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        return User(user_id=row["UserId"], username=row["Username"], id=row["Id"])

    def list_users(self) -> list[User]:
        with self._connect() as conn:
            rows = conn.execute(
                'SELECT "Id", "UserId", "Username" FROM "Users" ORDER BY "Id"'
            ).fetchall()
        return [
            User(user_id=row["UserId"], username=row["Username"], id=row["Id"])
            for row in rows
        ]

    # ── messages ───────────────────────────────────────────────────

    def record_message(self, message: Message) -> None:
        """Store *message* as the latest one for its chat and user.

        An existing row for the same ``(chat_id, user_id)`` is overwritten.
        A missing ``date`` defaults to the time of ingestion.
        """
        date = _to_ts(message.date) if message.date is not None else None
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO "Messages" ("MessageId", "ChatId", "UserId", "Date")
                VALUES (?, ?, ?, COALESCE(?, CAST(strftime('%s', 'now') AS INTEGER)))
                ON CONFLICT ("ChatId", "UserId") DO UPDATE
                SET "MessageId" = excluded."MessageId",
                    "Date"      = excluded."Date"
                """,
                (message.message_id, message.chat_id, message.user_id, date),
            )

    def get_message(self, chat_id: int, user_id: int) -> Message | None:
        with self._connect() as conn:
            row = conn.execute(
                'SELECT * FROM "Messages" WHERE "ChatId" = ? AND "UserId" = ?',
                (chat_id, user_id),
            ).fetchone()
        return _message_from_row(row) if row is not None else None

    def messages_between(self, start: datetime, end: datetime) -> list[Message]:
        """Return messages dated within [*start*, *end*], oldest first."""
        with self._connect() as conn:
            rows = conn.execute(
                'SELECT * FROM "Messages" WHERE "Date" BETWEEN ? AND ? '
                'ORDER BY "Date", "Id"',
                (_to_ts(start), _to_ts(end)),
            ).fetchall()
        return [_message_from_row(row) for row in rows]

    # ── username sets ──────────────────────────────────────────────

    def _add_username(self, table: str, username: str) -> None:
        with self._connect() as conn:
            conn.execute(
                f'INSERT OR IGNORE INTO "{table}" ("Username") VALUES (?)', (username,)
            )

    def _remove_username(self, table: str, username: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                f'DELETE FROM "{table}" WHERE "Username" = ?', (username,)
            )
            return cursor.rowcount > 0

    def _has_username(self, table: str, username: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                f'SELECT 1 FROM "{table}" WHERE "Username" = ?', (username,)
            ).fetchone()
        return row is not None

    def _list_usernames(self, table: str) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                f'SELECT "Username" FROM "{table}" ORDER BY "Username"'
            ).fetchall()
        return [row["Username"] for row in rows]

    def add_admin(self, username: str) -> None:
        self._add_username("AdminUsers", username)

    def remove_admin(self, username: str) -> bool:
        return self._remove_username("AdminUsers", username)

    def is_admin(self, username: str) -> bool:
        return self._has_username("AdminUsers", username)

    def list_admins(self) -> list[str]:
        return self._list_usernames("AdminUsers")

    def add_chat_to_monitor(self, username: str) -> None:
        self._add_username("ChatsToMonitor", username)

    def remove_chat_to_monitor(self, username: str) -> bool:
        return self._remove_username("ChatsToMonitor", username)

    def is_monitored(self, username: str) -> bool:
        return self._has_username("ChatsToMonitor", username)

    def list_chats_to_monitor(self) -> list[str]:
        return self._list_usernames("ChatsToMonitor")
