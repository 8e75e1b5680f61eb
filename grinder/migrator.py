"""Ordered, ledger-tracked schema migrations for the SQLite store.

Each ``MigrationStep`` carries a sortable identifier plus ``upgrade`` and
``downgrade`` callables that receive an alembic ``Operations`` bound to the
live connection.  Applied identifiers are recorded in the ledger table
(``schema.ledger``); a step's DDL and its ledger row commit together.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from types import ModuleType
from typing import Callable, Sequence

import sqlalchemy as sa
from sqlalchemy import event
from alembic.autogenerate import compare_metadata
from alembic.migration import MigrationContext
from alembic.operations import Operations

from . import config
from .errors import IrreversibleStepError, NotFoundError, SchemaError
from .schema import ledger, metadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MigrationStep:
    identifier: str
    upgrade: Callable[[Operations], None]
    downgrade: Callable[[Operations], None]

    @classmethod
    def from_module(cls, module: ModuleType) -> "MigrationStep":
        return cls(module.identifier, module.upgrade, module.downgrade)


def create_engine(db_path: str) -> sa.Engine:
    """Build an engine whose transactions also cover DDL.

    pysqlite only opens a transaction implicitly before DML, so a failed
    step would leave its CREATE/ALTER statements committed.  The driver's
    own handling is switched off and ``BEGIN`` is emitted explicitly.
    """
    engine = sa.create_engine(f"sqlite:///{db_path}")

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


class Migrator:
    """Applies and reverts migration steps against one store file."""

    def __init__(self, db_path: str, steps: Sequence[MigrationStep] | None = None):
        if steps is None:
            from .migrations import STEPS

            steps = STEPS
        self.db_path = db_path
        self.steps = sorted(steps, key=lambda step: step.identifier)
        seen: set[str] = set()
        for step in self.steps:
            if step.identifier in seen:
                raise ValueError(f"Duplicate migration identifier {step.identifier!r}")
            seen.add(step.identifier)

    # ── ledger ─────────────────────────────────────────────────────

    def _exists(self) -> bool:
        return Path(self.db_path).is_file()

    def _engine(self) -> sa.Engine:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(self.db_path)

    @staticmethod
    def _read_ledger(conn: sa.Connection, create: bool = False) -> set[str]:
        with conn.begin():
            if create:
                ledger.create(conn, checkfirst=True)
            elif not sa.inspect(conn).has_table(ledger.name):
                return set()
            rows = conn.execute(sa.select(ledger.c.MigrationId)).scalars().all()
        return set(rows)

    def _applied_ids(self, conn: sa.Connection, create: bool = False) -> set[str]:
        applied = self._read_ledger(conn, create)
        known = {step.identifier for step in self.steps}
        for identifier in sorted(applied - known):
            logger.warning("Ledger lists unknown migration %s; ignoring it", identifier)
        return applied & known

    def _check_target(self, target: str | None) -> None:
        if target is not None and target not in {s.identifier for s in self.steps}:
            raise NotFoundError(f"Unknown migration {target!r}")

    # ── queries ────────────────────────────────────────────────────

    def applied(self) -> list[str]:
        """Return applied step identifiers in ascending order.

        A missing store has nothing applied; it is not created.
        """
        if not self._exists():
            return []
        engine = create_engine(self.db_path)
        try:
            with engine.connect() as conn:
                return sorted(self._applied_ids(conn))
        finally:
            engine.dispose()

    def pending(self) -> list[MigrationStep]:
        """Return the steps not yet applied, in the order they would run."""
        applied = set(self.applied())
        return [step for step in self.steps if step.identifier not in applied]

    def current(self) -> str | None:
        """Return the newest applied step identifier, or ``None``."""
        applied = self.applied()
        return applied[-1] if applied else None

    def verify(self) -> list:
        """Diff the live store against ``schema.metadata``.

        Returns alembic autogenerate diff tuples; an empty list means the
        store matches the latest schema.  A missing store is compared as an
        empty database and is not created.
        """

        def include_name(name, type_, parent_names):
            if type_ == "table":
                return name in metadata.tables
            return True

        engine = create_engine(self.db_path if self._exists() else ":memory:")
        try:
            with engine.connect() as conn:
                ctx = MigrationContext.configure(
                    conn, opts={"include_name": include_name}
                )
                return compare_metadata(ctx, metadata)
        finally:
            engine.dispose()

    # ── apply / revert ─────────────────────────────────────────────

    def migrate(self, target: str | None = None) -> list[str]:
        """Apply every pending step up to *target* (default: the newest).

        Returns the identifiers applied by this call.  Stops at the first
        failing step, whose changes are rolled back, and raises
        ``SchemaError``.
        """
        self._check_target(target)
        engine = self._engine()
        done: list[str] = []
        try:
            with engine.connect() as conn:
                applied = self._applied_ids(conn, create=True)
                for step in self.steps:
                    if target is not None and step.identifier > target:
                        break
                    if step.identifier in applied:
                        continue
                    logger.info("Applying migration %s", step.identifier)
                    try:
                        with conn.begin():
                            step.upgrade(Operations(MigrationContext.configure(conn)))
                            conn.execute(
                                ledger.insert().values(
                                    MigrationId=step.identifier,
                                    AppliedAt=datetime.now(timezone.utc).isoformat(),
                                )
                            )
                    except Exception as exc:
                        logger.exception("Migration %s failed", step.identifier)
                        raise SchemaError(
                            f"Migration {step.identifier} failed: {exc}", step.identifier
                        ) from exc
                    done.append(step.identifier)
        finally:
            engine.dispose()

        if done:
            logger.info("Applied %d migration(s); store at %s", len(done), done[-1])
        else:
            logger.info("Store %s is already up to date", self.db_path)
        return done

    def revert(self, target: str | None = None) -> list[str]:
        """Revert applied steps newer than *target* (default: all of them).

        Returns the identifiers reverted by this call, newest first.
        """
        self._check_target(target)
        if not self._exists():
            logger.info("Store %s does not exist; nothing to revert", self.db_path)
            return []
        engine = create_engine(self.db_path)
        done: list[str] = []
        try:
            with engine.connect() as conn:
                applied = self._applied_ids(conn)
                for step in reversed(self.steps):
                    if target is not None and step.identifier <= target:
                        break
                    if step.identifier not in applied:
                        continue
                    logger.info("Reverting migration %s", step.identifier)
                    try:
                        with conn.begin():
                            step.downgrade(Operations(MigrationContext.configure(conn)))
                            conn.execute(
                                ledger.delete().where(
                                    ledger.c.MigrationId == step.identifier
                                )
                            )
                    except IrreversibleStepError:
                        logger.error("Migration %s cannot be reverted", step.identifier)
                        raise
                    except Exception as exc:
                        logger.exception("Reverting %s failed", step.identifier)
                        raise SchemaError(
                            f"Reverting {step.identifier} failed: {exc}", step.identifier
                        ) from exc
                    done.append(step.identifier)
        finally:
            engine.dispose()

        logger.info("Reverted %d migration(s)", len(done))
        return done


def migrate_to_latest(db_path: str = config.DB_PATH) -> list[str]:
    """Bring the store at *db_path* to the latest schema, creating it if absent."""
    return Migrator(db_path).migrate()
