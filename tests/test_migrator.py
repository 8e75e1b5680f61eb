"""Tests for grinder.migrator — step ordering, ledger and transactions."""

import logging
import sqlite3

import pytest

from grinder.errors import IrreversibleStepError, NotFoundError, SchemaError
from grinder.migrations import STEPS
from grinder.migrator import MigrationStep, Migrator, migrate_to_latest


def table_names(db_path: str) -> set[str]:
    with sqlite3.connect(db_path) as conn:
        rows = conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table'"
        ).fetchall()
    return {row[0] for row in rows}


def schema_dump(db_path: str) -> list[tuple]:
    with sqlite3.connect(db_path) as conn:
        return conn.execute(
            "SELECT type, name, sql FROM sqlite_master ORDER BY type, name"
        ).fetchall()


def ledger_rows(db_path: str) -> list[str]:
    with sqlite3.connect(db_path) as conn:
        rows = conn.execute(
            'SELECT "MigrationId" FROM "__MigrationsHistory" ORDER BY "MigrationId"'
        ).fetchall()
    return [row[0] for row in rows]


def table_step(identifier: str, table: str, calls: list | None = None) -> MigrationStep:
    """A step that creates *table* on upgrade and drops it on downgrade."""

    def upgrade(op):
        if calls is not None:
            calls.append(("up", identifier))
        op.execute(f'CREATE TABLE "{table}" (x INTEGER)')

    def downgrade(op):
        if calls is not None:
            calls.append(("down", identifier))
        op.execute(f'DROP TABLE "{table}"')

    return MigrationStep(identifier, upgrade, downgrade)


# ── bringing a store up to date ────────────────────────────────────────


class TestMigrate:
    def test_creates_store_and_parent_dir(self, tmp_path):
        db_path = tmp_path / "deep" / "nested" / "grinder.db"
        applied = migrate_to_latest(str(db_path))
        assert db_path.exists()
        assert applied == [step.identifier for step in STEPS]

    def test_creates_all_tables(self, migrated_db):
        assert {
            "Users",
            "Messages",
            "AdminUsers",
            "ChatsToMonitor",
            "__MigrationsHistory",
        } <= table_names(migrated_db)

    def test_ledger_has_one_row_per_step(self, migrated_db):
        assert ledger_rows(migrated_db) == sorted(step.identifier for step in STEPS)

    def test_second_run_is_a_no_op(self, migrated_db):
        before = schema_dump(migrated_db)
        ledger_before = ledger_rows(migrated_db)

        assert Migrator(migrated_db).migrate() == []

        assert schema_dump(migrated_db) == before
        assert ledger_rows(migrated_db) == ledger_before

    def test_no_op_run_calls_no_step(self, db_path):
        calls: list = []
        steps = [table_step("001_a", "a", calls), table_step("002_b", "b", calls)]
        Migrator(db_path, steps).migrate()
        calls.clear()

        assert Migrator(db_path, steps).migrate() == []
        assert calls == []

    def test_empty_store_reports_no_current(self, db_path):
        migrator = Migrator(db_path)
        assert migrator.current() is None
        assert migrator.applied() == []
        assert [s.identifier for s in migrator.pending()] == [s.identifier for s in STEPS]

    def test_queries_leave_missing_store_absent(self, tmp_path):
        db_path = tmp_path / "missing" / "grinder.db"
        migrator = Migrator(str(db_path))

        assert migrator.applied() == []
        assert len(migrator.pending()) == len(STEPS)
        assert migrator.current() is None
        assert migrator.revert() == []
        assert not db_path.parent.exists()

    def test_queries_do_not_create_ledger(self, db_path):
        sqlite3.connect(db_path).close()

        assert Migrator(db_path).applied() == []
        assert "__MigrationsHistory" not in table_names(db_path)

    def test_current_is_newest_step(self, migrated_db):
        migrator = Migrator(migrated_db)
        assert migrator.current() == STEPS[-1].identifier
        assert migrator.pending() == []


class TestOrdering:
    def test_steps_run_in_identifier_order(self, db_path):
        calls: list = []
        steps = [
            table_step("20200103_c", "c", calls),
            table_step("20200101_a", "a", calls),
            table_step("20200102_b", "b", calls),
        ]
        applied = Migrator(db_path, steps).migrate()

        assert applied == ["20200101_a", "20200102_b", "20200103_c"]
        assert calls == [("up", "20200101_a"), ("up", "20200102_b"), ("up", "20200103_c")]

    def test_store_midway_only_gets_later_steps(self, db_path):
        calls: list = []
        first = [table_step("001_a", "a", calls), table_step("002_b", "b", calls)]
        Migrator(db_path, first).migrate()
        calls.clear()

        steps = first + [table_step("003_c", "c", calls), table_step("004_d", "d", calls)]
        applied = Migrator(db_path, steps).migrate()

        assert applied == ["003_c", "004_d"]
        assert calls == [("up", "003_c"), ("up", "004_d")]

    def test_target_stops_the_run(self, db_path):
        steps = [table_step("001_a", "a"), table_step("002_b", "b"), table_step("003_c", "c")]
        migrator = Migrator(db_path, steps)

        assert migrator.migrate("002_b") == ["001_a", "002_b"]
        assert "c" not in table_names(db_path)
        assert migrator.migrate() == ["003_c"]

    def test_duplicate_identifiers_rejected(self, db_path):
        with pytest.raises(ValueError):
            Migrator(db_path, [table_step("001_a", "a"), table_step("001_a", "b")])

    def test_unknown_target_raises_not_found(self, db_path):
        with pytest.raises(NotFoundError):
            Migrator(db_path, [table_step("001_a", "a")]).migrate("999_nope")

    def test_unknown_ledger_entry_is_ignored_with_warning(self, db_path, caplog):
        Migrator(db_path, [table_step("001_a", "a"), table_step("002_b", "b")]).migrate()

        with caplog.at_level(logging.WARNING, logger="grinder.migrator"):
            applied = Migrator(db_path, [table_step("001_a", "a")]).applied()

        assert applied == ["001_a"]
        assert "002_b" in caplog.text


class TestFailure:
    def test_failed_step_rolls_back_and_halts(self, db_path):
        def broken(op):
            op.execute('CREATE TABLE "half_done" (x INTEGER)')
            raise RuntimeError("boom")

        steps = [
            table_step("001_a", "a"),
            MigrationStep("002_b", broken, lambda op: None),
            table_step("003_c", "c"),
        ]
        with pytest.raises(SchemaError) as excinfo:
            Migrator(db_path, steps).migrate()

        assert excinfo.value.identifier == "002_b"
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        tables = table_names(db_path)
        assert "a" in tables
        assert "half_done" not in tables
        assert "c" not in tables
        assert ledger_rows(db_path) == ["001_a"]

    def test_invalid_ddl_surfaces_schema_error(self, db_path):
        steps = [MigrationStep("001_bad", lambda op: op.drop_table("Missing"), lambda op: None)]
        with pytest.raises(SchemaError):
            Migrator(db_path, steps).migrate()
        assert ledger_rows(db_path) == []


# ── reverting ──────────────────────────────────────────────────────────


class TestRevert:
    def test_reverts_newest_first_down_to_target(self, db_path):
        calls: list = []
        steps = [table_step(f"00{i}_{n}", n, calls) for i, n in enumerate("abc", start=1)]
        migrator = Migrator(db_path, steps)
        migrator.migrate()
        calls.clear()

        reverted = migrator.revert("001_a")

        assert reverted == ["003_c", "002_b"]
        assert calls == [("down", "003_c"), ("down", "002_b")]
        assert ledger_rows(db_path) == ["001_a"]
        assert {"b", "c"}.isdisjoint(table_names(db_path))

    def test_revert_all(self, db_path):
        steps = [table_step("001_a", "a"), table_step("002_b", "b")]
        migrator = Migrator(db_path, steps)
        migrator.migrate()

        assert migrator.revert() == ["002_b", "001_a"]
        assert migrator.current() is None

    def test_irreversible_step_stops_revert(self, db_path):
        def cannot(op):
            raise IrreversibleStepError("lossy", "002_b")

        steps = [
            table_step("001_a", "a"),
            MigrationStep("002_b", lambda op: None, cannot),
            table_step("003_c", "c"),
        ]
        migrator = Migrator(db_path, steps)
        migrator.migrate()

        with pytest.raises(IrreversibleStepError):
            migrator.revert()

        assert migrator.current() == "002_b"
        assert "a" in table_names(db_path)

    def test_reverted_steps_can_be_reapplied(self, db_path):
        steps = [table_step("001_a", "a"), table_step("002_b", "b")]
        migrator = Migrator(db_path, steps)
        migrator.migrate()
        migrator.revert("001_a")

        assert migrator.migrate() == ["002_b"]
        assert "b" in table_names(db_path)


class TestVerify:
    def test_latest_store_matches_descriptor(self, migrated_db):
        assert Migrator(migrated_db).verify() == []

    def test_missing_store_reports_differences_without_creating_it(self, tmp_path):
        db_path = tmp_path / "missing" / "grinder.db"

        assert Migrator(str(db_path)).verify() != []
        assert not db_path.parent.exists()

    def test_partial_store_reports_differences(self, db_path):
        migrator = Migrator(db_path)
        migrator.migrate("20200524201500_AllowLists")
        assert migrator.verify() != []
