import os
import tempfile

# Set GRINDER_DB_PATH before any grinder module is imported so the default
# store never lands in the working directory during tests
os.environ.setdefault(
    "GRINDER_DB_PATH", os.path.join(tempfile.mkdtemp(), "test_grinder.db")
)

import pytest

from grinder.migrator import Migrator
from grinder.store import GrinderStore


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "grinder.db")


@pytest.fixture
def migrated_db(db_path):
    """A store file brought to the latest schema."""
    Migrator(db_path).migrate()
    return db_path


@pytest.fixture
def store(migrated_db):
    return GrinderStore(db_path=migrated_db)
