"""Shared test fixtures."""

import pytest

from brick_tally.core.ledger import PartLedger
from brick_tally.database.connection import DatabaseConnection
from brick_tally.database.models import SetMeta
from brick_tally.database.repository import Repository
from brick_tally.database.schema import initialize_database
from brick_tally.sync.channel import LocalChannel
from brick_tally.utils.recents import RecentSessions

from factories import SAMPLE_ENTRIES, FakeProvider


@pytest.fixture
def db_path(tmp_path):
    """Provide a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def db(db_path):
    """Provide an initialized database connection."""
    conn = DatabaseConnection(db_path)
    initialize_database(conn)
    return conn


@pytest.fixture
def repo(db):
    """Provide a repository with an initialized database."""
    return Repository(db)


@pytest.fixture
def channel():
    """In-process realtime channel."""
    ch = LocalChannel()
    yield ch
    ch.close()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def recents(tmp_path):
    return RecentSessions(tmp_path / "recents.json", max_items=10)


@pytest.fixture
def sample_session(repo):
    """A stored session built from SAMPLE_ENTRIES."""
    ledger = PartLedger.build_from_manifest(SAMPLE_ENTRIES)
    return repo.create_session(
        "testslug0001",
        SetMeta(set_num="42100-1", name="Liebherr R 9800"),
        ledger.items(),
    )
