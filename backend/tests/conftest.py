import os
from pathlib import Path

# Point the app at a throw-away SQLite file before it is imported.
TEST_DB = Path(__file__).resolve().parents[1] / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB}"
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")

import pytest
from sqlmodel import Session

from ualumni.database import create_db_and_tables, drop_db_and_tables, engine
from ualumni.mailing import get_mailer
from ualumni.main import app


class FakeMailer:
    """Mail transport that records messages instead of sending them."""

    def __init__(self):
        self.sent = []
        self.fail_with = None

    def send(self, message):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(message)


@pytest.fixture(autouse=True)
def reset_db():
    """Ensure fresh tables for every test."""
    drop_db_and_tables()
    create_db_and_tables()
    yield


@pytest.fixture(autouse=True)
def mailer():
    fake = FakeMailer()
    app.dependency_overrides[get_mailer] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_mailer, None)


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


def pytest_sessionfinish(session, exitstatus):
    engine.dispose()
    if TEST_DB.exists():
        try:
            TEST_DB.unlink()
        except OSError:
            pass
