from types import SimpleNamespace

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError, OperationalError

from ualumni import models
from ualumni.config import Settings
from ualumni.database import _seeded_random
from ualumni.errors import AlreadyExistsError, NotFoundError, UnexpectedError
from ualumni.repositories import (
    AlumniRepository,
    CatalogRepository,
    StorageError,
    StorageErrorKind,
    classify_error,
)
from ualumni.services import translate_storage_error


class _PgError(Exception):
    def __init__(self, pgcode):
        super().__init__("pg failure")
        self.pgcode = pgcode


def _integrity(orig):
    return IntegrityError("INSERT ...", {}, orig)


def test_classify_error_sqlite_and_postgres_codes():
    assert classify_error(_integrity(Exception("UNIQUE constraint failed: users.email"))) is StorageErrorKind.UNIQUE_VIOLATION
    assert classify_error(_integrity(Exception("FOREIGN KEY constraint failed"))) is StorageErrorKind.MISSING_REFERENCE
    assert classify_error(_integrity(_PgError("23505"))) is StorageErrorKind.UNIQUE_VIOLATION
    assert classify_error(_integrity(_PgError("23503"))) is StorageErrorKind.MISSING_REFERENCE
    assert classify_error(_integrity(Exception("NOT NULL constraint failed: users.names"))) is StorageErrorKind.OTHER
    assert classify_error(OperationalError("SELECT 1", {}, Exception("database is locked"))) is StorageErrorKind.OTHER


def test_translate_storage_error_only_maps_requested_kinds():
    unique = StorageError(StorageErrorKind.UNIQUE_VIOLATION)
    missing = StorageError(StorageErrorKind.RECORD_NOT_FOUND)
    assert isinstance(translate_storage_error(unique, already_exists="dup"), AlreadyExistsError)
    assert isinstance(translate_storage_error(missing, not_found="gone"), NotFoundError)
    # without a message for its kind the failure is unexpected
    unexpected = translate_storage_error(unique, not_found="gone")
    assert isinstance(unexpected, UnexpectedError)
    assert unexpected.cause is unique


def test_repository_wraps_failures_and_rolls_back(session):
    repo = CatalogRepository(session, models.Language)
    repo.create("English")
    with pytest.raises(StorageError) as info:
        repo.create("English")
    assert info.value.kind is StorageErrorKind.UNIQUE_VIOLATION
    assert isinstance(info.value.cause, IntegrityError)
    # the session is usable again after the rollback
    assert repo.get("English") is not None
    with pytest.raises(StorageError) as missing:
        repo.delete("Latin")
    assert missing.value.kind is StorageErrorKind.RECORD_NOT_FOUND


def test_seeded_random_is_deterministic_and_in_range():
    values = [_seeded_random(0.25, f"user{i}@x.com") for i in range(50)]
    assert values == [_seeded_random(0.25, f"user{i}@x.com") for i in range(50)]
    assert all(0 <= v < 1 for v in values)
    assert values != [_seeded_random(0.26, f"user{i}@x.com") for i in range(50)]


def test_settings_reject_localhost_verification_url_outside_dev(monkeypatch):
    monkeypatch.setenv("ENV", "prod")
    monkeypatch.setenv("VERIFICATION_URL", "http://localhost:3000/auth/confirm")
    with pytest.raises(RuntimeError):
        Settings()
    monkeypatch.setenv("VERIFICATION_URL", "https://ualumni.example/confirm")
    assert Settings().VERIFICATION_URL == "https://ualumni.example/confirm"


def test_settings_validate_tunables(monkeypatch):
    monkeypatch.setenv("PASSWORD_HASH_ROUNDS", "10")
    with pytest.raises(RuntimeError):
        Settings()
    monkeypatch.setenv("PASSWORD_HASH_ROUNDS", "5000")
    monkeypatch.setenv("MAIL_TIMEOUT_SECONDS", "0")
    with pytest.raises(RuntimeError):
        Settings()


def test_driver_overflow_is_a_storage_error(session):
    repo = CatalogRepository(session, models.Language)
    with pytest.raises(StorageError) as info:
        repo.page(10, 2 ** 64)
    assert info.value.kind is StorageErrorKind.OTHER
    assert isinstance(info.value.cause, OverflowError)
    assert repo.page(10, 0) == ([], 0)


class _Result:
    def __init__(self, rows):
        self.rows = rows

    def all(self):
        return self.rows

    def one(self):
        return self.rows[0]


class _PostgresSession:
    """Session stand-in that reports the postgresql dialect and records calls."""

    def __init__(self):
        self.calls = []

    def get_bind(self):
        return SimpleNamespace(dialect=SimpleNamespace(name="postgresql"))

    def commit(self):
        self.calls.append("commit")

    def rollback(self):
        self.calls.append("rollback")

    def connection(self, execution_options=None):
        self.calls.append(("connection", execution_options))

    def exec(self, stmt):
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        self.calls.append(("exec", sql))
        return _Result([7] if "count" in sql else [])


def test_postgres_random_page_seeds_inside_one_repeatable_read_transaction():
    fake = _PostgresSession()
    items, total = AlumniRepository(fake).random_page(0.5, limit=10, offset=20)
    assert (items, total) == ([], 7)

    # the open transaction is closed so the isolation level can be chosen
    assert fake.calls[0] == "commit"
    assert fake.calls[1] == ("connection", {"isolation_level": "REPEATABLE READ"})
    queries = [call[1] for call in fake.calls if call[0] == "exec"]
    assert "setseed" in queries[0]
    assert "ORDER BY random()" in queries[1]
    assert "LIMIT" in queries[1] and "OFFSET" in queries[1]
    assert "count" in queries[2]
    assert fake.calls[-1] == "commit"
    assert "rollback" not in fake.calls
