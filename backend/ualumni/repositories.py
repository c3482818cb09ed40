"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (alumni,
resumes and their entries, catalogues, CIAP courses, job offers, pending
registrations). Repositories return SQLModel objects and perform
commits/refreshes where appropriate.

This is also the only module that looks at SQLAlchemy and driver errors:
every failure leaves a repository as a `StorageError` carrying one of the
`StorageErrorKind` values, with the session rolled back.
"""

import enum
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from . import models

# PostgreSQL SQLSTATE codes
_PG_UNIQUE_VIOLATION = "23505"
_PG_FOREIGN_KEY_VIOLATION = "23503"


class StorageErrorKind(enum.Enum):
    UNIQUE_VIOLATION = "unique_violation"
    RECORD_NOT_FOUND = "record_not_found"
    MISSING_REFERENCE = "missing_reference"
    OTHER = "other"


class StorageError(Exception):
    """A persistence failure classified into a `StorageErrorKind`."""

    def __init__(self, kind: StorageErrorKind, cause: Optional[BaseException] = None):
        super().__init__(f"{kind.value}: {cause}" if cause else kind.value)
        self.kind = kind
        self.cause = cause


def classify_error(exc: BaseException) -> StorageErrorKind:
    """Map a SQLAlchemy/driver exception to a `StorageErrorKind`."""
    if not isinstance(exc, IntegrityError):
        return StorageErrorKind.OTHER
    orig = exc.orig
    # psycopg2 exposes `pgcode`, psycopg 3 `sqlstate`
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == _PG_UNIQUE_VIOLATION:
        return StorageErrorKind.UNIQUE_VIOLATION
    if code == _PG_FOREIGN_KEY_VIOLATION:
        return StorageErrorKind.MISSING_REFERENCE
    message = str(orig)
    if "UNIQUE constraint failed" in message:
        return StorageErrorKind.UNIQUE_VIOLATION
    if "FOREIGN KEY constraint failed" in message:
        return StorageErrorKind.MISSING_REFERENCE
    return StorageErrorKind.OTHER


@contextmanager
def storage_errors(session: Session):
    """Roll back `session` and re-raise any failure as a `StorageError`."""
    try:
        yield
    except StorageError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        raise StorageError(classify_error(exc), exc) from exc
    except OverflowError as exc:
        # raised by the driver itself when binding an out-of-range integer
        session.rollback()
        raise StorageError(StorageErrorKind.OTHER, exc) from exc


def _not_found() -> StorageError:
    return StorageError(StorageErrorKind.RECORD_NOT_FOUND)


def _snapshot(obj):
    """Return a detached copy of `obj`, usable after the row is deleted."""
    return type(obj)(**obj.model_dump())


class AlumniRepository:
    """Persistence for the User + Alumni + Resume aggregate."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.User) -> models.User:
        """Persist `user` with its Alumni profile and an empty Resume.

        The three rows are committed in one transaction.
        """
        with storage_errors(self.session):
            self._add_profile(user)
            self.session.commit()
            self.session.refresh(user)
        return user

    def _add_profile(self, user: models.User) -> None:
        # flushed one by one: foreign keys are checked per statement on SQLite
        self.session.add(user)
        self.session.flush()
        self.session.add(models.Alumni(email=user.email))
        self.session.flush()
        self.session.add(models.Resume(owner_email=user.email))
        self.session.flush()

    def create_from_pending(self, pending: models.AlumniToVerify) -> models.User:
        """Turn a confirmed registration into an alumni and drop the pending row."""
        user = models.User(
            email=pending.email,
            names=pending.names,
            surnames=pending.surnames,
            password=pending.password,
            role=models.UserRole.ALUMNI,
            address=pending.address,
            telephone_number=pending.telephone_number,
        )
        with storage_errors(self.session):
            self.session.delete(pending)
            self._add_profile(user)
            self.session.commit()
            self.session.refresh(user)
        return user

    def get_user(self, email: str) -> Optional[models.User]:
        """Return the `User` behind the alumni `email`, or `None`."""
        stmt = (
            select(models.User)
            .join(models.Alumni, models.Alumni.email == models.User.email)
            .where(models.User.email == email)
        )
        with storage_errors(self.session):
            return self.session.exec(stmt).first()

    def user_exists(self, email: str) -> bool:
        """Return True if any `User` (alumni or not) owns `email`."""
        with storage_errors(self.session):
            return self.session.get(models.User, email) is not None

    def update_user(self, email: str, changes: Dict[str, Any]) -> models.User:
        """Apply `changes` to the alumni's `User` row.

        Changing `email` relies on ON UPDATE CASCADE to move the alumni,
        resume and resume-language rows along with it.
        """
        with storage_errors(self.session):
            user = self.get_user(email)
            if user is None:
                raise _not_found()
            for field, value in changes.items():
                setattr(user, field, value)
            self.session.add(user)
            self.session.commit()
            self.session.refresh(user)
        return user

    def delete_user(self, email: str) -> models.User:
        """Delete the alumni's `User`; the schema cascades the rest."""
        with storage_errors(self.session):
            user = self.get_user(email)
            if user is None:
                raise _not_found()
            removed = _snapshot(user)
            self.session.delete(user)
            self.session.commit()
        return removed

    def random_page(self, seed: float, limit: int, offset: int) -> Tuple[List[models.User], int]:
        """Return one page of alumni in seeded random order plus the total count.

        Seeding, the page query and the count share one transaction. On
        PostgreSQL the generator is seeded with `setseed()` under
        REPEATABLE READ so the count sees the same snapshot as the page;
        on SQLite ordering uses the `seeded_random` function registered in
        `database.py`.
        """
        dialect = self.session.get_bind().dialect.name
        with storage_errors(self.session):
            if dialect == "postgresql":
                # isolation level can only be chosen before the transaction starts
                self.session.commit()
                self.session.connection(execution_options={"isolation_level": "REPEATABLE READ"})
                self.session.exec(select(func.setseed(seed))).all()
                order = func.random()
            else:
                order = func.seeded_random(seed, models.User.email)
            stmt = (
                select(models.User)
                .join(models.Alumni, models.Alumni.email == models.User.email)
                .order_by(order, models.User.email)
                .offset(offset)
                .limit(limit)
            )
            items = self.session.exec(stmt).all()
            total = self.session.exec(select(func.count()).select_from(models.Alumni)).one()
            self.session.commit()
        return list(items), total


class ResumeRepository:
    """Read and update `Resume` rows."""
    def __init__(self, session: Session):
        self.session = session

    def get(self, owner_email: str) -> Optional[models.Resume]:
        with storage_errors(self.session):
            return self.session.get(models.Resume, owner_email)

    def update(self, owner_email: str, changes: Dict[str, Any]) -> models.Resume:
        with storage_errors(self.session):
            resume = self.session.get(models.Resume, owner_email)
            if resume is None:
                raise _not_found()
            for field, value in changes.items():
                setattr(resume, field, value)
            self.session.add(resume)
            self.session.commit()
            self.session.refresh(resume)
        return resume


class ResumeEntryRepository:
    """CRUD operations for rows owned by a resume and keyed by one column.

    Subclasses set `model`, the `key` column that identifies an entry
    within a resume and the `order` column used for listing.
    """
    model: Type[SQLModel]
    key: str
    order: str

    def __init__(self, session: Session):
        self.session = session

    def create(self, entry):
        with storage_errors(self.session):
            self.session.add(entry)
            self.session.commit()
            self.session.refresh(entry)
        return entry

    def list_for(self, owner_email: str) -> list:
        """Return the entries of one resume in listing order."""
        stmt = (
            select(self.model)
            .where(self.model.resume_owner_email == owner_email)
            .order_by(getattr(self.model, self.order), getattr(self.model, self.key))
        )
        with storage_errors(self.session):
            return list(self.session.exec(stmt).all())

    def get(self, owner_email: str, key_value):
        with storage_errors(self.session):
            return self.session.get(self.model, (owner_email, key_value))

    def update(self, owner_email: str, key_value, changes: Dict[str, Any]):
        with storage_errors(self.session):
            entry = self.session.get(self.model, (owner_email, key_value))
            if entry is None:
                raise _not_found()
            for field, value in changes.items():
                setattr(entry, field, value)
            self.session.add(entry)
            self.session.commit()
            self.session.refresh(entry)
        return entry

    def delete(self, owner_email: str, key_value):
        with storage_errors(self.session):
            entry = self.session.get(self.model, (owner_email, key_value))
            if entry is None:
                raise _not_found()
            removed = _snapshot(entry)
            self.session.delete(entry)
            self.session.commit()
        return removed


class ResumeLanguageRepository(ResumeEntryRepository):
    model = models.ResumeLanguage
    key = "language_name"
    order = "language_name"


class HigherEducationStudyRepository(ResumeEntryRepository):
    model = models.HigherEducationStudy
    key = "title"
    order = "end_date"


class CiapCourseRepository:
    """CRUD operations for `CiapCourse` rows."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, course: models.CiapCourse) -> models.CiapCourse:
        with storage_errors(self.session):
            self.session.add(course)
            self.session.commit()
            self.session.refresh(course)
        return course

    def get(self, course_id: int) -> Optional[models.CiapCourse]:
        with storage_errors(self.session):
            return self.session.get(models.CiapCourse, course_id)

    def page(self, limit: int, offset: int) -> Tuple[List[models.CiapCourse], int]:
        """Return `limit` courses ordered by date starting at `offset`, plus the total."""
        stmt = (
            select(models.CiapCourse)
            .order_by(models.CiapCourse.held_on, models.CiapCourse.id)
            .offset(offset)
            .limit(limit)
        )
        with storage_errors(self.session):
            items = self.session.exec(stmt).all()
            total = self.session.exec(select(func.count()).select_from(models.CiapCourse)).one()
        return list(items), total

    def delete(self, course_id: int) -> models.CiapCourse:
        with storage_errors(self.session):
            course = self.session.get(models.CiapCourse, course_id)
            if course is None:
                raise _not_found()
            removed = _snapshot(course)
            self.session.delete(course)
            self.session.commit()
        return removed


class ResumeCiapCourseRepository:
    """Which CIAP courses appear on which resume."""
    def __init__(self, session: Session):
        self.session = session

    def add(self, owner_email: str, course_id: int) -> models.CiapCourse:
        """Link a course to a resume and return the course."""
        link = models.ResumeCiapCourse(resume_owner_email=owner_email, ciap_course_id=course_id)
        with storage_errors(self.session):
            self.session.add(link)
            self.session.commit()
            return self.session.get(models.CiapCourse, course_id)

    def list_for(self, owner_email: str) -> List[models.CiapCourse]:
        stmt = (
            select(models.CiapCourse)
            .join(models.ResumeCiapCourse, models.ResumeCiapCourse.ciap_course_id == models.CiapCourse.id)
            .where(models.ResumeCiapCourse.resume_owner_email == owner_email)
            .order_by(models.CiapCourse.held_on, models.CiapCourse.id)
        )
        with storage_errors(self.session):
            return list(self.session.exec(stmt).all())

    def remove(self, owner_email: str, course_id: int) -> models.CiapCourse:
        """Unlink a course from a resume and return the course."""
        with storage_errors(self.session):
            link = self.session.get(models.ResumeCiapCourse, (owner_email, course_id))
            if link is None:
                raise _not_found()
            course = self.session.get(models.CiapCourse, course_id)
            self.session.delete(link)
            self.session.commit()
            self.session.refresh(course)
        return course


class CatalogRepository:
    """CRUD operations for name-keyed reference tables (languages, careers, ...)."""
    def __init__(self, session: Session, model: Type[models.CatalogEntry]):
        self.session = session
        self.model = model

    def create(self, name: str) -> models.CatalogEntry:
        entry = self.model(name=name)
        with storage_errors(self.session):
            self.session.add(entry)
            self.session.commit()
            self.session.refresh(entry)
        return entry

    def get(self, name: str) -> Optional[models.CatalogEntry]:
        with storage_errors(self.session):
            return self.session.get(self.model, name)

    def page(self, limit: int, offset: int) -> Tuple[List[models.CatalogEntry], int]:
        """Return `limit` entries ordered by name starting at `offset`, plus the total."""
        stmt = select(self.model).order_by(self.model.name).offset(offset).limit(limit)
        with storage_errors(self.session):
            items = self.session.exec(stmt).all()
            total = self.session.exec(select(func.count()).select_from(self.model)).one()
        return list(items), total

    def delete(self, name: str) -> models.CatalogEntry:
        with storage_errors(self.session):
            entry = self.session.get(self.model, name)
            if entry is None:
                raise _not_found()
            removed = _snapshot(entry)
            self.session.delete(entry)
            self.session.commit()
        return removed


class JobOfferRepository:
    """CRUD operations for `JobOffer` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, offer: models.JobOffer) -> models.JobOffer:
        with storage_errors(self.session):
            self.session.add(offer)
            self.session.commit()
            self.session.refresh(offer)
        return offer

    def get(self, offer_id: int) -> Optional[models.JobOffer]:
        with storage_errors(self.session):
            return self.session.get(models.JobOffer, offer_id)

    def delete(self, offer_id: int) -> models.JobOffer:
        with storage_errors(self.session):
            offer = self.session.get(models.JobOffer, offer_id)
            if offer is None:
                raise _not_found()
            removed = _snapshot(offer)
            self.session.delete(offer)
            self.session.commit()
        return removed


class AlumniToVerifyRepository:
    """Persistence for registrations waiting for email confirmation."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, pending: models.AlumniToVerify) -> models.AlumniToVerify:
        with storage_errors(self.session):
            self.session.add(pending)
            self.session.commit()
            self.session.refresh(pending)
        return pending

    def get(self, email: str) -> Optional[models.AlumniToVerify]:
        with storage_errors(self.session):
            return self.session.get(models.AlumniToVerify, email)
