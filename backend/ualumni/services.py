"""Business logic services used by HTTP routers.

This module holds small service classes that coordinate repositories and
auxiliary logic. Services are intentionally thin: they validate
arguments, execute domain logic, persist aggregates via repositories and
translate `StorageError`s into the domain errors of `errors.py`.
"""

import logging
import math
import random
import secrets
from typing import Any, Dict, List, Optional, Tuple, Type

from passlib.context import CryptContext
from sqlmodel import Session

from . import models, repositories
from .config import settings
from .errors import AlreadyExistsError, BadRequestError, NotFoundError, ServiceError, UnexpectedError
from .repositories import StorageError, StorageErrorKind
from .utils.resume_pdf import pdf_filename, render_resume_pdf

logger = logging.getLogger("ualumni.services")

PWD_CTX = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__default_rounds=settings.PASSWORD_HASH_ROUNDS,
)

MAX_ITEMS_PER_PAGE = 100
# largest OFFSET the databases accept (signed 64-bit)
_MAX_OFFSET = 2 ** 63 - 1

# user columns that may be cleared with an explicit null
_NULLABLE_USER_FIELDS = {"address", "telephone_number"}


def hash_password(password: str) -> str:
    """Return a salted one-way hash of `password` (fresh salt per call)."""
    return PWD_CTX.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return PWD_CTX.verify(password, hashed)


def translate_storage_error(
    error: StorageError,
    already_exists: Optional[str] = None,
    not_found: Optional[str] = None,
) -> ServiceError:
    """Map a `StorageError` to the domain error a caller should see.

    Only the kinds for which a message is supplied are translated to
    AlreadyExists/NotFound; everything else becomes `UnexpectedError`.
    """
    if error.kind is StorageErrorKind.UNIQUE_VIOLATION and already_exists:
        return AlreadyExistsError(already_exists, cause=error)
    if error.kind in (StorageErrorKind.RECORD_NOT_FOUND, StorageErrorKind.MISSING_REFERENCE) and not_found:
        return NotFoundError(not_found, cause=error)
    logger.error("unexpected storage failure: %s", error)
    return UnexpectedError(cause=error)


def page_meta(page_number: int, items_per_page: int, number_of_items: int) -> Dict[str, int]:
    return {
        "page_number": page_number,
        "items_per_page": items_per_page,
        "number_of_items": number_of_items,
        "number_of_pages": math.ceil(number_of_items / items_per_page),
    }


def _check_page_args(page_number: int, items_per_page: int) -> None:
    if page_number < 1:
        raise BadRequestError("page number must be >= 1")
    if not 1 <= items_per_page <= MAX_ITEMS_PER_PAGE:
        raise BadRequestError(f"items per page must be between 1 and {MAX_ITEMS_PER_PAGE}")
    if items_per_page * (page_number - 1) > _MAX_OFFSET:
        raise BadRequestError("page number is out of range")


class AlumniService:
    """Create, page, read, update and remove alumni."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.AlumniRepository(session)

    def create(self, data: Dict[str, Any]) -> models.User:
        """Create a User (role ALUMNI) with its Alumni profile and empty Resume.

        `data` holds `email`, `names`, `surnames`, `password` (plaintext)
        and optionally `address` and `telephone_number`. The returned
        record carries the hashed password.
        """
        user = models.User(
            email=data["email"],
            names=data["names"],
            surnames=data["surnames"],
            password=hash_password(data["password"]),
            role=models.UserRole.ALUMNI,
            address=data.get("address"),
            telephone_number=data.get("telephone_number"),
        )
        try:
            return self.repo.create(user)
        except StorageError as error:
            raise translate_storage_error(
                error,
                already_exists=f"There already exists an alumni with the given email ({data['email']})",
            ) from error

    def create_verified(self, pending: models.AlumniToVerify) -> models.User:
        """Promote a confirmed registration to an alumni (password already hashed)."""
        try:
            return self.repo.create_from_pending(pending)
        except StorageError as error:
            raise translate_storage_error(
                error,
                already_exists=f"There already exists an alumni with the given email ({pending.email})",
            ) from error

    def find_page_randomly(
        self,
        page_number: int,
        items_per_page: int,
        randomization_seed: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Return a page of alumni in a reproducible random order.

        When `randomization_seed` is omitted a new one is drawn; it is
        always echoed in `meta` so the caller can request further pages of
        the same ordering.
        """
        _check_page_args(page_number, items_per_page)
        if randomization_seed is None:
            randomization_seed = random.random()
        try:
            items, total = self.repo.random_page(
                randomization_seed,
                limit=items_per_page,
                offset=items_per_page * (page_number - 1),
            )
        except StorageError as error:
            raise translate_storage_error(error) from error
        meta = page_meta(page_number, items_per_page, total)
        meta["randomization_seed"] = randomization_seed
        return {"items": items, "meta": meta}

    def find_one(self, email: str) -> Optional[models.User]:
        """Return the alumni's user record, or `None` if there is no such alumni."""
        try:
            return self.repo.get_user(email)
        except StorageError as error:
            raise translate_storage_error(error) from error

    def update(self, email: str, patch: Dict[str, Any]) -> models.User:
        """Apply a partial update to the alumni's user data.

        A new password is hashed before it is stored. Explicit nulls are
        only honoured for optional columns.
        """
        changes = {
            field: value
            for field, value in patch.items()
            if value is not None or field in _NULLABLE_USER_FIELDS
        }
        if "password" in changes:
            changes["password"] = hash_password(changes["password"])
        try:
            return self.repo.update_user(email, changes)
        except StorageError as error:
            raise translate_storage_error(
                error,
                already_exists=f"Cannot update the email to {changes.get('email')}, there already exists an alumni with the same email",
                not_found=f"There is no alumni with the given email ({email})",
            ) from error

    def remove(self, email: str) -> models.User:
        """Delete the alumni's user; profile, resume and resume languages go with it."""
        try:
            return self.repo.delete_user(email)
        except StorageError as error:
            raise translate_storage_error(
                error,
                not_found=f"There is no alumni with the given email ({email})",
            ) from error


class CatalogService:
    """Create, list, read and remove entries of a name-keyed catalogue.

    Subclasses only choose the `model` and a human readable `label`.
    """
    model: Type[models.CatalogEntry]
    label: str

    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.CatalogRepository(session, self.model)

    def create(self, name: str) -> models.CatalogEntry:
        try:
            return self.repo.create(name)
        except StorageError as error:
            raise translate_storage_error(
                error,
                already_exists=f"There already exists a {self.label} with the given name ({name})",
            ) from error

    def find_all(self, page_number: int, items_per_page: int) -> Dict[str, Any]:
        """Return one page of entries ordered by name plus pagination metadata."""
        _check_page_args(page_number, items_per_page)
        try:
            items, total = self.repo.page(items_per_page, items_per_page * (page_number - 1))
        except StorageError as error:
            raise translate_storage_error(error) from error
        return {"items": items, "meta": page_meta(page_number, items_per_page, total)}

    def find_one(self, name: str) -> models.CatalogEntry:
        try:
            entry = self.repo.get(name)
        except StorageError as error:
            raise translate_storage_error(error) from error
        if entry is None:
            raise NotFoundError(f"There is no {self.label} with the given name ({name})")
        return entry

    def remove(self, name: str) -> models.CatalogEntry:
        try:
            return self.repo.delete(name)
        except StorageError as error:
            raise translate_storage_error(
                error,
                not_found=f"There is no {self.label} with the given name ({name})",
            ) from error


class LanguageService(CatalogService):
    model = models.Language
    label = "language"


class CareerService(CatalogService):
    model = models.Career
    label = "career"


class ContractTypeService(CatalogService):
    model = models.ContractType
    label = "contract type"


class IndustryOfInterestService(CatalogService):
    model = models.IndustryOfInterest
    label = "industry of interest"


class TechnicalSkillService(CatalogService):
    model = models.TechnicalSkill
    label = "technical skill"


class ResumeService:
    """Read, update and export the resume of an alumni."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.ResumeRepository(session)
        self.alumni_repo = repositories.AlumniRepository(session)
        self.language_repo = repositories.ResumeLanguageRepository(session)
        self.study_repo = repositories.HigherEducationStudyRepository(session)
        self.course_repo = repositories.ResumeCiapCourseRepository(session)

    def _not_found(self, email: str) -> NotFoundError:
        return NotFoundError(f"There is no resume for the alumni with the given email ({email})")

    def find_one(self, email: str) -> models.Resume:
        try:
            resume = self.repo.get(email)
        except StorageError as error:
            raise translate_storage_error(error) from error
        if resume is None:
            raise self._not_found(email)
        return resume

    def update(self, email: str, patch: Dict[str, Any]) -> models.Resume:
        changes = {field: value for field, value in patch.items() if value is not None or field == "about_me"}
        try:
            return self.repo.update(email, changes)
        except StorageError as error:
            raise translate_storage_error(error, not_found=str(self._not_found(email))) from error

    def export_as_pdf(self, email: str) -> Tuple[bytes, str]:
        """Render the alumni's resume as a PDF document.

        Returns the PDF bytes and a download filename.
        """
        try:
            user = self.alumni_repo.get_user(email)
            resume = self.repo.get(email)
            languages = self.language_repo.list_for(email)
            studies = self.study_repo.list_for(email)
            courses = self.course_repo.list_for(email)
        except StorageError as error:
            raise translate_storage_error(error) from error
        if user is None or resume is None:
            raise self._not_found(email)
        return render_resume_pdf(user, resume, languages, studies, courses), pdf_filename(user)


class ResumeLanguageService:
    """Languages listed on an alumni's resume."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.ResumeLanguageRepository(session)

    def create(self, email: str, data: Dict[str, Any]) -> models.ResumeLanguage:
        entry = models.ResumeLanguage(
            resume_owner_email=email,
            language_name=data["language_name"],
            written_level=data["written_level"],
            oral_level=data["oral_level"],
        )
        try:
            return self.repo.create(entry)
        except StorageError as error:
            raise translate_storage_error(
                error,
                already_exists=f"The language {data['language_name']} is already on the resume of {email}",
                not_found=f"There is no alumni ({email}) or language ({data['language_name']}) with the given key",
            ) from error

    def find_all(self, email: str) -> List[models.ResumeLanguage]:
        try:
            return self.repo.list_for(email)
        except StorageError as error:
            raise translate_storage_error(error) from error

    def find_one(self, email: str, language_name: str) -> models.ResumeLanguage:
        try:
            entry = self.repo.get(email, language_name)
        except StorageError as error:
            raise translate_storage_error(error) from error
        if entry is None:
            raise NotFoundError(f"The language {language_name} is not on the resume of {email}")
        return entry

    def update(self, email: str, language_name: str, patch: Dict[str, Any]) -> models.ResumeLanguage:
        changes = {field: value for field, value in patch.items() if value is not None}
        try:
            return self.repo.update(email, language_name, changes)
        except StorageError as error:
            raise translate_storage_error(
                error,
                not_found=f"The language {language_name} is not on the resume of {email}",
            ) from error

    def remove(self, email: str, language_name: str) -> models.ResumeLanguage:
        try:
            return self.repo.delete(email, language_name)
        except StorageError as error:
            raise translate_storage_error(
                error,
                not_found=f"The language {language_name} is not on the resume of {email}",
            ) from error


class HigherEducationStudyService:
    """Degrees listed on an alumni's resume, keyed by title."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.HigherEducationStudyRepository(session)

    def _not_found(self, email: str, title: str) -> str:
        return f"The study {title} is not on the resume of {email}"

    def create(self, email: str, data: Dict[str, Any]) -> models.HigherEducationStudy:
        study = models.HigherEducationStudy(
            resume_owner_email=email,
            title=data["title"],
            institution=data["institution"],
            end_date=data["end_date"],
        )
        try:
            return self.repo.create(study)
        except StorageError as error:
            raise translate_storage_error(
                error,
                already_exists=f"The study {data['title']} is already on the resume of {email}",
                not_found=f"There is no alumni with the given email ({email})",
            ) from error

    def find_all(self, email: str) -> List[models.HigherEducationStudy]:
        try:
            return self.repo.list_for(email)
        except StorageError as error:
            raise translate_storage_error(error) from error

    def find_one(self, email: str, title: str) -> models.HigherEducationStudy:
        try:
            study = self.repo.get(email, title)
        except StorageError as error:
            raise translate_storage_error(error) from error
        if study is None:
            raise NotFoundError(self._not_found(email, title))
        return study

    def update(self, email: str, title: str, patch: Dict[str, Any]) -> models.HigherEducationStudy:
        changes = {field: value for field, value in patch.items() if value is not None}
        try:
            return self.repo.update(email, title, changes)
        except StorageError as error:
            raise translate_storage_error(error, not_found=self._not_found(email, title)) from error

    def remove(self, email: str, title: str) -> models.HigherEducationStudy:
        try:
            return self.repo.delete(email, title)
        except StorageError as error:
            raise translate_storage_error(error, not_found=self._not_found(email, title)) from error


class CiapCourseService:
    """Courses offered by the CIAP that alumni can list on their resume."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.CiapCourseRepository(session)

    def create(self, data: Dict[str, Any]) -> models.CiapCourse:
        course = models.CiapCourse(name=data["name"], held_on=data["held_on"])
        try:
            return self.repo.create(course)
        except StorageError as error:
            raise translate_storage_error(error) from error

    def find_all(self, page_number: int, items_per_page: int) -> Dict[str, Any]:
        """Return one page of courses ordered by date plus pagination metadata."""
        _check_page_args(page_number, items_per_page)
        try:
            items, total = self.repo.page(items_per_page, items_per_page * (page_number - 1))
        except StorageError as error:
            raise translate_storage_error(error) from error
        return {"items": items, "meta": page_meta(page_number, items_per_page, total)}

    def find_one(self, course_id: int) -> models.CiapCourse:
        try:
            course = self.repo.get(course_id)
        except StorageError as error:
            raise translate_storage_error(error) from error
        if course is None:
            raise NotFoundError(f"There is no CIAP course with the given id ({course_id})")
        return course

    def remove(self, course_id: int) -> models.CiapCourse:
        """Delete a course; it disappears from every resume listing it."""
        try:
            return self.repo.delete(course_id)
        except StorageError as error:
            raise translate_storage_error(
                error,
                not_found=f"There is no CIAP course with the given id ({course_id})",
            ) from error


class ResumeCiapCourseService:
    """CIAP courses listed on an alumni's resume."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.ResumeCiapCourseRepository(session)

    def add(self, email: str, course_id: int) -> models.CiapCourse:
        try:
            return self.repo.add(email, course_id)
        except StorageError as error:
            raise translate_storage_error(
                error,
                already_exists=f"The CIAP course {course_id} is already on the resume of {email}",
                not_found=f"There is no alumni ({email}) or CIAP course ({course_id}) with the given key",
            ) from error

    def find_all(self, email: str) -> List[models.CiapCourse]:
        try:
            return self.repo.list_for(email)
        except StorageError as error:
            raise translate_storage_error(error) from error

    def remove(self, email: str, course_id: int) -> models.CiapCourse:
        try:
            return self.repo.remove(email, course_id)
        except StorageError as error:
            raise translate_storage_error(
                error,
                not_found=f"The CIAP course {course_id} is not on the resume of {email}",
            ) from error


class JobOfferService:
    """Manage job offers that resumes can be sent to."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.JobOfferRepository(session)

    def create(self, data: Dict[str, Any]) -> models.JobOffer:
        offer = models.JobOffer(
            company_email=data["company_email"],
            position=data["position"],
            description=data.get("description"),
        )
        try:
            return self.repo.create(offer)
        except StorageError as error:
            raise translate_storage_error(error) from error

    def find_one(self, offer_id: int) -> models.JobOffer:
        try:
            offer = self.repo.get(offer_id)
        except StorageError as error:
            raise translate_storage_error(error) from error
        if offer is None:
            raise NotFoundError(f"There is no job offer with the given id ({offer_id})")
        return offer

    def remove(self, offer_id: int) -> models.JobOffer:
        try:
            return self.repo.delete(offer_id)
        except StorageError as error:
            raise translate_storage_error(
                error,
                not_found=f"There is no job offer with the given id ({offer_id})",
            ) from error


class AlumniToVerifyService:
    """Two-step alumni registration confirmed through an emailed token.

    `mailing` is a `mailing.MailingService` bound to the same session.
    """
    def __init__(self, session: Session, mailing):
        self.session = session
        self.mailing = mailing
        self.repo = repositories.AlumniToVerifyRepository(session)
        self.alumni_repo = repositories.AlumniRepository(session)

    def create(self, data: Dict[str, Any]) -> Tuple[models.AlumniToVerify, Any]:
        """Store a pending registration and email its verification link.

        Returns the pending record and the `MailResult` of the send.
        """
        email = data["email"]
        already_exists = f"There already exists an alumni or a pending registration with the given email ({email})"
        try:
            taken = self.alumni_repo.user_exists(email) or self.repo.get(email) is not None
        except StorageError as error:
            raise translate_storage_error(error) from error
        if taken:
            raise AlreadyExistsError(already_exists)
        pending = models.AlumniToVerify(
            email=email,
            names=data["names"],
            surnames=data["surnames"],
            password=hash_password(data["password"]),
            address=data.get("address"),
            telephone_number=data.get("telephone_number"),
            token=secrets.token_urlsafe(32),
        )
        try:
            pending = self.repo.create(pending)
        except StorageError as error:
            raise translate_storage_error(error, already_exists=already_exists) from error
        result = self.mailing.send_verification(pending.email, pending.token)
        if not result.sent:
            logger.warning("verification email for %s was not sent: %s", pending.email, result.error)
        return pending, result

    def confirm(self, email: str, token: str) -> models.User:
        """Create the alumni for a pending registration whose token matches."""
        try:
            pending = self.repo.get(email)
        except StorageError as error:
            raise translate_storage_error(error) from error
        if pending is None or not secrets.compare_digest(pending.token.encode(), token.encode()):
            raise NotFoundError(f"There is no pending registration for {email} with the given token")
        return AlumniService(self.session).create_verified(pending)
