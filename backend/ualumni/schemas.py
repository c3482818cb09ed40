"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
router handlers and tests. JSON fields are camelCase on the wire while
snake_case names are accepted on input as well.
"""

import re
from datetime import date, datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")


def _normalize_email(value: str) -> str:
    value = value.strip()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email format")
    return value.lower()


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Envelope(CamelModel, Generic[T]):
    """Uniform wrapper for every successful response."""
    status_code: int
    data: T


class ErrorOut(CamelModel):
    status_code: int
    message: str


ERROR_RESPONSES = {
    400: {"model": ErrorOut, "description": "Malformed request"},
    404: {"model": ErrorOut, "description": "Record not found"},
    409: {"model": ErrorOut, "description": "Record already exists"},
    500: {"model": ErrorOut, "description": "Unexpected failure"},
}


class PageMeta(CamelModel):
    page_number: int
    items_per_page: int
    number_of_items: int
    number_of_pages: int


class RandomPageMeta(PageMeta):
    randomization_seed: float


class Page(CamelModel, Generic[T]):
    items: List[T]
    meta: PageMeta


class RandomPage(CamelModel, Generic[T]):
    items: List[T]
    meta: RandomPageMeta


class AlumniCreate(CamelModel):
    """Payload for alumni creation and registration requests."""
    email: str
    names: str = Field(min_length=1, max_length=200)
    surnames: str = Field(min_length=1, max_length=200)
    password: str = Field(min_length=1)
    address: Optional[str] = None
    telephone_number: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class AlumniUpdate(CamelModel):
    """Partial update of the alumni's user data; omitted fields are kept."""
    email: Optional[str] = None
    names: Optional[str] = Field(default=None, min_length=1, max_length=200)
    surnames: Optional[str] = Field(default=None, min_length=1, max_length=200)
    password: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = None
    telephone_number: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _normalize_email(v)


class AlumniOut(CamelModel):
    """Alumni as exposed over HTTP (the password hash is never returned)."""
    email: str
    names: str
    surnames: str
    address: Optional[str] = None
    telephone_number: Optional[str] = None


class CatalogCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class CatalogOut(CamelModel):
    name: str


class ResumeLanguageCreate(CamelModel):
    language_name: str = Field(min_length=1, max_length=100)
    written_level: int = Field(ge=1, le=5)
    oral_level: int = Field(ge=1, le=5)


class ResumeLanguageUpdate(CamelModel):
    written_level: Optional[int] = Field(default=None, ge=1, le=5)
    oral_level: Optional[int] = Field(default=None, ge=1, le=5)


class ResumeLanguageOut(CamelModel):
    language_name: str
    written_level: int
    oral_level: int


class HigherEducationStudyCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    institution: str = Field(min_length=1, max_length=200)
    end_date: date


class HigherEducationStudyUpdate(CamelModel):
    institution: Optional[str] = Field(default=None, min_length=1, max_length=200)
    end_date: Optional[date] = None


class HigherEducationStudyOut(CamelModel):
    title: str
    institution: str
    end_date: date


class CiapCourseCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    held_on: date


class CiapCourseOut(CamelModel):
    id: int
    name: str
    held_on: date


class ResumeCiapCourseIn(CamelModel):
    ciap_course_id: int = Field(ge=1)


class ResumeUpdate(CamelModel):
    about_me: Optional[str] = None
    is_visible: Optional[bool] = None


class ResumeOut(CamelModel):
    owner_email: str
    about_me: Optional[str] = None
    is_visible: bool
    languages: List[ResumeLanguageOut] = []
    higher_education_studies: List[HigherEducationStudyOut] = []
    ciap_courses: List[CiapCourseOut] = []


class JobOfferCreate(CamelModel):
    company_email: str
    position: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None

    @field_validator("company_email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class JobOfferOut(CamelModel):
    id: int
    company_email: str
    position: str
    description: Optional[str] = None
    created_at: datetime


class JobApplicationIn(CamelModel):
    alumni_email: str

    @field_validator("alumni_email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class MailResultOut(CamelModel):
    sent: bool
    error: Optional[str] = None


class AlumniToVerifyOut(CamelModel):
    email: str
    names: str
    surnames: str
    verification_sent: bool


def envelope(status_code: int, data) -> dict:
    """Wrap `data` in the `{statusCode, data}` response envelope."""
    return {"statusCode": status_code, "data": data}
