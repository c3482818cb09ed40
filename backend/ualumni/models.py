"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to a table. Natural keys (emails, catalogue names) are
used as primary keys and foreign keys cascade on update and delete, so
removing a `User` removes its `Alumni`, `Resume` and every resume entry.
"""

import enum
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlmodel import SQLModel, Field, Relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    ALUMNI = "ALUMNI"
    ADMIN = "ADMIN"


class User(SQLModel, table=True):
    """A registered person.

    Fields:
    - `email`: unique natural key
    - `password`: hashed password string (never store plaintext)
    """
    __tablename__ = "users"

    email: str = Field(primary_key=True, max_length=320)
    names: str
    surnames: str
    password: str
    role: UserRole = Field(default=UserRole.ALUMNI)
    address: Optional[str] = None
    telephone_number: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class Alumni(SQLModel, table=True):
    """Alumni profile attached 1:1 to a `User` through its email."""
    __tablename__ = "alumni"

    email: str = Field(
        sa_column=Column(
            String(320),
            ForeignKey("users.email", ondelete="CASCADE", onupdate="CASCADE"),
            primary_key=True,
        )
    )


class ResumeCiapCourse(SQLModel, table=True):
    """Link between a resume and a CIAP course its owner attended."""
    __tablename__ = "resume_ciap_courses"

    resume_owner_email: str = Field(
        sa_column=Column(
            String(320),
            ForeignKey("resumes.owner_email", ondelete="CASCADE", onupdate="CASCADE"),
            primary_key=True,
        )
    )
    ciap_course_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("ciap_courses.id", ondelete="CASCADE", onupdate="CASCADE"),
            primary_key=True,
        )
    )


class Resume(SQLModel, table=True):
    """The single resume owned by an `Alumni`."""
    __tablename__ = "resumes"

    owner_email: str = Field(
        sa_column=Column(
            String(320),
            ForeignKey("alumni.email", ondelete="CASCADE", onupdate="CASCADE"),
            primary_key=True,
        )
    )
    about_me: Optional[str] = None
    is_visible: bool = True
    languages: List["ResumeLanguage"] = Relationship(
        back_populates="resume",
        sa_relationship_kwargs={"passive_deletes": True, "order_by": "ResumeLanguage.language_name"},
    )
    higher_education_studies: List["HigherEducationStudy"] = Relationship(
        back_populates="resume",
        sa_relationship_kwargs={"passive_deletes": True, "order_by": "HigherEducationStudy.end_date"},
    )
    ciap_courses: List["CiapCourse"] = Relationship(
        link_model=ResumeCiapCourse,
        sa_relationship_kwargs={"viewonly": True, "order_by": "CiapCourse.held_on"},
    )


class CatalogEntry(SQLModel):
    """Base for reference entities identified only by their name."""
    name: str = Field(primary_key=True, max_length=100)


class Language(CatalogEntry, table=True):
    __tablename__ = "languages"


class Career(CatalogEntry, table=True):
    __tablename__ = "careers"


class ContractType(CatalogEntry, table=True):
    __tablename__ = "contract_types"


class IndustryOfInterest(CatalogEntry, table=True):
    __tablename__ = "industries_of_interest"


class TechnicalSkill(CatalogEntry, table=True):
    __tablename__ = "technical_skills"


class ResumeLanguage(SQLModel, table=True):
    """A language listed on a resume, with self-assessed levels (1-5)."""
    __tablename__ = "resume_languages"

    resume_owner_email: str = Field(
        sa_column=Column(
            String(320),
            ForeignKey("resumes.owner_email", ondelete="CASCADE", onupdate="CASCADE"),
            primary_key=True,
        )
    )
    language_name: str = Field(
        sa_column=Column(
            String(100),
            ForeignKey("languages.name", ondelete="CASCADE", onupdate="CASCADE"),
            primary_key=True,
        )
    )
    written_level: int
    oral_level: int
    resume: Optional[Resume] = Relationship(back_populates="languages")


class HigherEducationStudy(SQLModel, table=True):
    """A degree listed on a resume, identified by its title within the resume."""
    __tablename__ = "higher_education_studies"

    resume_owner_email: str = Field(
        sa_column=Column(
            String(320),
            ForeignKey("resumes.owner_email", ondelete="CASCADE", onupdate="CASCADE"),
            primary_key=True,
        )
    )
    title: str = Field(primary_key=True, max_length=200)
    institution: str
    end_date: date
    resume: Optional[Resume] = Relationship(back_populates="higher_education_studies")


class CiapCourse(SQLModel, table=True):
    """A course offered by the CIAP (continuing education centre)."""
    __tablename__ = "ciap_courses"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=200)
    held_on: date


class JobOffer(SQLModel, table=True):
    """A job offer; resumes are forwarded to `company_email`."""
    __tablename__ = "job_offers"

    id: Optional[int] = Field(default=None, primary_key=True)
    company_email: str
    position: str
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class AlumniToVerify(SQLModel, table=True):
    """A registration waiting for its email address to be confirmed."""
    __tablename__ = "alumni_to_verify"

    email: str = Field(primary_key=True, max_length=320)
    names: str
    surnames: str
    password: str
    address: Optional[str] = None
    telephone_number: Optional[str] = None
    token: str = Field(index=True)
    created_at: datetime = Field(default_factory=_utcnow)
