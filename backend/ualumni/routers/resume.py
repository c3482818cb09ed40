"""Resume endpoints nested under an alumni.

The resume itself (read, update, PDF export) and its entries: languages,
higher education studies and CIAP courses.
"""

from typing import List

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from .. import services
from ..database import get_session
from ..schemas import (
    CiapCourseOut,
    Envelope,
    HigherEducationStudyCreate,
    HigherEducationStudyOut,
    HigherEducationStudyUpdate,
    ResumeCiapCourseIn,
    ResumeLanguageCreate,
    ResumeLanguageOut,
    ResumeLanguageUpdate,
    ResumeOut,
    ResumeUpdate,
    envelope,
)
from .alumni import normalize_email

router = APIRouter()


@router.get("", response_model=Envelope[ResumeOut])
def get_resume(email: str, db: Session = Depends(get_session)):
    resume = services.ResumeService(db).find_one(normalize_email(email))
    return envelope(200, ResumeOut.model_validate(resume))


@router.patch("", response_model=Envelope[ResumeOut])
def update_resume(email: str, payload: ResumeUpdate, db: Session = Depends(get_session)):
    resume = services.ResumeService(db).update(normalize_email(email), payload.model_dump(exclude_unset=True))
    return envelope(200, ResumeOut.model_validate(resume))


@router.get("/pdf", response_class=Response)
def export_resume(email: str, db: Session = Depends(get_session)):
    """Download the resume as a PDF file."""
    email = normalize_email(email)
    content, filename = services.ResumeService(db).export_as_pdf(email)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/languages", status_code=201, response_model=Envelope[ResumeLanguageOut])
def add_resume_language(email: str, payload: ResumeLanguageCreate, db: Session = Depends(get_session)):
    entry = services.ResumeLanguageService(db).create(normalize_email(email), payload.model_dump())
    return envelope(201, ResumeLanguageOut.model_validate(entry))


@router.get("/languages", response_model=Envelope[List[ResumeLanguageOut]])
def list_resume_languages(email: str, db: Session = Depends(get_session)):
    entries = services.ResumeLanguageService(db).find_all(normalize_email(email))
    return envelope(200, [ResumeLanguageOut.model_validate(e) for e in entries])


@router.get("/languages/{language_name}", response_model=Envelope[ResumeLanguageOut])
def get_resume_language(email: str, language_name: str, db: Session = Depends(get_session)):
    entry = services.ResumeLanguageService(db).find_one(normalize_email(email), language_name)
    return envelope(200, ResumeLanguageOut.model_validate(entry))


@router.patch("/languages/{language_name}", response_model=Envelope[ResumeLanguageOut])
def update_resume_language(
    email: str,
    language_name: str,
    payload: ResumeLanguageUpdate,
    db: Session = Depends(get_session),
):
    entry = services.ResumeLanguageService(db).update(
        normalize_email(email), language_name, payload.model_dump(exclude_unset=True)
    )
    return envelope(200, ResumeLanguageOut.model_validate(entry))


@router.delete("/languages/{language_name}", response_model=Envelope[ResumeLanguageOut])
def remove_resume_language(email: str, language_name: str, db: Session = Depends(get_session)):
    entry = services.ResumeLanguageService(db).remove(normalize_email(email), language_name)
    return envelope(200, ResumeLanguageOut.model_validate(entry))


@router.post("/higher-education-studies", status_code=201, response_model=Envelope[HigherEducationStudyOut])
def add_study(email: str, payload: HigherEducationStudyCreate, db: Session = Depends(get_session)):
    study = services.HigherEducationStudyService(db).create(normalize_email(email), payload.model_dump())
    return envelope(201, HigherEducationStudyOut.model_validate(study))


@router.get("/higher-education-studies", response_model=Envelope[List[HigherEducationStudyOut]])
def list_studies(email: str, db: Session = Depends(get_session)):
    studies = services.HigherEducationStudyService(db).find_all(normalize_email(email))
    return envelope(200, [HigherEducationStudyOut.model_validate(s) for s in studies])


@router.get("/higher-education-studies/{title}", response_model=Envelope[HigherEducationStudyOut])
def get_study(email: str, title: str, db: Session = Depends(get_session)):
    study = services.HigherEducationStudyService(db).find_one(normalize_email(email), title)
    return envelope(200, HigherEducationStudyOut.model_validate(study))


@router.patch("/higher-education-studies/{title}", response_model=Envelope[HigherEducationStudyOut])
def update_study(
    email: str,
    title: str,
    payload: HigherEducationStudyUpdate,
    db: Session = Depends(get_session),
):
    study = services.HigherEducationStudyService(db).update(
        normalize_email(email), title, payload.model_dump(exclude_unset=True)
    )
    return envelope(200, HigherEducationStudyOut.model_validate(study))


@router.delete("/higher-education-studies/{title}", response_model=Envelope[HigherEducationStudyOut])
def remove_study(email: str, title: str, db: Session = Depends(get_session)):
    study = services.HigherEducationStudyService(db).remove(normalize_email(email), title)
    return envelope(200, HigherEducationStudyOut.model_validate(study))


@router.post("/ciap-courses", status_code=201, response_model=Envelope[CiapCourseOut])
def add_ciap_course(email: str, payload: ResumeCiapCourseIn, db: Session = Depends(get_session)):
    course = services.ResumeCiapCourseService(db).add(normalize_email(email), payload.ciap_course_id)
    return envelope(201, CiapCourseOut.model_validate(course))


@router.get("/ciap-courses", response_model=Envelope[List[CiapCourseOut]])
def list_ciap_courses(email: str, db: Session = Depends(get_session)):
    courses = services.ResumeCiapCourseService(db).find_all(normalize_email(email))
    return envelope(200, [CiapCourseOut.model_validate(c) for c in courses])


@router.delete("/ciap-courses/{course_id}", response_model=Envelope[CiapCourseOut])
def remove_ciap_course(email: str, course_id: int, db: Session = Depends(get_session)):
    course = services.ResumeCiapCourseService(db).remove(normalize_email(email), course_id)
    return envelope(200, CiapCourseOut.model_validate(course))
