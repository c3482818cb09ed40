"""CIAP course endpoints: the courses alumni can add to their resume."""

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import services
from ..database import get_session
from ..schemas import CiapCourseCreate, CiapCourseOut, Envelope, Page, envelope

router = APIRouter()


@router.post("", status_code=201, response_model=Envelope[CiapCourseOut])
def create_course(payload: CiapCourseCreate, db: Session = Depends(get_session)):
    course = services.CiapCourseService(db).create(payload.model_dump())
    return envelope(201, CiapCourseOut.model_validate(course))


@router.get("", response_model=Envelope[Page[CiapCourseOut]])
def list_courses(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=services.MAX_ITEMS_PER_PAGE, alias="per-page"),
    db: Session = Depends(get_session),
):
    result = services.CiapCourseService(db).find_all(page, per_page)
    items = [CiapCourseOut.model_validate(c) for c in result["items"]]
    return envelope(200, {"items": items, "meta": result["meta"]})


@router.get("/{course_id}", response_model=Envelope[CiapCourseOut])
def get_course(course_id: int, db: Session = Depends(get_session)):
    return envelope(200, CiapCourseOut.model_validate(services.CiapCourseService(db).find_one(course_id)))


@router.delete("/{course_id}", response_model=Envelope[CiapCourseOut])
def remove_course(course_id: int, db: Session = Depends(get_session)):
    return envelope(200, CiapCourseOut.model_validate(services.CiapCourseService(db).remove(course_id)))
