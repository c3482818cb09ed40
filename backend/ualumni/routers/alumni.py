"""Alumni endpoints: creation, random paging, lookup, update and removal."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import services
from ..database import get_session
from ..errors import NotFoundError
from ..schemas import (
    AlumniCreate,
    AlumniOut,
    AlumniUpdate,
    Envelope,
    RandomPage,
    envelope,
)

router = APIRouter()


def normalize_email(email: str) -> str:
    return email.strip().lower()


@router.post("", status_code=201, response_model=Envelope[AlumniOut])
def create_alumni(payload: AlumniCreate, db: Session = Depends(get_session)):
    """Create an alumni together with its user account and an empty resume."""
    user = services.AlumniService(db).create(payload.model_dump())
    return envelope(201, AlumniOut.model_validate(user))


@router.get("", response_model=Envelope[RandomPage[AlumniOut]])
def list_alumni(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=services.MAX_ITEMS_PER_PAGE, alias="per-page"),
    randomization_seed: Optional[float] = Query(None, ge=-1, le=1, alias="randomization-seed"),
    db: Session = Depends(get_session),
):
    """Return a page of alumni in random order.

    The response `meta.randomizationSeed` can be sent back as
    `randomization-seed` to get further pages of the same ordering.
    """
    result = services.AlumniService(db).find_page_randomly(page, per_page, randomization_seed)
    items = [AlumniOut.model_validate(u) for u in result["items"]]
    return envelope(200, {"items": items, "meta": result["meta"]})


@router.get("/{email}", response_model=Envelope[AlumniOut])
def get_alumni(email: str, db: Session = Depends(get_session)):
    email = normalize_email(email)
    user = services.AlumniService(db).find_one(email)
    if user is None:
        raise NotFoundError(f"There is no alumni with the given email ({email})")
    return envelope(200, AlumniOut.model_validate(user))


@router.patch("/{email}", response_model=Envelope[AlumniOut])
def update_alumni(email: str, payload: AlumniUpdate, db: Session = Depends(get_session)):
    """Partially update an alumni; only the fields present in the body change."""
    user = services.AlumniService(db).update(normalize_email(email), payload.model_dump(exclude_unset=True))
    return envelope(200, AlumniOut.model_validate(user))


@router.delete("/{email}", response_model=Envelope[AlumniOut])
def remove_alumni(email: str, db: Session = Depends(get_session)):
    user = services.AlumniService(db).remove(normalize_email(email))
    return envelope(200, AlumniOut.model_validate(user))
