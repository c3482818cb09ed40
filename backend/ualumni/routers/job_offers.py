"""Job offer endpoints, including applying to an offer with a resume."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .. import services
from ..database import get_session
from ..mailing import MailingService, get_mailer
from ..schemas import (
    Envelope,
    JobApplicationIn,
    JobOfferCreate,
    JobOfferOut,
    MailResultOut,
    envelope,
)

router = APIRouter()


@router.post("", status_code=201, response_model=Envelope[JobOfferOut])
def create_job_offer(payload: JobOfferCreate, db: Session = Depends(get_session)):
    offer = services.JobOfferService(db).create(payload.model_dump())
    return envelope(201, JobOfferOut.model_validate(offer))


@router.get("/{offer_id}", response_model=Envelope[JobOfferOut])
def get_job_offer(offer_id: int, db: Session = Depends(get_session)):
    return envelope(200, JobOfferOut.model_validate(services.JobOfferService(db).find_one(offer_id)))


@router.delete("/{offer_id}", response_model=Envelope[JobOfferOut])
def remove_job_offer(offer_id: int, db: Session = Depends(get_session)):
    return envelope(200, JobOfferOut.model_validate(services.JobOfferService(db).remove(offer_id)))


@router.post("/{offer_id}/apply", status_code=202, response_model=Envelope[MailResultOut])
def apply_to_job_offer(
    offer_id: int,
    payload: JobApplicationIn,
    db: Session = Depends(get_session),
    mailer=Depends(get_mailer),
):
    """Email the alumni's resume to the company that published the offer.

    Responds 502 when the mail transport rejects the message.
    """
    result = MailingService(db, mailer).send_resume(payload.alumni_email, offer_id)
    if not result.sent:
        return JSONResponse(
            status_code=502,
            content={"statusCode": 502, "message": f"The resume could not be delivered: {result.error}"},
        )
    return envelope(202, MailResultOut(sent=True))
