"""Two-step registration: request a verification email, then confirm it."""

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import services
from ..database import get_session
from ..mailing import MailingService, get_mailer
from ..schemas import AlumniCreate, AlumniOut, AlumniToVerifyOut, Envelope, envelope
from .alumni import normalize_email

router = APIRouter()


@router.post("", status_code=201, response_model=Envelope[AlumniToVerifyOut])
def register_alumni(payload: AlumniCreate, db: Session = Depends(get_session), mailer=Depends(get_mailer)):
    """Store a pending registration and send its verification link by email."""
    svc = services.AlumniToVerifyService(db, MailingService(db, mailer))
    pending, result = svc.create(payload.model_dump())
    out = AlumniToVerifyOut(
        email=pending.email,
        names=pending.names,
        surnames=pending.surnames,
        verification_sent=result.sent,
    )
    return envelope(201, out)


@router.get("/confirm", status_code=201, response_model=Envelope[AlumniOut])
def confirm_alumni(
    token: str = Query(..., min_length=1),
    email: str = Query(..., min_length=3),
    db: Session = Depends(get_session),
    mailer=Depends(get_mailer),
):
    """Create the alumni for a pending registration whose token matches."""
    svc = services.AlumniToVerifyService(db, MailingService(db, mailer))
    user = svc.confirm(normalize_email(email), token)
    return envelope(201, AlumniOut.model_validate(user))
