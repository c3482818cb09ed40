"""Templated email notifications.

`MailingService` composes the resume-forwarding and account-verification
emails from database data and hands them to a mail transport. Transport
failures are logged and reported through a `MailResult`; they are never
raised to the caller.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlmodel import Session

from . import repositories
from .config import settings
from .errors import NotFoundError
from .repositories import StorageError
from .services import ResumeService, translate_storage_error
from .utils.resume_pdf import short_name

logger = logging.getLogger("ualumni.mailing")

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
IMAGES_DIR = TEMPLATES_DIR / "images"
BRANDING_IMAGES = (("logo", "logo.png"), ("instagram", "instagram.png"))

_templates = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


@dataclass
class MailResult:
    sent: bool
    error: Optional[str] = None


class SmtpMailer:
    """Mail transport over SMTP, configured from `settings`."""

    def __init__(self, host: str, port: int, user: str = "", password: str = "", use_tls: bool = False, timeout: float = 10.0):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "SmtpMailer":
        return cls(
            settings.SMTP_HOST,
            settings.SMTP_PORT,
            settings.SMTP_USER,
            settings.SMTP_PASSWORD,
            settings.SMTP_USE_TLS,
            settings.MAIL_TIMEOUT_SECONDS,
        )

    def send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(message)


class MailingService:
    """Compose and send the platform's notification emails."""

    def __init__(
        self,
        session: Session,
        mailer,
        verification_url: Optional[str] = None,
        sender: Optional[str] = None,
    ):
        self.session = session
        self.mailer = mailer
        self.verification_url = verification_url or settings.VERIFICATION_URL
        self.sender = sender or settings.MAIL_FROM
        self.resume_service = ResumeService(session)
        self.alumni_repo = repositories.AlumniRepository(session)
        self.offer_repo = repositories.JobOfferRepository(session)
        self.pending_repo = repositories.AlumniToVerifyRepository(session)

    def send_resume(self, alumni_email: str, job_offer_id: int) -> MailResult:
        """Send the alumni's resume (as PDF) to the company behind a job offer.

        Raises NotFoundError when the alumni or the job offer does not
        exist; delivery problems only show up in the returned result.
        """
        try:
            user = self.alumni_repo.get_user(alumni_email)
            offer = self.offer_repo.get(job_offer_id)
        except StorageError as error:
            raise translate_storage_error(error) from error
        if user is None:
            raise NotFoundError(f"There is no alumni with the given email ({alumni_email})")
        if offer is None:
            raise NotFoundError(f"There is no job offer with the given id ({job_offer_id})")

        name = short_name(user.names, user.surnames)
        resume, _ = self.resume_service.export_as_pdf(alumni_email)
        message = self._compose(
            to=offer.company_email,
            subject=f"Currículum {user.names} {user.surnames} - {offer.position}",
            template="send_resume",
            context={"alumni": name, "position": offer.position},
        )
        message.add_attachment(resume, maintype="application", subtype="pdf", filename=f"Currículum {name}.pdf")
        return self._deliver(message, "send_resume", alumni_email=alumni_email, job_offer_id=job_offer_id)

    def send_verification(self, alumni_email: str, token: str) -> MailResult:
        """Email the account-verification link for `alumni_email`.

        The recipient may still be a pending registration or already an
        alumni; NotFoundError is raised when it is neither.
        """
        try:
            person = self.pending_repo.get(alumni_email) or self.alumni_repo.get_user(alumni_email)
        except StorageError as error:
            raise translate_storage_error(error) from error
        if person is None:
            raise NotFoundError(f"There is no registration with the given email ({alumni_email})")

        link = f"{self.verification_url}?{urlencode({'token': token, 'email': alumni_email})}"
        message = self._compose(
            to=alumni_email,
            subject=f"Verificación UAlumni - {person.names} {person.surnames}",
            template="email_verification",
            context={"alumni": short_name(person.names, person.surnames), "link": link},
        )
        return self._deliver(message, "send_verification", alumni_email=alumni_email)

    def _compose(self, to: str, subject: str, template: str, context: dict) -> EmailMessage:
        """Build a multipart message from `<template>.txt` and `<template>.html`.

        The branding images in `templates/images` are embedded inline; the
        HTML template refers to them through `cids` (`cid:logo`,
        `cid:instagram`).
        """
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = to
        message.set_content(_templates.get_template(f"{template}.txt").render(**context))
        html = _templates.get_template(f"{template}.html").render(
            cids={cid: cid for cid, _ in BRANDING_IMAGES}, **context
        )
        message.add_alternative(html, subtype="html")
        html_part = message.get_payload()[1]
        for cid, filename in BRANDING_IMAGES:
            data = (IMAGES_DIR / filename).read_bytes()
            html_part.add_related(
                data, maintype="image", subtype="png", cid=f"<{cid}>", disposition="inline", filename=filename
            )
        return message

    def _deliver(self, message: EmailMessage, kind: str, **details) -> MailResult:
        try:
            self.mailer.send(message)
        except Exception as exc:
            logger.exception("mail_failed kind=%s to=%s details=%s", kind, message["To"], details)
            return MailResult(sent=False, error=str(exc))
        logger.info("mail_sent kind=%s to=%s", kind, message["To"])
        return MailResult(sent=True)


def get_mailer():
    """FastAPI dependency returning the configured mail transport."""
    return SmtpMailer.from_settings()
