"""Render an alumni resume as a PDF document with fpdf2."""

from __future__ import annotations

from typing import Iterable

from fpdf import FPDF
from fpdf.enums import XPos, YPos

LEVEL_LABELS = {1: "Basic", 2: "Elementary", 3: "Intermediate", 4: "Advanced", 5: "Native"}


def short_name(names: str, surnames: str) -> str:
    """First given name and first surname, e.g. 'Ana Maria', 'Diaz Rey' -> 'Ana Diaz'."""
    first = names.split()[0] if names.split() else ""
    last = surnames.split()[0] if surnames.split() else ""
    return f"{first} {last}".strip()


def pdf_filename(user) -> str:
    """Download name for `user`'s resume, e.g. `resume-ada-lovelace.pdf`."""
    return f"resume-{short_name(user.names, user.surnames).replace(' ', '-').lower()}.pdf"


def _latin1(text: str) -> str:
    # the core PDF fonts only cover latin-1
    return text.encode("latin-1", "replace").decode("latin-1")


def _line(pdf: FPDF, height: float, text: str) -> None:
    pdf.multi_cell(0, height, _latin1(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def _heading(pdf: FPDF, text: str) -> None:
    pdf.ln(4)
    pdf.set_font("Helvetica", "B", 13)
    _line(pdf, 8, text)
    pdf.set_font("Helvetica", "", 11)


def render_resume_pdf(user, resume, languages: Iterable, studies: Iterable = (), courses: Iterable = ()) -> bytes:
    """Return the PDF bytes for `user`'s resume.

    `languages`, `studies` and `courses` are `ResumeLanguage`,
    `HigherEducationStudy` and `CiapCourse` rows; a resume marked as not visible
    is still rendered, visibility is enforced by the callers that list
    resumes publicly.
    """
    full_name = f"{user.names} {user.surnames}"
    pdf = FPDF(format="A4")
    pdf.set_title(_latin1(f"Resume {full_name}"))
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 18)
    _line(pdf, 10, full_name)
    pdf.set_font("Helvetica", "", 11)
    _line(pdf, 6, user.email)
    if user.telephone_number:
        _line(pdf, 6, user.telephone_number)
    if user.address:
        _line(pdf, 6, user.address)

    if resume.about_me:
        _heading(pdf, "About me")
        _line(pdf, 6, resume.about_me)

    languages = list(languages)
    if languages:
        _heading(pdf, "Languages")
        for entry in languages:
            written = LEVEL_LABELS.get(entry.written_level, str(entry.written_level))
            oral = LEVEL_LABELS.get(entry.oral_level, str(entry.oral_level))
            _line(pdf, 6, f"{entry.language_name}: written {written}, oral {oral}")

    studies = list(studies)
    if studies:
        _heading(pdf, "Higher education")
        for study in studies:
            _line(pdf, 6, f"{study.title}, {study.institution} ({study.end_date.year})")

    courses = list(courses)
    if courses:
        _heading(pdf, "CIAP courses")
        for course in courses:
            _line(pdf, 6, f"{course.name} ({course.held_on.isoformat()})")

    return bytes(pdf.output())
