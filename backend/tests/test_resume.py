import io

import pytest
from fastapi.testclient import TestClient
from pypdf import PdfReader
from sqlmodel import select

from ualumni import models
from ualumni.errors import NotFoundError
from ualumni.main import app
from ualumni.services import AlumniService, ResumeLanguageService, ResumeService

client = TestClient(app)


def _setup_alumni(email="ada@x.com"):
    r = client.post(
        "/alumni",
        json={
            "email": email,
            "names": "Ada Augusta",
            "surnames": "Lovelace Byron",
            "password": "pw",
            "telephoneNumber": "+44 20 7946 0000",
        },
    )
    assert r.status_code == 201
    for name in ("English", "French"):
        client.post("/language", json={"name": name})


def test_new_alumni_has_an_empty_visible_resume():
    _setup_alumni()
    r = client.get("/alumni/ada@x.com/resume")
    assert r.status_code == 200
    assert r.json()["data"] == {
        "ownerEmail": "ada@x.com",
        "aboutMe": None,
        "isVisible": True,
        "languages": [],
        "higherEducationStudies": [],
        "ciapCourses": [],
    }
    assert client.get("/alumni/nobody@x.com/resume").status_code == 404


def test_update_resume():
    _setup_alumni()
    r = client.patch("/alumni/ada@x.com/resume", json={"aboutMe": "Analyst", "isVisible": False})
    assert r.status_code == 200
    assert r.json()["data"]["aboutMe"] == "Analyst"
    assert r.json()["data"]["isVisible"] is False
    # omitted fields are kept
    r2 = client.patch("/alumni/ada@x.com/resume", json={"isVisible": True})
    assert r2.json()["data"]["aboutMe"] == "Analyst"
    assert client.patch("/alumni/nobody@x.com/resume", json={"aboutMe": "x"}).status_code == 404


def test_resume_language_flow():
    _setup_alumni()
    base = "/alumni/ada@x.com/resume/languages"
    r = client.post(base, json={"languageName": "French", "writtenLevel": 3, "oralLevel": 2})
    assert r.status_code == 201
    assert r.json()["data"] == {"languageName": "French", "writtenLevel": 3, "oralLevel": 2}
    client.post(base, json={"languageName": "English", "writtenLevel": 5, "oralLevel": 5})

    dup = client.post(base, json={"languageName": "French", "writtenLevel": 1, "oralLevel": 1})
    assert dup.status_code == 409
    unknown = client.post(base, json={"languageName": "Klingon", "writtenLevel": 1, "oralLevel": 1})
    assert unknown.status_code == 404
    no_alumni = client.post(
        "/alumni/nobody@x.com/resume/languages",
        json={"languageName": "French", "writtenLevel": 1, "oralLevel": 1},
    )
    assert no_alumni.status_code == 404
    bad_level = client.post(base, json={"languageName": "English", "writtenLevel": 6, "oralLevel": 1})
    assert bad_level.status_code == 400

    listed = client.get(base).json()["data"]
    assert [e["languageName"] for e in listed] == ["English", "French"]
    resume = client.get("/alumni/ada@x.com/resume").json()["data"]
    assert [e["languageName"] for e in resume["languages"]] == ["English", "French"]

    upd = client.patch(f"{base}/French", json={"oralLevel": 4})
    assert upd.status_code == 200
    assert upd.json()["data"] == {"languageName": "French", "writtenLevel": 3, "oralLevel": 4}
    assert client.get(f"{base}/French").json()["data"]["oralLevel"] == 4
    assert client.patch(f"{base}/German", json={"oralLevel": 1}).status_code == 404

    assert client.delete(f"{base}/French").status_code == 200
    assert client.delete(f"{base}/French").status_code == 404
    assert client.get(f"{base}/French").status_code == 404


def test_removing_alumni_or_language_cascades(session):
    _setup_alumni()
    svc = ResumeLanguageService(session)
    svc.create("ada@x.com", {"language_name": "English", "written_level": 4, "oral_level": 4})
    svc.create("ada@x.com", {"language_name": "French", "written_level": 2, "oral_level": 2})

    assert client.delete("/language/French").status_code == 200
    session.expire_all()
    assert [e.language_name for e in svc.find_all("ada@x.com")] == ["English"]

    AlumniService(session).remove("ada@x.com")
    session.expire_all()
    assert session.exec(select(models.ResumeLanguage)).all() == []


def test_export_resume_as_pdf():
    _setup_alumni()
    client.patch("/alumni/ada@x.com/resume", json={"aboutMe": "First programmer"})
    client.post(
        "/alumni/ada@x.com/resume/languages",
        json={"languageName": "English", "writtenLevel": 5, "oralLevel": 4},
    )
    r = client.get("/alumni/ada@x.com/resume/pdf")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert "resume-ada-lovelace.pdf" in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")
    text = PdfReader(io.BytesIO(r.content)).pages[0].extract_text()
    assert "Ada Augusta Lovelace Byron" in text
    assert "First programmer" in text
    assert "English" in text

    assert client.get("/alumni/nobody@x.com/resume/pdf").status_code == 404


def test_export_missing_resume_is_not_found(session):
    with pytest.raises(NotFoundError):
        ResumeService(session).export_as_pdf("nobody@x.com")


def test_export_returns_download_name(session):
    _setup_alumni()
    content, filename = ResumeService(session).export_as_pdf("ada@x.com")
    assert content.startswith(b"%PDF")
    assert filename == "resume-ada-lovelace.pdf"
