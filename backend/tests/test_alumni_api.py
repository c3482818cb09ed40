from fastapi.testclient import TestClient
from sqlmodel import Session

from ualumni import models
from ualumni.database import engine
from ualumni.main import app
from ualumni.services import verify_password

client = TestClient(app)


def _register(email, password="p1", **extra):
    body = {"email": email, "names": "Ada", "surnames": "Lovelace", "password": password}
    body.update(extra)
    return client.post("/alumni", json=body)


def _stored_password(email):
    with Session(engine) as s:
        return s.get(models.User, email).password


def test_create_find_remove_scenario():
    r = _register("a@x.com", password="p1")
    assert r.status_code == 201
    body = r.json()
    assert body["statusCode"] == 201
    assert body["data"]["email"] == "a@x.com"
    # the password hash never leaves the server
    assert "password" not in body["data"]
    stored = _stored_password("a@x.com")
    assert verify_password("p1", stored)
    assert not verify_password("p2", stored)

    dup = _register("a@x.com", password="p3")
    assert dup.status_code == 409
    assert dup.json()["statusCode"] == 409
    assert "a@x.com" in dup.json()["message"]

    removed = client.delete("/alumni/a@x.com")
    assert removed.status_code == 200
    assert removed.json()["data"]["email"] == "a@x.com"

    assert client.get("/alumni/a@x.com").status_code == 404
    again = client.delete("/alumni/a@x.com")
    assert again.status_code == 404


def test_create_rejects_malformed_payload():
    r = client.post("/alumni", json={"email": "not-an-email", "names": "A", "surnames": "B", "password": "x"})
    assert r.status_code == 400
    assert "email" in r.json()["message"]
    r2 = client.post("/alumni", json={"email": "a@x.com"})
    assert r2.status_code == 400


def test_fields_are_camel_case_and_email_is_normalized():
    r = _register("Grace@X.com", telephoneNumber="+58 212 555 0101", address="Caracas")
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["email"] == "grace@x.com"
    assert data["telephoneNumber"] == "+58 212 555 0101"
    found = client.get("/alumni/GRACE@x.com")
    assert found.status_code == 200
    assert found.json()["data"]["address"] == "Caracas"


def test_update_alumni():
    _register("a@x.com")
    _register("b@x.com")
    r = client.patch("/alumni/a@x.com", json={"surnames": "King", "password": "new"})
    assert r.status_code == 200
    assert r.json()["data"]["surnames"] == "King"
    assert r.json()["data"]["names"] == "Ada"
    assert verify_password("new", _stored_password("a@x.com"))

    clash = client.patch("/alumni/a@x.com", json={"email": "b@x.com"})
    assert clash.status_code == 409
    missing = client.patch("/alumni/nobody@x.com", json={"names": "X"})
    assert missing.status_code == 404

    moved = client.patch("/alumni/a@x.com", json={"email": "c@x.com"})
    assert moved.status_code == 200
    assert client.get("/alumni/c@x.com").status_code == 200
    assert client.get("/alumni/c@x.com/resume").status_code == 200


def test_random_listing_reproducible_with_returned_seed():
    for i in range(7):
        _register(f"user{i}@x.com")
    first = client.get("/alumni", params={"page": 1, "per-page": 3})
    assert first.status_code == 200
    data = first.json()["data"]
    meta = data["meta"]
    assert meta["numberOfItems"] == 7
    assert meta["numberOfPages"] == 3
    assert meta["itemsPerPage"] == 3
    assert meta["pageNumber"] == 1
    seed = meta["randomizationSeed"]

    again = client.get("/alumni", params={"page": 1, "per-page": 3, "randomization-seed": seed})
    assert [a["email"] for a in again.json()["data"]["items"]] == [a["email"] for a in data["items"]]

    last = client.get("/alumni", params={"page": 3, "per-page": 3, "randomization-seed": seed})
    assert len(last.json()["data"]["items"]) == 1
    assert last.json()["data"]["meta"]["randomizationSeed"] == seed


def test_random_listing_validates_query(monkeypatch):
    def _must_not_query(*_args, **_kwargs):
        raise AssertionError("storage must not be queried")

    monkeypatch.setattr("ualumni.repositories.AlumniRepository.random_page", _must_not_query)
    assert client.get("/alumni", params={"per-page": 0}).status_code == 400
    assert client.get("/alumni", params={"per-page": -3}).status_code == 400
    assert client.get("/alumni", params={"page": 0}).status_code == 400
    assert client.get("/alumni", params={"randomization-seed": 2}).status_code == 400


def test_responses_carry_request_id():
    r = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.status_code == 200
    assert r.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_random_listing_rejects_out_of_range_pages():
    for params in ({"page": 10 ** 8, "per-page": 10 ** 12}, {"page": 10 ** 18, "per-page": 100}):
        r = client.get("/alumni", params=params)
        assert r.status_code == 400
        assert r.json()["statusCode"] == 400


def test_unhandled_errors_use_the_error_envelope(monkeypatch):
    def _broken(*_args, **_kwargs):
        raise ValueError("bug in a handler")

    monkeypatch.setattr("ualumni.services.AlumniService.find_one", _broken)
    lenient = TestClient(app, raise_server_exceptions=False)
    r = lenient.get("/alumni/a@x.com")
    # a server-side ValueError is not the client's fault
    assert r.status_code == 500
    assert r.json() == {"statusCode": 500, "message": "An unexpected situation occurred"}


def test_openapi_documents_error_envelope():
    schema = client.get("/openapi.json").json()
    assert "ErrorOut" in schema["components"]["schemas"]
    responses = schema["paths"]["/language/{name}"]["delete"]["responses"]
    for code in ("404", "409", "500"):
        assert responses[code]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorOut")
