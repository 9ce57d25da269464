"""Shared fixtures: temporary data dirs, fresh schema per test, fake-failing blob store."""

import os
import tempfile

# Setup environment for testing (before any eventnest import reads settings)
_TMP = tempfile.mkdtemp()
os.environ["EVENTNEST_DATA_DIR"] = os.path.join(_TMP, "data")
os.environ["EVENTNEST_STORAGE_DIR"] = os.path.join(_TMP, "blobs")
os.environ["EVENTNEST_DB_PATH"] = os.path.join(_TMP, "data", "test.db")
os.environ["EVENTNEST_BLOB_BASE_URL"] = "http://testserver/blobs"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from eventnest.database import engine
from eventnest.errors import BlobStoreError
from eventnest.main import app
from eventnest.services import auth_service, event_service
from eventnest.utils.storage import LocalBlobStore, get_blob_store

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"fake-jpeg-body" * 8


class FlakyBlobStore(LocalBlobStore):
    """Local blob store whose deletes can be made to fail per URL."""

    def __init__(self, root, base_url):
        super().__init__(root, base_url)
        self.fail_urls: set[str] = set()
        self.deleted: list[str] = []

    def delete(self, url: str) -> None:
        if url in self.fail_urls:
            raise BlobStoreError("simulated outage")
        super().delete(url)
        self.deleted.append(url)


@pytest.fixture(autouse=True)
def fresh_schema():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def blob_store(tmp_path):
    return FlakyBlobStore(tmp_path, "http://testserver/blobs")


@pytest.fixture
def client(blob_store):
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    """Sign up a user through the auth service; returns the signup result dict."""
    def _make(name: str, email: str | None = None, password: str = "correct-horse"):
        return auth_service.signup(name, email or f"{name.lower()}@example.com", password, session)
    return _make


def tomorrow() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=1)


@pytest.fixture
def make_event(session):
    def _make(creator_id: str, title: str = "Launch", **extra):
        data = {"title": title, "date": tomorrow(), **extra}
        return event_service.create_event(data, creator_id, session)
    return _make


def api_signup(client: TestClient, name: str, password: str = "correct-horse") -> dict:
    """Helper: POST /auth/signup and return the JSON body plus ready-made headers."""
    r = client.post("/api/v1/auth/signup", json={
        "name": name,
        "email": f"{name.lower()}@example.com",
        "password": password,
    })
    assert r.status_code == 201, r.text
    data = r.json()
    data["headers"] = {"Authorization": f"Bearer {data['access_token']}"}
    return data
