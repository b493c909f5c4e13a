import os

os.environ["ADMIN_EMAILS"] = "admin@example.com"
os.environ["MEDIA_BACKEND"] = "local"
os.environ["MONGO_TRANSACTIONS"] = "off"

import mongomock
import pytest
from fastapi.testclient import TestClient

from votexus import crud
from votexus.database.connection import MongoConnector, get_connector
from votexus.errors import MediaError
from votexus.main import app
from votexus.security import create_access_token
from votexus.storage import StoredImage, get_media_store

ADMIN_EMAIL = "admin@example.com"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeMediaStore:
    """In-memory stand-in for the media host."""

    def __init__(self):
        self.images = {}
        self.destroyed = []
        self.fail_upload = False
        self.fail_destroy = False

    def upload(self, data, folder, public_id, content_type):
        if self.fail_upload:
            raise MediaError("upload refused")
        key = f"{folder}/{public_id}"
        self.images[key] = data
        return StoredImage(url=f"https://media.test/{key}", public_id=key)

    def destroy(self, public_id):
        if self.fail_destroy:
            raise MediaError("destroy refused")
        self.destroyed.append(public_id)
        self.images.pop(public_id, None)


@pytest.fixture
def conn():
    return MongoConnector(mongomock.MongoClient(), "votexus_test", transactions="off")


@pytest.fixture
def media():
    return FakeMediaStore()


@pytest.fixture
def client(conn, media):
    app.dependency_overrides[get_connector] = lambda: conn
    app.dependency_overrides[get_media_store] = lambda: media
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_voter(conn):
    def _make(email="voter@example.com", full_name="Ada Voter", password="secret123"):
        voter = crud.register_voter(conn, full_name, email, password)
        token = create_access_token({"id": str(voter["_id"]), "isAdmin": voter["isAdmin"]})
        return voter["_id"], {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def admin_headers(make_voter):
    _, headers = make_voter(email=ADMIN_EMAIL, full_name="Admin")
    return headers


@pytest.fixture
def voter(make_voter):
    return make_voter()


@pytest.fixture
def election(conn):
    return crud.create_election(conn, "Chess club board", "Pick the board", "https://media.test/club", "votexus/elections/club")


@pytest.fixture
def make_candidate(conn, media):
    def _make(election_id, full_name="Grace", motto="Forward"):
        key = f"votexus/candidates/{full_name.lower()}"
        media.images[key] = PNG
        return crud.create_candidate(conn, election_id, full_name, motto, f"https://media.test/{key}", key)

    return _make


def png_file(name="photo.png", data=PNG, content_type="image/png"):
    return (name, data, content_type)
