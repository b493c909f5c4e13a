"""Tests for election create/read/update/delete."""

from fastapi.testclient import TestClient

from conftest import PNG, png_file
from votexus import crud
from votexus.errors import HttpError
from votexus.main import app


def create(client, headers, files=None, **fields):
    data = {"title": "Robotics club", "description": "Yearly board vote"}
    data.update(fields)
    if files is None:
        files = {"club": png_file()}
    return client.post("/api/elections", data=data, files=files, headers=headers)


class TestCreate:
    def test_admin_creates_election(self, client, admin_headers, media, conn):
        response = create(client, admin_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Robotics club"
        assert body["candidates"] == []
        assert body["isDeleted"] is False
        assert body["cloudinaryId"].startswith("votexus/elections/")
        assert body["cloudinaryId"] in media.images
        assert conn.elections.count_documents({}) == 1

    def test_non_admin_forbidden(self, client, voter, media, conn):
        _, headers = voter
        response = create(client, headers)
        assert response.status_code == 403
        assert conn.elections.count_documents({}) == 0
        assert media.images == {}

    def test_missing_fields(self, client, admin_headers):
        response = create(client, admin_headers, description="")
        assert response.status_code == 422
        assert response.json()["message"] == "Fill all fields."

    def test_missing_image(self, client, admin_headers):
        response = create(client, admin_headers, files={})
        assert response.status_code == 422
        assert response.json()["message"] == "Choose a club image."

    def test_rejects_non_image(self, client, admin_headers):
        response = create(client, admin_headers, files={"club": png_file("doc.pdf", b"%PDF", "application/pdf")})
        assert response.status_code == 422

    def test_rejects_large_image(self, client, admin_headers, conn):
        response = create(client, admin_headers, files={"club": png_file(data=PNG + b"\x00" * 1_000_000)})
        assert response.status_code == 422
        assert conn.elections.count_documents({}) == 0

    def test_upload_failure(self, client, admin_headers, media, conn):
        media.fail_upload = True
        response = create(client, admin_headers)
        assert response.status_code == 500
        assert response.json()["message"] == "Image upload failed."
        assert conn.elections.count_documents({}) == 0


class TestRead:
    def test_list_and_get(self, client, voter, election):
        _, headers = voter
        listed = client.get("/api/elections", headers=headers).json()
        assert [e["_id"] for e in listed] == [str(election["_id"])]

        one = client.get(f"/api/elections/{election['_id']}", headers=headers)
        assert one.status_code == 200
        assert one.json()["title"] == "Chess club board"

    def test_get_missing(self, client, voter):
        _, headers = voter
        assert client.get("/api/elections/5f1d7f3e9b1e8b3a2c4d5e6f", headers=headers).status_code == 404

    def test_malformed_id(self, client, voter):
        _, headers = voter
        assert client.get("/api/elections/not-an-id", headers=headers).status_code == 422

    def test_candidates_of_election(self, client, voter, election, make_candidate):
        _, headers = voter
        candidate = make_candidate(election["_id"])
        response = client.get(f"/api/elections/{election['_id']}/candidates", headers=headers)
        assert [c["_id"] for c in response.json()] == [str(candidate["_id"])]


class TestUpdate:
    def test_replaces_text(self, client, admin_headers, election, conn, media):
        response = client.patch(
            f"/api/elections/{election['_id']}",
            data={"title": "New title", "description": "New description"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        stored = conn.elections.find_one({"_id": election["_id"]})
        assert stored["title"] == "New title"
        assert stored["club"] == election["club"]
        assert media.destroyed == []

    def test_replaces_image_and_destroys_old(self, client, admin_headers, election, conn, media):
        response = client.patch(
            f"/api/elections/{election['_id']}",
            data={"title": "New title", "description": "New description"},
            files={"club": png_file()},
            headers=admin_headers,
        )
        assert response.status_code == 200
        stored = conn.elections.find_one({"_id": election["_id"]})
        assert stored["cloudinaryId"] != election["cloudinaryId"]
        assert stored["cloudinaryId"] in media.images
        assert media.destroyed == [election["cloudinaryId"]]

    def test_upload_failure(self, client, admin_headers, election, conn, media):
        media.fail_upload = True
        response = client.patch(
            f"/api/elections/{election['_id']}",
            data={"title": "New title", "description": "New description"},
            files={"club": png_file()},
            headers=admin_headers,
        )
        assert response.status_code == 500
        assert response.json()["message"] == "Image update failed."
        stored = conn.elections.find_one({"_id": election["_id"]})
        assert stored["title"] == "Chess club board"
        assert stored["cloudinaryId"] == election["cloudinaryId"]

    def test_new_image_rolled_back_when_update_fails(self, client, admin_headers, election, media, monkeypatch):
        def refuse(conn, election_id, changes):
            raise HttpError("Database unavailable.", 500)

        monkeypatch.setattr(crud, "update_election", refuse)
        response = client.patch(
            f"/api/elections/{election['_id']}",
            data={"title": "New title", "description": "New description"},
            files={"club": png_file()},
            headers=admin_headers,
        )
        assert response.status_code == 500
        assert media.images == {}
        assert len(media.destroyed) == 1
        assert media.destroyed[0] != election["cloudinaryId"]

    def test_non_admin_forbidden(self, client, voter, election, conn):
        _, headers = voter
        response = client.patch(
            f"/api/elections/{election['_id']}",
            data={"title": "Hijacked", "description": "Hijacked"},
            headers=headers,
        )
        assert response.status_code == 403
        assert conn.elections.find_one({"_id": election["_id"]})["title"] == "Chess club board"

    def test_requires_fields(self, client, admin_headers, election):
        response = client.patch(f"/api/elections/{election['_id']}", data={"title": "Only"}, headers=admin_headers)
        assert response.status_code == 422


class TestDelete:
    def test_soft_delete_cascades(self, client, admin_headers, election, make_candidate, conn, media):
        first = make_candidate(election["_id"], full_name="Grace")
        second = make_candidate(election["_id"], full_name="Alan")

        response = client.delete(f"/api/elections/{election['_id']}", headers=admin_headers)
        assert response.status_code == 200

        assert conn.candidates.count_documents({"election": election["_id"]}) == 0
        assert sorted(media.destroyed) == sorted([first["cloudinaryId"], second["cloudinaryId"]])

        stored = conn.elections.find_one({"_id": election["_id"]})
        assert stored is not None
        assert stored["isDeleted"] is True

        assert client.get("/api/elections", headers=admin_headers).json() == []
        assert client.get(f"/api/elections/{election['_id']}", headers=admin_headers).status_code == 404

    def test_image_failures_do_not_block_delete(self, client, admin_headers, election, make_candidate, conn, media):
        make_candidate(election["_id"])
        media.fail_destroy = True
        response = client.delete(f"/api/elections/{election['_id']}", headers=admin_headers)
        assert response.status_code == 200
        assert conn.candidates.count_documents({}) == 0

    def test_images_kept_when_database_write_fails(
        self, client, admin_headers, election, make_candidate, conn, media, monkeypatch
    ):
        candidate = make_candidate(election["_id"])

        def refuse(conn, election_id):
            raise HttpError("Database unavailable.", 500)

        monkeypatch.setattr(crud, "soft_delete_election", refuse)
        response = client.delete(f"/api/elections/{election['_id']}", headers=admin_headers)
        assert response.status_code == 500
        assert conn.candidates.find_one({"_id": candidate["_id"]}) is not None
        assert media.destroyed == []
        assert candidate["cloudinaryId"] in media.images

    def test_delete_twice(self, client, admin_headers, election):
        client.delete(f"/api/elections/{election['_id']}", headers=admin_headers)
        assert client.delete(f"/api/elections/{election['_id']}", headers=admin_headers).status_code == 404

    def test_non_admin_forbidden(self, client, voter, election, make_candidate, conn):
        _, headers = voter
        make_candidate(election["_id"])
        response = client.delete(f"/api/elections/{election['_id']}", headers=headers)
        assert response.status_code == 403
        assert conn.candidates.count_documents({}) == 1
        assert conn.elections.find_one({"_id": election["_id"]})["isDeleted"] is False


def test_unexpected_error_is_reported_as_500(client, voter, monkeypatch):
    _, headers = voter

    def explode(conn):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(crud, "list_elections", explode)
    response = TestClient(app, raise_server_exceptions=False).get("/api/elections", headers=headers)
    assert response.status_code == 500
    assert response.json() == {"message": "An unknown error occurred."}
