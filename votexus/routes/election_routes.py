import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from votexus import config, crud
from votexus.database.connection import MongoConnector, get_connector
from votexus.errors import HttpError, MediaError
from votexus.models.candidate_model import Candidate
from votexus.models.election_model import Election
from votexus.models.voter_model import Voter
from votexus.schemas import MessageResponse
from votexus.security import TokenUser, get_current_user, require_admin
from votexus.storage import destroy_quietly, get_media_store, read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/elections", tags=["Election"])


def _require_text(*values: Optional[str]) -> None:
    if any(not value or not value.strip() for value in values):
        raise HttpError("Fill all fields.", 422)


@router.post("", response_model=Election, status_code=201)
def add_election(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    club: Optional[UploadFile] = File(None),
    user: TokenUser = Depends(get_current_user),
    conn: MongoConnector = Depends(get_connector),
    media=Depends(get_media_store),
):
    require_admin(user)
    _require_text(title, description)
    data = read_image_upload(club, "Choose a club image.")

    try:
        stored = media.upload(data, config.ELECTION_IMAGE_FOLDER, str(uuid.uuid4()), club.content_type)
    except MediaError as e:
        logger.error(f"Election image upload failed: {e}")
        raise HttpError("Image upload failed.", 500)

    try:
        election = crud.create_election(conn, title, description, stored.url, stored.public_id)
    except Exception:
        destroy_quietly(media, stored.public_id)
        raise
    return Election.from_mongo(election)


@router.get("", response_model=List[Election])
def get_elections(
    user: TokenUser = Depends(get_current_user),
    conn: MongoConnector = Depends(get_connector),
):
    return [Election.from_mongo(e) for e in crud.list_elections(conn)]


@router.get("/{election_id}", response_model=Election)
def get_election(
    election_id: str,
    user: TokenUser = Depends(get_current_user),
    conn: MongoConnector = Depends(get_connector),
):
    election = crud.get_election(conn, crud.parse_id(election_id, "election"))
    return Election.from_mongo(election)


@router.get("/{election_id}/candidates", response_model=List[Candidate])
def get_candidates_of_election(
    election_id: str,
    user: TokenUser = Depends(get_current_user),
    conn: MongoConnector = Depends(get_connector),
):
    candidates = crud.list_election_candidates(conn, crud.parse_id(election_id, "election"))
    return [Candidate.from_mongo(c) for c in candidates]


@router.get("/{election_id}/voters", response_model=List[Voter])
def get_election_voters(
    election_id: str,
    user: TokenUser = Depends(get_current_user),
    conn: MongoConnector = Depends(get_connector),
):
    voters = crud.list_election_voters(conn, crud.parse_id(election_id, "election"))
    return [Voter.from_mongo(v) for v in voters]


@router.patch("/{election_id}", response_model=MessageResponse)
def update_election(
    election_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    club: Optional[UploadFile] = File(None),
    user: TokenUser = Depends(get_current_user),
    conn: MongoConnector = Depends(get_connector),
    media=Depends(get_media_store),
):
    require_admin(user)
    _require_text(title, description)
    oid = crud.parse_id(election_id, "election")
    election = crud.get_election(conn, oid)

    changes = {"title": title.strip(), "description": description.strip()}
    stored = None
    if club is not None and club.filename:
        data = read_image_upload(club, "Choose a club image.")
        try:
            stored = media.upload(data, config.ELECTION_IMAGE_FOLDER, str(uuid.uuid4()), club.content_type)
        except MediaError as e:
            logger.error(f"Election image update failed: {e}")
            raise HttpError("Image update failed.", 500)
        changes["club"] = stored.url
        changes["cloudinaryId"] = stored.public_id

    try:
        crud.update_election(conn, oid, changes)
    except Exception:
        if stored:
            destroy_quietly(media, stored.public_id)
        raise

    # old image goes only once the new one is saved
    if stored:
        destroy_quietly(media, election.get("cloudinaryId"))
    return {"message": "Election updated successfully."}


@router.delete("/{election_id}", response_model=MessageResponse)
def remove_election(
    election_id: str,
    user: TokenUser = Depends(get_current_user),
    conn: MongoConnector = Depends(get_connector),
    media=Depends(get_media_store),
):
    require_admin(user)
    oid = crud.parse_id(election_id, "election")
    image_ids = [c.get("cloudinaryId") for c in crud.list_election_candidates(conn, oid)]

    crud.soft_delete_election(conn, oid)
    for image_id in image_ids:
        destroy_quietly(media, image_id)
    return {"message": "Election deleted successfully."}
