import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile

from votexus import config, crud
from votexus.database.connection import MongoConnector, get_connector
from votexus.errors import HttpError, MediaError
from votexus.models.candidate_model import Candidate
from votexus.schemas import CandidateCreated, MessageResponse, VoteRequest
from votexus.security import TokenUser, get_current_user, require_admin
from votexus.storage import destroy_quietly, get_media_store, read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/candidates", tags=["Candidate"])


@router.post("", response_model=CandidateCreated, status_code=201)
def add_candidate(
    fullName: Optional[str] = Form(None),
    motto: Optional[str] = Form(None),
    currentElection: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user: TokenUser = Depends(get_current_user),
    conn: MongoConnector = Depends(get_connector),
    media=Depends(get_media_store),
):
    require_admin(user)
    if not fullName or not fullName.strip() or not motto or not motto.strip():
        raise HttpError("Fill in all fields.", 422)
    data = read_image_upload(image, "Choose an image.")

    election_id = crud.parse_id(currentElection, "election")
    # checked before uploading so a missing election leaves nothing behind
    crud.get_election(conn, election_id)

    try:
        stored = media.upload(data, config.CANDIDATE_IMAGE_FOLDER, str(uuid.uuid4()), image.content_type)
    except MediaError as e:
        logger.error(f"Candidate image upload failed: {e}")
        raise HttpError("Image upload failed. Try again.", 500)

    try:
        candidate = crud.create_candidate(conn, election_id, fullName, motto, stored.url, stored.public_id)
    except Exception:
        destroy_quietly(media, stored.public_id)
        raise

    return {"message": "Candidate added successfully.", "candidate": Candidate.from_mongo(candidate)}


@router.get("/{candidate_id}", response_model=Candidate)
def get_candidate(
    candidate_id: str,
    user: TokenUser = Depends(get_current_user),
    conn: MongoConnector = Depends(get_connector),
):
    candidate = crud.get_candidate(conn, crud.parse_id(candidate_id, "candidate"))
    return Candidate.from_mongo(candidate)


@router.delete("/{candidate_id}", response_model=MessageResponse)
def remove_candidate(
    candidate_id: str,
    user: TokenUser = Depends(get_current_user),
    conn: MongoConnector = Depends(get_connector),
    media=Depends(get_media_store),
):
    require_admin(user)
    candidate = crud.get_candidate(conn, crud.parse_id(candidate_id, "candidate"))
    crud.delete_candidate(conn, candidate)
    destroy_quietly(media, candidate.get("cloudinaryId"))
    return {"message": "Candidate deleted successfully."}


@router.patch("/{candidate_id}", response_model=List[str])
def vote_candidate(
    candidate_id: str,
    vote: VoteRequest = Body(...),
    user: TokenUser = Depends(get_current_user),
    conn: MongoConnector = Depends(get_connector),
):
    """Cast the current voter's single vote in ``selectedElection``."""
    voted_elections = crud.cast_vote(
        conn,
        voter_id=crud.parse_id(user.id, "voter"),
        candidate_id=crud.parse_id(candidate_id, "candidate"),
        election_id=crud.parse_id(vote.selectedElection, "election"),
    )
    return [str(e) for e in voted_elections]
