import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from votexus import config
from votexus.database.connection import MongoConnector, run_transaction
from votexus.errors import HttpError
from votexus.security import hash_password, verify_password

logger = logging.getLogger(__name__)

ACTIVE = {"isDeleted": False}
NO_PASSWORD = {"password": 0}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def parse_id(value: Optional[str], what: str) -> ObjectId:
    # ObjectId(None) would mint a fresh id, so reject anything but a string
    if not isinstance(value, str):
        raise HttpError(f"Invalid {what} id.", 422)
    try:
        return ObjectId(value)
    except InvalidId:
        raise HttpError(f"Invalid {what} id.", 422)


# ------------------------------
# Elections
# ------------------------------
def create_election(conn: MongoConnector, title: str, description: str, club: str, cloudinary_id: str) -> Dict[str, Any]:
    now = _now()
    election = {
        "title": title.strip(),
        "description": description.strip(),
        "club": club,
        "cloudinaryId": cloudinary_id,
        "candidates": [],
        "voters": [],
        "isDeleted": False,
        "createdAt": now,
        "updatedAt": now,
    }
    result = conn.elections.insert_one(election)
    election["_id"] = result.inserted_id
    logger.info(f"Election {result.inserted_id} created")
    return election


def list_elections(conn: MongoConnector) -> List[Dict[str, Any]]:
    return list(conn.elections.find(ACTIVE))


def get_election(conn: MongoConnector, election_id: ObjectId) -> Dict[str, Any]:
    election = conn.elections.find_one({"_id": election_id, **ACTIVE})
    if not election:
        raise HttpError("Election not found.", 404)
    return election


def list_election_candidates(conn: MongoConnector, election_id: ObjectId) -> List[Dict[str, Any]]:
    get_election(conn, election_id)
    return list(conn.candidates.find({"election": election_id}))


def list_election_voters(conn: MongoConnector, election_id: ObjectId) -> List[Dict[str, Any]]:
    election = get_election(conn, election_id)
    return list(conn.voters.find({"_id": {"$in": election.get("voters", [])}}, NO_PASSWORD))


def update_election(conn: MongoConnector, election_id: ObjectId, changes: Dict[str, Any]) -> Dict[str, Any]:
    updated = conn.elections.find_one_and_update(
        {"_id": election_id, **ACTIVE},
        {"$set": {**changes, "updatedAt": _now()}},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise HttpError("Election not found.", 404)
    return updated


def soft_delete_election(conn: MongoConnector, election_id: ObjectId) -> None:
    """Delete the election's candidates and flag the election as deleted."""

    def write(session):
        conn.candidates.delete_many({"election": election_id}, session=session)
        result = conn.elections.update_one(
            {"_id": election_id, **ACTIVE},
            {"$set": {"isDeleted": True, "updatedAt": _now()}},
            session=session,
        )
        if result.matched_count == 0:
            raise HttpError("Election not found.", 404)

    run_transaction(conn, write)
    logger.info(f"Election {election_id} soft-deleted")


# ------------------------------
# Candidates
# ------------------------------
def create_candidate(
    conn: MongoConnector,
    election_id: ObjectId,
    full_name: str,
    motto: str,
    image: str,
    cloudinary_id: str,
) -> Dict[str, Any]:
    """Insert the candidate and append it to its election's list."""

    def write(session):
        now = _now()
        candidate = {
            "fullName": full_name.strip(),
            "motto": motto.strip(),
            "image": image,
            "cloudinaryId": cloudinary_id,
            "voteCount": 0,
            "election": election_id,
            "createdAt": now,
            "updatedAt": now,
        }
        candidate["_id"] = conn.candidates.insert_one(candidate, session=session).inserted_id
        result = conn.elections.update_one(
            {"_id": election_id, **ACTIVE},
            {"$push": {"candidates": candidate["_id"]}, "$set": {"updatedAt": now}},
            session=session,
        )
        if result.matched_count == 0:
            if session is None:
                conn.candidates.delete_one({"_id": candidate["_id"]})
            raise HttpError("Election not found.", 404)
        return candidate

    candidate = run_transaction(conn, write)
    logger.info(f"Candidate {candidate['_id']} added to election {election_id}")
    return candidate


def get_candidate(conn: MongoConnector, candidate_id: ObjectId) -> Dict[str, Any]:
    candidate = conn.candidates.find_one({"_id": candidate_id})
    if not candidate:
        raise HttpError("Candidate not found.", 404)
    return candidate


def delete_candidate(conn: MongoConnector, candidate: Dict[str, Any]) -> None:
    def write(session):
        conn.elections.update_one(
            {"_id": candidate["election"]},
            {"$pull": {"candidates": candidate["_id"]}, "$set": {"updatedAt": _now()}},
            session=session,
        )
        conn.candidates.delete_one({"_id": candidate["_id"]}, session=session)

    run_transaction(conn, write)
    logger.info(f"Candidate {candidate['_id']} deleted")


# ------------------------------
# Votes
# ------------------------------
def cast_vote(conn: MongoConnector, voter_id: ObjectId, candidate_id: ObjectId, election_id: ObjectId) -> List[ObjectId]:
    """
    Record one vote and return the voter's updated votedElections.

    Each write is conditional, so the voter update is the duplicate-vote
    guard whether or not a transaction is available. Without a session a
    failing later step undoes the earlier ones.
    """
    voter = get_voter(conn, voter_id)
    if election_id in voter.get("votedElections", []):
        raise HttpError("You have already voted in this election.", 403)

    get_election(conn, election_id)
    candidate = get_candidate(conn, candidate_id)
    if candidate["election"] != election_id:
        raise HttpError("Candidate does not belong to this election.", 400)

    def write(session):
        now = _now()
        voted = conn.voters.find_one_and_update(
            {"_id": voter_id, "votedElections": {"$ne": election_id}},
            {"$push": {"votedElections": election_id}, "$set": {"updatedAt": now}},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if voted is None:
            raise HttpError("You have already voted in this election.", 403)

        counted = conn.candidates.update_one(
            {"_id": candidate_id, "election": election_id},
            {"$inc": {"voteCount": 1}, "$set": {"updatedAt": now}},
            session=session,
        )
        if counted.matched_count == 0:
            if session is None:
                _undo_voter_mark(conn, voter_id, election_id)
            raise HttpError("Candidate not found.", 404)

        joined = conn.elections.update_one(
            {"_id": election_id, **ACTIVE},
            {"$addToSet": {"voters": voter_id}, "$set": {"updatedAt": now}},
            session=session,
        )
        if joined.matched_count == 0:
            if session is None:
                conn.candidates.update_one({"_id": candidate_id}, {"$inc": {"voteCount": -1}})
                _undo_voter_mark(conn, voter_id, election_id)
            raise HttpError("Election not found.", 404)

        return voted["votedElections"]

    voted_elections = run_transaction(conn, write)
    logger.info(f"Vote accepted in election {election_id} for candidate {candidate_id}")
    return voted_elections


def _undo_voter_mark(conn: MongoConnector, voter_id: ObjectId, election_id: ObjectId) -> None:
    conn.voters.update_one({"_id": voter_id}, {"$pull": {"votedElections": election_id}})


# ------------------------------
# Voters
# ------------------------------
def register_voter(conn: MongoConnector, full_name: str, email: str, password: str) -> Dict[str, Any]:
    email = email.strip().lower()
    if conn.voters.find_one({"email": email}):
        raise HttpError("Email already exists.", 422)
    now = _now()
    voter = {
        "fullName": full_name.strip(),
        "email": email,
        "password": hash_password(password),
        "votedElections": [],
        "isAdmin": email in config.ADMIN_EMAILS,
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        voter["_id"] = conn.voters.insert_one(voter).inserted_id
    except DuplicateKeyError:
        raise HttpError("Email already exists.", 422)
    logger.info(f"Voter {voter['_id']} registered (admin={voter['isAdmin']})")
    return voter


def authenticate_voter(conn: MongoConnector, email: str, password: str) -> Dict[str, Any]:
    voter = conn.voters.find_one({"email": email.strip().lower()})
    if not voter or not verify_password(password, voter["password"]):
        raise HttpError("Invalid credentials.", 422)
    return voter


def get_voter(conn: MongoConnector, voter_id: ObjectId) -> Dict[str, Any]:
    voter = conn.voters.find_one({"_id": voter_id}, NO_PASSWORD)
    if not voter:
        raise HttpError("Voter not found.", 404)
    return voter
