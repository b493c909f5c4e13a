from fastapi import APIRouter, Depends

from votexus import config, crud
from votexus.database.connection import MongoConnector, get_connector
from votexus.errors import HttpError
from votexus.models.voter_model import Voter
from votexus.schemas import LoginResponse, MessageResponse, VoterLogin, VoterRegister
from votexus.security import TokenUser, create_access_token, get_current_user

router = APIRouter(prefix="/voters", tags=["Voter"])


@router.post("/register", response_model=MessageResponse, status_code=201)
def register_voter(payload: VoterRegister, conn: MongoConnector = Depends(get_connector)):
    full_name = (payload.fullName or "").strip()
    if not all([full_name, payload.email, payload.password, payload.password2]):
        raise HttpError("Fill in all fields.", 422)
    if len(payload.password.strip()) < config.MIN_PASSWORD_LENGTH:
        raise HttpError(f"Password should be at least {config.MIN_PASSWORD_LENGTH} characters.", 422)
    if payload.password != payload.password2:
        raise HttpError("Passwords do not match.", 422)

    voter = crud.register_voter(conn, full_name, payload.email, payload.password)
    return {"message": f"New voter {voter['email']} created."}


@router.post("/login", response_model=LoginResponse)
def login_voter(payload: VoterLogin, conn: MongoConnector = Depends(get_connector)):
    if not payload.email or not payload.password:
        raise HttpError("Fill in all fields.", 422)

    voter = crud.authenticate_voter(conn, payload.email, payload.password)
    voter_id = str(voter["_id"])
    token = create_access_token({"id": voter_id, "isAdmin": voter.get("isAdmin", False)})
    return {
        "token": token,
        "id": voter_id,
        "votedElections": [str(e) for e in voter.get("votedElections", [])],
        "isAdmin": voter.get("isAdmin", False),
    }


@router.get("/{voter_id}", response_model=Voter)
def get_voter(
    voter_id: str,
    user: TokenUser = Depends(get_current_user),
    conn: MongoConnector = Depends(get_connector),
):
    return Voter.from_mongo(crud.get_voter(conn, crud.parse_id(voter_id, "voter")))
