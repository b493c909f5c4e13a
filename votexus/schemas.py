from typing import List, Optional

from pydantic import BaseModel, EmailStr

from votexus.models.candidate_model import Candidate


# Fields are optional so missing values get the "Fill in all fields." answer
class VoterRegister(BaseModel):
    fullName: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    password2: Optional[str] = None


class VoterLogin(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    id: str
    votedElections: List[str]
    isAdmin: bool


class VoteRequest(BaseModel):
    selectedElection: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class CandidateCreated(BaseModel):
    message: str
    candidate: Candidate
