from datetime import datetime
from typing import List, Optional

from votexus.models.base import MongoModel


class Voter(MongoModel):
    """Public view of a voter; the password hash is never part of it."""

    fullName: str
    email: str
    votedElections: List[str] = []
    isAdmin: bool = False
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
