from datetime import datetime
from typing import Optional

from pydantic import Field

from votexus.models.base import MongoModel


class Candidate(MongoModel):
    fullName: str
    motto: str
    image: str
    cloudinaryId: str
    voteCount: int = Field(default=0, ge=0)
    election: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
