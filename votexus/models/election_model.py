from datetime import datetime
from typing import List, Optional

from pydantic import Field

from votexus.models.base import MongoModel


class Election(MongoModel):
    title: str = Field(..., examples=["Student Union 2026"])
    description: str
    club: str
    cloudinaryId: str
    candidates: List[str] = []
    voters: List[str] = []
    isDeleted: bool = False
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
