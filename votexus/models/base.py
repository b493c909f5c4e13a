from typing import Any, Dict, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field


def stringify_ids(value: Any) -> Any:
    """Recursively turn ObjectIds into strings so documents can be returned as JSON."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [stringify_ids(v) for v in value]
    if isinstance(value, dict):
        return {k: stringify_ids(v) for k, v in value.items()}
    return value


class MongoModel(BaseModel):
    """Base for documents read back from MongoDB; ``_id`` is exposed as a string."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")

    @classmethod
    def from_mongo(cls, doc: Optional[Dict[str, Any]]):
        if doc is None:
            return None
        return cls.model_validate(stringify_ids(doc))
