from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId


PRIVATE_FIELDS = {"password", "reset_password_token", "reset_password_expire", "file_path"}


def serialize_document(data: Any) -> Any:
    """
    Recursively convert a MongoDB document into JSON-friendly data.
    ObjectIds become strings, `_id` is exposed as `id` and credential fields are dropped.
    """
    if isinstance(data, ObjectId):
        return str(data)
    if isinstance(data, list):
        return [serialize_document(item) for item in data]
    if isinstance(data, dict):
        new_data = {}
        for k, v in data.items():
            if k in PRIVATE_FIELDS:
                continue
            new_key = "id" if k == "_id" else k
            new_data[new_key] = serialize_document(v)
        return new_data
    return data


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse an ObjectId, returning None for malformed input."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None
