from .json_utils import serialize_document, to_object_id

__all__ = ["serialize_document", "to_object_id"]
