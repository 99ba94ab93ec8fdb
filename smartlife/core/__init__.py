"""
Core services for the portal.
"""

from .mongodb_client import get_mongodb_client, get_database, Collections
from .huggingface_client import HuggingFaceClient, AssistantProviderError
from .vectara_client import VectaraClient

__all__ = [
    "get_mongodb_client",
    "get_database",
    "Collections",
    "HuggingFaceClient",
    "AssistantProviderError",
    "VectaraClient",
]
