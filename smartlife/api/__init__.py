"""
API layer for the portal.
"""

from .routes import router
from .schemas import HealthResponse, ErrorResponse

__all__ = [
    "router",
    "HealthResponse",
    "ErrorResponse",
]
