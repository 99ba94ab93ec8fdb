"""
Business logic behind the API routes.
"""

from .assistant import AssistantService, build_assistant_client
from .recommendations import RecommendationEngine, NoActivePoliciesError
from .claims import InvalidTransitionError
from .notifications import NotificationDispatcher
from .reports import ReportRenderer, UnsupportedReportError

__all__ = [
    "AssistantService",
    "build_assistant_client",
    "RecommendationEngine",
    "NoActivePoliciesError",
    "InvalidTransitionError",
    "NotificationDispatcher",
    "ReportRenderer",
    "UnsupportedReportError",
]
