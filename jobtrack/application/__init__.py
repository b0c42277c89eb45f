"""Application services."""

from .sessions import DashboardSessionService, get_session_service, reset_session_state

__all__ = [
    "DashboardSessionService",
    "get_session_service",
    "reset_session_state",
]
