"""Python client for the Chirp API: REST calls, session, state store, live events."""

from .api import ApiError, ChirpClient, Page
from .events import EventStream, socket_url
from .session import Session, SessionClosed
from .state import (
    AppState, AuthState, FeedState, NotificationsState, UiState,
    Store, Subscription,
)

__all__ = [
    'ApiError', 'ChirpClient', 'Page',
    'EventStream', 'socket_url',
    'Session', 'SessionClosed',
    'AppState', 'AuthState', 'FeedState', 'NotificationsState', 'UiState',
    'Store', 'Subscription',
]
