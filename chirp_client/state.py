"""
Client-side state containers.

Every container is a frozen dataclass and every transition is a pure
function ``(state, ...) -> state``. The Store is the only object that holds
a current value; it swaps whole snapshots and tells its listeners.
"""

import itertools
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

logger = logging.getLogger(__name__)

THEMES = ('light', 'dark', 'system')
TOAST_TYPES = ('success', 'error', 'info', 'warning')


# ============================================================================
# AUTH
# ============================================================================

@dataclass(frozen=True)
class AuthState:
    user: Optional[dict] = None
    token: Optional[str] = None
    is_loading: bool = False
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None


def set_credentials(state: AuthState, user: dict, token: str) -> AuthState:
    return replace(state, user=dict(user), token=token, is_loading=False, error=None)


def clear_credentials(state: AuthState) -> AuthState:
    return AuthState()


def set_auth_loading(state: AuthState, is_loading: bool) -> AuthState:
    return replace(state, is_loading=is_loading)


def set_auth_error(state: AuthState, error: Optional[str]) -> AuthState:
    return replace(state, error=error, is_loading=False)


def update_user(state: AuthState, **changes) -> AuthState:
    if state.user is None:
        return state
    return replace(state, user={**state.user, **changes})


# ============================================================================
# FEED
# ============================================================================

@dataclass(frozen=True)
class FeedState:
    posts: tuple = ()
    page: int = 1
    has_more: bool = True
    is_loading: bool = False
    error: Optional[str] = None


def set_feed(state: FeedState, posts, has_more: bool) -> FeedState:
    return replace(state, posts=tuple(posts), page=1, has_more=has_more, is_loading=False, error=None)


def append_page(state: FeedState, posts, has_more: bool) -> FeedState:
    """Add the next page, skipping posts already shown (offset pages can overlap)."""
    seen = {p['id'] for p in state.posts}
    fresh = tuple(p for p in posts if p['id'] not in seen)
    return replace(
        state,
        posts=state.posts + fresh,
        page=state.page + 1,
        has_more=has_more,
        is_loading=False,
    )


def prepend_post(state: FeedState, post: dict) -> FeedState:
    if any(p['id'] == post['id'] for p in state.posts):
        return state
    return replace(state, posts=(post,) + state.posts)


def update_post(state: FeedState, post: dict) -> FeedState:
    """Apply a post_update payload. Deleted posts drop out of the feed."""
    if post.get('is_deleted'):
        return replace(state, posts=tuple(p for p in state.posts if p['id'] != post['id']))
    if not any(p['id'] == post['id'] for p in state.posts):
        return state
    return replace(state, posts=tuple(
        {**p, **post} if p['id'] == post['id'] else p for p in state.posts
    ))


def set_feed_loading(state: FeedState, is_loading: bool) -> FeedState:
    return replace(state, is_loading=is_loading)


def set_feed_error(state: FeedState, error: Optional[str]) -> FeedState:
    return replace(state, error=error, is_loading=False)


def reset_feed(state: FeedState) -> FeedState:
    return FeedState()


# ============================================================================
# NOTIFICATIONS
# ============================================================================

@dataclass(frozen=True)
class NotificationsState:
    notifications: tuple = ()
    unread_count: int = 0
    page: int = 1
    has_more: bool = True
    is_loading: bool = False
    error: Optional[str] = None


def set_notifications(state: NotificationsState, notifications, has_more: bool) -> NotificationsState:
    return replace(state, notifications=tuple(notifications), page=1, has_more=has_more, is_loading=False)


def add_notification(state: NotificationsState, notification: dict) -> NotificationsState:
    if any(n['id'] == notification['id'] for n in state.notifications):
        return state
    unread = state.unread_count + (0 if notification.get('read') else 1)
    return replace(state, notifications=(notification,) + state.notifications, unread_count=unread)


def set_unread_count(state: NotificationsState, count: int) -> NotificationsState:
    return replace(state, unread_count=max(0, count))


def mark_notification_read(state: NotificationsState, notification_id) -> NotificationsState:
    """Idempotent; the unread count never goes below zero."""
    target = next((n for n in state.notifications if n['id'] == notification_id), None)
    if target is None or target.get('read'):
        return state
    return replace(
        state,
        notifications=tuple(
            {**n, 'read': True} if n['id'] == notification_id else n for n in state.notifications
        ),
        unread_count=max(0, state.unread_count - 1),
    )


def mark_all_notifications_read(state: NotificationsState) -> NotificationsState:
    return replace(
        state,
        notifications=tuple({**n, 'read': True} for n in state.notifications),
        unread_count=0,
    )


def remove_notification(state: NotificationsState, notification_id) -> NotificationsState:
    target = next((n for n in state.notifications if n['id'] == notification_id), None)
    if target is None:
        return state
    unread = state.unread_count if target.get('read') else max(0, state.unread_count - 1)
    return replace(
        state,
        notifications=tuple(n for n in state.notifications if n['id'] != notification_id),
        unread_count=unread,
    )


def clear_notifications(state: NotificationsState) -> NotificationsState:
    return NotificationsState(has_more=False)


# ============================================================================
# UI
# ============================================================================

@dataclass(frozen=True)
class UiState:
    sidebar_open: bool = True
    theme: str = 'system'
    modal: Optional[str] = None
    modal_data: Optional[dict] = None
    composer_open: bool = False
    toast_message: Optional[str] = None
    toast_type: Optional[str] = None


def toggle_sidebar(state: UiState) -> UiState:
    return replace(state, sidebar_open=not state.sidebar_open)


def set_theme(state: UiState, theme: str) -> UiState:
    if theme not in THEMES:
        raise ValueError(f"Unknown theme {theme!r}")
    return replace(state, theme=theme)


def open_modal(state: UiState, modal: str, data: Optional[dict] = None) -> UiState:
    return replace(state, modal=modal, modal_data=data)


def close_modal(state: UiState) -> UiState:
    return replace(state, modal=None, modal_data=None)


def set_composer_open(state: UiState, is_open: bool) -> UiState:
    return replace(state, composer_open=is_open)


def show_toast(state: UiState, message: str, toast_type: str = 'info') -> UiState:
    if toast_type not in TOAST_TYPES:
        raise ValueError(f"Unknown toast type {toast_type!r}")
    return replace(state, toast_message=message, toast_type=toast_type)


def hide_toast(state: UiState) -> UiState:
    return replace(state, toast_message=None, toast_type=None)


# ============================================================================
# APP & STORE
# ============================================================================

@dataclass(frozen=True)
class AppState:
    auth: AuthState = field(default_factory=AuthState)
    feed: FeedState = field(default_factory=FeedState)
    notifications: NotificationsState = field(default_factory=NotificationsState)
    ui: UiState = field(default_factory=UiState)


class Subscription:
    """Handle returned by subscribe(); cancel() detaches the callback."""

    def __init__(self, remove: Callable[[], None]):
        self._remove = remove
        self.active = True

    def cancel(self):
        if self.active:
            self.active = False
            self._remove()


class Store:
    """
    Holds the current AppState.

        store = Store()
        sub = store.subscribe(lambda state: render(state))
        store.dispatch('notifications', add_notification, payload)
        sub.cancel()
    """

    def __init__(self, state: Optional[AppState] = None):
        self._state = state or AppState()
        self._listeners = {}
        self._ids = itertools.count()

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, slice_name: str, transition: Callable, *args, **kwargs) -> AppState:
        """Apply ``transition`` to one slice; listeners run only on change."""
        current = getattr(self._state, slice_name)
        updated = transition(current, *args, **kwargs)
        if updated == current:
            return self._state
        self._state = replace(self._state, **{slice_name: updated})
        for listener in list(self._listeners.values()):
            try:
                listener(self._state)
            except Exception as e:
                logger.warning(f"Store listener failed: {e}")
        return self._state

    def subscribe(self, listener: Callable[[AppState], None]) -> Subscription:
        key = next(self._ids)
        self._listeners[key] = listener
        return Subscription(lambda: self._listeners.pop(key, None))
