"""Authenticated client session."""

from typing import Optional


class SessionClosed(RuntimeError):
    """Raised when a closed Session is used for a request."""


class Session:
    """
    Bearer token plus the user it belongs to.

    Created by ChirpClient.login()/register(), torn down by
    ChirpClient.logout() or close(). Pass it explicitly to every call that
    needs authentication; nothing is kept in module state.
    """

    def __init__(self, token: str, user: Optional[dict] = None):
        self._token = token
        self.user = user or {}

    @property
    def token(self) -> str:
        if self._token is None:
            raise SessionClosed("Session has been closed")
        return self._token

    @property
    def closed(self) -> bool:
        return self._token is None

    @property
    def user_id(self):
        return self.user.get('id')

    def headers(self) -> dict:
        return {'Authorization': f'Bearer {self.token}'}

    def refresh(self, token: str, user: Optional[dict] = None):
        """Swap in a re-issued token (password change, reset)."""
        if self.closed:
            raise SessionClosed("Session has been closed")
        self._token = token
        if user is not None:
            self.user = user

    def close(self):
        self._token = None
        self.user = {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        state = 'closed' if self.closed else f"user={self.user_id}"
        return f"<Session {state}>"
