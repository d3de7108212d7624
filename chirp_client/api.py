"""Chirp REST API client."""

import json
import logging
from collections import namedtuple
from typing import Optional

import requests

from .session import Session

logger = logging.getLogger(__name__)

Page = namedtuple('Page', ['items', 'has_more'])


class ApiError(Exception):
    """Chirp API error."""
    def __init__(self, status_code: int, message: str, response: dict = None):
        self.status_code = status_code
        self.message = message
        self.response = response or {}
        super().__init__(f"Chirp API {status_code}: {message}")


class ChirpClient:
    """
    Synchronous client for the /api routes.

    Unauthenticated calls need no session. Authenticated calls take the
    Session returned by login() or register() as their first argument.
    """

    def __init__(self, base_url: str, http: requests.Session = None, timeout: float = 30.0):
        self.base_url = base_url.rstrip('/')
        self.http = http or requests.Session()
        self.timeout = timeout

    def close(self):
        """Close the HTTP connection pool."""
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        session: Optional[Session] = None,
        **kwargs
    ) -> dict:
        """Make API request, return the success envelope."""
        headers = kwargs.pop('headers', {})
        if session is not None:
            headers.update(session.headers())
        response = self.http.request(
            method,
            f"{self.base_url}{path}",
            headers=headers,
            timeout=self.timeout,
            **kwargs
        )

        try:
            body = response.json()
        except ValueError:
            body = {'success': False, 'error': response.text or response.reason}

        if response.status_code >= 400 or not body.get('success', False):
            message = body.get('error') or f"HTTP {response.status_code}"
            raise ApiError(response.status_code, message, body)
        return body

    def _data(self, method, path, session=None, **kwargs):
        return self._request(method, path, session, **kwargs).get('data')

    def _page(self, path, session=None, page=1, limit=None):
        params = {'page': page}
        if limit is not None:
            params['limit'] = limit
        body = self._request('GET', path, session, params=params)
        return Page(body.get('data') or [], bool(body.get('has_more')))

    # ========================================================================
    # AUTH
    # ========================================================================

    def register(self, username: str, email: str, password: str, name: str) -> Session:
        data = self._data('POST', '/auth/register', json={
            'username': username, 'email': email, 'password': password, 'name': name,
        })
        return Session(data['token'], data['user'])

    def login(self, email: str, password: str) -> Session:
        data = self._data('POST', '/auth/login', json={'email': email, 'password': password})
        logger.debug(f"Logged in as user {data['user']['id']}")
        return Session(data['token'], data['user'])

    def logout(self, session: Session):
        """Tell the server, then tear the session down even if that failed."""
        try:
            self._request('POST', '/auth/logout', session)
        finally:
            session.close()

    def me(self, session: Session) -> dict:
        user = self._data('GET', '/auth/me', session)
        session.user = user
        return user

    def update_details(self, session: Session, **fields) -> dict:
        user = self._data('PUT', '/auth/updatedetails', session, json=fields)
        session.user = user
        return user

    def update_password(self, session: Session, current_password: str, new_password: str) -> Session:
        data = self._data('PUT', '/auth/updatepassword', session, json={
            'current_password': current_password, 'new_password': new_password,
        })
        session.refresh(data['token'], data['user'])
        return session

    def forgot_password(self, email: str):
        self._request('POST', '/auth/forgotpassword', json={'email': email})

    def reset_password(self, token: str, password: str) -> Session:
        data = self._data('PUT', f'/auth/resetpassword/{token}', json={'password': password})
        return Session(data['token'], data['user'])

    def verify_email(self, token: str) -> dict:
        return self._data('GET', f'/auth/verify-email/{token}')

    # ========================================================================
    # POSTS
    # ========================================================================

    def feed(self, session: Session, page: int = 1, limit: int = None) -> Page:
        return self._page('/posts/feed', session, page, limit)

    def get_post(self, post_id: int, session: Session = None) -> dict:
        return self._data('GET', f'/posts/{post_id}', session)

    def user_posts(self, user_id: int, page: int = 1, limit: int = None) -> Page:
        return self._page(f'/posts/user/{user_id}', None, page, limit)

    def replies(self, post_id: int, session: Session = None, page: int = 1, limit: int = None) -> Page:
        return self._page(f'/posts/{post_id}/replies', session, page, limit)

    def create_post(self, session: Session, content: str, media=(), **fields) -> dict:
        """
        ``media`` is a sequence of ``(filename, fileobj, content_type)``
        tuples; when given the post is sent as multipart form data.
        """
        if media:
            form = {k: json.dumps(v) if isinstance(v, (dict, list)) else v for k, v in fields.items()}
            form['content'] = content
            files = [('media', item) for item in media]
            return self._data('POST', '/posts', session, data=form, files=files)
        return self._data('POST', '/posts', session, json={'content': content, **fields})

    def update_post(self, session: Session, post_id: int, content: str, scheduled_for: str = None) -> dict:
        payload = {'content': content}
        if scheduled_for is not None:
            payload['scheduled_for'] = scheduled_for
        return self._data('PUT', f'/posts/{post_id}', session, json=payload)

    def delete_post(self, session: Session, post_id: int):
        self._request('DELETE', f'/posts/{post_id}', session)

    def like(self, session: Session, post_id: int):
        self._request('POST', f'/posts/{post_id}/like', session)

    def unlike(self, session: Session, post_id: int):
        self._request('POST', f'/posts/{post_id}/unlike', session)

    def repost(self, session: Session, post_id: int) -> dict:
        return self._data('POST', f'/posts/{post_id}/repost', session)

    def vote(self, session: Session, post_id: int, option: int) -> dict:
        return self._data('POST', f'/posts/{post_id}/vote', session, json={'option': option})

    # ========================================================================
    # USERS
    # ========================================================================

    def user(self, user_id: int) -> dict:
        return self._data('GET', f'/users/{user_id}')

    def follow(self, session: Session, user_id: int) -> dict:
        return self._data('POST', f'/users/{user_id}/follow', session)

    def block(self, session: Session, user_id: int) -> dict:
        return self._data('POST', f'/users/{user_id}/block', session)

    # ========================================================================
    # NOTIFICATIONS
    # ========================================================================

    def notifications(self, session: Session, page: int = 1, limit: int = None) -> Page:
        return self._page('/notifications', session, page, limit)

    def unread_count(self, session: Session) -> int:
        return self._data('GET', '/notifications/unread/count', session)['count']

    def mark_read(self, session: Session, notification_id: int) -> dict:
        return self._data('PATCH', f'/notifications/{notification_id}/read', session)

    def mark_all_read(self, session: Session) -> int:
        return self._data('PATCH', '/notifications/read-all', session)['updated']

    def delete_notification(self, session: Session, notification_id: int):
        self._request('DELETE', f'/notifications/{notification_id}', session)

    def clear_notifications(self, session: Session) -> int:
        return self._data('DELETE', '/notifications/clear-all', session)['deleted']

    # ========================================================================
    # MESSAGES
    # ========================================================================

    def conversations(self, session: Session) -> list:
        return self._data('GET', '/messages/conversations', session)

    def open_conversation(self, session: Session, user_id: int) -> dict:
        return self._data('POST', '/messages/conversations', session, json={'user_id': user_id})

    def messages(self, session: Session, conversation_id: int, page: int = 1, limit: int = None) -> Page:
        return self._page(f'/messages/conversations/{conversation_id}', session, page, limit)

    def send_message(self, session: Session, conversation_id: int, content: str) -> dict:
        return self._data('POST', f'/messages/conversations/{conversation_id}', session, json={'content': content})
