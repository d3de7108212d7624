"""
================================================================================
CHIRP - CUSTOM MIDDLEWARE
================================================================================

@file        middleware.py
@description HTTP and WebSocket middleware: token auth, presence, API errors
@version     2.0.0

MODULE PURPOSE
================================================================================
1. TokenAuthenticationMiddleware
   - Reads the bearer token (Authorization header, then `token` cookie)
   - Replaces request.user with the token's user when the token is valid
   - Leaves the session user in place otherwise (Django admin keeps working)

2. UpdateLastActiveMiddleware
   - Touches User.last_active for authenticated requests
   - Write throttled through the cache: at most one write per 30 seconds

3. ApiErrorMiddleware
   - The single boundary turning errors raised under /api/ into the
     {"success": false, "error": "..."} envelope
   - ChirpError subclasses carry their own status code
   - Django ValidationError -> 400, IntegrityError -> 409, Http404 -> 404
   - Anything else is logged with traceback and answered with a 500

4. TokenAuthMiddleware (Channels)
   - Authenticates the WebSocket handshake once, from ?token=, the
     Authorization header or the `token` cookie
   - Sets scope["user"]; AnonymousUser when no valid token was found

MIDDLEWARE ORDER
================================================================================
    ...
    django.contrib.auth.middleware.AuthenticationMiddleware
    chirp.middleware.TokenAuthenticationMiddleware
    chirp.middleware.UpdateLastActiveMiddleware
    chirp.middleware.ApiErrorMiddleware

ApiErrorMiddleware only implements process_exception, so its position only
matters relative to other middleware that also handle view exceptions.

================================================================================
"""

import logging
from datetime import timedelta
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser
from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.http import Http404, JsonResponse
from django.http.cookie import parse_cookie
from django.utils import timezone

from .auth import token_from_headers, token_from_request, user_from_token
from .exceptions import ChirpError, Unauthenticated

logger = logging.getLogger(__name__)

LAST_ACTIVE_THROTTLE = timedelta(seconds=30)


# ============================================================================
# TOKEN AUTHENTICATION (HTTP)
# ============================================================================

class TokenAuthenticationMiddleware:
    """Authenticate API clients from their bearer token."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        token = token_from_request(request)
        if token:
            try:
                request.user = user_from_token(token)
            except Unauthenticated:
                request.user = AnonymousUser()
        return self.get_response(request)


# ============================================================================
# LAST ACTIVE TRACKING
# ============================================================================

class UpdateLastActiveMiddleware:
    """
    Update the user's last_active timestamp, at most once per 30 seconds.

    Cache key: "last_active_update_{user_id}"
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            now = timezone.now()
            cache_key = f"last_active_update_{user.id}"
            last_update = cache.get(cache_key)

            if not last_update or (now - last_update) > LAST_ACTIVE_THROTTLE:
                user.last_active = now
                try:
                    user.save(update_fields=['last_active'])
                    cache.set(cache_key, now, int(LAST_ACTIVE_THROTTLE.total_seconds()))
                except Exception:
                    logger.exception(f"Failed to update last_active for user {user.id}")

        return self.get_response(request)


# ============================================================================
# API ERROR ENVELOPE
# ============================================================================

def error_response(message, status):
    return JsonResponse({'success': False, 'error': message}, status=status)


class ApiErrorMiddleware:
    """Normalize every exception raised by an /api/ view into the envelope."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not request.path.startswith('/api/'):
            return None

        if isinstance(exception, ChirpError):
            if exception.status_code >= 500:
                logger.error(f"{request.method} {request.path}: {exception.message}")
            return error_response(exception.message, exception.status_code)
        if isinstance(exception, ValidationError):
            return error_response("; ".join(exception.messages), 400)
        if isinstance(exception, IntegrityError):
            logger.warning(f"IntegrityError on {request.method} {request.path}: {exception}")
            return error_response("Duplicate field value entered", 409)
        if isinstance(exception, Http404):
            return error_response(str(exception) or "Resource not found", 404)

        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return error_response("Server Error", 500)


# ============================================================================
# TOKEN AUTHENTICATION (WEBSOCKET)
# ============================================================================

@database_sync_to_async
def _user_for_token(token):
    try:
        return user_from_token(token)
    except Unauthenticated:
        return AnonymousUser()


def token_from_scope(scope):
    query = parse_qs(scope.get('query_string', b'').decode())
    if query.get('token'):
        return query['token'][0]

    headers = {name.decode().lower(): value.decode() for name, value in scope.get('headers', [])}
    cookies = parse_cookie(headers.get('cookie', ''))
    return token_from_headers(headers.get('authorization', ''), cookies.get('token'))


class TokenAuthMiddleware(BaseMiddleware):
    """Resolve scope["user"] from the handshake's bearer token."""

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        token = token_from_scope(scope)
        scope['user'] = await _user_for_token(token) if token else AnonymousUser()
        return await super().__call__(scope, receive, send)
