"""
Multi-session presence tracking.

Each open WebSocket session increments a per-user counter in the Django
cache; closing one decrements it. A user is settled offline only after the
disconnect grace window has elapsed and no sibling session is still live, so
a page refresh or a second tab never flips the status.

The counter lives in the configured cache backend. With the default
local-memory cache it is per process; configure REDIS_URL to share it across
workers.
"""

import logging

from django.core.cache import cache
from django.utils import timezone

from .models import User

logger = logging.getLogger(__name__)


def _key(user_id):
    return f"presence_sessions_{user_id}"


def live_sessions(user_id):
    return cache.get(_key(user_id), 0)


def is_online(user_id):
    return live_sessions(user_id) > 0


def session_opened(user_id):
    """Register a new live session and touch last_active."""
    key = _key(user_id)
    cache.add(key, 0, None)
    count = cache.incr(key)
    User.objects.filter(pk=user_id).update(last_active=timezone.now())
    logger.info(f"User {user_id} connected ({count} live sessions)")
    return count


def session_closed(user_id):
    """Drop one live session and return how many remain."""
    key = _key(user_id)
    try:
        count = cache.decr(key)
    except ValueError:
        # Key evicted or never set
        count = 0
    if count < 0:
        count = 0
        cache.set(key, 0, None)
    return count


def settle_offline(user_id):
    """
    Called once the grace window after a disconnect has passed.

    Returns True when the user was marked offline, False when another
    session is still live.
    """
    if live_sessions(user_id) > 0:
        return False
    User.objects.filter(pk=user_id).update(last_active=timezone.now())
    logger.info(f"User {user_id} status updated: offline")
    return True
