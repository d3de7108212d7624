"""
Real-time event dispatch for Chirp clients.

The transport (any WebSocket library) hands raw frames to EventStream.feed();
the stream decodes ``{"event": name, "data": {...}}`` and calls every
callback subscribed to that event name.
"""

import itertools
import json
import logging
from collections import defaultdict
from typing import Callable
from urllib.parse import urlencode

from . import state as st
from .state import Store, Subscription

logger = logging.getLogger(__name__)


def socket_url(base_url: str, token: str) -> str:
    """WebSocket URL for a REST base URL, with the token in the query string."""
    root = base_url.rstrip('/')
    if root.endswith('/api'):
        root = root[:-len('/api')]
    if root.startswith('https://'):
        root = 'wss://' + root[len('https://'):]
    elif root.startswith('http://'):
        root = 'ws://' + root[len('http://'):]
    return f"{root}/ws/?{urlencode({'token': token})}"


class EventStream:

    def __init__(self):
        self._handlers = defaultdict(dict)
        self._ids = itertools.count()

    def subscribe(self, event: str, callback: Callable[[dict], None]) -> Subscription:
        key = next(self._ids)
        self._handlers[event][key] = callback
        return Subscription(lambda: self._handlers[event].pop(key, None))

    def dispatch(self, event: str, data: dict) -> int:
        """Call the callbacks for ``event``; returns how many ran."""
        callbacks = list(self._handlers.get(event, {}).values())
        for callback in callbacks:
            try:
                callback(data)
            except Exception as e:
                logger.warning(f"Handler for {event} failed: {e}")
        return len(callbacks)

    def feed(self, frame) -> int:
        """Decode one raw frame (str or bytes) and dispatch it."""
        try:
            message = json.loads(frame)
        except (TypeError, ValueError):
            logger.warning(f"Dropping malformed frame: {frame!r:.80}")
            return 0
        if not isinstance(message, dict) or 'event' not in message:
            logger.warning(f"Dropping frame without event: {frame!r:.80}")
            return 0
        return self.dispatch(message['event'], message.get('data') or {})

    def bind_store(self, store: Store) -> Subscription:
        """Route live events into ``store``. Cancel the handle to unbind."""
        def on_new_post(data):
            # Replies never appear in the home feed
            if data.get('is_reply'):
                return
            store.dispatch('feed', st.prepend_post, data)

        subscriptions = [
            self.subscribe('notification', lambda data: store.dispatch('notifications', st.add_notification, data)),
            self.subscribe('new_post', on_new_post),
            self.subscribe('post_update', lambda data: store.dispatch('feed', st.update_post, data)),
        ]

        def unbind():
            for subscription in subscriptions:
                subscription.cancel()
        return Subscription(unbind)
