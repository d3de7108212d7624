"""
Real-time rooms and publishing.

A room is a channel-layer group. Every WebSocket session of a user joins
``user.<id>``, every member session of a conversation joins
``conversation.<id>``, and all sessions join the ``posts`` broadcast room.

Publishing is fire-and-forget: rows are persisted before anything is pushed,
so a failed push only loses the live copy.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

BROADCAST_ROOM = 'posts'

# Consumer method that receives every published event
EVENT_HANDLER = 'chirp.event'


def user_room(user_id):
    return f'user.{user_id}'


def conversation_room(conversation_id):
    return f'conversation.{conversation_id}'


def build_event(event, data, exclude_channel=None):
    message = {'type': EVENT_HANDLER, 'event': event, 'data': data}
    if exclude_channel:
        message['exclude'] = exclude_channel
    return message


def publish(room, event, data):
    """Push ``event`` to every live session in ``room``. Never raises."""
    layer = get_channel_layer()
    if layer is None:
        return False
    try:
        async_to_sync(layer.group_send)(room, build_event(event, data))
    except Exception as exc:
        logger.warning(f"Live push of {event} to {room} failed: {exc}")
        return False
    return True


def publish_to_user(user_id, event, data):
    return publish(user_room(user_id), event, data)


def broadcast(event, data):
    return publish(BROADCAST_ROOM, event, data)
