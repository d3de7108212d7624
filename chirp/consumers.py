"""
================================================================================
CHIRP - WEBSOCKET CONSUMER
================================================================================

One ChirpConsumer instance per WebSocket session. Frames in both directions
are JSON objects of the form {"event": name, "data": {...}}.

CONNECT
================================================================================
- scope["user"] is resolved once by chirp.middleware.TokenAuthMiddleware
- Anonymous handshakes are rejected with close code 4401
- The session joins: user.<id>, posts, conversation.<id> for each membership
- The user's live-session counter is incremented

CLIENT EVENTS
================================================================================
typing        {conversation_id, is_typing}
              -> user_typing to the other sessions in the conversation room
message_read  {message_id, conversation_id}
              -> marks the message read, then message_read_receipt to the
                 other sessions in the conversation room

SERVER EVENTS
================================================================================
Anything published through chirp.realtime arrives in chirp_event() and is
forwarded as-is: notification, new_post, post_update, post_liked,
post_reposted, new_message, conversation_created, user_typing,
message_read_receipt.

DISCONNECT
================================================================================
The counter is decremented right away. After CHIRP_PRESENCE_GRACE_SECONDS the
user is settled offline, but only if no sibling session is still live, so a
page refresh or a second tab does not flip the status.

================================================================================
"""

import asyncio
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings
from django.utils import timezone

from . import messaging, presence
from .exceptions import ChirpError
from .realtime import BROADCAST_ROOM, build_event, conversation_room, user_room

logger = logging.getLogger(__name__)

UNAUTHENTICATED_CLOSE_CODE = 4401


async def settle_after_grace(user_id, delay):
    """Wait out the reconnect grace window, then settle the user offline."""
    if delay > 0:
        await asyncio.sleep(delay)
    return await database_sync_to_async(presence.settle_offline)(user_id)


class ChirpConsumer(AsyncJsonWebsocketConsumer):
    user_id = None
    rooms = ()

    async def connect(self):
        user = self.scope.get('user')
        if user is None or not user.is_authenticated:
            await self.close(code=UNAUTHENTICATED_CLOSE_CODE)
            return

        self.user_id = user.pk
        conversation_ids = await database_sync_to_async(messaging.conversation_ids_for)(user.pk)
        self.rooms = [user_room(user.pk), BROADCAST_ROOM]
        self.rooms += [conversation_room(cid) for cid in conversation_ids]
        for room in self.rooms:
            await self.channel_layer.group_add(room, self.channel_name)

        await self.accept()
        await database_sync_to_async(presence.session_opened)(user.pk)
        logger.info(f"Socket connected: {self.channel_name}, User: {user.pk}")

    async def disconnect(self, code):
        if self.user_id is None:
            return
        for room in self.rooms:
            await self.channel_layer.group_discard(room, self.channel_name)
        remaining = await database_sync_to_async(presence.session_closed)(self.user_id)
        logger.info(f"Socket disconnected: {self.channel_name} ({remaining} sessions left)")
        await settle_after_grace(self.user_id, settings.CHIRP_PRESENCE_GRACE_SECONDS)

    # ========================================================================
    # CLIENT -> SERVER
    # ========================================================================

    async def receive_json(self, content, **kwargs):
        if not isinstance(content, dict):
            await self.send_error("Frames must be JSON objects")
            return
        event = content.get('event')
        data = content.get('data') or {}
        handler = {
            'typing': self.on_typing,
            'message_read': self.on_message_read,
        }.get(event)
        if handler is None:
            await self.send_error(f"Unknown event '{event}'")
            return
        try:
            await handler(data)
        except ChirpError as e:
            await self.send_error(e.message)

    async def on_typing(self, data):
        conversation_id = data.get('conversation_id')
        room = conversation_room(conversation_id)
        if room not in self.rooms:
            await self.send_error("Not a member of this conversation")
            return
        await self.channel_layer.group_send(room, build_event('user_typing', {
            'user_id': self.user_id,
            'conversation_id': conversation_id,
            'is_typing': bool(data.get('is_typing')),
        }, exclude_channel=self.channel_name))

    async def on_message_read(self, data):
        conversation_id = data.get('conversation_id')
        message = await database_sync_to_async(messaging.mark_message_read)(
            data.get('message_id'), conversation_id, self.user_id
        )
        read_at = message.read_at or timezone.now()
        await self.channel_layer.group_send(conversation_room(conversation_id), build_event('message_read_receipt', {
            'message_id': message.pk,
            'user_id': self.user_id,
            'conversation_id': conversation_id,
            'read_at': read_at.isoformat(),
        }, exclude_channel=self.channel_name))

    async def send_error(self, message):
        await self.send_json({'event': 'error', 'data': {'message': message}})

    # ========================================================================
    # SERVER -> CLIENT
    # ========================================================================

    async def chirp_event(self, message):
        if message.get('exclude') == self.channel_name:
            return
        event, data = message['event'], message['data']
        if event == 'conversation_created':
            room = conversation_room(data['id'])
            if room not in self.rooms:
                await self.channel_layer.group_add(room, self.channel_name)
                self.rooms.append(room)
        await self.send_json({'event': event, 'data': data})
