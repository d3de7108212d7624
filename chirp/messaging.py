"""
Direct messages.

A conversation has members; only members can read or post in it, and to
anyone else it does not exist. New messages are pushed to the conversation
room. When a conversation is created, the other members' sessions are told
through their user rooms so they can join the new conversation room.
"""

import logging

from django.db import transaction
from django.utils import timezone

from .exceptions import BadRequest, Forbidden, NotFound
from .feed import paginate
from .models import Conversation, ConversationMember, Message
from .realtime import conversation_room, publish, publish_to_user
from .serializers import serialize_conversation, serialize_message
from .users import get_user, is_blocked_between

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000


def conversation_ids_for(user_id):
    return list(
        ConversationMember.objects.filter(user_id=user_id).values_list('conversation_id', flat=True)
    )


def member_ids(conversation_id):
    return list(
        ConversationMember.objects.filter(conversation_id=conversation_id).values_list('user_id', flat=True)
    )


def get_conversation(conversation_id, user_id):
    try:
        return Conversation.objects.get(pk=conversation_id, members__user_id=user_id)
    except Conversation.DoesNotExist:
        raise NotFound(f"Conversation not found with id of {conversation_id}")


def describe(conversation):
    members = [m.user for m in conversation.members.select_related('user')]
    last_message = conversation.messages.select_related('sender').first()
    return serialize_conversation(conversation, members, last_message)


def list_conversations(user_id):
    conversations = (
        Conversation.objects
        .filter(members__user_id=user_id)
        .order_by('-updated_at', '-id')
        .distinct()
    )
    return [describe(c) for c in conversations]


def open_direct(user_id, other_id):
    """Return the DM between two users, creating it on first use."""
    if user_id == other_id:
        raise BadRequest("You cannot message yourself")
    other = get_user(other_id)
    if is_blocked_between(user_id, other_id):
        raise Forbidden("Cannot message this user due to block settings")

    existing = (
        Conversation.objects
        .filter(is_group=False, members__user_id=user_id)
        .filter(members__user_id=other.pk)
        .first()
    )
    if existing is not None:
        return existing, False

    with transaction.atomic():
        conversation = Conversation.objects.create(is_group=False, created_by_id=user_id)
        ConversationMember.objects.bulk_create([
            ConversationMember(conversation=conversation, user_id=user_id),
            ConversationMember(conversation=conversation, user_id=other.pk),
        ])
    logger.info(f"Conversation {conversation.pk} opened between {user_id} and {other.pk}")
    publish_to_user(other.pk, 'conversation_created', describe(conversation))
    return conversation, True


def list_messages(conversation_id, user_id, page=1, page_size=20):
    conversation = get_conversation(conversation_id, user_id)
    ConversationMember.objects.filter(conversation=conversation, user_id=user_id).update(
        last_read_at=timezone.now()
    )
    queryset = conversation.messages.select_related('sender').order_by('-created_at', '-id')
    return paginate(queryset, page, page_size)


def send_message(conversation_id, user_id, content):
    conversation = get_conversation(conversation_id, user_id)
    content = (content or '').strip()
    if not content:
        raise BadRequest("Message content is required")
    if len(content) > MAX_MESSAGE_LENGTH:
        raise BadRequest(f"Message cannot exceed {MAX_MESSAGE_LENGTH} characters")
    if not conversation.is_group:
        others = [uid for uid in member_ids(conversation.pk) if uid != user_id]
        if any(is_blocked_between(user_id, uid) for uid in others):
            raise Forbidden("Cannot message this user due to block settings")

    with transaction.atomic():
        message = Message.objects.create(conversation=conversation, sender_id=user_id, content=content)
        conversation.save(update_fields=['updated_at'])
    message = Message.objects.select_related('sender').get(pk=message.pk)
    publish(conversation_room(conversation.pk), 'new_message', serialize_message(message))
    return message


def mark_message_read(message_id, conversation_id, user_id):
    """
    Mark a message read on behalf of ``user_id``.

    A sender reading their own message changes nothing. Returns the message.
    """
    get_conversation(conversation_id, user_id)
    try:
        message = Message.objects.get(pk=message_id, conversation_id=conversation_id)
    except Message.DoesNotExist:
        raise NotFound(f"Message not found with id of {message_id}")

    now = timezone.now()
    if message.sender_id != user_id and message.read_at is None:
        message.read_at = now
        message.save(update_fields=['read_at'])
    ConversationMember.objects.filter(conversation_id=conversation_id, user_id=user_id).update(
        last_read_at=now
    )
    return message
