"""
================================================================================
CHIRP - NOTIFICATION FAN-OUT
================================================================================

A notification row is created unread by a mutation whose actor is not the
recipient, flipped to read by the recipient, and removed only when the
recipient deletes it or clears the list. Re-triggering the same interaction
creates a new row; a read row is never resurrected.

Every new row is also pushed to the recipient's real-time room. The push is
fire-and-forget: the row is the source of truth and is returned by the next
list call whether or not a session was connected.

================================================================================
"""

import logging

from .exceptions import NotFound
from .feed import paginate
from .models import Notification
from .realtime import publish_to_user
from .serializers import serialize_notification

logger = logging.getLogger(__name__)


def notify(recipient, sender, type, post=None, comment=None):
    """
    Persist a notification and push it live.

    Returns the new Notification, or None when the actor is the recipient.
    """
    recipient_id = getattr(recipient, 'pk', recipient)
    sender_id = getattr(sender, 'pk', sender)
    if recipient_id == sender_id:
        return None

    notification = Notification.objects.create(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=type,
        post=post,
        comment=comment,
    )
    notification = Notification.objects.select_related('sender').get(pk=notification.pk)
    publish_to_user(recipient_id, 'notification', serialize_notification(notification))
    logger.debug(f"Notification {type} for user {recipient_id} from {sender_id}")
    return notification


def list_notifications(user_id, page=1, page_size=20):
    queryset = (
        Notification.objects
        .filter(recipient_id=user_id)
        .select_related('sender')
        .order_by('-created_at', '-id')
    )
    return paginate(queryset, page, page_size)


def unread_count(user_id):
    return Notification.objects.filter(recipient_id=user_id, read=False).count()


def _owned(notification_id, user_id):
    try:
        return Notification.objects.select_related('sender').get(
            pk=notification_id, recipient_id=user_id
        )
    except Notification.DoesNotExist:
        raise NotFound(f"Notification not found with id of {notification_id}")


def mark_read(notification_id, user_id):
    """Idempotent: marking an already read notification changes nothing."""
    notification = _owned(notification_id, user_id)
    if not notification.read:
        notification.read = True
        notification.save(update_fields=['read'])
    return notification


def mark_all_read(user_id):
    return Notification.objects.filter(recipient_id=user_id, read=False).update(read=True)


def delete_notification(notification_id, user_id):
    _owned(notification_id, user_id).delete()


def clear_notifications(user_id):
    deleted, _ = Notification.objects.filter(recipient_id=user_id).delete()
    return deleted
