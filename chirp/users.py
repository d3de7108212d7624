"""
Profiles and the social graph: follow and block toggles.

Follow is one-directional. A block in either direction prevents a follow,
and creating a block removes any follow edge between the two users.
"""

import logging

from django.db import transaction
from django.db.models import Q

from .exceptions import BadRequest, Forbidden, NotFound
from .models import Block, Follow, User
from .notifications import notify
from .presence import is_online

logger = logging.getLogger(__name__)


def get_user(user_id):
    try:
        return User.objects.get(pk=user_id, is_active=True)
    except User.DoesNotExist:
        raise NotFound(f"User not found with id of {user_id}")


def profile_counts(user):
    return {
        'followers_count': Follow.objects.filter(followed=user).count(),
        'following_count': Follow.objects.filter(follower=user).count(),
        'is_online': is_online(user.pk),
    }


def is_blocked_between(user_a_id, user_b_id):
    return Block.objects.filter(
        Q(blocker_id=user_a_id, blocked_id=user_b_id)
        | Q(blocker_id=user_b_id, blocked_id=user_a_id)
    ).exists()


def toggle_follow(follower_id, target_id):
    """Follow or unfollow ``target_id``. Returns True if now following."""
    if follower_id == target_id:
        raise BadRequest("You cannot follow yourself")
    target = get_user(target_id)

    existing = Follow.objects.filter(follower_id=follower_id, followed=target)
    if existing.exists():
        existing.delete()
        logger.info(f"User {follower_id} unfollowed {target_id}")
        return False

    if is_blocked_between(follower_id, target_id):
        raise Forbidden("You cannot follow this user")

    Follow.objects.create(follower_id=follower_id, followed=target)
    logger.info(f"User {follower_id} followed {target_id}")
    notify(target, follower_id, 'follow')
    return True


def toggle_block(blocker_id, target_id):
    """Block or unblock ``target_id``. Returns True if now blocked."""
    if blocker_id == target_id:
        raise BadRequest("You cannot block yourself")
    target = get_user(target_id)

    existing = Block.objects.filter(blocker_id=blocker_id, blocked=target)
    if existing.exists():
        existing.delete()
        logger.info(f"User {blocker_id} unblocked {target_id}")
        return False

    with transaction.atomic():
        Block.objects.create(blocker_id=blocker_id, blocked=target)
        Follow.objects.filter(
            Q(follower_id=blocker_id, followed_id=target_id)
            | Q(follower_id=target_id, followed_id=blocker_id)
        ).delete()
    logger.info(f"User {blocker_id} blocked {target_id}")
    return True
