"""
================================================================================
CHIRP - POST MUTATIONS
================================================================================

Write side of the post store: create, update, delete, like, unlike, repost
and poll votes.

No in-process locks guard these operations. Each single-row write is atomic
in the database, but compound check-then-act sequences are not:
- the repost duplicate check and the repost insert
- the scheduled-edit window check and the update
Two concurrent identical requests can both pass the check.

FAN-OUT
================================================================================
Operation   Notification        Live push
---------   ------------        ---------
create      comment, mention    new_post (broadcast, published posts only)
like        like                post_liked (author's room)
repost      repost              new_post (broadcast), post_reposted (author)
delete      -                   post_update (broadcast)
vote        -                   post_update (broadcast)

Nothing is sent to the actor about their own post.

================================================================================
"""

import logging
import operator
from functools import reduce

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from .exceptions import BadRequest, Conflict, Forbidden, Gone, NotFound
from .feed import load_post
from .media import get_media_store
from .models import (
    MAX_MEDIA_PER_POST, MAX_POST_LENGTH, VISIBILITY_CHOICES,
    PollOption, Post, PostMedia, User,
)
from .notifications import notify
from .realtime import broadcast, publish_to_user
from .serializers import serialize_post
from .text import extract_hashtags, extract_mentions

logger = logging.getLogger(__name__)

MAX_POLL_OPTIONS = 4
MAX_POLL_OPTION_LENGTH = 100


# ============================================================================
# HELPERS
# ============================================================================

def _clean_content(content):
    content = (content or '').strip()
    if not content:
        raise BadRequest("Post content is required")
    if len(content) > MAX_POST_LENGTH:
        raise BadRequest(f"Post cannot exceed {MAX_POST_LENGTH} characters")
    return content


def _resolve_mentions(content):
    usernames = extract_mentions(content)
    if not usernames:
        return []
    query = reduce(operator.or_, (Q(username__iexact=name) for name in usernames))
    return list(User.objects.filter(query, is_active=True))


def _clean_poll(poll, now):
    options = [str(o).strip() for o in (poll.get('options') or [])]
    if not 2 <= len(options) <= MAX_POLL_OPTIONS:
        raise BadRequest(f"A poll needs between 2 and {MAX_POLL_OPTIONS} options")
    if any(not o or len(o) > MAX_POLL_OPTION_LENGTH for o in options):
        raise BadRequest(f"Poll options must be 1-{MAX_POLL_OPTION_LENGTH} characters")
    expires_at = poll.get('expires_at')
    if expires_at is not None and expires_at <= now:
        raise BadRequest("Poll expiry must be in the future")
    return options, expires_at


def _reload(post_id):
    return Post.objects.with_embeds().get(pk=post_id)


# ============================================================================
# CREATE / UPDATE / DELETE
# ============================================================================

def create_post(author_id, content, media=(), is_reply=False, parent_post_id=None,
                is_quote=False, quoted_post_id=None, scheduled_for=None,
                visibility='public', location='', poll=None, now=None):
    """
    Create an original post, reply or quote.

    ``media`` is a sequence of uploaded files stored through the configured
    media store. ``poll`` is ``{'options': [...], 'expires_at': datetime}``.
    A post with ``scheduled_for`` in the future stays invisible to everyone
    but its author and sends no fan-out.
    """
    now = now or timezone.now()
    content = _clean_content(content)
    media = list(media or [])

    if len(media) > MAX_MEDIA_PER_POST:
        raise BadRequest(f"A post can have at most {MAX_MEDIA_PER_POST} media files")
    if visibility not in dict(VISIBILITY_CHOICES):
        raise BadRequest(f"Invalid visibility '{visibility}'")
    if scheduled_for is not None and scheduled_for <= now:
        raise BadRequest("Scheduled time must be in the future")
    if len(location or '') > 100:
        raise BadRequest("Location cannot exceed 100 characters")

    parent = quoted = None
    if is_reply:
        if not parent_post_id:
            raise BadRequest("A reply needs a parent post")
        parent = load_post(parent_post_id, author_id, now)
    if is_quote:
        if not quoted_post_id:
            raise BadRequest("A quote needs a quoted post")
        quoted = load_post(quoted_post_id, author_id, now)

    poll_options, poll_expires_at = _clean_poll(poll, now) if poll else ([], None)

    store = get_media_store()
    stored = [store.store(upload, 'posts') for upload in media]

    mentioned = _resolve_mentions(content)
    with transaction.atomic():
        post = Post.objects.create(
            author_id=author_id,
            content=content,
            is_reply=bool(is_reply),
            parent_post=parent,
            is_quote=bool(is_quote),
            quoted_post=quoted,
            scheduled_for=scheduled_for,
            visibility=visibility,
            location=location or '',
            hashtags=extract_hashtags(content),
            poll_expires_at=poll_expires_at,
        )
        PostMedia.objects.bulk_create([
            PostMedia(post=post, url=url, public_id=public_id, media_type=media_type, position=i)
            for i, (url, public_id, media_type) in enumerate(stored)
        ])
        PollOption.objects.bulk_create([
            PollOption(post=post, text=text, position=i)
            for i, text in enumerate(poll_options)
        ])
        if mentioned:
            post.mentions.set(mentioned)

    post = _reload(post.pk)
    logger.info(f"Post {post.pk} created by user {author_id}")

    if post.is_scheduled(now):
        return post

    if parent is not None:
        notify(parent.author_id, author_id, 'comment', post=parent, comment=post)
    for user in mentioned:
        notify(user, author_id, 'mention', post=post)
    broadcast('new_post', serialize_post(post))
    return post


def update_post(post_id, requester_id, content, scheduled_for=None, now=None):
    """
    Edit a post that is still waiting for its publication time.

    Published content is immutable: once ``scheduled_for`` is unset or has
    passed, the edit is refused with BadRequest.
    """
    now = now or timezone.now()
    try:
        post = Post.objects.get(pk=post_id)
    except Post.DoesNotExist:
        raise NotFound(f"Post not found with id of {post_id}")
    if post.is_deleted:
        raise Gone("Post has been deleted")
    if post.author_id != requester_id:
        raise Forbidden(f"User {requester_id} is not authorized to update this post")
    if not post.is_scheduled(now):
        raise BadRequest("Published posts cannot be edited")
    if scheduled_for is not None and scheduled_for <= now:
        raise BadRequest("Scheduled time must be in the future")

    post.content = _clean_content(content)
    post.hashtags = extract_hashtags(post.content)
    if scheduled_for is not None:
        post.scheduled_for = scheduled_for
    with transaction.atomic():
        post.save(update_fields=['content', 'hashtags', 'scheduled_for', 'updated_at'])
        post.mentions.set(_resolve_mentions(post.content))
    return _reload(post.pk)


def delete_post(post_id, requester_id):
    """
    Soft-delete a post, then remove its media on a best-effort basis.

    Replies are left in place under the deleted parent. Deleting a repost
    also withdraws the author from the original's reposts.
    """
    try:
        post = Post.objects.select_related('original_post').get(pk=post_id)
    except Post.DoesNotExist:
        raise NotFound(f"Post not found with id of {post_id}")
    if post.is_deleted:
        raise Gone("Post has been deleted")

    requester = User.objects.filter(pk=requester_id).first()
    if requester is None or (post.author_id != requester.pk and not requester.is_admin):
        raise Forbidden(f"User {requester_id} is not authorized to delete this post")

    with transaction.atomic():
        post.is_deleted = True
        post.deleted_at = timezone.now()
        post.save(update_fields=['is_deleted', 'deleted_at', 'updated_at'])
        if post.is_repost and post.original_post is not None:
            post.original_post.reposts.remove(post.author_id)

    store = get_media_store()
    for item in post.media.all():
        try:
            store.delete(item.public_id, item.media_type)
        except Exception as e:
            logger.error(f"Error deleting media {item.public_id} of post {post.pk}: {e}")

    logger.info(f"Post {post.pk} deleted by user {requester_id}")
    broadcast('post_update', {'id': post.pk, 'is_deleted': True})
    return post


# ============================================================================
# ENGAGEMENT
# ============================================================================

def like(post_id, user_id):
    post = load_post(post_id, user_id)
    if post.likes.filter(pk=user_id).exists():
        raise Conflict("Post already liked")
    post.likes.add(user_id)

    if post.author_id != user_id:
        notify(post.author_id, user_id, 'like', post=post)
        publish_to_user(post.author_id, 'post_liked', {'post_id': post.pk, 'user_id': user_id})
    return post


def unlike(post_id, user_id):
    post = load_post(post_id, user_id)
    if not post.likes.filter(pk=user_id).exists():
        raise Conflict("Post not liked yet")
    post.likes.remove(user_id)
    return post


def repost(post_id, user_id):
    """
    Create a contentless repost of ``post_id``.

    Reposting a repost reposts its original. The duplicate check is a plain
    existence query, not a unique index.
    """
    original = load_post(post_id, user_id)
    if original.is_repost and original.original_post_id:
        original = load_post(original.original_post_id, user_id)

    if Post.objects.live().filter(
        author_id=user_id, original_post=original, is_repost=True
    ).exists():
        raise Conflict("You have already reposted this post")

    with transaction.atomic():
        created = Post.objects.create(
            author_id=user_id,
            is_repost=True,
            original_post=original,
            content='',
        )
        original.reposts.add(user_id)

    created = _reload(created.pk)
    broadcast('new_post', serialize_post(created))
    if original.author_id != user_id:
        notify(original.author_id, user_id, 'repost', post=original)
        publish_to_user(
            original.author_id, 'post_reposted', {'post_id': original.pk, 'user_id': user_id}
        )
    return created


def vote_poll(post_id, user_id, option_index, now=None):
    now = now or timezone.now()
    post = load_post(post_id, user_id, now)
    options = list(post.poll_options.all())
    if not options:
        raise BadRequest("This post has no poll")
    if post.poll_expires_at is not None and post.poll_expires_at <= now:
        raise BadRequest("This poll has expired")
    if not isinstance(option_index, int) or not 0 <= option_index < len(options):
        raise BadRequest("Invalid poll option")
    if PollOption.objects.filter(post=post, votes__pk=user_id).exists():
        raise Conflict("You have already voted in this poll")

    options[option_index].votes.add(user_id)
    post = _reload(post.pk)
    broadcast('post_update', serialize_post(post))
    return post
