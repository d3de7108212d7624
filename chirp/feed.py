"""
================================================================================
CHIRP - FEED QUERIES
================================================================================

Read side of the post store: home feed, single post, user timeline, replies.

SOCIAL GRAPH FILTER
================================================================================
    feed authors(viewer) = following(viewer) ∪ {viewer} − blocked(viewer)

The set is recomputed on every request. There is no cache, so for viewers
following many thousands of accounts this lookup dominates feed assembly.

FEED PREDICATE
================================================================================
    author ∈ feed authors
    ∧ is_reply = False
    ∧ is_deleted = False
    ∧ (scheduled_for unset ∨ scheduled_for ≤ now)

PAGINATION
================================================================================
Offset based: skip = (page - 1) * page_size. has_more is found by fetching
one row past the page, so the total is never counted. Pages are not a
snapshot: rows inserted between two page fetches shift the window and can
repeat or skip a post.

================================================================================
"""

from collections import namedtuple

from django.utils import timezone

from .exceptions import BadRequest, Gone, NotFound
from .models import Block, Follow, Post, User

Page = namedtuple('Page', ['items', 'has_more'])


def feed_author_ids(viewer_id):
    """Author ids whose posts may appear in ``viewer_id``'s home feed."""
    if not User.objects.filter(pk=viewer_id).exists():
        raise NotFound(f"User not found with id of {viewer_id}")

    following = set(
        Follow.objects.filter(follower_id=viewer_id).values_list('followed_id', flat=True)
    )
    blocked = set(
        Block.objects.filter(blocker_id=viewer_id).values_list('blocked_id', flat=True)
    )
    return (following | {viewer_id}) - blocked


def paginate(queryset, page, page_size):
    """Slice one page out of ``queryset`` and probe one row past it."""
    if page < 1 or page_size < 1:
        raise BadRequest("page and limit must be positive integers")
    offset = (page - 1) * page_size
    rows = list(queryset[offset:offset + page_size + 1])
    return Page(rows[:page_size], len(rows) > page_size)


def get_feed(viewer_id, page=1, page_size=10, now=None):
    now = now or timezone.now()
    authors = feed_author_ids(viewer_id)
    queryset = (
        Post.objects.timeline(now)
        .filter(author_id__in=authors)
        .with_embeds()
        .newest_first()
    )
    return paginate(queryset, page, page_size)


def get_user_posts(user_id, page=1, page_size=10, now=None):
    """Public timeline of one user. Reposts included, replies excluded."""
    if not User.objects.filter(pk=user_id).exists():
        raise NotFound(f"User not found with id of {user_id}")
    now = now or timezone.now()
    queryset = (
        Post.objects.timeline(now)
        .filter(author_id=user_id)
        .with_embeds()
        .newest_first()
    )
    return paginate(queryset, page, page_size)


def load_post(post_id, viewer_id=None, now=None, queryset=None):
    """
    Fetch one post as ``viewer_id`` is allowed to see it.

    Raises NotFound when the post does not exist, Gone when it was
    soft-deleted, and NotFound again when it is scheduled for the future and
    the viewer is not its author. The last case must stay indistinguishable
    from a missing post so unpublished content does not leak.
    """
    queryset = queryset if queryset is not None else Post.objects.all()
    try:
        post = queryset.get(pk=post_id)
    except Post.DoesNotExist:
        raise NotFound(f"Post not found with id of {post_id}")
    if post.is_deleted:
        raise Gone("Post has been deleted")
    if post.is_scheduled(now) and post.author_id != viewer_id:
        raise NotFound(f"Post not found with id of {post_id}")
    return post


def get_post(post_id, viewer_id=None, now=None):
    return load_post(post_id, viewer_id, now, queryset=Post.objects.with_embeds())


def get_replies(post_id, viewer_id=None, page=1, page_size=10, now=None):
    """Live, published replies to a visible post, oldest first."""
    now = now or timezone.now()
    parent = load_post(post_id, viewer_id, now)
    queryset = (
        Post.objects.live()
        .published(now)
        .filter(is_reply=True, parent_post=parent)
        .with_embeds()
        .order_by('created_at', 'id')
    )
    return paginate(queryset, page, page_size)
