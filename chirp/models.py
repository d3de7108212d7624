"""
================================================================================
CHIRP - DATABASE MODELS
================================================================================

@file        models.py
@description Django ORM models defining the complete Chirp schema
@version     2.0.0

MODULE PURPOSE
================================================================================
This module defines every persistent record of the Chirp backend:
- User model (extended from AbstractUser)
- Posts, media attachments and polls
- Social relationships (Follow, Block)
- Notifications
- Messaging (Conversations, Messages)

DATABASE STRUCTURE
================================================================================
1. User & Authentication
   - User (AbstractUser extension, unique username + email)

2. Content Models
   - Post (original posts, replies, quotes and reposts)
   - PostMedia (up to 4 attachments per post)
   - PollOption (optional poll attached to a post)

3. Social Relationships
   - Follow (follower/followed connections, one-way)
   - Block (one-way block)

4. Notifications
   - Notification (like, comment, follow, mention, repost, system)

5. Messaging System
   - Conversation, ConversationMember, Message

MODEL RELATIONSHIPS
================================================================================
User (1) ──────> (N) Post
User (1) ──────> (N) Notification (as recipient)
Post (1) ──────> (N) PostMedia
Post (1) ──────> (N) PollOption
Post (1) ──────> (N) Post (replies via parent_post, reposts via original_post)

User (N) <─────> (N) Post (likes, reposts, mentions)
User (N) <─────> (N) User (Follow, Block)
User (N) <─────> (N) Conversation (via ConversationMember)

VISIBILITY RULES
================================================================================
- is_deleted=True           : soft-deleted, never returned by any listing
- scheduled_for in future   : only the author may read it
- is_reply=True             : excluded from feeds and user timelines

All listing queries go through PostQuerySet so the rules live in one place.

================================================================================
"""


from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q
from django.utils import timezone as dj_timezone


# ============================================================================
# CONSTANTS & CHOICES
# ============================================================================

MAX_POST_LENGTH = 280
MAX_MEDIA_PER_POST = 4

VISIBILITY_CHOICES = [
    ('public', 'Public'),
    ('followers', 'Followers'),
    ('mentioned', 'Mentioned'),
]

NOTIFICATION_TYPES = [
    ('like', 'Like'),
    ('comment', 'Comment'),
    ('follow', 'Follow'),
    ('mention', 'Mention'),
    ('repost', 'Repost'),
    ('system', 'System'),
]


# ============================================================================
# SECTION 1: USER & AUTHENTICATION MODELS
# ============================================================================

class User(AbstractUser):
    """
    Extended User model with Chirp profile fields.

    Attributes:
        email (EmailField): Unique, stored lowercased
        name (CharField): Display name (max 50 chars)
        bio (CharField): Profile biography (max 160 chars)
        avatar (URLField): Avatar image URL
        cover_image (URLField): Profile banner URL
        location (CharField): Free-form location (max 30 chars)
        website (CharField): Personal website (max 100 chars)
        birthdate (DateField): Date of birth (optional)
        is_verified (BooleanField): Email address confirmed
        last_active (DateTimeField): Last authenticated activity
        email_verification_token (CharField): sha256 of the emailed token
        reset_password_token (CharField): sha256 of the emailed token

    Related Names:
        posts: Post objects authored by this user
        following: Follow objects (users this user follows)
        followers: Follow objects (users following this user)
        blocks: Block objects (users blocked by this user)
        blocked_by: Block objects (users who blocked this user)
        notifications: Notification objects received
    """

    email = models.EmailField(
        unique=True,
        help_text="Unique email address used to log in"
    )

    # --- Profile Information ---
    name = models.CharField(
        max_length=50,
        blank=True,
        help_text="Display name"
    )
    bio = models.CharField(
        max_length=160,
        blank=True,
        help_text="Profile biography"
    )
    avatar = models.URLField(
        max_length=500,
        blank=True,
        help_text="Avatar image URL"
    )
    cover_image = models.URLField(
        max_length=500,
        blank=True,
        help_text="Profile banner image URL"
    )
    location = models.CharField(
        max_length=30,
        blank=True
    )
    website = models.CharField(
        max_length=100,
        blank=True
    )
    birthdate = models.DateField(
        null=True,
        blank=True
    )

    # --- Verification & Presence ---
    is_verified = models.BooleanField(
        default=False,
        help_text="Email address has been confirmed"
    )
    last_active = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last authenticated activity timestamp"
    )

    # --- Account Tokens ---
    email_verification_token = models.CharField(
        max_length=64,
        blank=True,
        null=True,
        help_text="Hash of the email verification token"
    )
    email_verification_expire = models.DateTimeField(
        null=True,
        blank=True
    )
    reset_password_token = models.CharField(
        max_length=64,
        blank=True,
        null=True,
        help_text="Hash of the password reset token"
    )
    reset_password_expire = models.DateTimeField(
        null=True,
        blank=True
    )

    @property
    def is_admin(self):
        return self.is_staff or self.is_superuser


# ============================================================================
# SECTION 2: CONTENT MODELS (Posts, Media, Polls)
# ============================================================================

class PostQuerySet(models.QuerySet):
    """Visibility predicates shared by every post listing."""

    def live(self):
        return self.filter(is_deleted=False)

    def published(self, now=None):
        now = now or dj_timezone.now()
        return self.filter(Q(scheduled_for__isnull=True) | Q(scheduled_for__lte=now))

    def timeline(self, now=None):
        """Live, published, top-level posts (reposts included, replies excluded)."""
        return self.live().published(now).filter(is_reply=False)

    def newest_first(self):
        # id breaks created_at ties so offset pages never overlap
        return self.order_by('-created_at', '-id')

    def with_embeds(self):
        return self.select_related(
            'author',
            'original_post__author',
            'quoted_post__author',
            'parent_post__author',
        ).prefetch_related(
            'media', 'likes', 'reposts', 'poll_options__votes',
            'original_post__media', 'quoted_post__media', 'parent_post__media',
        )


class Post(models.Model):
    """
    User-generated post.

    One table holds every kind of post:
        - original post: content, optional media/poll
        - reply:  is_reply=True,  parent_post set
        - quote:  is_quote=True,  quoted_post set, own content
        - repost: is_repost=True, original_post set, empty content

    Attributes:
        author (ForeignKey): Post author
        content (TextField): Up to 280 characters
        likes (ManyToManyField): Users who liked the post
        reposts (ManyToManyField): Users who reposted the post
        mentions (ManyToManyField): Users @mentioned in the content
        hashtags (JSONField): Lowercased, deduplicated #tags in order
        visibility (CharField): public / followers / mentioned
        scheduled_for (DateTimeField): Publication time for scheduled posts
        is_deleted (BooleanField): Soft delete flag
        deleted_at (DateTimeField): Soft delete timestamp
        poll_expires_at (DateTimeField): Poll closing time (poll posts only)

    Related Names:
        media: PostMedia attachments
        poll_options: PollOption rows
        replies: Reply posts (parent_post)
        repost_set: Reposts of this post (original_post)
        quotes: Quotes of this post (quoted_post)

    Meta:
        ordering: Newest first, id as tie breaker
    """

    author = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='posts',
        help_text="Author of this post"
    )
    content = models.TextField(
        max_length=MAX_POST_LENGTH,
        blank=True,
        help_text="Post text content (empty for reposts)"
    )
    likes = models.ManyToManyField(
        User,
        related_name='liked_posts',
        blank=True,
        help_text="Users who liked this post"
    )
    reposts = models.ManyToManyField(
        User,
        related_name='reposted_posts',
        blank=True,
        help_text="Users who reposted this post"
    )
    mentions = models.ManyToManyField(
        User,
        related_name='mentioned_in',
        blank=True,
        help_text="Users mentioned in the content"
    )

    # --- Classification ---
    is_repost = models.BooleanField(default=False)
    is_reply = models.BooleanField(default=False)
    is_quote = models.BooleanField(default=False)
    is_pinned = models.BooleanField(default=False)
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    # --- Back-references ---
    original_post = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='repost_set',
        help_text="Post being reposted"
    )
    parent_post = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='replies',
        help_text="Post being replied to"
    )
    quoted_post = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='quotes',
        help_text="Post being quoted"
    )

    hashtags = models.JSONField(
        default=list,
        blank=True,
        help_text="Hashtags extracted from content at write time"
    )
    visibility = models.CharField(
        max_length=10,
        choices=VISIBILITY_CHOICES,
        default='public'
    )
    scheduled_for = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Future publication time; unset means published on creation"
    )
    location = models.CharField(
        max_length=100,
        blank=True
    )
    poll_expires_at = models.DateTimeField(
        null=True,
        blank=True
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Creation timestamp"
    )
    updated_at = models.DateTimeField(auto_now=True)

    objects = PostQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['author', '-created_at'], name='post_author_created_idx'),
        ]

    def __str__(self):
        if self.is_repost:
            return f"{self.author} reposted #{self.original_post_id}"
        return f"{self.author} - {self.content[:50]}"

    def is_scheduled(self, now=None):
        """True while the post waits for its publication time."""
        if self.scheduled_for is None:
            return False
        return self.scheduled_for > (now or dj_timezone.now())


class PostMedia(models.Model):
    """
    Media attachment for a post.

    Attributes:
        post (ForeignKey): Owning post
        url (URLField): Public URL returned by the media store
        public_id (CharField): Media store identifier used for deletion
        media_type (CharField): 'image' or 'video'
        position (PositiveSmallIntegerField): Display order
    """

    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name='media',
        help_text="Post this media belongs to"
    )
    url = models.URLField(
        max_length=500,
        help_text="Public media URL"
    )
    public_id = models.CharField(
        max_length=255,
        blank=True,
        help_text="Identifier in the media store"
    )
    media_type = models.CharField(
        max_length=10,
        choices=[('image', 'Image'), ('video', 'Video')],
        default='image'
    )
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']


class PollOption(models.Model):
    """One choice of a post's poll."""

    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name='poll_options'
    )
    text = models.CharField(max_length=100)
    votes = models.ManyToManyField(
        User,
        related_name='poll_votes',
        blank=True
    )
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']

    def __str__(self):
        return self.text


# ============================================================================
# SECTION 3: SOCIAL RELATIONSHIP MODELS
# ============================================================================

class Follow(models.Model):
    """
    One-way follow connection.

    User A can follow User B without B following back.

    Example:
        Follow.objects.create(follower=user_a, followed=user_b)
    """

    follower = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='following',
        help_text="User who is following"
    )
    followed = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='followers',
        help_text="User being followed"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('follower', 'followed')


class Block(models.Model):
    """
    One-way block.

    The blocker no longer sees the blocked user's posts in the home feed, and
    neither side can follow the other while the block exists.
    """

    blocker = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='blocks',
        help_text="User who initiated the block"
    )
    blocked = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='blocked_by',
        help_text="User who is blocked"
    )
    timestamp = models.DateTimeField(
        auto_now_add=True,
        help_text="Block creation timestamp"
    )

    class Meta:
        unique_together = ('blocker', 'blocked')


# ============================================================================
# SECTION 4: NOTIFICATION MODELS
# ============================================================================

class Notification(models.Model):
    """
    Activity notification.

    Lifecycle: created unread by a mutation of someone other than the
    recipient, flipped to read by the recipient, removed only on an explicit
    delete/clear by the recipient. A repeated interaction creates a new row.

    Attributes:
        recipient (ForeignKey): User receiving the notification
        sender (ForeignKey): User who performed the action
        type (CharField): like / comment / follow / mention / repost / system
        post (ForeignKey): Post the action targeted (if any)
        comment (ForeignKey): Reply post for 'comment' notifications
        read (BooleanField): Read status
        created_at (DateTimeField): Creation timestamp
    """

    recipient = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='notifications',
        help_text="User receiving this notification"
    )
    sender = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name='sent_notifications',
        help_text="User who performed the action"
    )
    type = models.CharField(
        max_length=10,
        choices=NOTIFICATION_TYPES
    )
    post = models.ForeignKey(
        Post,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text="Associated post (if applicable)"
    )
    comment = models.ForeignKey(
        Post,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text="Reply that triggered a 'comment' notification"
    )
    read = models.BooleanField(
        default=False,
        help_text="Whether notification has been read"
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="Notification creation timestamp"
    )

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient', 'read'], name='notif_recipient_read_idx'),
        ]

    def __str__(self):
        return f"{self.type} for {self.recipient_id} from {self.sender_id}"


# ============================================================================
# SECTION 5: MESSAGING SYSTEM MODELS
# ============================================================================

class Conversation(models.Model):
    """
    Chat conversation (DM or group).

    Typing indicators and read receipts are delivered to the conversation's
    real-time room, which every member's sessions join on connect.
    """

    name = models.CharField(
        max_length=255,
        blank=True,
        help_text="Conversation name (groups only)"
    )
    is_group = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        User,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='created_conversations'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at', '-id']

    def __str__(self):
        if self.is_group:
            return self.name or f"Group #{self.id}"
        return f"DM #{self.id}"


class ConversationMember(models.Model):
    """Membership of a user in a conversation."""

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name='members'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='conversation_memberships'
    )
    joined_at = models.DateTimeField(auto_now_add=True)
    last_read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = ('conversation', 'user')

    def __str__(self):
        return f"{self.user} in {self.conversation}"


class Message(models.Model):
    """Chat message in a conversation."""

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name='messages'
    )
    sender = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='sent_messages'
    )
    content = models.TextField(max_length=1000)
    created_at = models.DateTimeField(auto_now_add=True)
    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Set when another member reads the message"
    )

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"[Room {self.conversation_id}] {self.sender}: {self.content[:30]}"
