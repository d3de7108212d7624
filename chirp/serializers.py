"""
Plain-dict renderings of Chirp models for JSON responses and live events.

Every value is JSON and msgpack safe (datetimes as ISO strings) so the same
dicts can be returned by views and pushed through the channel layer.
"""


def _iso(value):
    return value.isoformat() if value else None


def serialize_user_public(user):
    if user is None:
        return None
    return {
        'id': user.id,
        'username': user.username,
        'name': user.name,
        'avatar': user.avatar,
        'is_verified': user.is_verified,
    }


def serialize_user_private(user):
    data = serialize_user_public(user)
    data.update({
        'email': user.email,
        'bio': user.bio,
        'cover_image': user.cover_image,
        'location': user.location,
        'website': user.website,
        'birthdate': _iso(user.birthdate),
        'is_admin': user.is_admin,
        'last_active': _iso(user.last_active),
        'date_joined': _iso(user.date_joined),
    })
    return data


def serialize_profile(user, followers_count, following_count, is_online):
    data = serialize_user_public(user)
    data.update({
        'bio': user.bio,
        'cover_image': user.cover_image,
        'location': user.location,
        'website': user.website,
        'followers_count': followers_count,
        'following_count': following_count,
        'is_online': is_online,
        'date_joined': _iso(user.date_joined),
    })
    return data


def _serialize_poll(post):
    options = list(post.poll_options.all())
    if not options:
        return None
    return {
        'expires_at': _iso(post.poll_expires_at),
        'options': [
            {'text': option.text, 'votes': [u.id for u in option.votes.all()]}
            for option in options
        ],
    }


def _serialize_post_fields(post):
    return {
        'id': post.id,
        'author': serialize_user_public(post.author),
        'content': post.content,
        'media': [m.url for m in post.media.all()],
        'hashtags': list(post.hashtags or []),
        'visibility': post.visibility,
        'is_repost': post.is_repost,
        'is_reply': post.is_reply,
        'is_quote': post.is_quote,
        'is_pinned': post.is_pinned,
        'scheduled_for': _iso(post.scheduled_for),
        'location': post.location,
        'created_at': _iso(post.created_at),
        'updated_at': _iso(post.updated_at),
    }


def _serialize_reference(post):
    """One level of embed: the referenced post and its author, no deeper."""
    if post is None:
        return None
    if post.is_deleted:
        return {'id': post.id, 'is_deleted': True}
    data = _serialize_post_fields(post)
    data.update({
        'original_post': post.original_post_id,
        'parent_post': post.parent_post_id,
        'quoted_post': post.quoted_post_id,
    })
    return data


def serialize_post(post):
    data = _serialize_post_fields(post)
    likes = [u.id for u in post.likes.all()]
    reposts = [u.id for u in post.reposts.all()]
    data.update({
        'likes': likes,
        'likes_count': len(likes),
        'reposts': reposts,
        'reposts_count': len(reposts),
        'original_post': _serialize_reference(post.original_post),
        'parent_post': _serialize_reference(post.parent_post),
        'quoted_post': _serialize_reference(post.quoted_post),
        'poll': _serialize_poll(post),
    })
    return data


def serialize_notification(notification):
    return {
        'id': notification.id,
        'recipient': notification.recipient_id,
        'sender': serialize_user_public(notification.sender),
        'type': notification.type,
        'post': notification.post_id,
        'comment': notification.comment_id,
        'read': notification.read,
        'created_at': _iso(notification.created_at),
    }


def serialize_message(message):
    return {
        'id': message.id,
        'conversation': message.conversation_id,
        'sender': serialize_user_public(message.sender),
        'content': message.content,
        'created_at': _iso(message.created_at),
        'read_at': _iso(message.read_at),
    }


def serialize_conversation(conversation, members, last_message=None):
    return {
        'id': conversation.id,
        'name': conversation.name,
        'is_group': conversation.is_group,
        'members': [serialize_user_public(u) for u in members],
        'last_message': serialize_message(last_message) if last_message else None,
        'updated_at': _iso(conversation.updated_at),
    }
