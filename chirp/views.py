import json
import logging
from functools import wraps

from django.conf import settings
from django.http import JsonResponse, QueryDict
from django.urls import reverse
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django.views.decorators.csrf import csrf_exempt

from . import auth, feed, messaging, notifications, posts, users
from .auth import api_login_required
from .exceptions import BadRequest, MethodNotAllowed, Unauthenticated
from .serializers import (
    serialize_message, serialize_notification, serialize_post,
    serialize_profile, serialize_user_private,
)

# Logger
logger = logging.getLogger(__name__)


# ============================================================================
# REQUEST / RESPONSE HELPERS
# ============================================================================

def allow_methods(*methods):
    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if request.method not in methods:
                raise MethodNotAllowed(f"Method {request.method} not allowed")
            return view(request, *args, **kwargs)
        return wrapper
    return decorator


def ok(data=None, status=200, **extra):
    return JsonResponse({'success': True, 'data': data, **extra}, status=status)


def page_response(page, serializer):
    return ok(
        [serializer(item) for item in page.items],
        count=len(page.items),
        has_more=page.has_more,
    )


def request_data(request):
    """JSON body, or form fields for multipart/urlencoded requests."""
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except ValueError:
            raise BadRequest("Malformed JSON body")
        if not isinstance(data, dict):
            raise BadRequest("JSON body must be an object")
        return data
    if request.method != 'POST':
        # Django only parses form bodies for POST
        if request.content_type == 'multipart/form-data':
            raise BadRequest(f"Send {request.method} bodies as JSON or urlencoded form data")
        return QueryDict(request.body).dict()
    return request.POST.dict()


def page_params(request):
    """page/limit query params. Non-numeric values fall back to defaults."""
    def _int(name, default):
        try:
            return int(request.GET.get(name, default))
        except (TypeError, ValueError):
            return default
    page = _int('page', 1)
    limit = min(_int('limit', settings.CHIRP_DEFAULT_PAGE_SIZE), settings.CHIRP_MAX_PAGE_SIZE)
    return page, limit


def as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def as_datetime(value, field):
    if value in (None, ''):
        return None
    parsed = parse_datetime(str(value))
    if parsed is None:
        raise BadRequest(f"Invalid date for {field}")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def as_int(value, field):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(f"{field} must be an integer")


def viewer_id(request):
    return request.user.id if request.user.is_authenticated else None


def require_user(request):
    if not request.user.is_authenticated:
        raise Unauthenticated()
    return request.user


def token_response(user, status=200):
    token = auth.issue_token(user)
    response = ok({'token': token, 'user': serialize_user_private(user)}, status=status)
    response.set_cookie(
        'token',
        token,
        max_age=settings.CHIRP_JWT_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=not settings.DEBUG,
        samesite='Lax',
    )
    return response


# ============================================================================
# AUTH
# ============================================================================

@csrf_exempt
@allow_methods('POST')
def register(request):
    data = request_data(request)
    user = auth.register(
        username=data.get('username'),
        email=data.get('email'),
        password=data.get('password'),
        name=data.get('name'),
        verify_url_for=lambda token: request.build_absolute_uri(reverse('verify_email', args=[token])),
    )
    return token_response(user, status=201)


@csrf_exempt
@allow_methods('POST')
def login_view(request):
    data = request_data(request)
    user = auth.login(data.get('email'), data.get('password'))
    logger.info(f"Login success for user {user.id}")
    return token_response(user)


@csrf_exempt
@allow_methods('POST', 'GET')
def logout_view(request):
    response = ok({})
    response.delete_cookie('token')
    return response


@allow_methods('GET')
@api_login_required
def me(request):
    return ok(serialize_user_private(request.user))


@csrf_exempt
@allow_methods('PUT')
@api_login_required
def update_details(request):
    user = auth.update_details(request.user, request_data(request))
    return ok(serialize_user_private(user))


@csrf_exempt
@allow_methods('PUT')
@api_login_required
def update_password(request):
    data = request_data(request)
    user = auth.update_password(request.user, data.get('current_password'), data.get('new_password'))
    return token_response(user)


@csrf_exempt
@allow_methods('POST')
def forgot_password(request):
    data = request_data(request)
    auth.forgot_password(
        data.get('email'),
        reset_url_for=lambda token: request.build_absolute_uri(reverse('reset_password', args=[token])),
    )
    return ok("Email sent")


@csrf_exempt
@allow_methods('PUT')
def reset_password(request, token):
    user = auth.reset_password(token, request_data(request).get('password'))
    return token_response(user)


@allow_methods('GET')
def verify_email(request, token):
    user = auth.verify_email(token)
    return ok(serialize_user_private(user))


# ============================================================================
# POSTS
# ============================================================================

def _optional_id(data, field):
    value = data.get(field)
    return as_int(value, field) if value not in (None, '') else None


def _poll_from(data):
    poll = data.get('poll')
    if not poll:
        return None
    if isinstance(poll, str):
        try:
            poll = json.loads(poll)
        except ValueError:
            raise BadRequest("poll must be a JSON object")
    if not isinstance(poll, dict):
        raise BadRequest("poll must be a JSON object")
    return {
        'options': poll.get('options') or [],
        'expires_at': as_datetime(poll.get('expires_at'), 'poll.expires_at'),
    }


@csrf_exempt
@allow_methods('POST')
@api_login_required
def create_post(request):
    data = request_data(request)
    post = posts.create_post(
        author_id=request.user.id,
        content=data.get('content'),
        media=request.FILES.getlist('media'),
        is_reply=as_bool(data.get('is_reply')),
        parent_post_id=_optional_id(data, 'parent_post'),
        is_quote=as_bool(data.get('is_quote')),
        quoted_post_id=_optional_id(data, 'quoted_post'),
        scheduled_for=as_datetime(data.get('scheduled_for'), 'scheduled_for'),
        visibility=data.get('visibility') or 'public',
        location=data.get('location') or '',
        poll=_poll_from(data),
    )
    return ok(serialize_post(post), status=201)


@allow_methods('GET')
@api_login_required
def get_feed(request):
    page, limit = page_params(request)
    return page_response(feed.get_feed(request.user.id, page, limit), serialize_post)


@csrf_exempt
@allow_methods('GET', 'PUT', 'DELETE')
def post_detail(request, post_id):
    if request.method == 'GET':
        return ok(serialize_post(feed.get_post(post_id, viewer_id(request))))

    user = require_user(request)
    if request.method == 'PUT':
        data = request_data(request)
        post = posts.update_post(
            post_id,
            user.id,
            data.get('content'),
            scheduled_for=as_datetime(data.get('scheduled_for'), 'scheduled_for'),
        )
        return ok(serialize_post(post))

    posts.delete_post(post_id, user.id)
    return ok({})


@csrf_exempt
@allow_methods('POST')
@api_login_required
def like_post(request, post_id):
    posts.like(post_id, request.user.id)
    return ok({})


@csrf_exempt
@allow_methods('POST')
@api_login_required
def unlike_post(request, post_id):
    posts.unlike(post_id, request.user.id)
    return ok({})


@csrf_exempt
@allow_methods('POST')
@api_login_required
def repost_post(request, post_id):
    created = posts.repost(post_id, request.user.id)
    return ok(serialize_post(created), status=201)


@csrf_exempt
@allow_methods('POST')
@api_login_required
def vote_post(request, post_id):
    option = as_int(request_data(request).get('option'), 'option')
    return ok(serialize_post(posts.vote_poll(post_id, request.user.id, option)))


@allow_methods('GET')
def post_replies(request, post_id):
    page, limit = page_params(request)
    return page_response(feed.get_replies(post_id, viewer_id(request), page, limit), serialize_post)


@allow_methods('GET')
def user_posts(request, user_id):
    page, limit = page_params(request)
    return page_response(feed.get_user_posts(user_id, page, limit), serialize_post)


# ============================================================================
# USERS
# ============================================================================

@allow_methods('GET')
def user_detail(request, user_id):
    user = users.get_user(user_id)
    return ok(serialize_profile(user, **users.profile_counts(user)))


@csrf_exempt
@allow_methods('POST')
@api_login_required
def toggle_follow(request, user_id):
    following = users.toggle_follow(request.user.id, user_id)
    target = users.get_user(user_id)
    return ok({
        'action': 'followed' if following else 'unfollowed',
        **users.profile_counts(target),
    })


@csrf_exempt
@allow_methods('POST')
@api_login_required
def toggle_block(request, user_id):
    blocked = users.toggle_block(request.user.id, user_id)
    return ok({'action': 'blocked' if blocked else 'unblocked'})


# ============================================================================
# NOTIFICATIONS
# ============================================================================

@allow_methods('GET')
@api_login_required
def notification_list(request):
    page, limit = page_params(request)
    result = notifications.list_notifications(request.user.id, page, limit)
    return page_response(result, serialize_notification)


@allow_methods('GET')
@api_login_required
def unread_count(request):
    return ok({'count': notifications.unread_count(request.user.id)})


@csrf_exempt
@allow_methods('PATCH')
@api_login_required
def mark_notification_read(request, notification_id):
    notification = notifications.mark_read(notification_id, request.user.id)
    return ok(serialize_notification(notification))


@csrf_exempt
@allow_methods('PATCH')
@api_login_required
def mark_all_notifications_read(request):
    updated = notifications.mark_all_read(request.user.id)
    return ok({'updated': updated})


@csrf_exempt
@allow_methods('DELETE')
@api_login_required
def delete_notification(request, notification_id):
    notifications.delete_notification(notification_id, request.user.id)
    return ok({})


@csrf_exempt
@allow_methods('DELETE')
@api_login_required
def clear_all_notifications(request):
    deleted = notifications.clear_notifications(request.user.id)
    return ok({'deleted': deleted})


# ============================================================================
# MESSAGES
# ============================================================================

@csrf_exempt
@allow_methods('GET', 'POST')
@api_login_required
def conversations(request):
    if request.method == 'GET':
        items = messaging.list_conversations(request.user.id)
        return ok(items, count=len(items))

    other_id = as_int(request_data(request).get('user_id'), 'user_id')
    conversation, created = messaging.open_direct(request.user.id, other_id)
    return ok(messaging.describe(conversation), status=201 if created else 200)


@csrf_exempt
@allow_methods('GET', 'POST')
@api_login_required
def conversation_detail(request, conversation_id):
    if request.method == 'GET':
        page, limit = page_params(request)
        result = messaging.list_messages(conversation_id, request.user.id, page, limit)
        return page_response(result, serialize_message)

    message = messaging.send_message(conversation_id, request.user.id, request_data(request).get('content'))
    return ok(serialize_message(message), status=201)
