"""
Bearer tokens and account operations.

Tokens are HS256 JWTs carrying the user id. They are read from the
``Authorization: Bearer`` header first and the ``token`` cookie second, for
HTTP requests and for the WebSocket handshake alike.
"""

import hashlib
import logging
import re
from datetime import timedelta
from functools import wraps

import jwt
from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.core.mail import EmailMultiAlternatives
from django.db import IntegrityError
from django.utils import timezone
from django.utils.crypto import get_random_string
from django.utils.html import strip_tags

from .exceptions import BadRequest, ChirpError, Conflict, NotFound, Unauthenticated
from .models import User

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r'^[A-Za-z0-9_]{3,20}$')
EMAIL_RE = re.compile(r'^[\w.+-]+@([\w-]+\.)+[\w-]{2,}$')

VERIFICATION_TTL = timedelta(hours=24)
RESET_TTL = timedelta(minutes=10)


# ============================================================================
# TOKENS
# ============================================================================

def issue_token(user):
    now = timezone.now()
    payload = {
        'id': user.pk,
        'iat': int(now.timestamp()),
        'exp': int((now + timedelta(days=settings.CHIRP_JWT_EXPIRE_DAYS)).timestamp()),
    }
    return jwt.encode(payload, settings.CHIRP_JWT_SECRET, algorithm='HS256')


def user_from_token(token):
    """Return the active user a token belongs to, or raise Unauthenticated."""
    if not token:
        raise Unauthenticated()
    try:
        payload = jwt.decode(token, settings.CHIRP_JWT_SECRET, algorithms=['HS256'])
    except jwt.PyJWTError:
        raise Unauthenticated()
    try:
        return User.objects.get(pk=payload.get('id'), is_active=True)
    except User.DoesNotExist:
        raise Unauthenticated()


def token_from_headers(authorization, cookie_token=None):
    if authorization and authorization.startswith('Bearer '):
        return authorization.split(' ', 1)[1].strip()
    return cookie_token or None


def token_from_request(request):
    return token_from_headers(
        request.headers.get('Authorization', ''),
        request.COOKIES.get('token'),
    )


def api_login_required(view):
    """Like Django's login_required, but answers 401 instead of redirecting."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            raise Unauthenticated()
        return view(request, *args, **kwargs)
    return wrapper


def _hash_token(raw):
    return hashlib.sha256(raw.encode()).hexdigest()


# ============================================================================
# EMAIL
# ============================================================================

def send_account_email(user, subject, heading, text, link):
    html_message = f"""
    <h1>{heading}</h1>
    <p>{text}</p>
    <a href="{link}" target="_blank">{heading}</a>
    """
    email_msg = EmailMultiAlternatives(
        subject=subject,
        body=strip_tags(html_message),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[user.email],
    )
    email_msg.attach_alternative(html_message, "text/html")
    email_msg.send(fail_silently=False)


# ============================================================================
# ACCOUNT OPERATIONS
# ============================================================================

def register(username, email, password, name, verify_url_for):
    """
    Create an account and email a verification link.

    ``verify_url_for(raw_token)`` builds the absolute link. A failed email
    does not roll back the account: the user can log in right away and the
    verification token is cleared so it can be re-issued later.
    """
    username = (username or '').strip()
    email = (email or '').strip().lower()
    name = (name or '').strip()

    errors = []
    if not USERNAME_RE.match(username):
        errors.append("Username must be 3-20 letters, numbers or underscores.")
    if not EMAIL_RE.match(email):
        errors.append("Please provide a valid email.")
    if not name:
        errors.append("Please provide a name.")
    elif len(name) > 50:
        errors.append("Name cannot exceed 50 characters.")
    if not password or len(password) < 8:
        errors.append("Password must be at least 8 characters long.")
    if errors:
        raise BadRequest(" ".join(errors))

    if User.objects.filter(email__iexact=email).exists():
        raise Conflict("Email already in use")
    if User.objects.filter(username__iexact=username).exists():
        raise Conflict("Username already taken")

    try:
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            name=name,
        )
    except IntegrityError as e:
        logger.warning(f"IntegrityError during registration: {e}")
        raise Conflict("Username or email already taken")

    raw_token = get_random_string(40)
    user.email_verification_token = _hash_token(raw_token)
    user.email_verification_expire = timezone.now() + VERIFICATION_TTL
    user.save(update_fields=['email_verification_token', 'email_verification_expire'])

    try:
        send_account_email(
            user,
            subject='Email Verification',
            heading='Verify Email',
            text='Please click the link below to verify your email address:',
            link=verify_url_for(raw_token),
        )
        logger.info(f"Registration success for {email}. Verification email sent.")
    except Exception as email_error:
        logger.error(f"Verification email failed for {email}: {email_error}")
        user.email_verification_token = None
        user.email_verification_expire = None
        user.save(update_fields=['email_verification_token', 'email_verification_expire'])

    return user


def login(email, password):
    email = (email or '').strip().lower()
    if not email or not password:
        raise BadRequest("Please provide an email and password")
    try:
        user = User.objects.get(email__iexact=email)
    except User.DoesNotExist:
        raise Unauthenticated("Invalid credentials")
    if not user.is_active or not user.check_password(password):
        raise Unauthenticated("Invalid credentials")
    user.last_active = timezone.now()
    user.last_login = user.last_active
    user.save(update_fields=['last_active', 'last_login'])
    return user


PROFILE_FIELDS = ('name', 'email', 'bio', 'location', 'website')


def update_details(user, fields):
    changes = {k: fields[k] for k in PROFILE_FIELDS if fields.get(k) is not None}
    for field, value in changes.items():
        if not isinstance(value, str):
            raise BadRequest(f"{field} must be a string")
    if 'email' in changes:
        changes['email'] = changes['email'].strip().lower()
        if not EMAIL_RE.match(changes['email']):
            raise BadRequest("Please provide a valid email.")
        if User.objects.filter(email__iexact=changes['email']).exclude(pk=user.pk).exists():
            raise Conflict("Email already in use")
    for field, value in changes.items():
        setattr(user, field, value)
    try:
        user.full_clean(exclude=['password', 'username'])
    except ValidationError as e:
        raise BadRequest("; ".join(e.messages))
    user.save()
    return user


def update_password(user, current_password, new_password):
    if not user.check_password(current_password or ''):
        raise Unauthenticated("Password is incorrect")
    try:
        validate_password(new_password or '', user)
    except ValidationError as e:
        raise BadRequest(" ".join(e.messages))
    user.set_password(new_password)
    user.save(update_fields=['password'])
    return user


def forgot_password(email, reset_url_for):
    try:
        user = User.objects.get(email__iexact=(email or '').strip())
    except User.DoesNotExist:
        raise NotFound("There is no user with that email")

    raw_token = get_random_string(40)
    user.reset_password_token = _hash_token(raw_token)
    user.reset_password_expire = timezone.now() + RESET_TTL
    user.save(update_fields=['reset_password_token', 'reset_password_expire'])

    try:
        send_account_email(
            user,
            subject='Password Reset',
            heading='Reset Password',
            text='You are receiving this email because a password reset was requested.',
            link=reset_url_for(raw_token),
        )
    except Exception as email_error:
        logger.error(f"Password reset email failed for {user.email}: {email_error}")
        user.reset_password_token = None
        user.reset_password_expire = None
        user.save(update_fields=['reset_password_token', 'reset_password_expire'])
        raise ChirpError("Email could not be sent")
    return user


def reset_password(raw_token, new_password):
    try:
        user = User.objects.get(
            reset_password_token=_hash_token(raw_token or ''),
            reset_password_expire__gt=timezone.now(),
        )
    except User.DoesNotExist:
        raise BadRequest("Invalid token")
    if not new_password or len(new_password) < 8:
        raise BadRequest("Password must be at least 8 characters long.")
    user.set_password(new_password)
    user.reset_password_token = None
    user.reset_password_expire = None
    user.save(update_fields=['password', 'reset_password_token', 'reset_password_expire'])
    return user


def verify_email(raw_token):
    try:
        user = User.objects.get(
            email_verification_token=_hash_token(raw_token or ''),
            email_verification_expire__gt=timezone.now(),
        )
    except User.DoesNotExist:
        raise BadRequest("Invalid token")
    user.is_verified = True
    user.email_verification_token = None
    user.email_verification_expire = None
    user.save(update_fields=['is_verified', 'email_verification_token', 'email_verification_expire'])
    return user
