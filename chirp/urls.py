"""
================================================================================
CHIRP - API URL CONFIGURATION
================================================================================

@file        urls.py
@description REST routes of the Chirp API, mounted under /api/

URL STRUCTURE OVERVIEW
================================================================================
1. Authentication (/api/auth/...)
2. Posts (/api/posts/...)
3. Users & social graph (/api/users/...)
4. Notifications (/api/notifications/...)
5. Messaging (/api/messages/...)

The WebSocket route (/ws/) lives in chirp/routing.py.

RESPONSE ENVELOPE
================================================================================
Success:  {"success": true, "data": ..., "count"?: n, "has_more"?: bool}
Failure:  {"success": false, "error": "message"}

Failures are produced by chirp.middleware.ApiErrorMiddleware.

URL PARAMETER TYPES
================================================================================
- <int:post_id>, <int:user_id>, <int:notification_id>, <int:conversation_id>
- <str:token>: raw email verification / password reset token

================================================================================
"""

from django.urls import path

from . import views


urlpatterns = [

    # ========================================================================
    # SECTION 1: AUTHENTICATION
    # ========================================================================

    path("auth/register", views.register, name="register"),
    path("auth/login", views.login_view, name="login"),
    path("auth/logout", views.logout_view, name="logout"),
    path("auth/me", views.me, name="me"),
    path("auth/updatedetails", views.update_details, name="update_details"),
    path("auth/updatepassword", views.update_password, name="update_password"),
    path("auth/forgotpassword", views.forgot_password, name="forgot_password"),
    path(
        "auth/resetpassword/<str:token>",
        views.reset_password,
        name="reset_password"
    ),  # Link target of the password reset email
    path(
        "auth/verify-email/<str:token>",
        views.verify_email,
        name="verify_email"
    ),  # Link target of the verification email


    # ========================================================================
    # SECTION 2: POSTS
    # ========================================================================

    path("posts", views.create_post, name="create_post"),
    path("posts/feed", views.get_feed, name="feed"),
    path("posts/user/<int:user_id>", views.user_posts, name="user_posts"),
    path("posts/<int:post_id>", views.post_detail, name="post_detail"),
    path("posts/<int:post_id>/like", views.like_post, name="like_post"),
    path("posts/<int:post_id>/unlike", views.unlike_post, name="unlike_post"),
    path("posts/<int:post_id>/repost", views.repost_post, name="repost_post"),
    path("posts/<int:post_id>/vote", views.vote_post, name="vote_post"),
    path("posts/<int:post_id>/replies", views.post_replies, name="post_replies"),


    # ========================================================================
    # SECTION 3: USERS & SOCIAL GRAPH
    # ========================================================================

    path("users/<int:user_id>", views.user_detail, name="user_detail"),
    path("users/<int:user_id>/follow", views.toggle_follow, name="toggle_follow"),
    path("users/<int:user_id>/block", views.toggle_block, name="toggle_block"),


    # ========================================================================
    # SECTION 4: NOTIFICATIONS
    # ========================================================================

    path("notifications", views.notification_list, name="notifications"),
    path("notifications/unread/count", views.unread_count, name="unread_count"),
    path(
        "notifications/read-all",
        views.mark_all_notifications_read,
        name="mark_all_notifications_read"
    ),
    path(
        "notifications/clear-all",
        views.clear_all_notifications,
        name="clear_all_notifications"
    ),
    path(
        "notifications/<int:notification_id>/read",
        views.mark_notification_read,
        name="mark_notification_read"
    ),
    path(
        "notifications/<int:notification_id>",
        views.delete_notification,
        name="delete_notification"
    ),


    # ========================================================================
    # SECTION 5: MESSAGING
    # ========================================================================

    path("messages/conversations", views.conversations, name="conversations"),
    path(
        "messages/conversations/<int:conversation_id>",
        views.conversation_detail,
        name="conversation_detail"
    ),
]
