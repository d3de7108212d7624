import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from chirp import feed, posts
from chirp.auth import issue_token
from chirp.models import Notification

from conftest import PASSWORD, auth_header, follow


def _json(client, method, url, data=None, user=None, **extra):
    if user is not None:
        extra.update(auth_header(user))
    call = getattr(client, method)
    if data is None:
        return call(url, **extra)
    return call(url, data, content_type='application/json', **extra)


# ============================================================================
# AUTH
# ============================================================================

def test_register_returns_token_and_sets_cookie(client, db, mailoutbox):
    response = client.post('/api/auth/register', {
        'username': 'newbie', 'email': 'newbie@example.com',
        'password': PASSWORD, 'name': 'New Bie',
    }, content_type='application/json')

    body = response.json()
    assert response.status_code == 201
    assert body['success'] is True
    assert body['data']['user']['username'] == 'newbie'
    assert response.cookies['token'].value == body['data']['token']
    assert '/api/auth/verify-email/' in mailoutbox[0].alternatives[0][0]


def test_login_and_me(client, alice):
    response = _json(client, 'post', '/api/auth/login', {'email': 'alice@example.com', 'password': PASSWORD})
    token = response.json()['data']['token']

    me = client.get('/api/auth/me', HTTP_AUTHORIZATION=f"Bearer {token}")
    assert me.json()['data']['email'] == 'alice@example.com'


def test_bad_login_is_401_envelope(client, alice):
    response = _json(client, 'post', '/api/auth/login', {'email': 'alice@example.com', 'password': 'nope'})
    assert response.status_code == 401
    assert response.json() == {'success': False, 'error': "Invalid credentials"}


def test_cookie_authenticates_when_no_header(client, alice):
    client.cookies['token'] = issue_token(alice)
    assert client.get('/api/auth/me').json()['data']['username'] == 'alice'


def test_invalid_token_is_unauthenticated(client, db):
    response = client.get('/api/auth/me', HTTP_AUTHORIZATION="Bearer not-a-jwt")
    assert response.status_code == 401
    assert response.json()['success'] is False


def test_logout_clears_cookie(client, alice):
    response = _json(client, 'post', '/api/auth/logout', user=alice)
    assert response.status_code == 200
    assert response.cookies['token'].value == ''


def test_update_password_issues_new_token(client, alice):
    response = _json(client, 'put', '/api/auth/updatepassword', {
        'current_password': PASSWORD, 'new_password': 'another-long-pass',
    }, user=alice)
    assert response.status_code == 200
    assert response.json()['data']['token']


def test_update_details(client, alice):
    response = _json(client, 'put', '/api/auth/updatedetails', {'bio': "Birds"}, user=alice)
    assert response.json()['data']['bio'] == "Birds"

    response = _json(client, 'put', '/api/auth/updatedetails', {'email': 5}, user=alice)
    assert response.status_code == 400
    assert response.json()['error'] == "email must be a string"


def test_forgot_and_reset_password(client, alice, mailoutbox):
    response = _json(client, 'post', '/api/auth/forgotpassword', {'email': 'alice@example.com'})
    assert response.json() == {'success': True, 'data': "Email sent"}

    html = mailoutbox[0].alternatives[0][0]
    token = html.split('/api/auth/resetpassword/')[1].split('"')[0]
    reset = _json(client, 'put', f'/api/auth/resetpassword/{token}', {'password': 'brand-new-pass'})
    assert reset.status_code == 200
    assert reset.json()['data']['user']['id'] == alice.id


# ============================================================================
# POSTS
# ============================================================================

def test_create_post_and_read_it_back(client, alice):
    response = _json(client, 'post', '/api/posts', {'content': "Hello #world"}, user=alice)
    assert response.status_code == 201
    post_id = response.json()['data']['id']

    detail = client.get(f'/api/posts/{post_id}').json()['data']
    assert detail['hashtags'] == ['world']
    assert detail['author']['username'] == 'alice'
    assert detail['likes_count'] == 0


def test_create_post_requires_auth(client, db):
    response = _json(client, 'post', '/api/posts', {'content': "anon"})
    assert response.status_code == 401
    assert response.json()['error'] == "Not authorized to access this route"


def test_create_post_validation_is_400(client, alice):
    response = _json(client, 'post', '/api/posts', {'content': "x" * 281}, user=alice)
    assert response.status_code == 400
    assert response.json()['success'] is False


@pytest.mark.parametrize('payload', [
    {'content': "hi", 'is_reply': 'true', 'parent_post': 'abc'},
    {'content': "hi", 'is_quote': True, 'quoted_post': '1.5'},
])
def test_non_numeric_post_reference_is_400(client, alice, payload):
    response = _json(client, 'post', '/api/posts', payload, user=alice)
    assert response.status_code == 400
    assert response.json()['success'] is False
    assert response.json()['error'].endswith("must be an integer")


def test_malformed_json_is_400(client, alice):
    response = client.post('/api/posts', 'not json', content_type='application/json', **auth_header(alice))
    assert response.status_code == 400
    assert response.json()['error'] == "Malformed JSON body"


def test_create_post_with_media_upload(client, alice, media_store):
    upload = SimpleUploadedFile('cat.png', b'png', content_type='image/png')

    response = client.post('/api/posts', {'content': "cat", 'media': [upload]}, **auth_header(alice))

    assert response.status_code == 201
    assert response.json()['data']['media'] == ["https://media.example.com/posts/cat.png"]


def test_create_post_with_poll(client, alice):
    response = _json(client, 'post', '/api/posts', {
        'content': "Best bird?", 'poll': {'options': ['robin', 'wren']},
    }, user=alice)
    post_id = response.json()['data']['id']

    voted = _json(client, 'post', f'/api/posts/{post_id}/vote', {'option': 1}, user=alice)
    assert voted.json()['data']['poll']['options'][1]['votes'] == [alice.id]


def test_feed_envelope_has_count_and_has_more(client, alice, bob):
    follow(alice, bob)
    for i in range(3):
        posts.create_post(bob.id, f"post {i}")

    body = client.get('/api/posts/feed?limit=2', **auth_header(alice)).json()

    assert body['success'] is True
    assert body['count'] == 2
    assert body['has_more'] is True
    assert [p['content'] for p in body['data']] == ["post 2", "post 1"]


def test_feed_bad_page_is_400(client, alice):
    response = client.get('/api/posts/feed?page=0', **auth_header(alice))
    assert response.status_code == 400


def test_post_status_codes(client, alice, bob):
    post = posts.create_post(bob.id, "hello")

    assert client.get('/api/posts/999999').status_code == 404
    assert _json(client, 'delete', f'/api/posts/{post.id}', user=alice).status_code == 403
    assert _json(client, 'delete', f'/api/posts/{post.id}', user=bob).status_code == 200
    assert client.get(f'/api/posts/{post.id}').status_code == 410


def test_wrong_method_is_405(client, alice):
    post = posts.create_post(alice.id, "hello")
    response = client.get(f'/api/posts/{post.id}/like', **auth_header(alice))
    assert response.status_code == 405
    assert response.json()['success'] is False


def test_like_twice_is_409_and_notifies_once(client, alice, bob):
    post = posts.create_post(bob.id, "like me")

    assert _json(client, 'post', f'/api/posts/{post.id}/like', user=alice).status_code == 200
    second = _json(client, 'post', f'/api/posts/{post.id}/like', user=alice)

    assert second.status_code == 409
    assert second.json()['error'] == "Post already liked"
    assert Notification.objects.filter(type='like').count() == 1


def test_repost_and_unlike(client, alice, bob):
    post = posts.create_post(bob.id, "share")

    response = _json(client, 'post', f'/api/posts/{post.id}/repost', user=alice)
    assert response.status_code == 201
    assert response.json()['data']['original_post']['id'] == post.id
    assert _json(client, 'post', f'/api/posts/{post.id}/unlike', user=alice).status_code == 409


def test_edit_scheduled_post(client, alice):
    response = _json(client, 'post', '/api/posts', {
        'content': "draft", 'scheduled_for': '2999-01-01T00:00:00Z',
    }, user=alice)
    post_id = response.json()['data']['id']

    edited = _json(client, 'put', f'/api/posts/{post_id}', {'content': "final"}, user=alice)
    assert edited.json()['data']['content'] == "final"
    assert client.get(f'/api/posts/{post_id}').status_code == 404


def test_replies_and_user_posts(client, alice, bob):
    parent = posts.create_post(alice.id, "parent")
    reply = posts.create_post(bob.id, "reply", is_reply=True, parent_post_id=parent.id)

    replies = client.get(f'/api/posts/{parent.id}/replies').json()
    assert [p['id'] for p in replies['data']] == [reply.id]
    assert replies['data'][0]['parent_post']['id'] == parent.id

    mine = client.get(f'/api/posts/user/{alice.id}').json()
    assert [p['id'] for p in mine['data']] == [parent.id]


def test_unhandled_error_is_500_envelope(client, alice, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("boom")
    monkeypatch.setattr(feed, 'get_feed', explode)

    response = client.get('/api/posts/feed', **auth_header(alice))

    assert response.status_code == 500
    assert response.json() == {'success': False, 'error': "Server Error"}


# ============================================================================
# USERS
# ============================================================================

def test_follow_toggle_returns_counts(client, alice, bob):
    response = _json(client, 'post', f'/api/users/{bob.id}/follow', user=alice)
    assert response.json()['data'] == {
        'action': 'followed', 'followers_count': 1, 'following_count': 0, 'is_online': False,
    }

    again = _json(client, 'post', f'/api/users/{bob.id}/follow', user=alice)
    assert again.json()['data']['action'] == 'unfollowed'


def test_block_then_follow_is_403(client, alice, bob):
    assert _json(client, 'post', f'/api/users/{bob.id}/block', user=alice).json()['data'] == {'action': 'blocked'}
    assert _json(client, 'post', f'/api/users/{alice.id}/follow', user=bob).status_code == 403


def test_user_profile(client, alice, bob):
    follow(bob, alice)
    data = client.get(f'/api/users/{alice.id}').json()['data']
    assert data['username'] == 'alice'
    assert data['followers_count'] == 1
    assert 'email' not in data
    assert client.get('/api/users/424242').status_code == 404


# ============================================================================
# NOTIFICATIONS
# ============================================================================

def test_notification_endpoints(client, alice, bob, carol):
    post = posts.create_post(bob.id, "hi")
    posts.like(post.id, alice.id)
    posts.like(post.id, carol.id)
    first = Notification.objects.filter(sender=alice).get()

    listed = _json(client, 'get', '/api/notifications', user=bob).json()
    assert listed['count'] == 2
    assert _json(client, 'get', '/api/notifications/unread/count', user=bob).json()['data'] == {'count': 2}

    read = _json(client, 'patch', f'/api/notifications/{first.id}/read', user=bob)
    assert read.json()['data']['read'] is True
    _json(client, 'patch', f'/api/notifications/{first.id}/read', user=bob)
    assert _json(client, 'get', '/api/notifications/unread/count', user=bob).json()['data'] == {'count': 1}

    assert _json(client, 'patch', '/api/notifications/read-all', user=bob).json()['data'] == {'updated': 1}
    assert _json(client, 'delete', f'/api/notifications/{first.id}', user=bob).status_code == 200
    assert _json(client, 'delete', '/api/notifications/clear-all', user=bob).json()['data'] == {'deleted': 1}


def test_other_users_notification_is_404(client, alice, bob):
    post = posts.create_post(bob.id, "hi")
    posts.like(post.id, alice.id)
    notification = Notification.objects.get()

    assert _json(client, 'patch', f'/api/notifications/{notification.id}/read', user=alice).status_code == 404


# ============================================================================
# MESSAGES
# ============================================================================

def test_conversation_flow(client, alice, bob, carol):
    opened = _json(client, 'post', '/api/messages/conversations', {'user_id': bob.id}, user=alice)
    assert opened.status_code == 201
    conversation_id = opened.json()['data']['id']

    reopened = _json(client, 'post', '/api/messages/conversations', {'user_id': alice.id}, user=bob)
    assert reopened.status_code == 200
    assert reopened.json()['data']['id'] == conversation_id

    sent = _json(client, 'post', f'/api/messages/conversations/{conversation_id}', {'content': "hey"}, user=alice)
    assert sent.status_code == 201

    history = _json(client, 'get', f'/api/messages/conversations/{conversation_id}', user=bob).json()
    assert [m['content'] for m in history['data']] == ["hey"]

    listed = _json(client, 'get', '/api/messages/conversations', user=alice).json()
    assert listed['count'] == 1
    assert listed['data'][0]['last_message']['content'] == "hey"

    outsider = _json(client, 'get', f'/api/messages/conversations/{conversation_id}', user=carol)
    assert outsider.status_code == 404


@pytest.mark.parametrize('user_id', ['abc', None])
def test_open_conversation_needs_integer_user_id(client, alice, user_id):
    response = _json(client, 'post', '/api/messages/conversations', {'user_id': user_id}, user=alice)
    assert response.status_code == 400
