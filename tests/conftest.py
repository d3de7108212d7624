import logging

import pytest
from django.core.cache import cache

from chirp import media, realtime
from chirp.auth import issue_token
from chirp.models import Follow, User

PASSWORD = 's3cret-pass!'


class RecordingLayer:
    """Channel layer stand-in that keeps every group_send."""

    def __init__(self):
        self.sent = []

    async def group_send(self, group, message):
        self.sent.append((group, message))

    def events(self, name=None):
        return [
            (group, message['event'], message['data'])
            for group, message in self.sent
            if name is None or message['event'] == name
        ]


class FakeMediaStore:

    def __init__(self):
        self.stored = []
        self.deleted = []
        self.fail_delete = False

    def store(self, upload, folder):
        public_id = f"{folder}/{upload.name}"
        self.stored.append(public_id)
        return f"https://media.example.com/{public_id}", public_id, media.detect_media_type(upload)

    def delete(self, public_id, media_type='image'):
        if self.fail_delete:
            raise ConnectionError("media store unreachable")
        self.deleted.append(public_id)


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def _propagate_chirp_logs(monkeypatch):
    # The chirp logger stops at its own handler; caplog listens on root
    monkeypatch.setattr(logging.getLogger('chirp'), 'propagate', True)


@pytest.fixture(autouse=True)
def channel_layer(monkeypatch):
    layer = RecordingLayer()
    monkeypatch.setattr(realtime, 'get_channel_layer', lambda: layer)
    return layer


@pytest.fixture(autouse=True)
def media_store(monkeypatch):
    store = FakeMediaStore()
    monkeypatch.setattr(media, '_store', store)
    return store


def make_user(username, **extra):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password=PASSWORD,
        name=username.title(),
        **extra
    )


def follow(follower, followed):
    return Follow.objects.create(follower=follower, followed=followed)


def auth_header(user):
    return {'HTTP_AUTHORIZATION': f"Bearer {issue_token(user)}"}


@pytest.fixture
def alice(db):
    return make_user('alice')


@pytest.fixture
def bob(db):
    return make_user('bob')


@pytest.fixture
def carol(db):
    return make_user('carol')


@pytest.fixture
def admin_user(db):
    return make_user('moderator', is_staff=True)
