import pytest

from chirp import notifications, posts
from chirp.exceptions import NotFound
from chirp.models import Notification


def test_like_creates_unread_notification_and_pushes_it(alice, bob, channel_layer):
    post = posts.create_post(bob.id, "hello")
    channel_layer.sent.clear()

    posts.like(post.id, alice.id)

    page = notifications.list_notifications(bob.id)
    [notification] = page.items
    assert notification.type == 'like'
    assert notification.sender.username == 'alice'
    assert notification.read is False
    assert notifications.unread_count(bob.id) == 1

    [(room, _, data)] = channel_layer.events('notification')
    assert room == f'user.{bob.id}'
    assert data['id'] == notification.id
    assert data['sender']['username'] == 'alice'


def test_notify_self_is_a_no_op(alice, channel_layer):
    assert notifications.notify(alice, alice.id, 'follow') is None
    assert not Notification.objects.exists()
    assert channel_layer.sent == []


def test_row_survives_failed_push(alice, bob, channel_layer, monkeypatch):
    async def unreachable(group, message):
        raise ConnectionError("layer down")
    monkeypatch.setattr(channel_layer, 'group_send', unreachable)

    notification = notifications.notify(bob, alice, 'follow')

    assert Notification.objects.get().id == notification.id


def test_mark_read_is_idempotent(alice, bob):
    first = notifications.notify(bob, alice, 'follow')
    notifications.notify(bob, alice, 'follow')
    assert notifications.unread_count(bob.id) == 2

    notifications.mark_read(first.id, bob.id)
    notifications.mark_read(first.id, bob.id)

    assert notifications.unread_count(bob.id) == 1


def test_other_users_notification_is_not_found(alice, bob, carol):
    notification = notifications.notify(bob, alice, 'follow')

    with pytest.raises(NotFound):
        notifications.mark_read(notification.id, carol.id)
    with pytest.raises(NotFound):
        notifications.delete_notification(notification.id, carol.id)
    assert Notification.objects.get().read is False


def test_mark_all_read_returns_changed_rows(alice, bob, carol):
    read = notifications.notify(bob, alice, 'follow')
    notifications.notify(bob, carol, 'follow')
    notifications.notify(bob, carol, 'mention')
    notifications.notify(alice, bob, 'follow')
    notifications.mark_read(read.id, bob.id)

    assert notifications.mark_all_read(bob.id) == 2
    assert notifications.unread_count(bob.id) == 0
    assert notifications.unread_count(alice.id) == 1


def test_delete_and_clear_only_touch_own_rows(alice, bob, carol):
    one = notifications.notify(bob, alice, 'follow')
    notifications.notify(bob, carol, 'follow')
    notifications.notify(alice, bob, 'follow')

    notifications.delete_notification(one.id, bob.id)
    assert notifications.list_notifications(bob.id).items[0].sender_id == carol.id

    assert notifications.clear_notifications(bob.id) == 1
    assert notifications.list_notifications(bob.id).items == []
    assert Notification.objects.filter(recipient=alice).count() == 1


def test_retriggered_interaction_creates_new_row(alice, bob):
    post = posts.create_post(bob.id, "hello")
    posts.like(post.id, alice.id)
    posts.unlike(post.id, alice.id)
    posts.like(post.id, alice.id)

    assert Notification.objects.filter(recipient=bob, type='like').count() == 2


def test_list_is_newest_first_and_paginated(alice, bob):
    created = [notifications.notify(bob, alice, 'follow') for _ in range(3)]

    first = notifications.list_notifications(bob.id, page=1, page_size=2)
    second = notifications.list_notifications(bob.id, page=2, page_size=2)

    assert [n.id for n in first.items] == [created[2].id, created[1].id]
    assert first.has_more
    assert [n.id for n in second.items] == [created[0].id]
    assert not second.has_more
