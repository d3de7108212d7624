import pytest

from chirp import messaging
from chirp.exceptions import BadRequest, Forbidden, NotFound
from chirp.models import Block, Conversation, Message


def test_open_direct_creates_once_and_tells_the_other_user(alice, bob, channel_layer):
    conversation, created = messaging.open_direct(alice.id, bob.id)
    again, created_again = messaging.open_direct(bob.id, alice.id)

    assert created and not created_again
    assert again.id == conversation.id
    assert sorted(messaging.member_ids(conversation.id)) == sorted([alice.id, bob.id])
    [(room, _, data)] = channel_layer.events('conversation_created')
    assert room == f'user.{bob.id}'
    assert data['id'] == conversation.id


def test_open_direct_rejects_self_and_blocked(alice, bob):
    with pytest.raises(BadRequest):
        messaging.open_direct(alice.id, alice.id)

    Block.objects.create(blocker=bob, blocked=alice)
    with pytest.raises(Forbidden):
        messaging.open_direct(alice.id, bob.id)
    assert not Conversation.objects.exists()


def test_send_message_pushes_to_conversation_room(alice, bob, channel_layer):
    conversation, _ = messaging.open_direct(alice.id, bob.id)

    message = messaging.send_message(conversation.id, alice.id, "  hi bob  ")

    assert message.content == "hi bob"
    [(room, _, data)] = channel_layer.events('new_message')
    assert room == f'conversation.{conversation.id}'
    assert data['content'] == "hi bob"
    assert data['sender']['username'] == 'alice'


def test_send_message_validation(alice, bob):
    conversation, _ = messaging.open_direct(alice.id, bob.id)

    with pytest.raises(BadRequest):
        messaging.send_message(conversation.id, alice.id, "   ")
    with pytest.raises(BadRequest):
        messaging.send_message(conversation.id, alice.id, "x" * 1001)


def test_block_after_opening_stops_messages(alice, bob):
    conversation, _ = messaging.open_direct(alice.id, bob.id)
    Block.objects.create(blocker=bob, blocked=alice)

    with pytest.raises(Forbidden):
        messaging.send_message(conversation.id, alice.id, "still there?")
    assert not Message.objects.exists()


def test_non_members_see_nothing(alice, bob, carol):
    conversation, _ = messaging.open_direct(alice.id, bob.id)
    messaging.send_message(conversation.id, alice.id, "private")

    with pytest.raises(NotFound):
        messaging.list_messages(conversation.id, carol.id)
    with pytest.raises(NotFound):
        messaging.send_message(conversation.id, carol.id, "let me in")
    assert messaging.list_conversations(carol.id) == []


def test_list_messages_newest_first(alice, bob):
    conversation, _ = messaging.open_direct(alice.id, bob.id)
    sent = [messaging.send_message(conversation.id, alice.id, f"m{i}") for i in range(3)]

    page = messaging.list_messages(conversation.id, bob.id, page=1, page_size=2)

    assert [m.id for m in page.items] == [sent[2].id, sent[1].id]
    assert page.has_more


def test_list_conversations_most_recent_first(alice, bob, carol):
    with_bob, _ = messaging.open_direct(alice.id, bob.id)
    with_carol, _ = messaging.open_direct(alice.id, carol.id)
    messaging.send_message(with_bob.id, bob.id, "bump")

    listed = messaging.list_conversations(alice.id)

    assert [c['id'] for c in listed] == [with_bob.id, with_carol.id]


def test_mark_message_read(alice, bob):
    conversation, _ = messaging.open_direct(alice.id, bob.id)
    message = messaging.send_message(conversation.id, alice.id, "read me")

    assert messaging.mark_message_read(message.id, conversation.id, alice.id).read_at is None
    assert messaging.mark_message_read(message.id, conversation.id, bob.id).read_at is not None
    with pytest.raises(NotFound):
        messaging.mark_message_read(123456, conversation.id, bob.id)
