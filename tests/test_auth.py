import pytest

from chirp import auth
from chirp.exceptions import BadRequest, ChirpError, Conflict, NotFound, Unauthenticated
from chirp.models import User

from conftest import PASSWORD


class LinkRecorder:

    def __init__(self):
        self.tokens = []

    def __call__(self, raw_token):
        self.tokens.append(raw_token)
        return f"https://chirp.example.com/verify/{raw_token}"


def test_register_sends_verification_link(db, mailoutbox):
    links = LinkRecorder()
    user = auth.register('newbie', 'Newbie@Example.com', PASSWORD, 'New Bie', links)

    assert user.email == 'newbie@example.com'
    assert not user.is_verified
    [email] = mailoutbox
    assert email.to == ['newbie@example.com']
    assert links.tokens[0] in email.alternatives[0][0]

    verified = auth.verify_email(links.tokens[0])
    assert verified.is_verified
    with pytest.raises(BadRequest):
        auth.verify_email(links.tokens[0])


def test_register_survives_email_failure(db, monkeypatch):
    def broken(*args, **kwargs):
        raise ConnectionError("smtp down")
    monkeypatch.setattr(auth, 'send_account_email', broken)

    user = auth.register('newbie', 'newbie@example.com', PASSWORD, 'New Bie', LinkRecorder())

    user.refresh_from_db()
    assert user.email_verification_token is None
    assert auth.login('newbie@example.com', PASSWORD).id == user.id


@pytest.mark.parametrize('username,email,password,name', [
    ('ab', 'ok@example.com', PASSWORD, 'Name'),
    ('good_name', 'not-an-email', PASSWORD, 'Name'),
    ('good_name', 'ok@example.com', 'short', 'Name'),
    ('good_name', 'ok@example.com', PASSWORD, ''),
])
def test_register_validation(db, username, email, password, name):
    with pytest.raises(BadRequest):
        auth.register(username, email, password, name, LinkRecorder())


def test_register_duplicates_conflict(alice):
    with pytest.raises(Conflict):
        auth.register('other', 'ALICE@example.com', PASSWORD, 'Other', LinkRecorder())
    with pytest.raises(Conflict):
        auth.register('Alice', 'other@example.com', PASSWORD, 'Other', LinkRecorder())


def test_login_and_token_round_trip(alice):
    user = auth.login('Alice@Example.com', PASSWORD)
    token = auth.issue_token(user)

    assert auth.user_from_token(token).id == alice.id
    user.refresh_from_db()
    assert user.last_active is not None


def test_login_rejects_bad_credentials(alice):
    with pytest.raises(Unauthenticated):
        auth.login('alice@example.com', 'wrong-password')
    with pytest.raises(Unauthenticated):
        auth.login('nobody@example.com', PASSWORD)
    with pytest.raises(BadRequest):
        auth.login('', '')


@pytest.mark.parametrize('token', ['', None, 'garbage', 'a.b.c'])
def test_bad_tokens_are_unauthenticated(db, token):
    with pytest.raises(Unauthenticated):
        auth.user_from_token(token)


def test_expired_token_is_unauthenticated(alice, settings):
    settings.CHIRP_JWT_EXPIRE_DAYS = -1
    token = auth.issue_token(alice)
    with pytest.raises(Unauthenticated):
        auth.user_from_token(token)


def test_token_for_inactive_user_is_unauthenticated(alice):
    token = auth.issue_token(alice)
    User.objects.filter(pk=alice.pk).update(is_active=False)
    with pytest.raises(Unauthenticated):
        auth.user_from_token(token)


def test_header_wins_over_cookie():
    assert auth.token_from_headers('Bearer abc', 'cookie') == 'abc'
    assert auth.token_from_headers('', 'cookie') == 'cookie'
    assert auth.token_from_headers('Basic xyz', None) is None


def test_password_reset_flow(alice, mailoutbox):
    links = LinkRecorder()
    auth.forgot_password('alice@example.com', links)
    assert len(mailoutbox) == 1

    auth.reset_password(links.tokens[0], 'brand-new-pass')

    assert auth.login('alice@example.com', 'brand-new-pass').id == alice.id
    with pytest.raises(BadRequest):
        auth.reset_password(links.tokens[0], 'another-pass')


def test_forgot_password_errors(alice, monkeypatch):
    with pytest.raises(NotFound):
        auth.forgot_password('nobody@example.com', LinkRecorder())

    def broken(*args, **kwargs):
        raise ConnectionError("smtp down")
    monkeypatch.setattr(auth, 'send_account_email', broken)
    with pytest.raises(ChirpError):
        auth.forgot_password('alice@example.com', LinkRecorder())
    alice.refresh_from_db()
    assert alice.reset_password_token is None


def test_update_password_checks_current(alice):
    with pytest.raises(Unauthenticated):
        auth.update_password(alice, 'wrong', 'another-long-pass')

    auth.update_password(alice, PASSWORD, 'another-long-pass')
    assert auth.login('alice@example.com', 'another-long-pass').id == alice.id


def test_update_details(alice, bob):
    updated = auth.update_details(alice, {'bio': "Hello there", 'name': None})
    assert updated.bio == "Hello there"
    assert updated.name == 'Alice'

    with pytest.raises(Conflict):
        auth.update_details(alice, {'email': 'BOB@example.com'})
    with pytest.raises(BadRequest):
        auth.update_details(alice, {'email': 'nope'})
    with pytest.raises(BadRequest):
        auth.update_details(alice, {'email': 5})
    with pytest.raises(BadRequest):
        auth.update_details(alice, {'bio': ['not', 'text']})
