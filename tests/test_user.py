import time
import pytest

from rankboard.errors import InvalidParam, NotFound, Conflict, Unauthorized, RateLimited
from rankboard.logic import Backend
from rankboard.store import UserStore, ChallengeStore, SubmissionStore

from conftest import make_user, submit_pdf, PNG_DATA, USER_PASSWORD, ROOT_EMAIL, ROOT_PASSWORD

def test_root_admin_bootstrap_is_idempotent(backend: Backend, root: UserStore):
    assert root.is_admin
    again = backend.users.ensure_root_admin('root', ROOT_EMAIL, ROOT_PASSWORD)
    assert again.id==root.id
    assert backend.db.count(UserStore)==1

def test_password_is_hashed(backend: Backend):
    alice = make_user(backend, 'alice')

    assert alice.password_hash!=USER_PASSWORD
    assert backend.users.verify_password(alice, USER_PASSWORD)
    assert not backend.users.verify_password(alice, 'Wrong-pass-1')
    assert 'password_hash' not in alice.describe_json()

@pytest.mark.parametrize('username, email, password, role', [
    ('ab', 'ab@example.com', USER_PASSWORD, 'user'),
    ('alice', 'not-an-email', USER_PASSWORD, 'user'),
    ('alice', 'alice@example.com', 'short', 'user'),
    ('alice', 'alice@example.com', 'alllowercase1!', 'user'),
    ('alice', 'alice@example.com', USER_PASSWORD, 'superuser'),
])
def test_create_validation(backend: Backend, username, email, password, role):
    with pytest.raises(InvalidParam):
        backend.users.create(username, email, password, role)

def test_duplicates_conflict(backend: Backend):
    make_user(backend, 'alice')

    with pytest.raises(Conflict):
        backend.users.create('alice', 'other@example.com', USER_PASSWORD, 'user')
    with pytest.raises(Conflict):
        backend.users.create('alice2', 'alice@example.com', USER_PASSWORD, 'user')

    bob = make_user(backend, 'bob')
    with pytest.raises(Conflict):
        backend.users.update(bob.id, username='alice')

def test_update_and_list(backend: Backend):
    alice = make_user(backend, 'alice')
    make_user(backend, 'bob')

    updated = backend.users.update(alice.id, email='alice@new.example.com', role='admin')
    assert (updated.email, updated.role) == ('alice@new.example.com', 'admin')

    assert [u.username for u in backend.users.list('user')] == ['bob']
    assert [u.username for u in backend.users.list()] == ['root', 'alice', 'bob']

    with pytest.raises(NotFound):
        backend.users.update(9999, username='nobody')

def test_login_logout(backend: Backend):
    alice = make_user(backend, 'alice')

    with pytest.raises(Unauthorized):
        backend.users.login('alice@example.com', 'Wrong-pass-1')
    with pytest.raises(Unauthorized):
        backend.users.login('nobody@example.com', USER_PASSWORD)

    token1 = backend.users.login('alice@example.com', USER_PASSWORD).auth_token
    token2 = backend.users.login('alice@example.com', USER_PASSWORD).auth_token
    assert token1 and token2 and token1!=token2
    assert backend.users.user_by_auth_token(token1) is None
    assert backend.users.user_by_auth_token(token2).id==alice.id

    backend.users.logout(alice.id)
    assert backend.users.user_by_auth_token(token2) is None
    assert backend.users.user_by_auth_token('') is None

def test_password_change_ends_session(backend: Backend):
    make_user(backend, 'alice')
    token = backend.users.login('alice@example.com', USER_PASSWORD).auth_token

    alice = backend.users.get_by_username('alice')
    backend.users.update(alice.id, password='Another-pass-2')

    assert backend.users.user_by_auth_token(token) is None
    backend.users.login('alice@example.com', 'Another-pass-2')

def test_avatar_replace_and_delete(backend: Backend):
    alice = make_user(backend, 'alice')

    fn1 = backend.uploads.save_avatar(alice.id, PNG_DATA, 'me.png')
    backend.users.update_avatar(alice.id, fn1)
    fn2 = backend.uploads.save_avatar(alice.id, PNG_DATA, 'me2.png')
    updated = backend.users.update_avatar(alice.id, fn2)

    assert updated.avatar_filename==fn2
    assert not backend.uploads.path('avatars', fn1).exists()

    assert backend.users.delete_avatar(alice.id).avatar_filename is None
    assert not backend.uploads.path('avatars', fn2).exists()

def test_delete_user_cascades(backend: Backend, root: UserStore):
    admin2 = make_user(backend, 'admin2', 'admin')
    alice = make_user(backend, 'alice')
    bob = make_user(backend, 'bob')

    ch = backend.challenges.create('by admin2', '', int(time.time())+3600, admin2.id)
    other = backend.challenges.create('by root', '', int(time.time())+3600, root.id)
    sid_bob = submit_pdf(backend, ch.id, bob.id)
    sid_alice = submit_pdf(backend, other.id, alice.id)
    backend.scoring.score_or_update(sid_alice, admin2.id, 7, None)

    bob_file = backend.uploads.path('submissions', backend.submissions.get(sid_bob).filename)
    backend.users.delete(admin2.id)

    assert backend.users.get(admin2.id) is None
    assert backend.challenges.get(ch.id) is None
    assert backend.submissions.get(sid_bob) is None
    assert not bob_file.exists()
    # the challenge by root and alice's submission survive, admin2's score is gone
    assert backend.db.count(ChallengeStore)==1
    assert backend.submissions.get(sid_alice) is not None
    assert backend.scoring.scores_for_submission(sid_alice)==[]

    fn = backend.uploads.save_avatar(alice.id, PNG_DATA, 'a.png')
    backend.users.update_avatar(alice.id, fn)
    alice_file = backend.uploads.path('submissions', backend.submissions.get(sid_alice).filename)
    backend.users.delete(alice.id)

    assert backend.db.count(SubmissionStore)==0
    assert not alice_file.exists()
    assert not backend.uploads.path('avatars', fn).exists()

    with pytest.raises(NotFound):
        backend.users.delete(alice.id)

LONG_ASCII_PASSWORD = 'Aa1!' + 'x'*76
LONG_UTF8_PASSWORD = 'Aa1!' + 'é'*40 # 44 characters, 84 bytes

@pytest.mark.parametrize('password', [LONG_ASCII_PASSWORD, LONG_UTF8_PASSWORD])
def test_password_over_bcrypt_limit_rejected(backend: Backend, password: str):
    assert len(password.encode('utf-8'))>UserStore.MAX_PASSWORD_BYTES
    assert UserStore.check_password(password) is not None

    with pytest.raises(InvalidParam):
        backend.users.create('alice', 'alice@example.com', password, 'user')

    alice = make_user(backend, 'alice')
    with pytest.raises(InvalidParam):
        backend.users.update(alice.id, password=password)

def test_password_at_bcrypt_limit_accepted(backend: Backend):
    password = 'Aa1!' + 'x'*68
    assert len(password.encode('utf-8'))==UserStore.MAX_PASSWORD_BYTES

    backend.users.create('alice', 'alice@example.com', password, 'user')
    assert backend.users.login('alice@example.com', password).auth_token

@pytest.mark.parametrize('password', [LONG_ASCII_PASSWORD, LONG_UTF8_PASSWORD])
def test_login_with_overlong_password_is_unauthorized(backend: Backend, password: str):
    alice = make_user(backend, 'alice')

    assert not backend.users.verify_password(alice, password)
    with pytest.raises(Unauthorized):
        backend.users.login('alice@example.com', password)

def test_failed_logins_are_throttled_per_email(backend: Backend):
    make_user(backend, 'alice')
    make_user(backend, 'bob')

    for _ in range(backend.users.LOGIN_MAX_FAILURES):
        with pytest.raises(Unauthorized):
            backend.users.login('alice@example.com', 'Wrong-pass-1')

    # even the right password is refused while the window is full
    with pytest.raises(RateLimited):
        backend.users.login('alice@example.com', USER_PASSWORD)
    with pytest.raises(RateLimited):
        backend.users.login('ALICE@example.com', USER_PASSWORD)

    assert backend.users.login('bob@example.com', USER_PASSWORD).auth_token

def test_login_throttle_window_expires(backend: Backend, monkeypatch):
    make_user(backend, 'alice')

    for _ in range(backend.users.LOGIN_MAX_FAILURES):
        with pytest.raises(Unauthorized):
            backend.users.login('alice@example.com', 'Wrong-pass-1')
    with pytest.raises(RateLimited):
        backend.users.login('alice@example.com', USER_PASSWORD)

    monkeypatch.setattr(backend.users, 'LOGIN_FAILURE_WINDOW_S', 0)
    assert backend.users.login('alice@example.com', USER_PASSWORD).auth_token

def test_successful_login_resets_failures(backend: Backend):
    make_user(backend, 'alice')

    for _ in range(2):
        for _ in range(backend.users.LOGIN_MAX_FAILURES-1):
            with pytest.raises(Unauthorized):
                backend.users.login('alice@example.com', 'Wrong-pass-1')
        assert backend.users.login('alice@example.com', USER_PASSWORD).auth_token

def test_unknown_role_rejected_by_model():
    with pytest.raises(ValueError):
        UserStore(username='alice', email='alice@example.com', password_hash='x', role='superuser')
