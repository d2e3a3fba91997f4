import pytest
from pathlib import Path
from sanic import Sanic
from typing import Iterator, Dict

from rankboard.logic import Backend
from rankboard.store import UserStore

Sanic.test_mode = True

PDF_DATA = b'%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n'
PNG_DATA = b'\x89PNG\r\n\x1a\n' + b'\x00'*32

ROOT_EMAIL = 'root@example.com'
ROOT_PASSWORD = 'Root-pass-1'
USER_PASSWORD = 'User-pass-1'

@pytest.fixture
def backend(tmp_path: Path) -> Iterator[Backend]:
    b = Backend(
        'test',
        f'sqlite:///{tmp_path / "test.db"}',
        tmp_path / 'uploads',
        bcrypt_rounds=4,
        submission_max_size=64*1024,
        avatar_max_size=16*1024,
        submit_cooldown_s=0,
    )
    b.init('root', ROOT_EMAIL, ROOT_PASSWORD)
    yield b
    b.db.engine.dispose()

@pytest.fixture
def root(backend: Backend) -> UserStore:
    user = backend.users.get_by_email(ROOT_EMAIL)
    assert user is not None
    return user

def make_user(backend: Backend, username: str, role: str = 'user') -> UserStore:
    return backend.users.create(username, f'{username}@example.com', USER_PASSWORD, role)

def submit_pdf(backend: Backend, challenge_id: int, user_id: int, data: bytes = PDF_DATA) -> int:
    fn = backend.uploads.save_submission(challenge_id, user_id, data, 'report.pdf')
    return backend.submissions.submit(challenge_id, user_id, fn).id

def cookie_for(backend: Backend, username: str, password: str = USER_PASSWORD) -> Dict[str, str]:
    store = backend.users.get_by_username(username)
    assert store is not None
    token = backend.users.login(store.email, password).auth_token
    return {'Cookie': f'auth_token={token}'}
