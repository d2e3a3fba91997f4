import bcrypt
import threading
import time
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from typing import Optional, List, Dict

from .base import Database
from .uploads import Uploads
from ..errors import InvalidParam, NotFound, Conflict, Unauthorized, RateLimited
from ..store import UserStore, ChallengeStore, SubmissionStore
from .. import utils

class UserService:
    AUTH_TOKEN_LEN = 48

    LOGIN_MAX_FAILURES = 5
    LOGIN_FAILURE_WINDOW_S = 300

    def __init__(self, db: Database, uploads: Uploads, bcrypt_rounds: int):
        self._db = db
        self._uploads = uploads
        self._bcrypt_rounds = bcrypt_rounds

        self._login_failures: Dict[str, List[float]] = {}
        self._login_lock = threading.Lock()

    def hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(self._bcrypt_rounds)).decode('ascii')

    @staticmethod
    def verify_password(user: UserStore, password: str) -> bool:
        pw = password.encode('utf-8')
        if len(pw)>UserStore.MAX_PASSWORD_BYTES:
            return False
        return bcrypt.checkpw(pw, user.password_hash.encode('ascii'))

    def _check_login_throttle(self, key: str, now: float) -> None:
        with self._login_lock:
            recent = [t for t in self._login_failures.get(key, []) if now-t<self.LOGIN_FAILURE_WINDOW_S]
            if recent:
                self._login_failures[key] = recent
            else:
                self._login_failures.pop(key, None)

        if len(recent)>=self.LOGIN_MAX_FAILURES:
            self._db.log('warning', 'user.login', f'login throttled for {key!r} after {len(recent)} failures')
            raise RateLimited('too many failed login attempts, try again later')

    def _record_login_failure(self, key: str, now: float) -> None:
        with self._login_lock:
            self._login_failures.setdefault(key, []).append(now)

    @staticmethod
    def _raise_if_invalid(err: Optional[str]) -> None:
        if err is not None:
            raise InvalidParam(err)

    def _check_unique(self, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None) -> None:
        conds = []
        if username is not None:
            conds.append(UserStore.username==username)
        if email is not None:
            conds.append(UserStore.email==email)
        if not conds:
            return

        with self._db.SqlSession() as session:
            stmt = select(UserStore).where(or_(*conds))
            if exclude_id is not None:
                stmt = stmt.where(UserStore.id!=exclude_id)
            dup: Optional[UserStore] = session.execute(stmt).scalar()

        if dup is not None:
            if username is not None and dup.username==username:
                raise Conflict('username already exists')
            raise Conflict('email already exists')

    def create(self, username: str, email: str, password: str, role: str) -> UserStore:
        self._raise_if_invalid(UserStore.check_username(username))
        self._raise_if_invalid(UserStore.check_email(email))
        self._raise_if_invalid(UserStore.check_password(password))
        self._raise_if_invalid(UserStore.check_role(role))
        self._check_unique(username, email)

        with self._db.SqlSession() as session:
            user = UserStore(
                username=username,
                email=email,
                password_hash=self.hash_password(password),
                role=role,
            )
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise Conflict('username or email already exists')

        self._db.log('info', 'user.create', f'created {user!r}')
        return user

    def get(self, user_id: int) -> Optional[UserStore]:
        return self._db.load_one_data(UserStore, user_id)

    def require(self, user_id: int) -> UserStore:
        user = self.get(user_id)
        if user is None:
            raise NotFound('user not found')
        return user

    def get_by_username(self, username: str) -> Optional[UserStore]:
        with self._db.SqlSession() as session:
            return session.execute(select(UserStore).where(UserStore.username==username)).scalar()

    def get_by_email(self, email: str) -> Optional[UserStore]:
        with self._db.SqlSession() as session:
            return session.execute(select(UserStore).where(UserStore.email==email)).scalar()

    def list(self, role: Optional[str] = None) -> List[UserStore]:
        if role is not None:
            self._raise_if_invalid(UserStore.check_role(role))

        with self._db.SqlSession() as session:
            stmt = select(UserStore).order_by(UserStore.id)
            if role is not None:
                stmt = stmt.where(UserStore.role==role)
            return list(session.execute(stmt).scalars().all())

    def update(
        self,
        user_id: int,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        role: Optional[str] = None,
    ) -> UserStore:
        if username is not None:
            self._raise_if_invalid(UserStore.check_username(username))
        if email is not None:
            self._raise_if_invalid(UserStore.check_email(email))
        if password is not None:
            self._raise_if_invalid(UserStore.check_password(password))
        if role is not None:
            self._raise_if_invalid(UserStore.check_role(role))

        with self._db.SqlSession() as session:
            user = session.get(UserStore, user_id)
            if user is None:
                raise NotFound('user not found')

            self._check_unique(username, email, exclude_id=user_id)

            if username is not None:
                user.username = username
            if email is not None:
                user.email = email
            if password is not None:
                user.password_hash = self.hash_password(password)
                user.auth_token = None # changing the password ends the session
            if role is not None:
                user.role = role

            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise Conflict('username or email already exists')

        self._db.log('info', 'user.update', f'updated {user!r}')
        return user

    def delete(self, user_id: int) -> None:
        """Delete a user along with everything the store cascades from it.

        That is the challenges they created (and every submission to those),
        their own submissions, and the scores they gave. Files are collected
        before the commit and removed after it.
        """
        with self._db.SqlSession() as session:
            user = session.get(UserStore, user_id)
            if user is None:
                raise NotFound('user not found')

            avatar_filename = user.avatar_filename
            submission_filenames = list(session.execute(
                select(SubmissionStore.filename)
                .outerjoin(ChallengeStore, SubmissionStore.challenge_id==ChallengeStore.id)
                .where(or_(SubmissionStore.user_id==user_id, ChallengeStore.creator_id==user_id))
            ).scalars().all())

            user_repr = repr(user)
            session.delete(user)
            session.commit()

        self._db.log('info', 'user.delete', f'deleted {user_repr} with {len(submission_filenames)} submission file(s)')

        if avatar_filename is not None:
            self._uploads.remove('avatars', avatar_filename)
        for fn in submission_filenames:
            self._uploads.remove('submissions', fn)

    def update_avatar(self, user_id: int, filename: str) -> UserStore:
        with self._db.SqlSession() as session:
            user = session.get(UserStore, user_id)
            if user is None:
                raise NotFound('user not found')

            old_filename = user.avatar_filename
            user.avatar_filename = filename
            session.commit()

        self._db.log('info', 'user.update_avatar', f'{user!r} avatar set to {filename}')
        if old_filename is not None and old_filename!=filename:
            self._uploads.remove('avatars', old_filename)
        return user

    def delete_avatar(self, user_id: int) -> UserStore:
        with self._db.SqlSession() as session:
            user = session.get(UserStore, user_id)
            if user is None:
                raise NotFound('user not found')

            old_filename = user.avatar_filename
            user.avatar_filename = None
            session.commit()

        if old_filename is not None:
            self._db.log('info', 'user.delete_avatar', f'{user!r} avatar removed')
            self._uploads.remove('avatars', old_filename)
        return user

    def login(self, email: str, password: str) -> UserStore:
        throttle_key = email.strip().lower()
        now = time.time()
        self._check_login_throttle(throttle_key, now)

        with self._db.SqlSession() as session:
            user: Optional[UserStore] = session.execute(select(UserStore).where(UserStore.email==email)).scalar()

            if user is None or not self.verify_password(user, password):
                self._record_login_failure(throttle_key, now)
                self._db.log('info', 'user.login', f'failed login for {email!r}')
                raise Unauthorized('invalid email or password')

            with self._login_lock:
                self._login_failures.pop(throttle_key, None)

            # a fresh token on every login, the previous session is dropped
            user.auth_token = utils.gen_random_str(self.AUTH_TOKEN_LEN, crypto=True)
            session.commit()

        self._db.log('info', 'user.login', f'{user!r} logged in')
        return user

    def logout(self, user_id: int) -> None:
        with self._db.SqlSession() as session:
            user = session.get(UserStore, user_id)
            if user is None:
                return
            user.auth_token = None
            session.commit()

        self._db.log('info', 'user.logout', f'{user!r} logged out')

    def user_by_auth_token(self, token: Optional[str]) -> Optional[UserStore]:
        if not token:
            return None
        with self._db.SqlSession() as session:
            return session.execute(select(UserStore).where(UserStore.auth_token==token)).scalar()

    def ensure_root_admin(self, username: str, email: str, password: str) -> UserStore:
        user = self.get_by_email(email)
        if user is not None:
            if not user.is_admin:
                self._db.log('warning', 'user.ensure_root_admin', f'root admin email belongs to non-admin {user!r}')
            return user

        self._db.log('info', 'user.ensure_root_admin', f'creating root admin {username!r}')
        return self.create(username, email, password, 'admin')
