import time
from pathlib import Path
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional, Dict, Any, Tuple

from .base import Database
from .uploads import Uploads
from ..errors import NotFound, Forbidden, RateLimited
from ..store import SubmissionStore, ChallengeStore, UserStore

class SubmissionManager:
    """At most one submission per (challenge, user); resubmitting replaces the file in place."""

    def __init__(self, db: Database, uploads: Uploads, submit_cooldown_s: float = SubmissionStore.SUBMIT_COOLDOWN_S):
        self._db = db
        self._uploads = uploads
        self._submit_cooldown_s = submit_cooldown_s

    def get(self, submission_id: int) -> Optional[SubmissionStore]:
        return self._db.load_one_data(SubmissionStore, submission_id)

    @staticmethod
    def _find(session: Session, challenge_id: int, user_id: int) -> Optional[SubmissionStore]:
        return session.execute(
            select(SubmissionStore)
            .where(SubmissionStore.challenge_id==challenge_id, SubmissionStore.user_id==user_id)
        ).scalar()

    def get_for_challenge_and_user(self, challenge_id: int, user_id: int) -> Optional[SubmissionStore]:
        with self._db.SqlSession() as session:
            return self._find(session, challenge_id, user_id)

    def submit(self, challenge_id: int, user_id: int, filename: str) -> SubmissionStore:
        for attempt in range(2):
            with self._db.SqlSession() as session:
                if session.get(ChallengeStore, challenge_id) is None:
                    raise NotFound('challenge not found')

                sub = self._find(session, challenge_id, user_id)

                if sub is None:
                    sub = SubmissionStore(challenge_id=challenge_id, user_id=user_id, filename=filename)
                    session.add(sub)
                    try:
                        session.commit()
                    except IntegrityError:
                        # another request inserted the same pair first, treat this one as a resubmission
                        session.rollback()
                        if attempt>0:
                            raise
                        self._db.log('warning', 'submission.submit', f'lost insert race for U#{user_id} Ch#{challenge_id}, retrying as update')
                        continue

                    self._db.log('info', 'submission.submit', f'new submission {sub!r}')
                    return sub

                now_ms = int(1000*time.time())
                # a lost insert race is retried as an update and skips the cooldown
                if attempt==0:
                    delta = (now_ms-sub.submitted_ms)/1000
                    if delta<self._submit_cooldown_s:
                        raise RateLimited(f'submitting too often, wait {self._submit_cooldown_s-delta:.1f} seconds')

                old_filename = sub.filename
                sub.filename = filename
                sub.submitted_ms = now_ms
                session.commit()

            self._db.log('info', 'submission.submit', f'resubmission {sub!r}, replaced {old_filename!r}')
            if old_filename!=filename:
                self._uploads.remove('submissions', old_filename)
            return sub

        raise RuntimeError('unreachable')

    def list_for_challenge(self, challenge_id: int) -> List[Dict[str, Any]]:
        with self._db.SqlSession() as session:
            rows = session.execute(
                select(SubmissionStore, UserStore)
                .join(UserStore, SubmissionStore.user_id==UserStore.id)
                .where(SubmissionStore.challenge_id==challenge_id)
                .order_by(SubmissionStore.submitted_ms.desc(), SubmissionStore.id.desc())
            ).all()

        return [{
            **sub.describe_json(),
            'username': user.username,
            'avatar_filename': user.avatar_filename,
        } for sub, user in rows]

    def list_for_caller(self, challenge_id: int, user_id: int, role: str) -> List[Dict[str, Any]]:
        if role=='admin':
            return self.list_for_challenge(challenge_id)

        sub = self.get_for_challenge_and_user(challenge_id, user_id)
        return [] if sub is None else [sub.describe_json()]

    def file_for_download(self, submission_id: int, user_id: int, role: str) -> Tuple[SubmissionStore, Path]:
        sub = self.get(submission_id)
        if sub is None:
            raise NotFound('submission not found')
        if role!='admin' and sub.user_id!=user_id:
            raise Forbidden('you can only download your own submissions')

        p = self._uploads.path('submissions', sub.filename)
        if not p.is_file():
            self._db.log('warning', 'submission.file_for_download', f'file missing for {sub!r}')
            raise NotFound('file not found')

        return sub, p

    def delete(self, submission_id: int) -> None:
        with self._db.SqlSession() as session:
            sub = session.get(SubmissionStore, submission_id)
            if sub is None:
                raise NotFound('submission not found')

            filename = sub.filename
            session.delete(sub)
            session.commit()

        self._db.log('info', 'submission.delete', f'deleted Sub#{submission_id}')
        self._uploads.remove('submissions', filename)
