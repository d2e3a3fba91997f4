import time
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional, List, Dict, Any

from .base import Database
from ..errors import InvalidParam, NotFound
from ..store import ScoreStore, SubmissionStore, UserStore

class ScoringEngine:
    def __init__(self, db: Database):
        self._db = db

    @staticmethod
    def _find(session: Session, submission_id: int, admin_id: int) -> Optional[ScoreStore]:
        return session.execute(
            select(ScoreStore)
            .where(ScoreStore.submission_id==submission_id, ScoreStore.admin_id==admin_id)
        ).scalar()

    def score_or_update(self, submission_id: int, admin_id: int, score: int, feedback: Optional[str]) -> ScoreStore:
        """Insert or update the score of one admin on one submission.

        Each admin owns exactly one row per submission; scoring again overwrites
        the value and the feedback and bumps ``updated_ms``.
        """
        err = ScoreStore.check_score(score, feedback)
        if err is not None:
            raise InvalidParam(err)

        for attempt in range(2):
            with self._db.SqlSession() as session:
                if session.get(SubmissionStore, submission_id) is None:
                    raise NotFound('submission not found')

                row = self._find(session, submission_id, admin_id)

                if row is None:
                    row = ScoreStore(submission_id=submission_id, admin_id=admin_id, score=score, feedback=feedback)
                    session.add(row)
                    try:
                        session.commit()
                    except IntegrityError:
                        session.rollback()
                        if attempt>0:
                            raise
                        self._db.log('warning', 'scoring.score_or_update', f'lost insert race for Sub#{submission_id} A#{admin_id}, retrying as update')
                        continue

                    self._db.log('info', 'scoring.score_or_update', f'new score {row!r}')
                    return row

                row.score = score
                row.feedback = feedback
                row.updated_ms = int(1000*time.time())
                session.commit()

                self._db.log('info', 'scoring.score_or_update', f'updated score {row!r}')
                return row

        raise RuntimeError('unreachable')

    def scores_for_submission(self, submission_id: int) -> List[Dict[str, Any]]:
        with self._db.SqlSession() as session:
            rows = session.execute(
                select(ScoreStore, UserStore.username)
                .join(UserStore, ScoreStore.admin_id==UserStore.id)
                .where(ScoreStore.submission_id==submission_id)
                .order_by(ScoreStore.created_ms, ScoreStore.id)
            ).all()

        return [{
            **score.describe_json(),
            'admin_username': admin_username,
        } for score, admin_username in rows]

    def my_scores(self, submission_id: int, user_id: int) -> Dict[str, Any]:
        # ownership is checked here as well as on the route, ids are guessable
        with self._db.SqlSession() as session:
            sub = session.execute(
                select(SubmissionStore)
                .where(SubmissionStore.id==submission_id, SubmissionStore.user_id==user_id)
            ).scalar()

        if sub is None:
            raise NotFound('submission not found or does not belong to you')

        scores = self.scores_for_submission(submission_id)
        return {
            'submission_id': submission_id,
            'scores': [{
                'admin_id': s['admin_id'],
                'admin_username': s['admin_username'],
                'score': s['score'],
                'feedback': s['feedback'],
            } for s in scores],
            'total_score': sum(s['score'] for s in scores),
        }
