from sqlalchemy import select, exists, and_
from sqlalchemy.orm import aliased
from typing import List

from .base import Database
from ..state import LeaderboardRow, LeaderboardEntry, fold_leaderboard
from ..store import UserStore, ChallengeStore, SubmissionStore, ScoreStore
from .. import utils

class LeaderboardAggregator:
    """Ranks every participant of a challenge, recomputed from the tables on each call."""

    def __init__(self, db: Database):
        self._db = db

    def fetch_rows(self, challenge_id: int) -> List[LeaderboardRow]:
        admin = aliased(UserStore)

        stmt = (
            select(
                UserStore.id.label('user_id'),
                UserStore.username.label('username'),
                UserStore.avatar_filename.label('avatar_filename'),
                SubmissionStore.id.label('submission_id'),
                ScoreStore.id.label('score_id'),
                ScoreStore.admin_id.label('admin_id'),
                admin.username.label('admin_username'),
                ScoreStore.score.label('score'),
                ScoreStore.feedback.label('feedback'),
            )
            .select_from(UserStore)
            .outerjoin(SubmissionStore, and_(
                SubmissionStore.user_id==UserStore.id,
                SubmissionStore.challenge_id==challenge_id,
            ))
            .outerjoin(ScoreStore, ScoreStore.submission_id==SubmissionStore.id)
            .outerjoin(admin, admin.id==ScoreStore.admin_id)
            .where(UserStore.role=='user')
            .where(exists().where(ChallengeStore.id==challenge_id)) # unknown challenge gives no rows
            .order_by(UserStore.username, ScoreStore.created_ms, ScoreStore.id)
        )

        with self._db.SqlSession() as session:
            return [LeaderboardRow(**row._asdict()) for row in session.execute(stmt)]

    def compute_leaderboard(self, challenge_id: int) -> List[LeaderboardEntry]:
        with utils.log_slow(self._db.log, 'leaderboard.compute_leaderboard', f'rank Ch#{challenge_id}'):
            return fold_leaderboard(self.fetch_rows(challenge_id))
