from pathlib import Path
from sqlalchemy import select
from typing import Dict, Any, List

from .base import Database
from .uploads import Uploads
from .user import UserService
from .challenge import ChallengeService
from .submission import SubmissionManager
from .scoring import ScoringEngine
from .leaderboard import LeaderboardAggregator
from ..store import UserStore, ChallengeStore, SubmissionStore, ScoreStore, LogStore
from .. import utils
from .. import secret

class Backend:
    """Every service of one process, wired to a single database and upload root.

    Built once at startup (or per test) and handed to the request handlers.
    """

    def __init__(
        self,
        process_name: str,
        db_connector: str,
        upload_path: Path,
        *,
        bcrypt_rounds: int,
        submission_max_size: int,
        avatar_max_size: int,
        submit_cooldown_s: float = SubmissionStore.SUBMIT_COOLDOWN_S,
    ):
        self.process_name: str = process_name

        self.db: Database = Database(process_name, db_connector)
        self.uploads: Uploads = Uploads(upload_path, self.db.log, submission_max_size, avatar_max_size)

        self.users: UserService = UserService(self.db, self.uploads, bcrypt_rounds)
        self.challenges: ChallengeService = ChallengeService(self.db, self.uploads)
        self.submissions: SubmissionManager = SubmissionManager(self.db, self.uploads, submit_cooldown_s)
        self.scoring: ScoringEngine = ScoringEngine(self.db)
        self.leaderboard: LeaderboardAggregator = LeaderboardAggregator(self.db)

    def log(self, level: utils.LogLevel, module: str, message: str) -> None:
        self.db.log(level, module, message)

    def init(self, root_admin_username: str, root_admin_email: str, root_admin_password: str) -> None:
        self.db.create_tables()
        self.users.ensure_root_admin(root_admin_username, root_admin_email, root_admin_password)
        self.log('debug', 'backend.init', 'backend ready')

    def collect_telemetry(self) -> Dict[str, Any]:
        return {
            'users': self.db.count(UserStore),
            'challenges': self.db.count(ChallengeStore),
            'submissions': self.db.count(SubmissionStore),
            'scores': self.db.count(ScoreStore),
            'logs': self.db.count(LogStore),
        }

    def sweep_orphan_files(self) -> Dict[str, List[str]]:
        with self.db.SqlSession() as session:
            known_submissions = set(session.execute(select(SubmissionStore.filename)).scalars().all())
            known_avatars = set(session.execute(
                select(UserStore.avatar_filename).where(UserStore.avatar_filename.is_not(None))
            ).scalars().all())

        return {
            'submissions': self.uploads.sweep_orphans('submissions', known_submissions),
            'avatars': self.uploads.sweep_orphans('avatars', known_avatars),
        }

def backend_from_config(process_name: str) -> Backend:
    return Backend(
        process_name,
        secret.DB_CONNECTOR,
        secret.UPLOAD_PATH,
        bcrypt_rounds=secret.BCRYPT_ROUNDS,
        submission_max_size=1024*1024*secret.SUBMISSION_MAX_SIZE_MB,
        avatar_max_size=1024*1024*secret.AVATAR_MAX_SIZE_MB,
    )
