from .base import Database
from .uploads import Uploads
from .user import UserService
from .challenge import ChallengeService
from .submission import SubmissionManager
from .scoring import ScoringEngine
from .leaderboard import LeaderboardAggregator
from .backend import Backend, backend_from_config
