from sqlalchemy import Column, Integer
from sqlalchemy.orm import declarative_base, Mapped

class _SqlBase:
    __allow_unmapped__ = True

SqlBase = declarative_base(cls=_SqlBase)

class Table(SqlBase):
    __abstract__ = True
    id: Mapped[int] = Column(Integer, primary_key=True)

from .user_store import UserStore
from .challenge_store import ChallengeStore
from .submission_store import SubmissionStore
from .score_store import ScoreStore
from .log_store import LogStore
