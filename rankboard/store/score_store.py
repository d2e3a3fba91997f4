from __future__ import annotations
from sqlalchemy import Column, Integer, Text, ForeignKey, BigInteger, UniqueConstraint
from sqlalchemy.orm import relationship
import time
from typing import TYPE_CHECKING, Dict, Any, Optional

if TYPE_CHECKING:
    # noinspection PyUnresolvedReferences
    from . import UserStore, SubmissionStore
from . import Table

class ScoreStore(Table):
    __tablename__ = 'score'
    __table_args__ = (
        UniqueConstraint('submission_id', 'admin_id', name='uq_score_submission_admin'),
    )

    MAX_FEEDBACK_LEN = 5000

    submission_id: int = Column(Integer, ForeignKey('submission.id', ondelete='CASCADE'), nullable=False, index=True)
    submission_: 'SubmissionStore' = relationship('SubmissionStore', lazy='select', foreign_keys=[submission_id])
    admin_id: int = Column(Integer, ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    admin_: 'UserStore' = relationship('UserStore', lazy='select', foreign_keys=[admin_id])

    score: int = Column(Integer, nullable=False, default=0)
    feedback: Optional[str] = Column(Text, nullable=True)

    created_ms: int = Column(BigInteger, nullable=False, default=lambda: int(1000*time.time()))
    updated_ms: int = Column(BigInteger, nullable=False, default=lambda: int(1000*time.time()), onupdate=lambda: int(1000*time.time()))

    def __repr__(self) -> str:
        return f'[Score#{self.id} Sub#{self.submission_id} A#{self.admin_id} {self.score}]'

    @classmethod
    def check_score(cls, score: Any, feedback: Optional[str]) -> Optional[str]:
        # bool is an int subclass
        if not isinstance(score, int) or isinstance(score, bool):
            return 'score should be an integer'
        if score<0:
            return 'score should not be negative'
        if feedback is not None and len(feedback)>cls.MAX_FEEDBACK_LEN:
            return 'feedback is too long'
        return None

    def describe_json(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'submission_id': self.submission_id,
            'admin_id': self.admin_id,
            'score': self.score,
            'feedback': self.feedback,
            'created_ms': self.created_ms,
            'updated_ms': self.updated_ms,
        }
