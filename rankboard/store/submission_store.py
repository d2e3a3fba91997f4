from __future__ import annotations
from sqlalchemy import Column, Integer, String, ForeignKey, BigInteger, UniqueConstraint
from sqlalchemy.orm import relationship
import time
from typing import TYPE_CHECKING, Dict, Any

if TYPE_CHECKING:
    # noinspection PyUnresolvedReferences
    from . import UserStore, ChallengeStore
from . import Table

class SubmissionStore(Table):
    __tablename__ = 'submission'
    __table_args__ = (
        UniqueConstraint('challenge_id', 'user_id', name='uq_submission_challenge_user'),
    )

    SUBMIT_COOLDOWN_S = 10

    challenge_id: int = Column(Integer, ForeignKey('challenge.id', ondelete='CASCADE'), nullable=False, index=True)
    challenge_: 'ChallengeStore' = relationship('ChallengeStore', lazy='select', foreign_keys=[challenge_id])
    user_id: int = Column(Integer, ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    user_: 'UserStore' = relationship('UserStore', lazy='select', foreign_keys=[user_id])

    filename: str = Column(String(255), nullable=False)
    submitted_ms: int = Column(BigInteger, nullable=False, default=lambda: int(1000*time.time()), index=True)
    updated_ms: int = Column(BigInteger, nullable=False, default=lambda: int(1000*time.time()), onupdate=lambda: int(1000*time.time()))

    def __repr__(self) -> str:
        return f'[Sub#{self.id} U#{self.user_id} Ch#{self.challenge_id} {self.filename!r}]'

    def describe_json(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'challenge_id': self.challenge_id,
            'user_id': self.user_id,
            'filename': self.filename,
            'submitted_ms': self.submitted_ms,
            'updated_ms': self.updated_ms,
        }
