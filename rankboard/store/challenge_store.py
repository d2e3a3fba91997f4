from __future__ import annotations
from sqlalchemy import Column, Integer, String, Text, ForeignKey, BigInteger
from sqlalchemy.orm import relationship
import time
from typing import TYPE_CHECKING, Optional, Dict, Any

if TYPE_CHECKING:
    # noinspection PyUnresolvedReferences
    from . import UserStore
from . import Table

class ChallengeStore(Table):
    __tablename__ = 'challenge'

    MAX_TITLE_LEN = 200

    title: str = Column(String(MAX_TITLE_LEN), nullable=False)
    description: str = Column(Text, nullable=False, default='')
    created_s: int = Column(BigInteger, nullable=False, index=True)
    deadline_s: int = Column(BigInteger, nullable=False, index=True) # advisory, submissions after it are still accepted

    creator_id: int = Column(Integer, ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    creator_: 'UserStore' = relationship('UserStore', lazy='select', foreign_keys=[creator_id])

    updated_ms: int = Column(BigInteger, nullable=False, default=lambda: int(1000*time.time()), onupdate=lambda: int(1000*time.time()))

    def __repr__(self) -> str:
        return f'[Ch#{self.id} {self.title!r}]'

    @classmethod
    def check_title(cls, title: str) -> Optional[str]:
        if not 1<=len(title)<=cls.MAX_TITLE_LEN:
            return f'title should have 1 to {cls.MAX_TITLE_LEN} characters'
        return None

    def is_active(self, now_s: Optional[float] = None) -> bool:
        if now_s is None:
            now_s = time.time()
        return self.deadline_s>now_s

    def describe_json(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'created_s': self.created_s,
            'deadline_s': self.deadline_s,
            'created_by_admin_id': self.creator_id,
            'updated_ms': self.updated_ms,
            'is_active': self.is_active(),
        }
