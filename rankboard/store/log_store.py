from sqlalchemy import Column, BigInteger, String, Text
import time

from . import Table

class LogStore(Table):
    __tablename__ = 'log'

    timestamp_ms = Column(BigInteger, nullable=False, default=lambda: int(1000*time.time()), index=True)
    level = Column(String(32), nullable=False)
    process = Column(String(32), nullable=False)
    module = Column(String(64), nullable=False)
    message = Column(Text, nullable=False)

    def __repr__(self) -> str:
        return f'[Log#{self.id} {self.level} {self.module}]'
