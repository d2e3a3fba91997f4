from __future__ import annotations
from sqlalchemy import Column, String, BigInteger
from sqlalchemy.orm import validates
import re
import time
from typing import Any, Optional, Dict

from . import Table

class UserStore(Table):
    __tablename__ = 'user'

    MIN_USERNAME_LEN = 3
    MAX_USERNAME_LEN = 50
    MAX_EMAIL_LEN = 100
    MIN_PASSWORD_LEN = 8
    MAX_PASSWORD_LEN = 128
    MAX_PASSWORD_BYTES = 72 # bcrypt refuses longer input

    username: str = Column(String(MAX_USERNAME_LEN), nullable=False, unique=True, index=True)
    email: str = Column(String(MAX_EMAIL_LEN), nullable=False, unique=True, index=True)
    password_hash: str = Column(String(255), nullable=False)
    role: str = Column(String(10), nullable=False, index=True)
    avatar_filename: Optional[str] = Column(String(255), nullable=True)
    auth_token: Optional[str] = Column(String(128), nullable=True, unique=True, index=True) # set on login, cleared on logout

    created_ms: int = Column(BigInteger, nullable=False, default=lambda: int(1000*time.time()))
    updated_ms: int = Column(BigInteger, nullable=False, default=lambda: int(1000*time.time()), onupdate=lambda: int(1000*time.time()))

    ROLES = {
        'admin': 'Administrator',
        'user': 'Participant',
    }

    VAL_EMAIL = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

    def __repr__(self) -> str:
        return f'[U#{self.id} {self.username!r} {self.role}]'

    @validates('role')
    def validate_role(self, _key: str, role: Any) -> Any:
        if role not in self.ROLES:
            raise ValueError(f'unknown role: {role!r}')
        return role

    @property
    def is_admin(self) -> bool:
        return self.role=='admin'

    def role_disp(self) -> str:
        return self.ROLES.get(self.role, f'({self.role})')

    @classmethod
    def check_username(cls, username: str) -> Optional[str]:
        if not cls.MIN_USERNAME_LEN<=len(username)<=cls.MAX_USERNAME_LEN:
            return f'username should have {cls.MIN_USERNAME_LEN} to {cls.MAX_USERNAME_LEN} characters'
        return None

    @classmethod
    def check_email(cls, email: str) -> Optional[str]:
        if len(email)>cls.MAX_EMAIL_LEN or cls.VAL_EMAIL.match(email) is None:
            return 'invalid email address'
        return None

    @classmethod
    def check_password(cls, password: str) -> Optional[str]:
        if len(password)<cls.MIN_PASSWORD_LEN:
            return f'password must be at least {cls.MIN_PASSWORD_LEN} characters'
        if len(password)>cls.MAX_PASSWORD_LEN:
            return f'password must not exceed {cls.MAX_PASSWORD_LEN} characters'
        if len(password.encode('utf-8'))>cls.MAX_PASSWORD_BYTES:
            return f'password must not exceed {cls.MAX_PASSWORD_BYTES} bytes'
        if re.search(r'[a-z]', password) is None:
            return 'password must contain at least one lowercase letter'
        if re.search(r'[A-Z]', password) is None:
            return 'password must contain at least one uppercase letter'
        if re.search(r'[0-9]', password) is None:
            return 'password must contain at least one number'
        if re.search(r'[^a-zA-Z0-9]', password) is None:
            return 'password must contain at least one special character'
        return None

    @classmethod
    def check_role(cls, role: str) -> Optional[str]:
        if role not in cls.ROLES:
            return f'role should be one of {", ".join(cls.ROLES)}'
        return None

    # never exposes password_hash or auth_token
    def describe_json(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'role': self.role,
            'avatar_filename': self.avatar_filename,
            'created_ms': self.created_ms,
            'updated_ms': self.updated_ms,
        }
