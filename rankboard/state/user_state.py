from __future__ import annotations
from typing import TYPE_CHECKING, Dict, Any

if TYPE_CHECKING:
    from ..store import UserStore

class User:
    """Authenticated caller, resolved from the auth_token cookie for one request."""

    def __init__(self, store: UserStore):
        self._store: UserStore = store

    @property
    def id(self) -> int:
        return self._store.id

    @property
    def role(self) -> str:
        return self._store.role

    @property
    def is_admin(self) -> bool:
        return self._store.is_admin

    def can_access_user(self, uid: int) -> bool:
        return self.is_admin or self._store.id==uid

    def describe_json(self) -> Dict[str, Any]:
        return self._store.describe_json()

    def __repr__(self) -> str:
        return f'[User {self._store!r}]'
