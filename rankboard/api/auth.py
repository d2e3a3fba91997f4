from sanic import HTTPResponse
from typing import Optional

from ..errors import Unauthorized, Forbidden
from ..state import User
from .. import secret

LOGIN_MAX_AGE_S = 86400*7

def add_cookie(res: HTTPResponse, name: str, value: str, path: str = '/', max_age: int = LOGIN_MAX_AGE_S) -> None:
    res.cookies.add_cookie(name, value, path=path, httponly=True, samesite='Lax', max_age=max_age, secure=secret.BACKEND_SCHEME=='https')

def del_cookie(res: HTTPResponse, name: str, path: str = '/') -> None:
    # xxx: cannot use `res.cookies.delete_cookie` here
    # https://github.com/sanic-org/sanic/issues/2972
    return add_cookie(res, name, '', path=path, max_age=0)

def require_login(user: Optional[User]) -> User:
    if user is None:
        raise Unauthorized('authentication required')
    return user

def require_admin(user: Optional[User]) -> User:
    user = require_login(user)
    if not user.is_admin:
        raise Forbidden('admin access required')
    return user

def require_self_or_admin(user: Optional[User], uid: int) -> User:
    user = require_login(user)
    if not user.can_access_user(uid):
        raise Forbidden('you can only access your own account')
    return user
