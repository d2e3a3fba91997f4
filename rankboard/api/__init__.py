from sanic.request import Request
from typing import Optional

from ..logic import Backend
from ..state import User

def get_backend(req: Request) -> Backend:
    return req.app.ctx.backend

def get_cur_user(req: Request) -> Optional[User]:
    auth_token = req.cookies.get('auth_token', None)
    if not auth_token:
        return None

    store = get_backend(req).users.user_by_auth_token(auth_token)
    return None if store is None else User(store)
