import asyncio
from sanic import Blueprint, Request, HTTPResponse
from sanic_ext import validate
from dataclasses import dataclass
from typing import Optional, Dict, Any

from ..auth import add_cookie, del_cookie, require_login
from ..json_endpoint import json_endpoint, json_ok
from ...logic import Backend
from ...state import User

bp = Blueprint('auth', url_prefix='/api/auth')

@dataclass
class LoginParam:
    email: str
    password: str

@bp.route('/login', ['POST'])
@validate(json=LoginParam)
async def login(_req: Request, body: LoginParam, backend: Backend) -> HTTPResponse:
    store = await asyncio.to_thread(backend.users.login, body.email, body.password)
    assert store.auth_token is not None

    res = json_ok({'user': store.describe_json()})
    add_cookie(res, 'auth_token', store.auth_token)
    return res

@bp.route('/logout', ['POST'])
async def logout(_req: Request, backend: Backend, user: Optional[User]) -> HTTPResponse:
    user = require_login(user)
    await asyncio.to_thread(backend.users.logout, user.id)

    res = json_ok({})
    del_cookie(res, 'auth_token')
    return res

@json_endpoint(bp, '/session')
async def session(_req: Request, user: Optional[User]) -> Dict[str, Any]:
    return {
        'user': None if user is None else user.describe_json(),
    }
