import asyncio
from sanic import Blueprint, Request, HTTPResponse, response
from sanic_ext import validate
from dataclasses import dataclass
from typing import Optional, Dict, Any

from ..auth import require_admin, require_self_or_admin
from ..json_endpoint import json_endpoint
from ...errors import InvalidParam, Forbidden, NotFound
from ...logic import Backend
from ...state import User

bp = Blueprint('users', url_prefix='/api/users')
uploads_bp = Blueprint('uploads', url_prefix='/uploads')

@dataclass
class CreateUserParam:
    username: str
    email: str
    password: str
    role: str = 'user'

@dataclass
class UpdateUserParam:
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None

@json_endpoint(bp, '')
async def list_users(req: Request, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_admin(user)

    role = req.args.get('role', None)
    return {
        'users': [u.describe_json() for u in backend.users.list(role)],
    }

@json_endpoint(bp, '', methods=['POST'], status=201)
@validate(json=CreateUserParam)
async def create_user(_req: Request, body: CreateUserParam, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_admin(user)

    # bcrypt is slow on purpose, keep it off the event loop
    created = await asyncio.to_thread(backend.users.create, body.username, body.email, body.password, body.role)
    return {'user': created.describe_json()}

@json_endpoint(bp, '/<uid:int>')
async def get_user(_req: Request, uid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_self_or_admin(user, uid)

    return {'user': backend.users.require(uid).describe_json()}

@json_endpoint(bp, '/<uid:int>', methods=['PUT'])
@validate(json=UpdateUserParam)
async def update_user(_req: Request, uid: int, body: UpdateUserParam, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    user = require_self_or_admin(user, uid)
    if body.role is not None and not user.is_admin:
        raise Forbidden('only admins can change roles')

    updated = await asyncio.to_thread(
        backend.users.update,
        uid,
        username=body.username,
        email=body.email,
        password=body.password,
        role=body.role,
    )
    return {'user': updated.describe_json()}

@json_endpoint(bp, '/<uid:int>', methods=['DELETE'])
async def delete_user(_req: Request, uid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    user = require_admin(user)
    if user.id==uid:
        raise Forbidden('you cannot delete your own account')

    await asyncio.to_thread(backend.users.delete, uid)
    return {}

@json_endpoint(bp, '/<uid:int>/avatar', methods=['POST'])
async def upload_avatar(req: Request, uid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_self_or_admin(user, uid)
    backend.users.require(uid)

    f = req.files.get('avatar') if req.files else None
    if f is None:
        raise InvalidParam('no avatar file uploaded')

    filename = await asyncio.to_thread(backend.uploads.save_avatar, uid, f.body, f.name)
    updated = await asyncio.to_thread(backend.users.update_avatar, uid, filename)
    return {'user': updated.describe_json()}

@json_endpoint(bp, '/<uid:int>/avatar', methods=['DELETE'])
async def delete_avatar(_req: Request, uid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_self_or_admin(user, uid)

    updated = await asyncio.to_thread(backend.users.delete_avatar, uid)
    return {'user': updated.describe_json()}

@uploads_bp.route('/avatars/<filename:str>', ['GET'])
async def avatar_file(_req: Request, filename: str, backend: Backend) -> HTTPResponse:
    p = backend.uploads.path('avatars', filename)
    if not p.is_file():
        raise NotFound('avatar not found')

    return await response.file(p, headers={'Cache-Control': 'public, max-age=86400'})
