import asyncio
from sanic import Blueprint, Request
from sanic_ext import validate
from dataclasses import dataclass
from typing import Optional, Dict, Any

from ..auth import require_login, require_admin
from ..json_endpoint import json_endpoint
from ...errors import InvalidParam
from ...logic import Backend
from ...state import User
from ... import utils

bp = Blueprint('challenges', url_prefix='/api/challenges')

@dataclass
class CreateChallengeParam:
    title: str
    description: str = ''
    deadline_s: Optional[int] = None
    deadline: Optional[str] = None # iso 8601, used when deadline_s is absent

@dataclass
class UpdateChallengeParam:
    title: Optional[str] = None
    description: Optional[str] = None
    deadline_s: Optional[int] = None
    deadline: Optional[str] = None

def _resolve_deadline(deadline_s: Optional[int], deadline: Optional[str]) -> Optional[int]:
    if deadline_s is not None:
        return deadline_s
    if deadline is None:
        return None

    ts = utils.parse_iso_timestamp(deadline)
    if ts is None:
        raise InvalidParam('invalid deadline, expected an ISO 8601 timestamp')
    return ts

@json_endpoint(bp, '')
async def list_challenges(_req: Request, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_login(user)

    return {
        'challenges': [backend.challenges.describe(ch) for ch in backend.challenges.list()],
    }

@json_endpoint(bp, '', methods=['POST'], status=201)
@validate(json=CreateChallengeParam)
async def create_challenge(_req: Request, body: CreateChallengeParam, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    user = require_admin(user)

    deadline_s = _resolve_deadline(body.deadline_s, body.deadline)
    if deadline_s is None:
        raise InvalidParam('deadline is required')

    ch = backend.challenges.create(body.title, body.description, deadline_s, user.id)
    return {'challenge': backend.challenges.describe(ch)}

@json_endpoint(bp, '/<cid:int>')
async def get_challenge(_req: Request, cid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_login(user)

    return {'challenge': backend.challenges.describe(backend.challenges.require(cid))}

@json_endpoint(bp, '/<cid:int>', methods=['PUT'])
@validate(json=UpdateChallengeParam)
async def update_challenge(_req: Request, cid: int, body: UpdateChallengeParam, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_admin(user)

    ch = backend.challenges.update(
        cid,
        title=body.title,
        description=body.description,
        deadline_s=_resolve_deadline(body.deadline_s, body.deadline),
    )
    return {'challenge': backend.challenges.describe(ch)}

@json_endpoint(bp, '/<cid:int>', methods=['DELETE'])
async def delete_challenge(_req: Request, cid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_admin(user)

    removed = await asyncio.to_thread(backend.challenges.delete, cid)
    return {'removed_files': len(removed)}
