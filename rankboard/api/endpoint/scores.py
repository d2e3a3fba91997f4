import asyncio
from sanic import Blueprint, Request
from sanic_ext import validate
from dataclasses import dataclass
from typing import Optional, Dict, Any

from ..auth import require_login, require_admin
from ..json_endpoint import json_endpoint
from ...logic import Backend
from ...state import User

bp = Blueprint('scores', url_prefix='/api')

@dataclass
class ScoreParam:
    score: int
    feedback: Optional[str] = None

@json_endpoint(bp, '/challenges/<cid:int>/scores')
async def leaderboard(_req: Request, cid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_login(user)
    backend.challenges.require(cid)

    entries = await asyncio.to_thread(backend.leaderboard.compute_leaderboard, cid)
    return {
        'leaderboard': [e.describe_json() for e in entries],
    }

@json_endpoint(bp, '/submissions/<sid:int>/scores', methods=['POST'])
@validate(json=ScoreParam)
async def upsert_score(_req: Request, sid: int, body: ScoreParam, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    user = require_admin(user)

    score = backend.scoring.score_or_update(sid, user.id, body.score, body.feedback or None)
    return {'score': score.describe_json()}

@json_endpoint(bp, '/submissions/<sid:int>/scores')
async def list_scores(_req: Request, sid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_admin(user)

    return {'scores': backend.scoring.scores_for_submission(sid)}

@json_endpoint(bp, '/submissions/<sid:int>/scores/me')
async def my_scores(_req: Request, sid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    user = require_login(user)

    return backend.scoring.my_scores(sid, user.id)
