import asyncio
from sanic import Blueprint, Request, HTTPResponse, response
from typing import Optional, Dict, Any

from ..auth import require_login, require_admin
from ..json_endpoint import json_endpoint
from ...errors import InvalidParam, Forbidden
from ...logic import Backend
from ...state import User

bp = Blueprint('submissions', url_prefix='/api')

@json_endpoint(bp, '/challenges/<cid:int>/submissions')
async def list_submissions(_req: Request, cid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    user = require_login(user)
    backend.challenges.require(cid)

    return {
        'submissions': backend.submissions.list_for_caller(cid, user.id, user.role),
    }

def _submit(req: Request, cid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    user = require_login(user)
    if user.role!='user':
        raise Forbidden('only participants can submit')
    backend.challenges.require(cid)

    f = req.files.get('submission') if req.files else None
    if f is None:
        raise InvalidParam('no file uploaded')

    filename = backend.uploads.save_submission(cid, user.id, f.body, f.name)
    try:
        sub = backend.submissions.submit(cid, user.id, filename)
    except Exception:
        backend.uploads.remove('submissions', filename)
        raise

    return {'submission': sub.describe_json()}

@json_endpoint(bp, '/challenges/<cid:int>/submissions', methods=['POST'], status=201)
async def create_submission(req: Request, cid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    return await asyncio.to_thread(_submit, req, cid, backend, user)

@json_endpoint(bp, '/challenges/<cid:int>/submissions', methods=['PUT'])
async def replace_submission(req: Request, cid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    return await asyncio.to_thread(_submit, req, cid, backend, user)

@bp.route('/submissions/<sid:int>/download', ['GET'])
async def download_submission(_req: Request, sid: int, backend: Backend, user: Optional[User]) -> HTTPResponse:
    user = require_login(user)

    sub, p = backend.submissions.file_for_download(sid, user.id, user.role)
    return await response.file(
        p,
        headers={
            'Cache-Control': 'no-cache',
            'Content-Disposition': f'attachment; filename="{sub.filename}"',
        },
        mime_type='application/pdf',
    )

@json_endpoint(bp, '/submissions/<sid:int>', methods=['DELETE'])
async def delete_submission(_req: Request, sid: int, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_admin(user)

    await asyncio.to_thread(backend.submissions.delete, sid)
    return {}
