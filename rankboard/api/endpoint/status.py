from sanic import Blueprint, Request
import time
from typing import Optional, Dict, Any

from ..auth import require_admin
from ..json_endpoint import json_endpoint
from ...logic import Backend
from ...state import User
from ... import utils

bp = Blueprint('status', url_prefix='/api')

@json_endpoint(bp, '/health')
async def health(_req: Request) -> Dict[str, Any]:
    return {
        'status': 'ok',
        'timestamp_s': int(time.time()),
    }

@json_endpoint(bp, '/status')
async def status(_req: Request, backend: Backend, user: Optional[User]) -> Dict[str, Any]:
    require_admin(user)

    return {
        'process': backend.process_name,
        'counts': backend.collect_telemetry(),
        'sys': utils.sys_status(),
        'time_disp': utils.format_timestamp(time.time()),
    }
