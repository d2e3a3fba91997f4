from sanic import Sanic
import os
import logging
from sanic.request import Request
from sanic import HTTPResponse
from sanic.exceptions import SanicException
from typing import Optional, Any, Dict

from . import get_backend, get_cur_user
from .json_endpoint import json_error
from ..errors import ServiceError
from ..logic import Backend, backend_from_config
from ..state import User
from .. import utils
from .. import secret

HTTP_ERROR_CODES: Dict[int, str] = {
    400: 'INVALID_PARAM',
    401: 'UNAUTHORIZED',
    403: 'FORBIDDEN',
    404: 'NOT_FOUND',
    405: 'METHOD_NOT_ALLOWED',
    409: 'CONFLICT',
    413: 'PAYLOAD_TOO_LARGE',
    429: 'RATE_LIMIT',
}

app = Sanic('rankboard-backend')
app.config.DEBUG = False
app.config.OAS = False
app.config.KEEP_ALIVE_TIMEOUT = 15
app.config.REQUEST_MAX_SIZE = 1024*1024*(1+max(secret.SUBMISSION_MAX_SIZE_MB, secret.AVATAR_MAX_SIZE_MB))
app.config.CORS_ORIGINS = ','.join(secret.CORS_ORIGINS)
app.config.CORS_SUPPORTS_CREDENTIALS = True

app.ext.add_dependency(Backend, get_backend)
app.ext.add_dependency(Optional[User], get_cur_user)

@app.before_server_start
async def setup_logging(_cur_app: Sanic[Any, Any]) -> None:
    logging.getLogger('sanic.root').setLevel(logging.INFO)

async def handle_error(req: Request, exc: Exception) -> HTTPResponse:
    backend: Backend = req.app.ctx.backend

    if isinstance(exc, ServiceError):
        return json_error(exc.code, exc.message, exc.status)

    try:
        user = get_cur_user(req)
        debug_info = f'{req.id} {req.uri_template} U#{"--" if user is None else user.id}'
    except Exception as e:
        debug_info = f'{req.id}, no debug info, {repr(e)}'

    if isinstance(exc, SanicException) and exc.status_code!=500:
        return json_error(HTTP_ERROR_CODES.get(exc.status_code, 'HTTP_ERROR'), str(exc), exc.status_code)

    # otherwise, 500

    tb = utils.get_traceback(exc)
    backend.log('error', 'app.handle_error', f'exception in request ({debug_info})\n{tb}')

    extra = {} if secret.PRODUCTION else {'details': tb}
    return json_error('INTERNAL_ERROR', f'internal server error, request id: {req.id}', 500, **extra)

app.error_handler.add(Exception, handle_error)

from .endpoint import auth
from .endpoint import users
from .endpoint import challenges
from .endpoint import submissions
from .endpoint import scores
from .endpoint import status
for _bp in [auth.bp, users.bp, users.uploads_bp, challenges.bp, submissions.bp, scores.bp, status.bp]:
    app.blueprint(_bp)

def start() -> None:
    backend = backend_from_config(f'api-{os.getpid()}')
    backend.init(secret.ROOT_ADMIN_USERNAME, secret.ROOT_ADMIN_EMAIL, secret.ROOT_ADMIN_PASSWORD)
    app.ctx.backend = backend

    host, port = secret.API_SERVER_ADDR
    app.run(
        host=host,
        port=port,
        debug=False,
        access_log=False,
        single_process=True,
    )
