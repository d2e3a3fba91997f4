from __future__ import annotations
import os
import pathlib
from typing import TYPE_CHECKING, List, Tuple, Literal, Union

if TYPE_CHECKING:
    from . import utils

# tweak for the deployment;
# paths and credentials below may also be overridden by environment variables

def _env_flag(name: str, default: bool) -> bool:
    val = os.environ.get(name, None)
    if val is None:
        return default
    return val.lower() in ['1', 'true', 'yes']

##
## SECRET KEYS
##

#### ROOT ADMIN (created on startup if missing)

ROOT_ADMIN_USERNAME = os.environ.get('RANKBOARD_ROOT_ADMIN_USERNAME', 'admin')
ROOT_ADMIN_EMAIL = os.environ.get('RANKBOARD_ROOT_ADMIN_EMAIL', 'admin@rankboard.local')
ROOT_ADMIN_PASSWORD = os.environ.get('RANKBOARD_ROOT_ADMIN_PASSWORD', 'Change-me-1')

BCRYPT_ROUNDS = int(os.environ.get('RANKBOARD_BCRYPT_ROUNDS', '12'))

##
## DEPLOYMENT CONFIG
##

PRODUCTION = _env_flag('RANKBOARD_PRODUCTION', False) # tracebacks are returned to clients unless set

#### DATABASE CONNECTORS

DATA_PATH = pathlib.Path(os.environ.get('RANKBOARD_DATA_PATH', 'data')).resolve()

DB_CONNECTOR = os.environ.get('RANKBOARD_DB', f'sqlite:///{DATA_PATH / "rankboard.db"}')

#### FS PATHS

UPLOAD_PATH = pathlib.Path(os.environ.get('RANKBOARD_UPLOAD_PATH', str(DATA_PATH / 'uploads'))).resolve()

#### INTERNAL PORTS

API_SERVER_ADDR: Tuple[str, int] = ('127.0.0.1', int(os.environ.get('RANKBOARD_PORT', '3000')))

#### FUNCTIONS

SUBMISSION_MAX_SIZE_MB = 50
AVATAR_MAX_SIZE_MB = 5

STDOUT_LOG_LEVEL: List[utils.LogLevel] = ['debug', 'info', 'warning', 'error', 'critical', 'success']
DB_LOG_LEVEL: List[utils.LogLevel] = ['warning', 'error', 'critical', 'success']

DISPLAY_TIMEZONE = 'UTC'

#### URLS

BACKEND_SCHEME: Union[Literal['http'], Literal['https']] = 'https' if PRODUCTION else 'http' # used for cookies

CORS_ORIGINS = [
    'http://localhost:5173',
    'http://localhost:3000',
]
