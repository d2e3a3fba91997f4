from sanic import Blueprint, Request, HTTPResponse, response
from sanic.models.handler_types import RouteHandler
from functools import wraps
from inspect import isawaitable
from typing import Callable, Dict, Any, Union, Awaitable, List, Optional

JsonHandler = Callable[..., Union[Dict[str, Any], Awaitable[Dict[str, Any]]]]

def json_ok(retval: Dict[str, Any], status: int = 200) -> HTTPResponse:
    return response.json({
        'error': None, # may be overridden by retval
        **retval,
    }, status=status)

def json_error(code: str, message: str, status: int, **extra: Any) -> HTTPResponse:
    return response.json({
        'error': code,
        'error_msg': message,
        **extra,
    }, status=status)

def json_endpoint(bp: Blueprint, uri: str, *, methods: Optional[List[str]] = None, status: int = 200) -> Callable[[JsonHandler], RouteHandler]:
    """Route whose handler returns a dict; errors are raised as ``ServiceError`` and rendered by the app."""

    if methods is None:
        methods = ['GET']

    def decorator(fn: JsonHandler) -> RouteHandler:
        @wraps(fn)
        async def wrapped(req: Request, *args: Any, **kwargs: Any) -> HTTPResponse:
            retval_ = fn(req, *args, **kwargs)
            retval = (await retval_) if isawaitable(retval_) else retval_

            return json_ok(retval, status)

        return bp.route(uri, methods, unquote=True)(wrapped)

    return decorator
