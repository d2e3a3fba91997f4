class ServiceError(Exception):
    code = 'SERVICE_ERROR'
    status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message: str = message

    def __str__(self) -> str:
        return self.message

class InvalidParam(ServiceError):
    code = 'INVALID_PARAM'
    status = 400

class Unauthorized(ServiceError):
    code = 'UNAUTHORIZED'
    status = 401

class Forbidden(ServiceError):
    code = 'FORBIDDEN'
    status = 403

class NotFound(ServiceError):
    code = 'NOT_FOUND'
    status = 404

class Conflict(ServiceError):
    code = 'CONFLICT'
    status = 409

class RateLimited(ServiceError):
    code = 'RATE_LIMIT'
    status = 429
