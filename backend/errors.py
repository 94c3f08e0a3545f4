"""
Error types shared by the DishDash backend.

Every error carries the HTTP status it maps to; the Flask error handlers
render them as ``{'success': False, 'message': ...}``.
"""


class ApiError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'success': False, 'message': self.message}


class ValidationError(ApiError):
    status_code = 400
    default_message = 'Bad request'


class Unauthorized(ApiError):
    status_code = 401
    default_message = 'Unauthorized'


class Forbidden(ApiError):
    status_code = 403
    default_message = 'Forbidden'


class NotFound(ApiError):
    status_code = 404
    default_message = 'Resource not found'


class PersistenceError(ApiError):
    status_code = 500
    default_message = 'Database operation failed'


class InvalidToken(Exception):
    """Raised when an identity token is malformed, tampered with or expired"""
