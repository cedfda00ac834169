"""
Error taxonomy, operation results and the response envelope.

Domain operations return ``Ok(value)`` or ``Err(kind, message)`` instead of
raising; the HTTP layer turns either into the JSON envelope. ``ApiError`` is
only raised at the boundary (token checks, schema validation) and is mapped by
the error handlers registered in ``register_error_handlers``.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .extensions import db

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ErrorKind(str, Enum):
    VALIDATION = 'validation_error'
    UNAUTHORIZED = 'unauthorized'
    FORBIDDEN = 'forbidden'
    NOT_FOUND = 'not_found'
    BUSINESS_RULE = 'business_rule_violation'
    CONFLICT = 'conflict'
    INTERNAL = 'internal_error'


HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.BUSINESS_RULE: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]

    def to_dict(self) -> dict:
        return {
            'message': self.message,
            'code': self.code or self.kind.value,
        }


Result = Union[Ok[T], Err]


def validation_error(message: str, code: Optional[str] = None) -> Err:
    return Err(ErrorKind.VALIDATION, message, code)


def not_found(resource: str) -> Err:
    return Err(ErrorKind.NOT_FOUND, f'{resource} not found')


def forbidden(message: str) -> Err:
    return Err(ErrorKind.FORBIDDEN, message)


def business_rule(message: str, code: Optional[str] = None) -> Err:
    return Err(ErrorKind.BUSINESS_RULE, message, code)


def internal_error(message: str) -> Err:
    return Err(ErrorKind.INTERNAL, message)


class ApiError(Exception):
    """Raised at the HTTP boundary; carries the ``Err`` to render."""

    def __init__(self, error: Err):
        super().__init__(error.message)
        self.error = error


def success_response(data: Any = None, status_code: int = 200):
    return jsonify({'success': True, 'data': data}), status_code


def error_response(error: Err):
    return jsonify({'success': False, 'error': error.to_dict()}), error.status_code


def respond(result: Result, status_code: int = 200, serialize=None):
    """Render an operation result as the response envelope."""
    if isinstance(result, Err):
        return error_response(result)
    value = result.value
    if serialize is not None:
        value = serialize(value)
    return success_response(value, status_code)


def register_error_handlers(app):
    """Single boundary that maps every failure to the envelope."""

    @app.errorhandler(ApiError)
    def handle_api_error(e):
        return error_response(e.error)

    @app.errorhandler(429)
    def ratelimit_handler(e):
        return error_response(Err(ErrorKind.BUSINESS_RULE, 'Too many requests. Please try again later.',
                                  code='rate_limited'))[0], 429

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        logger.exception('Unhandled database error')
        return error_response(internal_error('Database operation failed'))

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        kind = {
            400: ErrorKind.VALIDATION,
            401: ErrorKind.UNAUTHORIZED,
            403: ErrorKind.FORBIDDEN,
            404: ErrorKind.NOT_FOUND,
            409: ErrorKind.CONFLICT,
        }.get(e.code)
        code = kind.value if kind else e.name.lower().replace(' ', '_')
        body = {'success': False, 'error': {'message': e.description or e.name, 'code': code}}
        return jsonify(body), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception('Unhandled error')
        return error_response(internal_error('Internal server error'))
