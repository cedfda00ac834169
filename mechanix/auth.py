"""
Bearer-token identity boundary.

Tokens are issued by the identity service; this module only verifies them and
attaches ``request.user_id`` / ``request.user_type`` for the route handlers.
"""
from datetime import datetime, timezone
from functools import wraps

import jwt
from flask import current_app, request

from .errors import ApiError, Err, ErrorKind
from .extensions import db
from .models import User


def generate_token(user_id: str, user_type: str) -> str:
    """Generate JWT token carrying the user id and type"""
    now = datetime.now(timezone.utc)
    payload = {
        'user_id': user_id,
        'user_type': user_type,
        'exp': now + current_app.config['JWT_ACCESS_TOKEN_EXPIRES'],
        'iat': now,
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET_KEY'],
        algorithm=current_app.config['JWT_ALGORITHM'],
    )


def decode_token(token: str) -> dict:
    """Decode and verify JWT token"""
    try:
        return jwt.decode(
            token,
            current_app.config['JWT_SECRET_KEY'],
            algorithms=[current_app.config['JWT_ALGORITHM']],
        )
    except jwt.ExpiredSignatureError:
        raise ValueError('Token has expired')
    except jwt.InvalidTokenError:
        raise ValueError('Invalid token')


def _unauthorized(message):
    return ApiError(Err(ErrorKind.UNAUTHORIZED, message))


def require_auth(f):
    """Decorator to require a valid bearer token for routes"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get('Authorization')
        if not auth_header:
            raise _unauthorized('Missing authorization header')

        parts = auth_header.split(' ')
        if len(parts) != 2 or parts[0].lower() != 'bearer':
            raise _unauthorized('Authorization header must be "Bearer <token>"')

        try:
            payload = decode_token(parts[1])
        except ValueError as e:
            raise _unauthorized(str(e))

        user_id = payload.get('user_id')
        user = db.session.get(User, user_id) if user_id else None
        if user is None:
            raise _unauthorized('User not found')

        request.user_id = user.id
        request.user_type = user.user_type
        return f(*args, **kwargs)

    return decorated_function


def require_role(*user_types):
    """Decorator to restrict routes to specific user types. Use after require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(request, 'user_type'):
                raise _unauthorized('Authentication required')
            if request.user_type not in user_types:
                raise ApiError(Err(ErrorKind.FORBIDDEN, 'Insufficient permissions'))
            return f(*args, **kwargs)

        return decorated_function
    return decorator
