"""
Authorization gate.

Protected views declare what they need as data::

    @guard(IS_ADMIN)
    @guard(SELF, target='email')

and ``evaluate`` checks the requirements in a fixed order: authenticated,
self-or-forbidden, admin.
"""

from functools import wraps

from flask import current_app, g, request

from .errors import Forbidden, InvalidToken, Unauthorized
from .tokens import verify_token

AUTHENTICATED = 'authenticated'
SELF = 'self'
IS_ADMIN = 'is_admin'

REQUIREMENTS = (AUTHENTICATED, SELF, IS_ADMIN)


def bearer_token(authorization):
    """Extract the token from an ``Authorization: Bearer <token>`` header"""
    if not authorization:
        return None
    parts = authorization.split(' ')
    if len(parts) != 2 or parts[0].lower() != 'bearer' or not parts[1]:
        return None
    return parts[1]


def is_admin(store, email):
    """Only a stored user whose role is exactly 'admin' counts"""
    if not email:
        return False
    user = store.users.find_one({'email': email})
    return user is not None and user.get('role') == 'admin'


def evaluate(requirements, authorization, store, secret, target_email=None):
    """
    Run every requirement against the request and return the verified claims.

    Raises Unauthorized when no valid token is present, Forbidden when the
    caller is authenticated but not permitted.
    """
    unknown = set(requirements) - set(REQUIREMENTS)
    if unknown:
        raise ValueError(f"Unknown requirements: {sorted(unknown)}")

    token = bearer_token(authorization)
    if token is None:
        raise Unauthorized()
    try:
        claims = verify_token(token, secret)
    except InvalidToken as e:
        raise Unauthorized() from e

    email = claims.get('email')

    if SELF in requirements and (not email or email != target_email):
        raise Forbidden()

    if IS_ADMIN in requirements and not is_admin(store, email):
        raise Forbidden()

    return claims


def guard(*requirements, target='email'):
    """
    Decorate a view with its requirements.

    ``target`` names the view argument (or query parameter) that holds the
    e-mail a SELF requirement compares against.
    """
    requirements = requirements or (AUTHENTICATED,)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            target_email = kwargs.get(target, request.args.get(target))
            g.user = evaluate(
                requirements,
                request.headers.get('Authorization'),
                current_app.extensions['store'],
                current_app.config['ACCESS_TOKEN_SECRET'],
                target_email=target_email,
            )
            return f(*args, **kwargs)

        decorated_function.requirements = requirements
        return decorated_function
    return decorator
