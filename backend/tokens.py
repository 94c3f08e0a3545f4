"""
Identity tokens.

Signed (HS256) bearer tokens that carry the caller's claims, at minimum the
e-mail. Expiry is the only way a token stops being valid.
"""

from datetime import datetime, timedelta, timezone

import jwt

from .errors import InvalidToken

ALGORITHM = 'HS256'
DEFAULT_LIFETIME = timedelta(days=7)
REGISTERED_CLAIMS = ('iat', 'exp')


def issue_token(claims, secret, expires_in=DEFAULT_LIFETIME):
    """Sign the claims with an expiry of ``expires_in`` from now"""
    now = datetime.now(timezone.utc)
    payload = {k: v for k, v in claims.items() if k not in REGISTERED_CLAIMS}
    payload['iat'] = now
    payload['exp'] = now + expires_in
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_token(token, secret):
    """Return the claims embedded in ``token`` or raise InvalidToken"""
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise InvalidToken('Token has expired') from e
    except jwt.InvalidTokenError as e:
        raise InvalidToken('Invalid token') from e

    return {k: v for k, v in payload.items() if k not in REGISTERED_CLAIMS}
