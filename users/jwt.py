"""
Viewer tokens.

A token is a HS256-signed JWT whose payload carries the signed-in phone and
an expiry. Tokens are stateless: nothing is stored, and verification relies
only on the signature and the library's `exp` enforcement.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging

import jwt

logger = logging.getLogger(__name__)

JWT_ALGORITHM = 'HS256'


class TokenError(Exception):
    pass


class SigningError(TokenError):
    pass


class EmptyTokenError(TokenError):
    pass


class InvalidSignatureError(TokenError):
    pass


class MalformedTokenError(TokenError):
    pass


class ExpiredOrInvalidError(TokenError):
    pass


@dataclass(frozen=True)
class TokenClaims:
    phone: str
    expires_at: datetime


def issue_token(phone: str, secret_key: str, ttl_minutes: int, clock) -> str:
    """Sign a token for `phone` that expires `ttl_minutes` after `clock.now()`."""
    logger.info("creating token")
    expires_at = clock.now() + timedelta(minutes=ttl_minutes)
    payload = {
        'phone': phone,
        'exp': expires_at,
    }
    try:
        token = jwt.encode(payload, secret_key, algorithm=JWT_ALGORITHM)
    except (jwt.PyJWTError, TypeError, ValueError) as exc:
        raise SigningError(f"unable to create jwt token: {exc}") from exc

    logger.info("token successfully created")
    return token


def verify_token(token: str, secret_key: str) -> TokenClaims:
    logger.info("checking token")
    if not token:
        raise EmptyTokenError("token is empty")

    try:
        payload = jwt.decode(
            token,
            secret_key,
            algorithms=[JWT_ALGORITHM],
            options={'require': ['exp']},
        )
    except jwt.InvalidSignatureError as exc:
        raise InvalidSignatureError("token signature is invalid") from exc
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredOrInvalidError("token is not valid") from exc
    except jwt.InvalidTokenError as exc:
        raise MalformedTokenError(f"error with parsing token: {exc}") from exc

    phone = payload.get('phone')
    if not isinstance(phone, str) or not phone:
        raise MalformedTokenError("token payload has no phone")

    logger.info("token is valid")
    return TokenClaims(
        phone=phone,
        expires_at=datetime.fromtimestamp(payload['exp'], tz=timezone.utc),
    )
