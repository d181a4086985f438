"""
Phone sign-in flow.

Two outcome channels are used on purpose:

- request_sign_in_code / sign_in_by_code never raise for expected failures.
  User-correctable problems and internal failures both come back as an
  AuthError value; internal causes are logged here and never shown to the
  caller.
- resolve_viewer / get_all_products raise. The API layer turns those
  exceptions into transport-level errors.

Codes are not consumed on success unless single_use_codes is enabled, so a
code can be replayed until it expires or a newer code replaces it.
"""
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
import logging
from typing import Optional, Union

from config.clock import ClockError
from users.jwt import TokenError, issue_token, verify_token
from users.models import User
from .repository import PersistenceError
from .sender import SMSDeliveryError

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal error. Please try again later"
ERR_PHONE_REQUIRED = "phone number required"
ERR_INVALID_SMS_CODE = "invalid sms code"
ERR_SMS_CODE_EXPIRED = "sms code has expired"

INTERNAL_FAILURES = (PersistenceError, ClockError, TokenError, SMSDeliveryError)


class ErrorKind(Enum):
    PHONE_REQUIRED = 'PHONE_REQUIRED'
    INVALID_CODE = 'INVALID_CODE'
    CODE_EXPIRED = 'CODE_EXPIRED'
    INTERNAL = 'INTERNAL'
    UNAUTHENTICATED = 'UNAUTHENTICATED'


@dataclass(frozen=True)
class AuthError:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class Viewer:
    phone: str


@dataclass(frozen=True)
class SignInResult:
    token: str
    viewer: Viewer


PHONE_REQUIRED = AuthError(ErrorKind.PHONE_REQUIRED, ERR_PHONE_REQUIRED)
INVALID_CODE = AuthError(ErrorKind.INVALID_CODE, ERR_INVALID_SMS_CODE)
CODE_EXPIRED = AuthError(ErrorKind.CODE_EXPIRED, ERR_SMS_CODE_EXPIRED)
INTERNAL = AuthError(ErrorKind.INTERNAL, INTERNAL_ERROR)


class AuthService:
    def __init__(
        self,
        repository,
        generator,
        sender,
        clock,
        secret_key,
        token_ttl_minutes,
        code_ttl_minutes,
        single_use_codes=False,
    ):
        self.repository = repository
        self.generator = generator
        self.sender = sender
        self.clock = clock
        self.secret_key = secret_key
        self.token_ttl_minutes = token_ttl_minutes
        self.code_ttl_minutes = code_ttl_minutes
        self.single_use_codes = single_use_codes

    def request_sign_in_code(self, phone: str) -> Optional[AuthError]:
        # TODO: validate phone length and country prefix once the accepted formats are agreed
        if not phone:
            return PHONE_REQUIRED

        code = self.generator.generate()
        try:
            self.repository.upsert_sms_code(phone, code, self.code_ttl_minutes)
            self.sender(phone, code)
        except INTERNAL_FAILURES:
            logger.exception("Unable to issue sign-in code for phone %s", phone)
            return INTERNAL

        return None

    def sign_in_by_code(self, phone: str, code: str) -> Union[SignInResult, AuthError]:
        try:
            error = self._check_sms_code(phone, code)
            if error is not None:
                logger.warning("sign-in rejected for phone %s: %s", phone, error.message)
                return error

            user = self.repository.get_user_by_phone(phone)
            if user is None:
                logger.info("registering a user")
                user = self.repository.insert_user(User(phone=phone, name=''))
                logger.info("user registered successfully")

            token = issue_token(user.phone, self.secret_key, self.token_ttl_minutes, self.clock)

            if self.single_use_codes:
                self.repository.delete_sms_code(phone)
        except INTERNAL_FAILURES:
            logger.exception("Unable to sign in phone %s", phone)
            return INTERNAL

        return SignInResult(token=token, viewer=Viewer(phone=user.phone))

    def _check_sms_code(self, phone, code) -> Optional[AuthError]:
        sms_code = self.repository.get_sms_code(phone)
        if sms_code is None or sms_code.code != code:
            return INVALID_CODE

        if self.clock.now() > sms_code.expires_at:
            return CODE_EXPIRED

        return None

    def resolve_viewer(self, token: str) -> Viewer:
        claims = verify_token(token, self.secret_key)
        return Viewer(phone=claims.phone)

    def get_all_products(self):
        return self.repository.list_products()


@lru_cache(maxsize=None)
def get_auth_service() -> AuthService:
    """Process-wide service built from settings; the code generator is seeded once here."""
    from django.conf import settings

    from config.clock import get_clock
    from .codes import CodeGenerator
    from .repository import Repository
    from .sender import send_sign_in_code

    clock = get_clock()
    return AuthService(
        repository=Repository(clock),
        generator=CodeGenerator(),
        sender=send_sign_in_code,
        clock=clock,
        secret_key=settings.TOKEN_SECRET_KEY,
        token_ttl_minutes=settings.TOKEN_EXPIRATION_MINUTES,
        code_ttl_minutes=settings.SMS_CODE_EXPIRATION_MINUTES,
        single_use_codes=getattr(settings, 'SMS_CODE_SINGLE_USE', False),
    )
