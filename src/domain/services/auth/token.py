import secrets
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from jwt import ExpiredSignatureError, PyJWTError
from jwt import decode as jwt_decode
from jwt import encode as jwt_encode
from structlog import get_logger

from src.core.config.settings import settings
from src.core.exceptions import ExpiredTokenError, InvalidTokenError, MissingTokenError

logger = get_logger(__name__)


class TokenType(str, Enum):
    SESSION = "session"
    PASSWORD_RESET = "password_reset"


class TokenService:
    """Service for issuing and verifying signed, time-bounded bearer tokens.

    Tokens are HS256 JWTs carrying ``sub`` (the account id), ``typ``, ``iat``,
    ``exp`` and a random ``jti``. Session tokens and password-reset tokens are
    signed with the same secret; the ``typ`` claim keeps one from being
    accepted where the other is expected. There is no revocation list: a
    token stays valid until ``exp``.

    Attributes:
        secret (str): HMAC signing key.
        algorithm (str): JWT algorithm, HS256 by default.
        clock (Callable[[], datetime]): Source of the current UTC time.
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        session_ttl: Optional[timedelta] = None,
        reset_ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.secret = secret or settings.JWT_SECRET.get_secret_value()
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.ttls = {
            TokenType.SESSION: session_ttl
            or timedelta(minutes=settings.SESSION_TOKEN_EXPIRE_MINUTES),
            TokenType.PASSWORD_RESET: reset_ttl
            or timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
        }
        self.clock = clock

    def _issue(self, account_id: int, token_type: TokenType) -> str:
        now = self.clock()
        payload = {
            "sub": str(account_id),
            "typ": token_type.value,
            "iat": now,
            "exp": now + self.ttls[token_type],
            "jti": secrets.token_urlsafe(16),
        }
        token = jwt_encode(payload, self.secret, algorithm=self.algorithm)
        logger.debug("token_issued", account_id=account_id, token_type=token_type.value)
        return token

    def issue_session_token(self, account_id: int) -> str:
        return self._issue(account_id, TokenType.SESSION)

    def issue_password_reset_token(self, account_id: int) -> str:
        return self._issue(account_id, TokenType.PASSWORD_RESET)

    def verify(self, token: Optional[str], expected_type: TokenType = TokenType.SESSION) -> int:
        """Validates a token and returns the account id it was issued for.

        Args:
            token: The raw bearer token, possibly None or empty.
            expected_type: The ``typ`` claim the caller accepts.

        Returns:
            int: The account id from the ``sub`` claim.

        Raises:
            MissingTokenError: If no token was supplied.
            ExpiredTokenError: If the token is well formed but past ``exp``.
            InvalidTokenError: For malformed or forged tokens, a wrong ``typ``
                or a ``sub`` that is not an account id.
        """
        if not token:
            raise MissingTokenError()

        try:
            payload: Dict[str, Any] = jwt_decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "typ", "exp", "iat"]},
                leeway=0,
            )
        except ExpiredSignatureError as e:
            logger.info("token_expired", expected_type=expected_type.value)
            raise ExpiredTokenError() from e
        except PyJWTError as e:
            logger.info("token_rejected", reason=type(e).__name__)
            raise InvalidTokenError() from e

        if payload.get("typ") != expected_type.value:
            logger.warning(
                "token_type_mismatch", expected_type=expected_type.value, got=payload.get("typ")
            )
            raise InvalidTokenError()

        try:
            account_id = int(payload["sub"])
        except (TypeError, ValueError) as e:
            raise InvalidTokenError() from e
        if account_id <= 0:
            raise InvalidTokenError()
        return account_id
