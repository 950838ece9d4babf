"""Authentication settings: token signing, token lifetimes and password hashing.
"""

import logging

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class AuthSettings(BaseSettings):
    """Defines settings for JWT issuance, password hashing and referral codes.

    Session and password-reset tokens are signed with the same secret but carry
    a different ``typ`` claim and lifetime, so one can never stand in for the
    other.

    Security Note:
        - JWT_SECRET must be a cryptographically random string and must never
          be logged or committed.
    """

    JWT_SECRET: SecretStr = SecretStr("")
    JWT_ALGORITHM: str = "HS256"
    SESSION_TOKEN_EXPIRE_MINUTES: int = Field(ge=1, default=60)
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = Field(ge=1, le=1440, default=15)

    BCRYPT_WORK_FACTOR: int = Field(ge=4, le=31, default=12)
    PASSWORD_MIN_LENGTH: int = Field(ge=1, default=8)

    REFERRAL_CODE_LENGTH: int = Field(ge=4, le=32, default=8)
    REFERRAL_CODE_EXPIRE_DAYS: int = Field(ge=1, default=30)
