"""
Redis settings for the rate-limit counters and the referral read cache.
"""
from pydantic import Field, field_validator, ValidationInfo, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
import logging

logger = logging.getLogger(__name__)


class RedisSettings(BaseSettings):
    """
    Defines settings for the Redis connection and for the policies built on it.

    Security Note:
        - REDIS_PASSWORD must be set in production to prevent unauthorized access.
        - RATE_LIMIT_FAIL_OPEN defaults to False: when Redis is unreachable the
          gate rejects with a server error instead of admitting unlimited
          traffic.
    Performance Note:
        - REDIS_OPERATION_TIMEOUT_SECONDS bounds every store call. A timed-out
          call counts as a store failure, not as a missing key.
    """
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = Field(ge=1, le=65535, default=6379)
    REDIS_PASSWORD: SecretStr = SecretStr("")
    REDIS_SSL: bool = False
    REDIS_URL: str = Field(default="", validate_default=True)
    REDIS_OPERATION_TIMEOUT_SECONDS: float = Field(gt=0, default=2.0)

    # Rate limiting settings (fixed window per client address)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_SECONDS: int = Field(ge=1, default=15 * 60)
    RATE_LIMIT_MAX_REQUESTS: int = Field(ge=1, default=100)
    RATE_LIMIT_FAIL_OPEN: bool = False

    # Cache-aside reads
    REFERRAL_CACHE_TTL_SECONDS: int = Field(ge=1, default=300)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("REDIS_URL", mode="before")
    @classmethod
    def assemble_redis_url(cls, v: str | None, info: ValidationInfo) -> str:
        """
        Assembles the Redis connection URL if not provided explicitly.
        Masks password in logs for security.

        Args:
            v: Explicitly provided URL or None.
            info: Validation context with other field values.

        Returns:
            Assembled or provided Redis URL.
        """
        if v:
            return v

        values = info.data
        protocol = "rediss" if values.get("REDIS_SSL") else "redis"
        redis_password = values.get("REDIS_PASSWORD")
        secret = redis_password.get_secret_value() if redis_password else ""
        password = f":{secret}@" if secret else ""

        url = f"{protocol}://{password}{values.get('REDIS_HOST')}:{values.get('REDIS_PORT')}/0"
        logger.debug("Assembled REDIS_URL (password masked for security).")
        return url
