"""Outbound mail settings.

Only one message is ever sent, the password reset link, so this covers the
SMTP connection, the sender identity and the frontend URL the link points to.
"""

from typing import Optional

from pydantic import EmailStr, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings


class EmailSettings(BaseSettings):
    """SMTP connection and reset-link settings.

    ``EMAIL_TEST_MODE`` is forced on in the development and test
    environments (see ``Settings``); the mail sender then logs the link.
    """

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = Field(default=587, ge=1, le=65535)
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[SecretStr] = None
    SMTP_USE_TLS: bool = True  # STARTTLS on 587
    SMTP_USE_SSL: bool = False  # implicit TLS on 465

    FROM_EMAIL: EmailStr = "noreply@example.com"
    FROM_NAME: str = "Referlink"

    PASSWORD_RESET_URL_BASE: str = "http://localhost:3000/reset-password"
    EMAIL_TEST_MODE: bool = False

    @field_validator("PASSWORD_RESET_URL_BASE")
    @classmethod
    def strip_query_separator(cls, v: str) -> str:
        # The token is appended as ``?token=...``.
        return v.rstrip("?/")

    def validate_smtp_config(self) -> None:
        """Rejects SMTP settings that cannot deliver in staging or production.

        Raises:
            ValueError: If credentials are missing or both TLS modes are on.
        """
        if self.EMAIL_TEST_MODE or getattr(self, "APP_ENV", "development") not in {
            "production",
            "staging",
        }:
            return

        if not self.SMTP_USERNAME or not self.SMTP_PASSWORD:
            raise ValueError("SMTP_USERNAME and SMTP_PASSWORD are required outside development")
        if self.SMTP_USE_TLS and self.SMTP_USE_SSL:
            raise ValueError("SMTP_USE_TLS and SMTP_USE_SSL are mutually exclusive")
