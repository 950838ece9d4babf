"""Email service implementation for password reset delivery."""

from typing import Optional
from urllib.parse import urlencode

import structlog
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from src.core.config.email import EmailSettings
from src.core.exceptions import EmailServiceError
from src.core.logging import mask_email
from src.domain.interfaces.infrastructure import IMailSender

logger = structlog.get_logger(__name__)

RESET_SUBJECT = "Password Reset Request"


class EmailService(IMailSender):
    """Infrastructure email service sending password reset links.

    In test/development mode, emails are logged instead of sent.
    In production mode, emails are sent via the configured SMTP server using
    fastapi-mail.
    """

    def __init__(self, settings: EmailSettings, fastmail: Optional[FastMail] = None):
        self.settings = settings
        self._test_mode = settings.EMAIL_TEST_MODE
        self.fastmail = fastmail
        if self.fastmail is None and not self._test_mode:
            self.fastmail = self._build_fastmail()

    def _build_fastmail(self) -> FastMail:
        try:
            config = ConnectionConfig(
                MAIL_USERNAME=self.settings.SMTP_USERNAME or "",
                MAIL_PASSWORD=self.settings.SMTP_PASSWORD or "",
                MAIL_FROM=self.settings.FROM_EMAIL,
                MAIL_PORT=self.settings.SMTP_PORT,
                MAIL_SERVER=self.settings.SMTP_HOST,
                MAIL_FROM_NAME=self.settings.FROM_NAME,
                MAIL_STARTTLS=self.settings.SMTP_USE_TLS,
                MAIL_SSL_TLS=self.settings.SMTP_USE_SSL,
                USE_CREDENTIALS=bool(self.settings.SMTP_USERNAME and self.settings.SMTP_PASSWORD),
                VALIDATE_CERTS=True,
            )
        except ValueError as e:
            logger.error("Failed to configure FastMail", error=str(e))
            raise EmailServiceError(f"Failed to configure email service: {e}") from e
        logger.info("FastMail configured for production use")
        return FastMail(config)

    def build_reset_link(self, token: str) -> str:
        return f"{self.settings.PASSWORD_RESET_URL_BASE}?{urlencode({'token': token})}"

    async def send_password_reset(self, email: str, token: str) -> None:
        """Sends the password reset link to ``email``.

        Raises:
            EmailServiceError: If SMTP delivery fails in production mode
        """
        reset_link = self.build_reset_link(token)
        minutes = getattr(self.settings, "PASSWORD_RESET_TOKEN_EXPIRE_MINUTES", 15)
        body = (
            f'<p>Click <a href="{reset_link}">here</a> to reset your password. '
            f"Link expires in {minutes} minutes.</p>"
        )

        if self._test_mode:
            logger.info(
                "Password reset email (test mode)",
                to_email=mask_email(email),
                subject=RESET_SUBJECT,
                reset_link_length=len(reset_link),
            )
            return

        message = MessageSchema(
            subject=RESET_SUBJECT,
            recipients=[email],
            body=body,
            subtype=MessageType.html,
        )
        try:
            await self.fastmail.send_message(message)
        except Exception as e:
            logger.error(
                "Failed to send password reset email",
                to_email=mask_email(email),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise EmailServiceError(f"Failed to send email: {e}") from e

        logger.info("Password reset email sent", to_email=mask_email(email))
