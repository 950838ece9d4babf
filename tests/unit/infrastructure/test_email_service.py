from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.config.settings import settings
from src.core.exceptions import EmailServiceError
from src.infrastructure.services.email.email_service import RESET_SUBJECT, EmailService


@pytest.fixture
def production_settings():
    return settings.model_copy(update={"EMAIL_TEST_MODE": False})


class TestEmailService:
    def test_reset_link_carries_token(self):
        service = EmailService(settings)
        link = service.build_reset_link("abc.def")
        assert link == f"{settings.PASSWORD_RESET_URL_BASE}?token=abc.def"

    @pytest.mark.asyncio
    async def test_test_mode_logs_instead_of_sending(self):
        fastmail = MagicMock()
        fastmail.send_message = AsyncMock()
        service = EmailService(settings, fastmail=fastmail)

        await service.send_password_reset("alice@example.com", "tok")

        fastmail.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_production_sends_html_message(self, production_settings):
        fastmail = MagicMock()
        fastmail.send_message = AsyncMock()
        service = EmailService(production_settings, fastmail=fastmail)

        await service.send_password_reset("alice@example.com", "tok")

        message = fastmail.send_message.await_args.args[0]
        assert message.subject == RESET_SUBJECT
        assert "token=tok" in message.body

    @pytest.mark.asyncio
    async def test_delivery_failure_raises_email_service_error(self, production_settings):
        fastmail = MagicMock()
        fastmail.send_message = AsyncMock(side_effect=ConnectionRefusedError("smtp"))
        service = EmailService(production_settings, fastmail=fastmail)

        with pytest.raises(EmailServiceError):
            await service.send_password_reset("alice@example.com", "tok")
