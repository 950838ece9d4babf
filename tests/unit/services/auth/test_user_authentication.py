from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.exceptions import (
    DuplicateReferralError,
    DuplicateUserError,
    InvalidCredentialsError,
    UserNotFoundError,
    ValidationError,
)
from src.domain.entities.account import Account, utcnow
from src.domain.services.auth.token import TokenService
from src.domain.services.auth.user_authentication import (
    UserAuthenticationService,
    build_password_context,
    validate_registration,
)


@pytest.fixture(scope="module")
def pwd_context():
    return build_password_context(rounds=4)


@pytest.fixture
def uow():
    """Provides a mocked unit of work with mocked repositories."""
    mock_uow = MagicMock()
    mock_uow.__aenter__ = AsyncMock(return_value=mock_uow)
    mock_uow.__aexit__ = AsyncMock(return_value=None)
    mock_uow.commit = AsyncMock()
    mock_uow.accounts = AsyncMock()
    mock_uow.referrals = AsyncMock()
    mock_uow.accounts.identity_taken.return_value = False
    mock_uow.accounts.referral_code_taken.return_value = False
    return mock_uow


@pytest.fixture
def service(uow, pwd_context, mocker):
    token_service = mocker.Mock(spec=TokenService)
    token_service.issue_session_token.return_value = "session-token"
    token_service.issue_password_reset_token.return_value = "reset-token"
    mail_sender = AsyncMock()
    return UserAuthenticationService(uow, token_service, mail_sender, pwd_context=pwd_context)


class TestValidateRegistration:
    @pytest.mark.parametrize(
        "email, username, password",
        [(None, "bob", "password123"), ("b@x.io", "", "password123"), ("b@x.io", "bob", None)],
    )
    def test_missing_fields(self, email, username, password):
        with pytest.raises(ValidationError, match="All fields are required"):
            validate_registration(email, username, password)

    @pytest.mark.parametrize("email", ["plainaddress", "a@b", "@example.com", "bob@example"])
    def test_invalid_email(self, email):
        with pytest.raises(ValidationError, match="Invalid email format"):
            validate_registration(email, "bob", "password123")

    def test_short_password(self):
        with pytest.raises(ValidationError, match="Password must be at least 8 characters"):
            validate_registration("bob@example.com", "bob", "short")

    def test_missing_fields_win_over_format(self):
        with pytest.raises(ValidationError, match="All fields are required"):
            validate_registration("not-an-email", "bob", "")

    def test_normalizes_identity(self):
        assert validate_registration(" Bob@Example.COM ", " Bob ", "password123") == (
            "bob@example.com",
            "bob",
        )


class TestRegistration:
    @pytest.mark.asyncio
    async def test_duplicate_identity(self, service, uow):
        uow.accounts.identity_taken.return_value = True
        with pytest.raises(DuplicateUserError):
            await service.register("bob@example.com", "bob", "password123")
        uow.accounts.add.assert_not_awaited()
        uow.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_creates_account_with_code_and_returns_token(self, service, uow):
        async def add(account):
            account.id = 5
            return account

        uow.accounts.add.side_effect = add

        token = await service.register("Bob@Example.com", "Bob", "password123")

        assert token == "session-token"
        created = uow.accounts.add.await_args.args[0]
        assert created.email == "bob@example.com"
        assert created.username == "bob"
        assert len(created.referral_code) == 8
        assert created.referral_code_expires_at > created.created_at
        assert (created.referral_code_expires_at - created.created_at).days == 30
        assert created.hashed_password != "password123"
        uow.commit.assert_awaited_once()


    @pytest.mark.asyncio
    async def test_lost_edge_race_rolls_back_registration(self, service, uow):
        async def add(account):
            account.id = 5
            return account

        uow.accounts.add.side_effect = add
        uow.accounts.get_by_referral_code.return_value = Account(
            id=1,
            email="alice@example.com",
            username="alice",
            hashed_password="x",
            referral_code="ALICE234",
            referral_code_expires_at=utcnow() + timedelta(days=1),
        )
        uow.referrals.add_edge.side_effect = DuplicateReferralError()

        with pytest.raises(DuplicateReferralError):
            await service.register("bob@example.com", "bob", "password123", "ALICE234")

        uow.referrals.add_edge.assert_awaited_once_with(1, 5)
        uow.commit.assert_not_awaited()
        exc_type = uow.__aexit__.await_args.args[0]
        assert exc_type is DuplicateReferralError
        service.token_service.issue_session_token.assert_not_called()


class TestLogin:
    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_user_are_identical(self, service, uow, pwd_context):
        uow.accounts.get_by_login.return_value = Account(
            id=1, email="a@x.io", username="a", hashed_password=pwd_context.hash("password123")
        )
        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await service.login("a", "wrongpassword")

        uow.accounts.get_by_login.return_value = None
        with pytest.raises(InvalidCredentialsError) as unknown_user:
            await service.login("nobody", "password123")

        assert str(wrong_password.value) == str(unknown_user.value) == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_missing_fields_are_invalid_credentials(self, service):
        with pytest.raises(InvalidCredentialsError):
            await service.login(None, "password123")

    @pytest.mark.asyncio
    async def test_success(self, service, uow, pwd_context):
        uow.accounts.get_by_login.return_value = Account(
            id=1, email="a@x.io", username="a", hashed_password=pwd_context.hash("password123")
        )
        assert await service.login("a@x.io", "password123") == "session-token"


class TestPasswordResetRequest:
    @pytest.mark.asyncio
    async def test_unknown_email(self, service, uow):
        uow.accounts.get_by_email.return_value = None
        with pytest.raises(UserNotFoundError):
            await service.request_password_reset("ghost@example.com")
        service.mail_sender.send_password_reset.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sends_reset_token(self, service, uow):
        uow.accounts.get_by_email.return_value = Account(
            id=3, email="a@x.io", username="a", hashed_password="x"
        )
        await service.request_password_reset("a@x.io")
        service.token_service.issue_password_reset_token.assert_called_once_with(3)
        service.mail_sender.send_password_reset.assert_awaited_once_with("a@x.io", "reset-token")

    @pytest.mark.asyncio
    async def test_missing_email(self, service):
        with pytest.raises(ValidationError):
            await service.request_password_reset("  ")
