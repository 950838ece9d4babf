import re
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from passlib.context import CryptContext
from structlog import get_logger

from src.core.config.settings import settings
from src.core.exceptions import (
    DuplicateUserError,
    InvalidCredentialsError,
    UserNotFoundError,
    ValidationError,
)
from src.core.logging import mask_email
from src.domain.entities.account import Account, utcnow
from src.domain.interfaces.infrastructure import IMailSender
from src.domain.interfaces.repositories import IUnitOfWork
from src.domain.services.auth.token import TokenService
from src.domain.services.referral.attribution import ReferralAttributor
from src.domain.services.referral.codes import allocate_referral_code

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")


def build_password_context(rounds: int = settings.BCRYPT_WORK_FACTOR) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def validate_registration(
    email: Optional[str],
    username: Optional[str],
    password: Optional[str],
    min_password_length: int = settings.PASSWORD_MIN_LENGTH,
) -> Tuple[str, str]:
    """Checks registration input and returns the normalized (email, username).

    Raises:
        ValidationError: With the first failing rule: missing field, email
            format, then password length.
    """
    email = (email or "").strip().lower()
    username = (username or "").strip().lower()
    if not email or not username or not password:
        raise ValidationError("All fields are required", code="missing_fields")
    if not EMAIL_PATTERN.search(email):
        raise ValidationError("Invalid email format", code="invalid_email")
    if len(password) < min_password_length:
        raise ValidationError(
            f"Password must be at least {min_password_length} characters",
            code="password_too_short",
        )
    return email, username


class UserAuthenticationService:
    """
    Service for registration, login and password reset requests.

    Registration and referral attribution run inside one unit of work: if the
    referral code is rejected, or a concurrent registration wins a uniqueness
    race, the new account is rolled back and nothing is persisted.

    Attributes:
        uow (IUnitOfWork): Transaction boundary and repositories.
        token_service (TokenService): Issues session and reset tokens.
        mail_sender (IMailSender): Delivers password reset links.
        pwd_context (CryptContext): Passlib context for bcrypt password hashing.
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        token_service: TokenService,
        mail_sender: IMailSender,
        pwd_context: Optional[CryptContext] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.token_service = token_service
        self.mail_sender = mail_sender
        self.pwd_context = pwd_context or build_password_context()
        self.clock = clock

    async def register(
        self,
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
        referral_code: Optional[str] = None,
    ) -> str:
        """
        Registers a new account and returns a session token for it.

        Raises:
            ValidationError: If the input is incomplete or malformed.
            DuplicateUserError: If the email or username is already in use.
            ReferralError: If a supplied referral code is rejected.
        """
        email, username = validate_registration(email, username, password)
        hashed_password = self.pwd_context.hash(password)

        async with self.uow:
            if await self.uow.accounts.identity_taken(email, username):
                logger.info("registration_identity_taken", email=mask_email(email))
                raise DuplicateUserError()

            now = self.clock()
            account = Account(
                email=email,
                username=username,
                hashed_password=hashed_password,
                referral_code=await allocate_referral_code(
                    self.uow.accounts, settings.REFERRAL_CODE_LENGTH
                ),
                referral_code_expires_at=now + timedelta(days=settings.REFERRAL_CODE_EXPIRE_DAYS),
                created_at=now,
            )
            account = await self.uow.accounts.add(account)

            attributor = ReferralAttributor(self.uow.accounts, self.uow.referrals, clock=self.clock)
            await attributor.attribute(account, referral_code)
            await self.uow.commit()

        logger.info(
            "account_registered",
            account_id=account.id,
            email=mask_email(email),
            referred=account.referred_by is not None,
        )
        return self.token_service.issue_session_token(account.id)

    async def login(self, email_or_username: Optional[str], password: Optional[str]) -> str:
        """
        Authenticates by email or username and returns a session token.

        Unknown identifiers and wrong passwords raise the same error.

        Raises:
            InvalidCredentialsError: If the credentials do not match an account.
        """
        if not email_or_username or not password:
            raise InvalidCredentialsError()

        account = await self.uow.accounts.get_by_login(email_or_username)
        if account is None:
            # Keeps response timing independent of whether the account exists.
            self.pwd_context.dummy_verify()
            logger.info("login_failed", reason="unknown_account")
            raise InvalidCredentialsError()

        if not self.pwd_context.verify(password, account.hashed_password):
            logger.info("login_failed", reason="wrong_password", account_id=account.id)
            raise InvalidCredentialsError()

        logger.info("login_succeeded", account_id=account.id)
        return self.token_service.issue_session_token(account.id)

    async def request_password_reset(self, email: Optional[str]) -> None:
        """
        Issues a password reset token and hands it to the mail sender.

        Raises:
            ValidationError: If no email was supplied.
            UserNotFoundError: If no account uses the email.
            EmailServiceError: If the mail sender fails.
        """
        if not email or not email.strip():
            raise ValidationError("Email is required", code="missing_fields")

        account = await self.uow.accounts.get_by_email(email)
        if account is None:
            logger.info("password_reset_unknown_email", email=mask_email(email))
            raise UserNotFoundError()

        token = self.token_service.issue_password_reset_token(account.id)
        await self.mail_sender.send_password_reset(account.email, token)
        logger.info("password_reset_requested", account_id=account.id)
