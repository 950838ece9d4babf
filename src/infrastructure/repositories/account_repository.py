"""Account Repository implementation using SQLAlchemy.

This module provides the repository implementation for Account entity
operations, abstracting database access for the registration, login and
referral services.

Lookups normalize their input (trim, lower-case) the same way registration
normalizes stored values, so email and username comparisons are
case-insensitive. Uniqueness is enforced by the database: ``add`` converts an
``IntegrityError`` into ``DuplicateUserError`` so that two concurrent
registrations for the same identity cannot both succeed.
"""

from typing import Optional

from sqlalchemy import exists, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.core.exceptions import DuplicateUserError
from src.core.logging import mask_email
from src.domain.entities.account import Account
from src.domain.interfaces.repositories import IAccountRepository

logger = get_logger(__name__)


def _normalize(value: str) -> str:
    return value.strip().lower()


class AccountRepository(IAccountRepository):
    """SQLAlchemy implementation of IAccountRepository.

    The repository never commits: it flushes inside the caller's transaction,
    and the unit of work decides whether the transaction is committed.
    """

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def _first(self, statement, operation: str) -> Optional[Account]:
        try:
            result = await self.db_session.execute(statement)
            account = result.scalars().first()
        except Exception as e:
            logger.error(
                "account_lookup_failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        logger.debug("account_lookup_completed", operation=operation, found=account is not None)
        return account

    async def get_by_id(self, account_id: int) -> Optional[Account]:
        return await self._first(select(Account).where(Account.id == account_id), "get_by_id")

    async def get_by_email(self, email: str) -> Optional[Account]:
        return await self._first(
            select(Account).where(Account.email == _normalize(email)), "get_by_email"
        )

    async def get_by_login(self, email_or_username: str) -> Optional[Account]:
        """Matches the identifier against both email and username."""
        identifier = _normalize(email_or_username)
        statement = select(Account).where(
            or_(Account.email == identifier, Account.username == identifier)
        )
        return await self._first(statement, "get_by_login")

    async def get_by_referral_code(self, code: str) -> Optional[Account]:
        return await self._first(
            select(Account).where(Account.referral_code == code.strip()), "get_by_referral_code"
        )

    async def identity_taken(self, email: str, username: str) -> bool:
        statement = select(
            exists().where(
                or_(Account.email == _normalize(email), Account.username == _normalize(username))
            )
        )
        result = await self.db_session.execute(statement)
        return bool(result.scalar())

    async def referral_code_taken(self, code: str) -> bool:
        result = await self.db_session.execute(select(exists().where(Account.referral_code == code)))
        return bool(result.scalar())

    async def add(self, account: Account) -> Account:
        """Inserts the account and flushes so that its id is assigned.

        Raises:
            DuplicateUserError: If the email, username or referral code
                collided with an existing row.
        """
        self.db_session.add(account)
        try:
            await self.db_session.flush()
        except IntegrityError as e:
            logger.warning(
                "account_insert_conflict",
                email=mask_email(account.email),
                error_type=type(e).__name__,
            )
            raise DuplicateUserError() from e

        await self.db_session.refresh(account)
        logger.info("account_created", account_id=account.id, email=mask_email(account.email))
        return account

    async def set_referred_by(self, account_id: int, referrer_id: int) -> bool:
        """Conditional update: only an account without a referrer is changed."""
        statement = (
            update(Account)
            .where(Account.id == account_id, Account.referred_by.is_(None))
            .values(referred_by=referrer_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        updated = result.rowcount == 1
        logger.debug(
            "account_referred_by_update",
            account_id=account_id,
            referrer_id=referrer_id,
            updated=updated,
        )
        return updated
