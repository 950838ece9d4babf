"""SQLAlchemy unit of work.

Binds the account and referral repositories to one ``AsyncSession`` so that
registration and referral attribution commit or roll back together.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.domain.interfaces.repositories import IUnitOfWork
from src.infrastructure.repositories.account_repository import AccountRepository
from src.infrastructure.repositories.referral_repository import ReferralRepository

logger = get_logger(__name__)


class SQLAlchemyUnitOfWork(IUnitOfWork):
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session
        self.accounts = AccountRepository(db_session)
        self.referrals = ReferralRepository(db_session)
        self._committed = False

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        self._committed = False
        return self

    @property
    def committed(self) -> bool:
        return self._committed

    async def commit(self) -> None:
        await self.db_session.commit()
        self._committed = True

    async def rollback(self) -> None:
        await self.db_session.rollback()
        logger.debug("unit_of_work_rolled_back")
