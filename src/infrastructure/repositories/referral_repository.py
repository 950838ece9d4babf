"""Referral Repository implementation using SQLAlchemy.

Edges are append-only. ``add_edge`` relies on the unique constraint on
``referred_account_id`` to reject a second edge for the same account.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.core.exceptions import DuplicateReferralError
from src.domain.entities.account import Account
from src.domain.entities.referral import Referral, ReferralStatus
from src.domain.interfaces.repositories import IReferralRepository

logger = get_logger(__name__)


class ReferralRepository(IReferralRepository):
    """SQLAlchemy implementation of IReferralRepository."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def add_edge(self, referrer_id: int, referred_account_id: int) -> Referral:
        referral = Referral(
            referrer_id=referrer_id,
            referred_account_id=referred_account_id,
            status=ReferralStatus.SUCCESSFUL,
        )
        self.db_session.add(referral)
        try:
            await self.db_session.flush()
        except IntegrityError as e:
            logger.warning(
                "referral_edge_conflict",
                referrer_id=referrer_id,
                referred_account_id=referred_account_id,
            )
            raise DuplicateReferralError() from e

        logger.info(
            "referral_edge_created",
            referral_id=referral.id,
            referrer_id=referrer_id,
            referred_account_id=referred_account_id,
        )
        return referral

    async def get_by_referred_account(self, referred_account_id: int) -> Optional[Referral]:
        result = await self.db_session.execute(
            select(Referral).where(Referral.referred_account_id == referred_account_id)
        )
        return result.scalars().first()

    async def list_by_referrer(self, referrer_id: int) -> List[Tuple[Referral, Account]]:
        statement = (
            select(Referral, Account)
            .join(Account, Account.id == Referral.referred_account_id)
            .where(Referral.referrer_id == referrer_id)
            .order_by(Referral.created_at, Referral.id)
        )
        result = await self.db_session.execute(statement)
        return [(referral, account) for referral, account in result.all()]

    async def count_successful(self, referrer_id: int) -> int:
        statement = select(func.count(Referral.id)).where(
            Referral.referrer_id == referrer_id,
            Referral.status == ReferralStatus.SUCCESSFUL,
        )
        result = await self.db_session.execute(statement)
        return int(result.scalar_one())
