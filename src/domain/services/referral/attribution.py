"""Referral attribution.

Validates the referral code supplied at registration and records the single
referral edge for the new account. The checks run in a fixed order and the
first failing one decides the error:

1. no code: nothing to do
2. unknown code: ``InvalidReferralCodeError``
3. the account's own code: ``SelfReferralError``
4. code past its expiry: ``ExpiredReferralCodeError``
5. record the edge, then set ``referred_by``; losing either write to a
   concurrent attribution raises ``DuplicateReferralError``

Attribution never reads the cache, so an expired code is rejected regardless
of what cached referral data says.
"""

from datetime import datetime
from typing import Callable, Optional

from structlog import get_logger

from src.core.exceptions import (
    DuplicateReferralError,
    ExpiredReferralCodeError,
    InvalidReferralCodeError,
    SelfReferralError,
)
from src.domain.entities.account import Account, as_utc, utcnow
from src.domain.entities.referral import Referral
from src.domain.interfaces.repositories import IAccountRepository, IReferralRepository

logger = get_logger(__name__)


class ReferralAttributor:
    """Credits a newly created account to the owner of a referral code.

    Attributes:
        accounts: Account repository bound to the registration transaction.
        referrals: Referral repository bound to the same transaction.
        clock: Source of the current UTC time.
    """

    def __init__(
        self,
        accounts: IAccountRepository,
        referrals: IReferralRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.accounts = accounts
        self.referrals = referrals
        self.clock = clock

    async def attribute(self, account: Account, referral_code: Optional[str]) -> Optional[Referral]:
        """Validates ``referral_code`` for ``account`` and records the edge.

        Returns:
            The created edge, or None when no code was supplied.

        Raises:
            InvalidReferralCodeError, SelfReferralError,
            ExpiredReferralCodeError, DuplicateReferralError
        """
        code = (referral_code or "").strip()
        if not code:
            return None

        referrer = await self.accounts.get_by_referral_code(code)
        if referrer is None:
            logger.info("referral_code_unknown", account_id=account.id)
            raise InvalidReferralCodeError()

        if referrer.id == account.id or code == account.referral_code:
            logger.warning("self_referral_rejected", account_id=account.id)
            raise SelfReferralError()

        if referrer.referral_code_expires_at is not None:
            if self.clock() > as_utc(referrer.referral_code_expires_at):
                logger.info(
                    "referral_code_expired", account_id=account.id, referrer_id=referrer.id
                )
                raise ExpiredReferralCodeError()

        referral = await self.referrals.add_edge(referrer.id, account.id)
        if not await self.accounts.set_referred_by(account.id, referrer.id):
            raise DuplicateReferralError()
        account.referred_by = referrer.id

        logger.info(
            "referral_attributed",
            referral_id=referral.id,
            referrer_id=referrer.id,
            account_id=account.id,
        )
        return referral
