from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer
from sqlmodel import Column, Field, SQLModel

from src.domain.entities.account import utcnow


class ReferralStatus(str, Enum):
    """Outcome of a referral attribution. Only successful edges are recorded."""

    SUCCESSFUL = "successful"


class Referral(SQLModel, table=True):
    """An immutable referral edge linking a referrer to a newly registered account.

    The unique constraint on ``referred_account_id`` is what guarantees that an
    account is credited to at most one referrer: inserting a second edge for
    the same account fails at the database, whatever the interleaving of
    concurrent registrations.
    """

    __tablename__ = "referrals"

    id: Optional[int] = Field(default=None, primary_key=True)
    referrer_id: int = Field(
        sa_column=Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True),
    )
    referred_account_id: int = Field(
        sa_column=Column(Integer, ForeignKey("accounts.id"), nullable=False, unique=True),
    )
    status: ReferralStatus = Field(
        default=ReferralStatus.SUCCESSFUL,
        sa_column=Column(
            SAEnum(ReferralStatus, name="referral_status", values_callable=lambda e: [m.value for m in e]),
            nullable=False,
            default=ReferralStatus.SUCCESSFUL,
        ),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
