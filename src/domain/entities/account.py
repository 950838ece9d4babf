from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlmodel import Column, Field, SQLModel, String


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(SQLModel, table=True):
    """Represents an Account entity and acts as the referral Aggregate Root.

    An account is created once during registration. Apart from ``referred_by``,
    which the referral attribution sets inside the registration transaction,
    no field changes after creation.

    Attributes:
        id: The unique identifier for the account (primary key).
        username: A unique, case-insensitive username for login.
        email: A unique, case-insensitive email address.
        hashed_password: The bcrypt hash of the account's password.
        referral_code: The code other people use to name this account as
            their referrer. Globally unique when present.
        referral_code_expires_at: After this instant the code is rejected.
        referred_by: The id of the referring account, set at most once and
            never to the account's own id.
        created_at: The timestamp of when the account was created.
    """

    __tablename__ = "accounts"

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="The unique identifier for the account.",
    )
    username: str = Field(
        sa_column=Column(String(50), unique=True, index=True, nullable=False),
        description="Unique, case-insensitive username for login.",
    )
    email: str = Field(
        sa_column=Column(String(255), unique=True, index=True, nullable=False),
        description="Unique, case-insensitive email address.",
    )
    hashed_password: str = Field(
        max_length=255,
        description="Bcrypt-hashed password.",
    )
    referral_code: Optional[str] = Field(
        default=None,
        sa_column=Column(String(32), unique=True, index=True, nullable=True),
        description="Code that other users can register with to credit this account.",
    )
    referral_code_expires_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
        description="The instant after which the referral code is rejected.",
    )
    referred_by: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("accounts.id"), nullable=True, index=True),
        description="The referring account, if any.",
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="The timestamp of when the account was created.",
    )



def as_utc(moment: datetime) -> datetime:
    """Attaches UTC to naive datetimes (SQLite drops the offset on read)."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
