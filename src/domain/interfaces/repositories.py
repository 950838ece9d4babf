"""Repository interfaces for abstracting data persistence in the domain layer.

This module defines the abstract base classes (interfaces) for repositories,
which act as a "port" in the context of Hexagonal Architecture. The domain layer
uses these interfaces to interact with persistence mechanisms without being
coupled to any specific technology.

The concrete implementations of these interfaces reside in the `infrastructure`
layer. Two guarantees of the relational store are part of the contract because
referral consistency depends on them:

- ``IReferralRepository.add_edge`` is a single conditional write keyed by the
  referred account id: at most one edge per account ever succeeds.
- ``IAccountRepository.set_referred_by`` only writes when the account has no
  referrer yet.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from src.domain.entities.account import Account
from src.domain.entities.referral import Referral


class IAccountRepository(ABC):
    """An interface defining the contract for account persistence operations."""

    @abstractmethod
    async def get_by_id(self, account_id: int) -> Optional[Account]:
        """Retrieves an account by its unique identifier."""
        raise NotImplementedError

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[Account]:
        """Retrieves an account by its (normalized) email address."""
        raise NotImplementedError

    @abstractmethod
    async def get_by_login(self, email_or_username: str) -> Optional[Account]:
        """Retrieves an account whose email or username equals the identifier."""
        raise NotImplementedError

    @abstractmethod
    async def get_by_referral_code(self, code: str) -> Optional[Account]:
        """Retrieves the account owning a referral code."""
        raise NotImplementedError

    @abstractmethod
    async def identity_taken(self, email: str, username: str) -> bool:
        """Checks whether an account already uses the email or the username."""
        raise NotImplementedError

    @abstractmethod
    async def referral_code_taken(self, code: str) -> bool:
        """Checks whether a referral code is already assigned."""
        raise NotImplementedError

    @abstractmethod
    async def add(self, account: Account) -> Account:
        """Inserts a new account inside the current transaction.

        The returned entity has its ``id`` populated.

        Raises:
            DuplicateUserError: If a unique identity constraint was violated,
                e.g. by a concurrent registration.
        """
        raise NotImplementedError

    @abstractmethod
    async def set_referred_by(self, account_id: int, referrer_id: int) -> bool:
        """Records the referrer of an account if it has none yet.

        Returns:
            True if the row was updated, False if a referrer was already set.
        """
        raise NotImplementedError


class IReferralRepository(ABC):
    """An interface defining the contract for referral edge persistence."""

    @abstractmethod
    async def add_edge(self, referrer_id: int, referred_account_id: int) -> Referral:
        """Creates a successful referral edge.

        Raises:
            DuplicateReferralError: If an edge already exists for the referred
                account.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_by_referred_account(self, referred_account_id: int) -> Optional[Referral]:
        """Returns the edge crediting an account, if any."""
        raise NotImplementedError

    @abstractmethod
    async def list_by_referrer(self, referrer_id: int) -> List[Tuple[Referral, Account]]:
        """Returns the referrer's edges, each paired with the referred account,
        oldest first."""
        raise NotImplementedError

    @abstractmethod
    async def count_successful(self, referrer_id: int) -> int:
        """Counts the referrer's successful edges."""
        raise NotImplementedError


class IUnitOfWork(ABC):
    """Groups repository operations into one database transaction.

    Usage:
        async with uow:
            account = await uow.accounts.add(account)
            await uow.referrals.add_edge(referrer.id, account.id)
            await uow.commit()

    Leaving the block without ``commit`` (or through an exception) rolls the
    transaction back.
    """

    accounts: IAccountRepository
    referrals: IReferralRepository

    async def __aenter__(self) -> "IUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None or not self.committed:
            await self.rollback()

    @property
    @abstractmethod
    def committed(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def commit(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError
