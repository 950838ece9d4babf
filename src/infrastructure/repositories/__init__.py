"""Repository implementations for the infrastructure layer."""

from .account_repository import AccountRepository
from .referral_repository import ReferralRepository
from .unit_of_work import SQLAlchemyUnitOfWork

__all__ = ["AccountRepository", "ReferralRepository", "SQLAlchemyUnitOfWork"]
