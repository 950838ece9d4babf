"""Domain Interfaces for dependency inversion.

These interfaces define contracts that infrastructure layers must implement:
- Repositories: accounts, referral edges and the unit of work tying them
- Infrastructure: the shared counter/cache store and the mail sender
"""

from .infrastructure import ICounterStore, IMailSender
from .repositories import IAccountRepository, IReferralRepository, IUnitOfWork

__all__ = [
    "IAccountRepository",
    "IReferralRepository",
    "IUnitOfWork",
    "ICounterStore",
    "IMailSender",
]
