"""Export the persistent domain entities for use across the application."""

from .account import Account
from .referral import Referral, ReferralStatus

__all__ = ["Account", "Referral", "ReferralStatus"]
