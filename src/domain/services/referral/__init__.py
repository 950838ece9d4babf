"""Referral domain services: code generation, attribution and read models."""

from .attribution import ReferralAttributor
from .codes import generate_referral_code
from .queries import ReferralQueryService

__all__ = ["ReferralAttributor", "ReferralQueryService", "generate_referral_code"]
