from __future__ import annotations

"""Response Pydantic models for the referral endpoints (camelCase on the wire)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReferredUserOut(CamelModel):
    username: str
    email: str


class ReferralOut(CamelModel):
    id: int
    referrer_id: int
    referred_user_id: int
    status: str
    created_at: datetime
    referred_user: ReferredUserOut


class ReferralStatsOut(CamelModel):
    successful_referrals: int
