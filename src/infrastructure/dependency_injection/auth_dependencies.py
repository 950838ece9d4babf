"""Dependencies for authentication and referral services.

This module provides the FastAPI dependency factories that wire repositories,
infrastructure adapters and domain services together per request. Routes
depend on these factories only, so tests can replace any layer through
``app.dependency_overrides``.

Process-wide collaborators (token service, password context, mail sender) are
built once; the counter store is created by the lifespan manager and read
from ``app.state``; database-bound objects are created per request around the
request's ``AsyncSession``.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import settings
from src.domain.interfaces import ICounterStore, IMailSender, IUnitOfWork
from src.domain.services.auth.token import TokenService
from src.domain.services.auth.user_authentication import (
    UserAuthenticationService,
    build_password_context,
)
from src.domain.services.referral.queries import ReferralQueryService
from src.infrastructure.cache import CacheAsideReader
from src.infrastructure.database import get_db
from src.infrastructure.repositories import ReferralRepository, SQLAlchemyUnitOfWork
from src.infrastructure.services.email.email_service import EmailService

# ---------------------------------------------------------------------------
# Type aliases for dependency injection
# ---------------------------------------------------------------------------

AsyncDB = Annotated[AsyncSession, Depends(get_db)]

# ---------------------------------------------------------------------------
# Infrastructure Layer Dependencies
# ---------------------------------------------------------------------------


def get_counter_store(request: Request) -> ICounterStore:
    """Returns the counter/cache store opened by the lifespan manager."""
    return request.app.state.counter_store


def get_unit_of_work(db: AsyncDB) -> IUnitOfWork:
    return SQLAlchemyUnitOfWork(db)


@lru_cache
def get_token_service() -> TokenService:
    return TokenService()


@lru_cache
def get_password_context() -> CryptContext:
    return build_password_context(settings.BCRYPT_WORK_FACTOR)


@lru_cache
def get_mail_sender() -> IMailSender:
    """Factory that returns the mail sender.

    In EMAIL_TEST_MODE the sender logs instead of delivering, which is what
    the development and test environments use.
    """
    return EmailService(settings)


def get_cache_reader(
    store: Annotated[ICounterStore, Depends(get_counter_store)],
) -> CacheAsideReader:
    return CacheAsideReader(store, default_ttl=settings.REFERRAL_CACHE_TTL_SECONDS)


# ---------------------------------------------------------------------------
# Domain Service Dependencies
# ---------------------------------------------------------------------------


def get_user_authentication_service(
    uow: Annotated[IUnitOfWork, Depends(get_unit_of_work)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
    mail_sender: Annotated[IMailSender, Depends(get_mail_sender)],
    pwd_context: Annotated[CryptContext, Depends(get_password_context)],
) -> UserAuthenticationService:
    """Factory for the registration/login/password-reset service.

    The unit of work shares the request's database session, so the service's
    writes commit or roll back with it.
    """
    return UserAuthenticationService(uow, token_service, mail_sender, pwd_context=pwd_context)


def get_referral_query_service(
    db: AsyncDB,
    cache: Annotated[CacheAsideReader, Depends(get_cache_reader)],
) -> ReferralQueryService:
    return ReferralQueryService(
        ReferralRepository(db), cache, ttl_seconds=settings.REFERRAL_CACHE_TTL_SECONDS
    )


UserAuthenticationServiceDep = Annotated[
    UserAuthenticationService, Depends(get_user_authentication_service)
]
ReferralQueryServiceDep = Annotated[ReferralQueryService, Depends(get_referral_query_service)]
