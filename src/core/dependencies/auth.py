from __future__ import annotations

# FastAPI & typing
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

# Project imports
from src.core.exceptions import InvalidTokenError, MissingTokenError
from src.domain.entities.account import Account
from src.domain.services.auth.token import TokenService, TokenType
from src.infrastructure.database import get_db
from src.infrastructure.dependency_injection.auth_dependencies import get_token_service
from src.infrastructure.repositories import AccountRepository

__all__ = [
    "get_current_account",
    "CurrentAccount",
]

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Type-annotated dependency shortcuts
# ---------------------------------------------------------------------------

# auto_error=False: a missing header must produce our own 401 body.
BearerCredentials = Annotated[
    Optional[HTTPAuthorizationCredentials], Depends(HTTPBearer(auto_error=False))
]
DBSession = Annotated[AsyncSession, Depends(get_db)]
Tokens = Annotated[TokenService, Depends(get_token_service)]


# ---------------------------------------------------------------------------
# Public dependencies
# ---------------------------------------------------------------------------


async def get_current_account(
    request: Request,
    credentials: BearerCredentials,
    db_session: DBSession,
    token_service: Tokens,
) -> Account:
    """Return the authenticated :class:`~src.domain.entities.account.Account`.

    Only session tokens are accepted. A valid token whose account no longer
    exists is rejected like any other invalid token.

    Raises:
        MissingTokenError: No ``Authorization`` header.
        InvalidTokenError: Non-Bearer scheme, malformed, forged, expired,
            wrong-type or orphaned token.
    """
    if credentials is None or not credentials.credentials:
        # HTTPBearer also yields None for a header with another scheme.
        if request.headers.get("Authorization", "").strip():
            raise InvalidTokenError()
        raise MissingTokenError()

    account_id = token_service.verify(credentials.credentials, TokenType.SESSION)
    account = await AccountRepository(db_session).get_by_id(account_id)
    if account is None:
        logger.warning("token_account_missing", account_id=account_id)
        raise InvalidTokenError()
    return account


CurrentAccount = Annotated[Account, Depends(get_current_account)]
