from .token import TokenService, TokenType
from .user_authentication import UserAuthenticationService

__all__ = [
    "UserAuthenticationService",
    "TokenService",
    "TokenType",
]
