"""Infrastructure Services.

Concrete implementations of the domain's outbound collaborators. Currently
this is the mail sender that delivers password reset links.
"""

from .email.email_service import EmailService

__all__ = ["EmailService"]
