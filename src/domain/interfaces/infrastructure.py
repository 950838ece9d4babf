"""Infrastructure service interfaces for cross-cutting concerns.

This module defines the interfaces of the external collaborators the domain
talks to: the shared counter/cache store and the mail sender.

Counter/Cache Store contract:
    The store is the only mutable state shared between concurrent request
    handlers. Every method is an await point where other requests may
    interleave. Failures, including timeouts, raise ``CounterStoreError`` and
    are never reported as a missing value.
"""

from abc import ABC, abstractmethod
from typing import Optional


class ICounterStore(ABC):
    """Key-value store with atomic counters and expiry."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Returns the value stored under ``key`` or None if absent or expired."""
        raise NotImplementedError

    @abstractmethod
    async def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> None:
        """Stores ``value`` under ``key`` for ``ttl_seconds``."""
        raise NotImplementedError

    @abstractmethod
    async def increment(self, key: str) -> int:
        """Increments the counter at ``key`` (created at 1) and returns it."""
        raise NotImplementedError

    @abstractmethod
    async def expire(self, key: str, ttl_seconds: int) -> None:
        """Sets the time-to-live of an existing key."""
        raise NotImplementedError

    @abstractmethod
    async def atomic_increment_and_expire(self, key: str, ttl_seconds: int) -> int:
        """Increments the counter and, if this created it, sets its expiry.

        Both effects happen as one atomic unit: no caller can observe a counter
        that was created without an expiry. An existing counter keeps its
        original expiry, so repeated calls never extend the window.

        Returns:
            The counter value after the increment.
        """
        raise NotImplementedError

    @abstractmethod
    async def ttl(self, key: str) -> Optional[float]:
        """Remaining lifetime of ``key`` in seconds, None if absent or without expiry."""
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        """Returns True if the store answers."""
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        """Releases connections held by the store."""
        raise NotImplementedError


class IMailSender(ABC):
    """Outbound mail collaborator."""

    @abstractmethod
    async def send_password_reset(self, email: str, token: str) -> None:
        """Delivers a password reset token to ``email``.

        Raises:
            EmailServiceError: If the message could not be handed off.
        """
        raise NotImplementedError
