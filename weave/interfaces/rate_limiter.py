"""Abstract base class for per-user request rate limiting."""

from __future__ import annotations

from abc import ABC, abstractmethod


class IRateLimiter(ABC):
    """Contract for fixed-window rate limiting keyed by ``(user_id, function_name)``."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create backing tables if needed."""

    @abstractmethod
    async def check(
        self,
        user_id: str,
        function_name: str,
        max_requests: int | None = None,
        window_minutes: int | None = None,
    ) -> bool:
        """Count one request and return ``True`` if it is allowed.

        Implementations fail open: a storage error allows the request.
        """

    @property
    @abstractmethod
    def max_requests(self) -> int:
        """Default request budget per window, used in rate-limit messages."""

    @property
    @abstractmethod
    def window_minutes(self) -> int:
        """Default window length in minutes."""
