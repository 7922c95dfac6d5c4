"""Rate limiter interfaces.

The coaching pipeline depends on this abstraction (not the concrete
implementation) so the storage backend can be swapped later (e.g., Redis)
with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from writing_coach.core.model_access import AccessTier


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        limited: Whether the request must be rejected.
        retry_after_seconds: Whole seconds until a slot frees up (0 when admitted).
        limit: Max requests per window for the caller's tier.
        current_count: Requests counted in the window (including this one when admitted).
    """

    limited: bool
    retry_after_seconds: int
    limit: int
    current_count: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.current_count)


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, key: str, tier: AccessTier) -> RateLimitResult:
        """Check the caller's budget and record the request when admitted.

        Args:
            key: Namespaced caller key (e.g. ``ip:1.2.3.4``, ``user:abc``).
            tier: Caller's access tier, selecting the applicable limit.

        Returns:
            RateLimitResult describing whether it was admitted.
        """
        raise NotImplementedError
