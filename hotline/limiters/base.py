"""Abstract base class for rate limiting strategies."""

import logging
from abc import ABC, abstractmethod

from hotline.models import Admission

logger = logging.getLogger(__name__)


class RateLimiter(ABC):
    @abstractmethod
    async def admit(self, identity: str) -> Admission:
        """Record an attempt for ``identity`` and decide whether it may proceed."""

    async def aclose(self) -> None:
        """Release any resources held by the strategy."""


class UnlimitedLimiter(RateLimiter):
    """Admits everything. Used when the shared store is not configured."""

    def __init__(self) -> None:
        logger.warning("Rate limiting disabled: no shared store configured")

    async def admit(self, identity: str) -> Admission:
        return Admission(allowed=True)
